"""
Router de pedidos para admin: mudança manual de status, resolução de
reembolsos, fila de revisão de pagamentos e dashboard.
"""
from typing import List

from fastapi import APIRouter, Body, Depends, Path, Query

from app.api.pedidos.schemas.schema_pagamento import PagamentoEventoOut
from app.api.pedidos.schemas.schema_pedido import AtualizarStatusRequest, DashboardOut, PedidoOut
from app.api.pedidos.schemas.schema_reembolso import ReembolsoOut, ResolverReembolsoRequest
from app.api.pedidos.services.dependencies import get_pedido_service, get_reembolso_service
from app.api.pedidos.services.service_pedido import LIMITE_ESTOQUE_BAIXO, PedidoService
from app.api.pedidos.services.service_reembolso import ReembolsoService
from app.core.admin_dependencies import require_admin
from app.core.authorization import UsuarioAutenticado
from app.utils.logger import logger

router = APIRouter(
    prefix="/api/pedidos/admin",
    tags=["Admin - Pedidos"],
    dependencies=[Depends(require_admin)],
)


# ======================================================================
# ============================ DASHBOARD ===============================
@router.get("/dashboard", response_model=DashboardOut)
def obter_dashboard(
    limite_estoque: int = Query(LIMITE_ESTOQUE_BAIXO, ge=1, description="Estoque abaixo do qual o produto é listado"),
    admin: UsuarioAutenticado = Depends(require_admin),
    svc: PedidoService = Depends(get_pedido_service),
):
    return svc.obter_dashboard(admin, limite_estoque=limite_estoque)


# ======================================================================
# ============================ STATUS ==================================
@router.patch("/{pedido_id}/status", response_model=PedidoOut)
def atualizar_status(
    pedido_id: int = Path(..., description="ID do pedido"),
    body: AtualizarStatusRequest = Body(...),
    admin: UsuarioAutenticado = Depends(require_admin),
    svc: PedidoService = Depends(get_pedido_service),
):
    logger.info(f"[Pedidos] Alterar status pedido={pedido_id} -> {body.status.value} admin={admin.id}")
    return svc.atualizar_status(pedido_id, admin, body)


# ======================================================================
# ============================ REEMBOLSOS ==============================
@router.post("/{pedido_id}/resolver-reembolso", response_model=ReembolsoOut)
async def resolver_reembolso(
    pedido_id: int = Path(..., description="ID do pedido"),
    body: ResolverReembolsoRequest = Body(...),
    admin: UsuarioAutenticado = Depends(require_admin),
    svc: ReembolsoService = Depends(get_reembolso_service),
):
    """
    Aprova ou reprova a solicitação em aberto.

    Na aprovação o estorno é enviado ao gateway; se o gateway falhar a resposta
    é 502 e a mesma chamada pode ser repetida com segurança.
    """
    return await svc.resolver_reembolso(
        pedido_id,
        admin,
        aprovado=body.aprovado,
        valor_aprovado_centavos=body.valor_aprovado_centavos,
        motivo=body.motivo,
    )


@router.get("/{pedido_id}/reembolsos", response_model=List[ReembolsoOut])
def listar_reembolsos(
    pedido_id: int = Path(..., description="ID do pedido"),
    admin: UsuarioAutenticado = Depends(require_admin),
    svc: ReembolsoService = Depends(get_reembolso_service),
):
    return svc.listar_reembolsos(pedido_id, admin)


# ======================================================================
# ============================ PAGAMENTOS ==============================
@router.get("/pagamentos/revisao", response_model=List[PagamentoEventoOut])
def listar_pagamentos_revisao(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    admin: UsuarioAutenticado = Depends(require_admin),
    svc: PedidoService = Depends(get_pedido_service),
):
    """Confirmações com divergência de valor ou rejeitadas, para análise manual."""
    return svc.listar_pagamentos_revisao(admin, skip=skip, limit=limit)
