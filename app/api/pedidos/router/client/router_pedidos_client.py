from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query, Request, status

from app.api.pedidos.models.model_pedido import StatusPedido
from app.api.pedidos.models.model_reembolso import TipoReembolso
from app.api.pedidos.schemas.schema_pedido import (
    CheckoutResponse,
    CriarPedidoRequest,
    HistoricoDoPedidoResponse,
    PedidoHistoricoOut,
    PedidoOut,
    PedidoResumoOut,
    PedidoStatusEnum,
    PedidosPaginadosOut,
)
from app.api.pedidos.schemas.schema_reembolso import ReembolsoOut, SolicitarReembolsoRequest
from app.api.pedidos.services.dependencies import (
    get_pedido_checkout_service,
    get_pedido_factory,
    get_pedido_service,
    get_reembolso_service,
)
from app.api.pedidos.services.pedido_factory import PedidoFactory
from app.api.pedidos.services.service_pedido import PedidoService
from app.api.pedidos.services.service_reembolso import ReembolsoService
from app.core.admin_dependencies import get_current_user
from app.core.authorization import UsuarioAutenticado
from app.utils.logger import logger

router = APIRouter(
    prefix="/api/pedidos/client",
    tags=["Client - Pedidos"],
    dependencies=[Depends(get_current_user)],
)


# ======================================================================
# ============================ CRIAÇÃO =================================
@router.post("", response_model=PedidoOut, status_code=status.HTTP_201_CREATED)
async def criar_pedido(
    request: Request,
    payload: CriarPedidoRequest = Body(...),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    factory: PedidoFactory = Depends(get_pedido_factory),
):
    """
    Fecha o carrinho atual: valida cupom, recota o frete, baixa o estoque e
    cria o pedido em `Pendente`. O carrinho é esvaziado em caso de sucesso.
    """
    logger.info(f"[Pedidos] Criar pedido usuario={usuario.id} envio={payload.metodo_envio}")
    endereco = payload.endereco if payload.endereco is not None else payload.endereco_id
    return await factory.criar_pedido_do_carrinho(
        usuario.id,
        endereco=endereco,
        cupom_codigo=payload.cupom_codigo,
        metodo_envio=payload.metodo_envio,
        ip_cliente=request.client.host if request.client else None,
    )


# ======================================================================
# ============================ CONSULTAS ===============================
@router.get("", response_model=PedidosPaginadosOut)
def listar_pedidos(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    status_filtro: Optional[PedidoStatusEnum] = Query(None, alias="status"),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    svc: PedidoService = Depends(get_pedido_service),
):
    itens, total = svc.listar_pedidos(
        usuario,
        page=page,
        page_size=page_size,
        status=StatusPedido(status_filtro.value) if status_filtro else None,
    )
    return PedidosPaginadosOut(
        items=[PedidoResumoOut.model_validate(p) for p in itens],
        total=total,
        page=page,
        page_size=page_size,
        has_more=page * page_size < total,
    )


@router.get("/{pedido_id}", response_model=PedidoOut)
def obter_pedido(
    pedido_id: int = Path(..., description="ID do pedido"),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    svc: PedidoService = Depends(get_pedido_service),
):
    return svc.obter_pedido(pedido_id, usuario)


@router.get("/{pedido_id}/historico", response_model=HistoricoDoPedidoResponse)
def obter_historico(
    pedido_id: int = Path(..., description="ID do pedido"),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    svc: PedidoService = Depends(get_pedido_service),
):
    return HistoricoDoPedidoResponse(
        pedido_id=pedido_id,
        historicos=[PedidoHistoricoOut.model_validate(h) for h in svc.obter_historico(pedido_id, usuario)],
    )


# ======================================================================
# ============================ PAGAMENTO ===============================
@router.post("/{pedido_id}/checkout", response_model=CheckoutResponse)
async def criar_checkout(
    pedido_id: int = Path(..., description="ID do pedido"),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    svc: PedidoService = Depends(get_pedido_checkout_service),
):
    """Gera a URL de pagamento do pedido pendente."""
    sessao = await svc.criar_checkout(pedido_id, usuario)
    return CheckoutResponse(
        pedido_id=pedido_id,
        url_pagamento=sessao.url,
        referencia_gateway=sessao.referencia_gateway,
    )


# ======================================================================
# ============================ REEMBOLSO ===============================
@router.post(
    "/{pedido_id}/solicitar-reembolso",
    response_model=ReembolsoOut,
    status_code=status.HTTP_201_CREATED,
)
def solicitar_reembolso(
    pedido_id: int = Path(..., description="ID do pedido"),
    payload: SolicitarReembolsoRequest = Body(...),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    svc: ReembolsoService = Depends(get_reembolso_service),
):
    return svc.solicitar_reembolso(
        pedido_id,
        usuario,
        tipo=TipoReembolso(payload.tipo.value),
        itens=[item.model_dump() for item in payload.itens] if payload.itens else None,
        motivo=payload.motivo,
    )
