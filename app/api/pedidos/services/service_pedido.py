from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.api.catalogo.contracts.produto_contract import IProdutoContract
from app.api.pedidos.contracts.pagamento_contract import IPagamentoGateway, SessaoCheckout
from app.api.pedidos.models.model_pagamento_evento import PagamentoEventoModel
from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido
from app.api.pedidos.models.model_pedido_historico import PedidoHistoricoModel
from app.api.pedidos.repositories.repo_pagamento_evento import PagamentoEventoRepository
from app.api.pedidos.repositories.repo_pedidos import PedidoRepository
from app.api.pedidos.repositories.repo_reembolso import ReembolsoRepository
from app.api.pedidos.schemas.schema_pedido import AtualizarStatusRequest
from app.api.pedidos.services.metadata_pagamento import montar_metadata
from app.api.pedidos.services.service_precificacao import de_centavos, quantizar
from app.api.pedidos.services.state_machine import PedidoStateMachine, ator_admin
from app.core.assinatura import AssinadorMetadados
from app.core.authorization import Capacidade, UsuarioAutenticado, autorizar, exigir
from app.core.exceptions import (
    IllegalStateTransitionError,
    InvalidOrderStateError,
    OrderNotFoundError,
    ValidationError,
)
from app.utils.database_utils import now_trimmed
from app.utils.logger import logger

# Produtos ativos com estoque abaixo disso aparecem no dashboard
LIMITE_ESTOQUE_BAIXO = 10

S = StatusPedido

# Transições que o admin pode aplicar diretamente; as demais pertencem ao
# webhook de pagamento ou ao fluxo de reembolso.
TRANSICOES_MANUAIS = frozenset({
    (S.PENDENTE, S.CANCELADO),
    (S.PAGO, S.ENVIADO),
    (S.ENVIADO, S.ENTREGUE),
    (S.REEMBOLSO_SOLICITADO, S.AGUARDANDO_DEVOLUCAO),
})


class PedidoService:
    def __init__(
        self,
        db: Session,
        produto_contract: Optional[IProdutoContract] = None,
        gateway: Optional[IPagamentoGateway] = None,
        assinador: Optional[AssinadorMetadados] = None,
    ):
        self.db = db
        self.repo = PedidoRepository(db)
        self.reembolso_repo = ReembolsoRepository(db)
        self.eventos_repo = PagamentoEventoRepository(db)
        self.produto_contract = produto_contract
        self.gateway = gateway
        self.assinador = assinador

    # ---------------- Consultas ----------------
    def listar_pedidos(
        self,
        usuario: UsuarioAutenticado,
        page: int = 1,
        page_size: int = 10,
        status: Optional[StatusPedido] = None,
    ) -> Tuple[List[PedidoModel], int]:
        """Admins enxergam todos os pedidos; demais usuários apenas os próprios."""
        ver_todos = autorizar(usuario, Capacidade.LISTAR_TODOS_PEDIDOS)
        return self.repo.listar_paginado(
            usuario_id=None if ver_todos else usuario.id,
            status=status.value if status else None,
            page=page,
            page_size=page_size,
        )

    def obter_pedido(self, pedido_id: int, usuario: UsuarioAutenticado) -> PedidoModel:
        pedido = self.repo.get_pedido(pedido_id)
        if not pedido:
            raise OrderNotFoundError()
        exigir(usuario, Capacidade.VER_PEDIDO, dono_id=pedido.usuario_id)
        return pedido

    def obter_historico(self, pedido_id: int, usuario: UsuarioAutenticado) -> List[PedidoHistoricoModel]:
        pedido = self.obter_pedido(pedido_id, usuario)
        return self.repo.get_historico(pedido.id)

    def listar_pagamentos_revisao(
        self,
        admin: UsuarioAutenticado,
        skip: int = 0,
        limit: int = 50,
    ) -> List[PagamentoEventoModel]:
        exigir(admin, Capacidade.REVISAR_PAGAMENTOS)
        return self.eventos_repo.list_para_revisao(skip=skip, limit=limit)

    def obter_dashboard(self, admin: UsuarioAutenticado, limite_estoque: int = LIMITE_ESTOQUE_BAIXO) -> Dict[str, Any]:
        exigir(admin, Capacidade.VER_DASHBOARD)
        totais = self.repo.resumo_totais()
        receita_bruta = quantizar(Decimal(str(totais.receita_bruta or 0)))
        total_reembolsado = de_centavos(self.reembolso_repo.total_concluido_centavos())
        return {
            "total_pedidos": int(totais.total_pedidos or 0),
            "pedidos_pendentes": int(totais.pedidos_pendentes or 0),
            "receita_bruta": receita_bruta,
            "total_reembolsado": total_reembolsado,
            "receita_liquida": receita_bruta - total_reembolsado,
            "produtos_estoque_baixo": self.repo.listar_produtos_estoque_baixo(limite_estoque),
            "pedidos_recentes": self.repo.listar_recentes(),
        }

    # ---------------- Status (admin) ----------------
    def atualizar_status(
        self,
        pedido_id: int,
        admin: UsuarioAutenticado,
        dados: AtualizarStatusRequest,
    ) -> PedidoModel:
        exigir(admin, Capacidade.ALTERAR_STATUS_PEDIDO)
        destino = StatusPedido(dados.status.value)

        try:
            pedido = self.repo.get_pedido_para_atualizacao(pedido_id)
            if not pedido:
                raise OrderNotFoundError()

            if self.reembolso_repo.existe_processando(pedido.id):
                raise InvalidOrderStateError("Há um reembolso em processamento para este pedido.")

            atual = pedido.status_enum
            PedidoStateMachine.validar_transicao(atual, destino)
            if (atual, destino) not in TRANSICOES_MANUAIS:
                raise IllegalStateTransitionError(
                    f"Transição de '{atual.value}' para '{destino.value}' só ocorre pelo fluxo de "
                    "pagamento ou de reembolso."
                )

            payload: Dict[str, object] = {}
            if destino == S.ENVIADO:
                if not dados.codigo_rastreio:
                    raise ValidationError("Informe o código de rastreio para marcar o pedido como enviado.")
                pedido.codigo_rastreio = dados.codigo_rastreio
                payload["codigo_rastreio"] = dados.codigo_rastreio
            elif destino == S.ENTREGUE:
                pedido.data_entrega = now_trimmed()
                payload["data_entrega"] = pedido.data_entrega.isoformat()
            elif destino == S.AGUARDANDO_DEVOLUCAO:
                if not dados.codigo_logistica_reversa:
                    raise ValidationError("Informe o código de logística reversa.")
                pedido.codigo_logistica_reversa = dados.codigo_logistica_reversa
                pedido.instrucoes_devolucao = dados.instrucoes_devolucao
                payload["codigo_logistica_reversa"] = dados.codigo_logistica_reversa
            elif destino == S.CANCELADO:
                self._repor_estoque(pedido)

            PedidoStateMachine.transicionar(
                pedido,
                destino,
                ator=ator_admin(admin.id),
                motivo=dados.motivo,
                payload=payload or None,
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return self.repo.get_pedido(pedido_id)

    def _repor_estoque(self, pedido: PedidoModel) -> None:
        if self.produto_contract is None:
            raise RuntimeError("Contrato de produtos não configurado para cancelamento.")
        for item in pedido.itens:
            self.produto_contract.repor_estoque(item.produto_id, item.quantidade)
        logger.info(f"[cancelar_pedido] Estoque reposto pedido={pedido.id} itens={len(pedido.itens)}")

    # ---------------- Checkout ----------------
    async def criar_checkout(self, pedido_id: int, usuario: UsuarioAutenticado) -> SessaoCheckout:
        if self.gateway is None or self.assinador is None:
            raise RuntimeError("Gateway de pagamento não configurado.")

        pedido = self.obter_pedido(pedido_id, usuario)
        if pedido.status_enum != S.PENDENTE:
            raise InvalidOrderStateError(
                f"Somente pedidos pendentes podem ser pagos (status atual: {pedido.status})."
            )

        sessao = await self.gateway.criar_checkout(pedido, montar_metadata(self.assinador, pedido))
        logger.info(f"[checkout] pedido={pedido.id} referencia={sessao.referencia_gateway}")
        return sessao
