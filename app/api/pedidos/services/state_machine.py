"""
Máquina de estados do pedido.

Toda mudança de status passa por aqui: a transição é validada contra a tabela
abaixo e, se permitida, o status e exatamente um registro de histórico são
gravados na mesma unidade de trabalho (quem chama faz o commit).
"""
from typing import Any, Dict, FrozenSet, Optional

from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido
from app.api.pedidos.models.model_pedido_historico import PedidoHistoricoModel
from app.core.exceptions import IllegalStateTransitionError
from app.utils.database_utils import now_trimmed
from app.utils.logger import logger

S = StatusPedido

TRANSICOES: Dict[StatusPedido, FrozenSet[StatusPedido]] = {
    S.PENDENTE: frozenset({S.PAGO, S.CANCELADO}),
    S.PAGO: frozenset({S.ENVIADO, S.REEMBOLSO_SOLICITADO}),
    S.ENVIADO: frozenset({S.ENTREGUE}),
    S.REEMBOLSO_SOLICITADO: frozenset({
        S.AGUARDANDO_DEVOLUCAO,
        S.REEMBOLSADO,
        S.REEMBOLSADO_PARCIALMENTE,
        S.REEMBOLSO_REPROVADO,
    }),
    S.AGUARDANDO_DEVOLUCAO: frozenset({S.REEMBOLSADO}),
    S.REEMBOLSO_REPROVADO: frozenset({S.PAGO}),
    S.ENTREGUE: frozenset(),
    S.CANCELADO: frozenset(),
    S.REEMBOLSADO: frozenset(),
    S.REEMBOLSADO_PARCIALMENTE: frozenset(),
}

STATUS_TERMINAIS = frozenset(status for status, destinos in TRANSICOES.items() if not destinos)

# Status alcançados somente depois de um pagamento confirmado
STATUS_PAGO_OU_ALEM = frozenset(set(StatusPedido) - {S.PENDENTE, S.CANCELADO})

ATOR_SISTEMA = "SISTEMA"


def ator_usuario(usuario_id: str) -> str:
    return f"USUARIO:{usuario_id}"


def ator_admin(usuario_id: str) -> str:
    return f"ADMIN:{usuario_id}"


def _como_status(valor) -> StatusPedido:
    return valor if isinstance(valor, StatusPedido) else StatusPedido(valor)


class PedidoStateMachine:

    @staticmethod
    def pode_transicionar(de, para) -> bool:
        return _como_status(para) in TRANSICOES[_como_status(de)]

    @classmethod
    def validar_transicao(cls, de, para) -> None:
        de, para = _como_status(de), _como_status(para)
        if not cls.pode_transicionar(de, para):
            raise IllegalStateTransitionError(
                f"Transição de '{de.value}' para '{para.value}' não é permitida."
            )

    @staticmethod
    def registrar_criacao(pedido: PedidoModel, ator: str, motivo: Optional[str] = None) -> PedidoHistoricoModel:
        """Primeiro registro do histórico (status inicial Pendente)."""
        pedido.status = S.PENDENTE.value
        registro = PedidoHistoricoModel(
            status_anterior=None,
            status_novo=S.PENDENTE.value,
            ator=ator,
            motivo=motivo or "Pedido criado",
            created_at=now_trimmed(),
        )
        pedido.historico.append(registro)
        return registro

    @classmethod
    def transicionar(
        cls,
        pedido: PedidoModel,
        novo_status,
        *,
        ator: str,
        motivo: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> PedidoHistoricoModel:
        """
        Aplica a transição. Levanta IllegalStateTransitionError sem tocar no
        pedido nem no histórico quando a transição não é permitida.
        """
        atual = pedido.status_enum
        destino = _como_status(novo_status)
        cls.validar_transicao(atual, destino)

        pedido.status = destino.value
        registro = PedidoHistoricoModel(
            status_anterior=atual.value,
            status_novo=destino.value,
            ator=ator,
            motivo=motivo or f"{atual.value} → {destino.value}",
            payload=payload,
            created_at=now_trimmed(),
        )
        pedido.historico.append(registro)

        logger.info(
            f"[state_machine] pedido={pedido.id} {atual.value} → {destino.value} ator={ator}"
        )
        return registro
