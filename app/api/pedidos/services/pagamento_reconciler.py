"""
Confirmação de pagamento vinda do webhook.

Entrega at-least-once: a mesma confirmação pode chegar várias vezes e fora de
ordem. A chave `{pedido_id}:{transacao_id}` identifica a mensagem; toda
confirmação que chega aqui gera um PagamentoEventoModel.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from app.api.pedidos.models.model_pagamento_evento import PagamentoEventoModel, ResultadoEventoPagamento
from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido
from app.api.pedidos.repositories.repo_pagamento_evento import PagamentoEventoRepository
from app.api.pedidos.repositories.repo_pedidos import PedidoRepository
from app.api.pedidos.services.state_machine import PedidoStateMachine, STATUS_PAGO_OU_ALEM
from app.core.exceptions import (
    AmountMismatchError,
    IllegalStateTransitionError,
    IntegrityError,
    OrderNotFoundError,
)
from app.utils.logger import logger
from app.utils.prometheus_metrics import webhooks_pagamento_total

ATOR_WEBHOOK = "WEBHOOK:mercadopago"


@dataclass(frozen=True)
class ConfirmacaoPagamento:
    pedido_id: int
    transacao_id: str
    valor_pago_centavos: int

    @property
    def chave_idempotencia(self) -> str:
        return f"{self.pedido_id}:{self.transacao_id}"


class PagamentoReconciler:
    def __init__(self, db: Session):
        self.db = db
        self.repo = PedidoRepository(db)
        self.eventos = PagamentoEventoRepository(db)

    def confirmar_pagamento_via_webhook(
        self,
        pedido_id: int,
        transacao_id: str,
        valor_pago_centavos: int,
    ) -> ResultadoEventoPagamento:
        return self.processar(
            ConfirmacaoPagamento(
                pedido_id=int(pedido_id),
                transacao_id=str(transacao_id),
                valor_pago_centavos=int(valor_pago_centavos),
            )
        )

    def processar(self, msg: ConfirmacaoPagamento) -> ResultadoEventoPagamento:
        try:
            pedido = self.repo.get_pedido_para_atualizacao(msg.pedido_id)
            if pedido is None:
                logger.warning(f"[webhook] Confirmação para pedido inexistente chave={msg.chave_idempotencia}")
                raise OrderNotFoundError()

            esperado = pedido.valor_total_centavos

            if pedido.transacao_id == msg.transacao_id and pedido.status_enum in STATUS_PAGO_OU_ALEM:
                self._registrar(msg, ResultadoEventoPagamento.DUPLICADO, esperado, "Confirmação repetida ignorada")
                self.repo.commit()
                self._contar(ResultadoEventoPagamento.DUPLICADO)
                logger.info(f"[webhook] Duplicado chave={msg.chave_idempotencia} status={pedido.status}")
                return ResultadoEventoPagamento.DUPLICADO

            if msg.valor_pago_centavos != esperado:
                detalhe = f"Pago {msg.valor_pago_centavos} centavos, esperado {esperado}"
                self._registrar(msg, ResultadoEventoPagamento.DIVERGENCIA_VALOR, esperado, detalhe)
                self.repo.commit()
                self._contar(ResultadoEventoPagamento.DIVERGENCIA_VALOR)
                logger.error(
                    f"[SEGURANCA] Divergência de valor no pagamento pedido={pedido.id} "
                    f"transacao={msg.transacao_id} {detalhe}"
                )
                raise AmountMismatchError(detalhe)

            if not PedidoStateMachine.pode_transicionar(pedido.status, StatusPedido.PAGO):
                detalhe = f"Pedido em '{pedido.status}' não aceita confirmação de pagamento"
                self._registrar(msg, ResultadoEventoPagamento.REJEITADO, esperado, detalhe)
                self.repo.commit()
                self._contar(ResultadoEventoPagamento.REJEITADO)
                logger.warning(
                    f"[webhook] Confirmação rejeitada pedido={pedido.id} transacao={msg.transacao_id} "
                    f"status={pedido.status} transacao_atual={pedido.transacao_id}"
                )
                raise IllegalStateTransitionError(detalhe + ".")

            self._confirmar(pedido, msg)
            try:
                self._registrar(msg, ResultadoEventoPagamento.PROCESSADO, esperado, None)
                self.repo.commit()
            except sa_exc.IntegrityError as e:
                # transacao_id é único entre pedidos
                raise IntegrityError(
                    f"Transação {msg.transacao_id} já está vinculada a outro pedido."
                ) from e
        except Exception:
            self.repo.rollback()
            raise

        self._contar(ResultadoEventoPagamento.PROCESSADO)
        logger.info(f"[webhook] Pagamento confirmado pedido={pedido.id} transacao={msg.transacao_id}")
        return ResultadoEventoPagamento.PROCESSADO

    @staticmethod
    def _confirmar(pedido: PedidoModel, msg: ConfirmacaoPagamento) -> None:
        pedido.transacao_id = msg.transacao_id
        PedidoStateMachine.transicionar(
            pedido,
            StatusPedido.PAGO,
            ator=ATOR_WEBHOOK,
            motivo="Pagamento confirmado",
            payload={
                "transacao_id": msg.transacao_id,
                "valor_pago_centavos": msg.valor_pago_centavos,
            },
        )

    def _registrar(
        self,
        msg: ConfirmacaoPagamento,
        resultado: ResultadoEventoPagamento,
        esperado: Optional[int],
        detalhe: Optional[str],
    ) -> None:
        self.eventos.registrar(
            PagamentoEventoModel(
                chave_idempotencia=msg.chave_idempotencia,
                pedido_id=msg.pedido_id,
                transacao_id=msg.transacao_id,
                valor_pago_centavos=msg.valor_pago_centavos,
                valor_esperado_centavos=esperado,
                resultado=resultado.value,
                detalhe=detalhe,
            )
        )

    @staticmethod
    def _contar(resultado: ResultadoEventoPagamento) -> None:
        webhooks_pagamento_total.labels(resultado=resultado.value).inc()
