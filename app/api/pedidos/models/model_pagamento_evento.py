# app/api/pedidos/models/model_pagamento_evento.py
import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum as SAEnum, Index, event

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class ResultadoEventoPagamento(enum.Enum):
    PROCESSADO = "PROCESSADO"
    DUPLICADO = "DUPLICADO"
    DIVERGENCIA_VALOR = "DIVERGENCIA_VALOR"
    REJEITADO = "REJEITADO"


ResultadoEventoPagamentoEnum = SAEnum(
    *[r.value for r in ResultadoEventoPagamento],
    name="pagamento_evento_resultado_enum",
    native_enum=False,
    length=30,
)

# Resultados que exigem análise manual
RESULTADOS_REVISAO = (
    ResultadoEventoPagamento.DIVERGENCIA_VALOR.value,
    ResultadoEventoPagamento.REJEITADO.value,
)


class PagamentoEventoModel(Base):
    """
    Registro de cada confirmação de pagamento recebida pelo webhook.

    A chave de idempotência é `{pedido_id}:{transacao_id}`; a entrega é
    at-least-once, então a mesma chave pode aparecer várias vezes.
    """
    __tablename__ = "pagamento_eventos"
    __table_args__ = (
        Index("idx_pag_eventos_chave", "chave_idempotencia"),
        Index("idx_pag_eventos_resultado", "resultado"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    chave_idempotencia = Column(String(150), nullable=False)
    pedido_id = Column(Integer, ForeignKey("pedidos.id", ondelete="SET NULL"), nullable=True)
    transacao_id = Column(String(100), nullable=False)
    valor_pago_centavos = Column(Integer, nullable=False)
    valor_esperado_centavos = Column(Integer, nullable=True)
    resultado = Column(ResultadoEventoPagamentoEnum, nullable=False)
    detalhe = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)


@event.listens_for(PagamentoEventoModel, "before_update")
def _bloquear_alteracao_evento(mapper, connection, target):
    raise RuntimeError(f"Eventos de pagamento não podem ser alterados (evento {target.id}).")
