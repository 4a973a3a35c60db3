# app/api/pedidos/models/model_pedido_historico.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Index, event
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed
from .model_pedido import StatusPedidoEnum, JSONType


class PedidoHistoricoModel(Base):
    """
    Histórico de status do pedido (somente inclusão).

    - status_anterior é NULL apenas no registro de criação
    - ator identifica quem disparou a transição (USUARIO:<id>, ADMIN:<id>,
      WEBHOOK:mercadopago, SISTEMA)
    - payload guarda dados da transição (ex.: escopo do reembolso)
    """
    __tablename__ = "pedido_historico"
    __table_args__ = (
        Index("idx_hist_pedido_created", "pedido_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    pedido_id = Column(Integer, ForeignKey("pedidos.id", ondelete="CASCADE"), nullable=False)

    status_anterior = Column(StatusPedidoEnum, nullable=True)
    status_novo = Column(StatusPedidoEnum, nullable=False)

    ator = Column(String(100), nullable=False)
    motivo = Column(Text, nullable=True)
    payload = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)

    pedido = relationship("PedidoModel", back_populates="historico")


@event.listens_for(PedidoHistoricoModel, "before_update")
def _bloquear_alteracao_historico(mapper, connection, target):
    raise RuntimeError(f"Histórico de pedido não pode ser alterado (registro {target.id}).")
