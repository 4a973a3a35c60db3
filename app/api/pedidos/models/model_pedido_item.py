# app/api/pedidos/models/model_pedido_item.py
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, CheckConstraint, event
from sqlalchemy.orm import relationship

from app.database.db_connection import Base


class PedidoItemModel(Base):
    """Item do pedido: cópia de nome, preço e quantidade no momento da compra."""
    __tablename__ = "pedido_itens"
    __table_args__ = (
        CheckConstraint("quantidade >= 1", name="ck_pedido_itens_quantidade"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    pedido_id = Column(Integer, ForeignKey("pedidos.id", ondelete="CASCADE"), nullable=False, index=True)

    # Sem FK para produtos: o item não depende do cadastro atual
    produto_id = Column(Integer, nullable=False)
    produto_nome = Column(String(150), nullable=False)
    quantidade = Column(Integer, nullable=False)
    preco_unitario = Column(Numeric(18, 2), nullable=False)

    pedido = relationship("PedidoModel", back_populates="itens")

    @property
    def total(self):
        return self.preco_unitario * self.quantidade


@event.listens_for(PedidoItemModel, "before_update")
def _bloquear_alteracao_item(mapper, connection, target):
    raise RuntimeError(f"Itens de pedido são imutáveis (item {target.id}).")
