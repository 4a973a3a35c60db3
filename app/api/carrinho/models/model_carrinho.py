from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class CarrinhoModel(Base):
    __tablename__ = "carrinhos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    usuario_id = Column(String(64), nullable=False, unique=True)

    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_trimmed, onupdate=now_trimmed, nullable=False)

    itens = relationship(
        "CarrinhoItemModel",
        back_populates="carrinho",
        cascade="all, delete-orphan",
        order_by="CarrinhoItemModel.id",
    )


class CarrinhoItemModel(Base):
    __tablename__ = "carrinho_itens"
    __table_args__ = (
        UniqueConstraint("carrinho_id", "produto_id", name="uq_carrinho_itens_produto"),
        CheckConstraint("quantidade >= 1", name="ck_carrinho_itens_quantidade"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    carrinho_id = Column(Integer, ForeignKey("carrinhos.id", ondelete="CASCADE"), nullable=False)
    produto_id = Column(Integer, ForeignKey("produtos.id", ondelete="CASCADE"), nullable=False)
    quantidade = Column(Integer, nullable=False)

    carrinho = relationship("CarrinhoModel", back_populates="itens")
    produto = relationship("ProdutoModel", lazy="joined")
