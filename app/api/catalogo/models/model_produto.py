# app/api/catalogo/models/model_produto.py
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, CheckConstraint

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class ProdutoModel(Base):
    __tablename__ = "produtos"
    __table_args__ = (
        CheckConstraint("estoque >= 0", name="ck_produtos_estoque_nao_negativo"),
        CheckConstraint("preco >= 0", name="ck_produtos_preco_nao_negativo"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(150), nullable=False)
    descricao = Column(String(1000), nullable=True)
    preco = Column(Numeric(18, 2), nullable=False)
    estoque = Column(Integer, nullable=False, default=0)
    ativo = Column(Boolean, nullable=False, default=True)

    # Dimensões para cotação de frete
    peso_kg = Column(Numeric(10, 3), nullable=False, default=0.3)
    largura_cm = Column(Numeric(10, 2), nullable=False, default=11)
    altura_cm = Column(Numeric(10, 2), nullable=False, default=2)
    comprimento_cm = Column(Numeric(10, 2), nullable=False, default=16)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed, onupdate=now_trimmed)
