from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, Boolean, ForeignKey, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship
from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


# ----------------------
# CUPOM
# ----------------------
class CupomModel(Base):
    __tablename__ = "cupons"
    __table_args__ = (
        CheckConstraint("desconto_percentual > 0 AND desconto_percentual <= 100", name="ck_cupons_percentual"),
        CheckConstraint("usos >= 0", name="ck_cupons_usos"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Sempre gravado em maiúsculas e sem espaços nas pontas
    codigo = Column(String(30), unique=True, nullable=False, index=True)
    descricao = Column(String(120), nullable=True)

    desconto_percentual = Column(Numeric(5, 2), nullable=False)
    validade_fim = Column(DateTime(timezone=True), nullable=False)

    limite_usos = Column(Integer, nullable=True)  # None = ilimitado
    usos = Column(Integer, nullable=False, default=0)

    # Exclusão lógica: pedidos antigos guardam o próprio snapshot do cupom
    ativo = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_trimmed, onupdate=now_trimmed, nullable=False)

    usos_registrados = relationship("CupomUsoModel", back_populates="cupom", lazy="select")


# ----------------------
# USO DE CUPOM (um por usuário)
# ----------------------
class CupomUsoModel(Base):
    __tablename__ = "cupons_usos"
    __table_args__ = (
        UniqueConstraint("cupom_id", "usuario_id", name="uq_cupons_usos_cupom_usuario"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    cupom_id = Column(Integer, ForeignKey("cupons.id", ondelete="RESTRICT"), nullable=False)
    usuario_id = Column(String(64), nullable=False, index=True)
    pedido_id = Column(Integer, ForeignKey("pedidos.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)

    cupom = relationship("CupomModel", back_populates="usos_registrados")
