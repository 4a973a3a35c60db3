from sqlalchemy import Column, Integer, String, DateTime, Boolean, Index
from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class EnderecoModel(Base):
    __tablename__ = "enderecos"
    __table_args__ = (
        Index("idx_enderecos_usuario", "usuario_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    usuario_id = Column(String(64), nullable=False)

    nome        = Column(String(50),  nullable=False)  # ex.: "Casa", "Trabalho"
    destinatario = Column(String(100), nullable=False)
    cep         = Column(String(8),   nullable=False)
    logradouro  = Column(String(100), nullable=False)
    numero      = Column(String(10),  nullable=False)
    complemento = Column(String(50),  nullable=True)
    bairro      = Column(String(50),  nullable=False)
    cidade      = Column(String(50),  nullable=False)
    estado      = Column(String(2),   nullable=False)
    ponto_referencia = Column(String(120), nullable=True)
    telefone    = Column(String(20),  nullable=True)

    is_padrao = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=now_trimmed, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_trimmed, onupdate=now_trimmed, nullable=False)
