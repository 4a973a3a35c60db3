# app/api/pedidos/models/model_reembolso.py
import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum as SAEnum, Index
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed
from .model_pedido import JSONType


class TipoReembolso(enum.Enum):
    TOTAL = "Total"
    PARCIAL = "Parcial"


class StatusReembolso(enum.Enum):
    """
    SOLICITADO  -> aguardando decisão do admin
    PROCESSANDO -> aprovado, chamada ao gateway em andamento (ou interrompida)
    FALHOU      -> gateway recusou/indisponível; pode ser reprocessado
    CONCLUIDO   -> estorno confirmado pelo gateway
    REPROVADO   -> negado pelo admin
    """
    SOLICITADO = "SOLICITADO"
    PROCESSANDO = "PROCESSANDO"
    FALHOU = "FALHOU"
    CONCLUIDO = "CONCLUIDO"
    REPROVADO = "REPROVADO"


TipoReembolsoEnum = SAEnum(
    *[t.value for t in TipoReembolso], name="reembolso_tipo_enum", native_enum=False, length=10
)
StatusReembolsoEnum = SAEnum(
    *[s.value for s in StatusReembolso], name="reembolso_status_enum", native_enum=False, length=20
)

# Estados em que a solicitação ainda aguarda resolução (ou reprocessamento)
STATUS_REEMBOLSO_ABERTO = (
    StatusReembolso.SOLICITADO.value,
    StatusReembolso.PROCESSANDO.value,
    StatusReembolso.FALHOU.value,
)


class ReembolsoModel(Base):
    __tablename__ = "reembolsos"
    __table_args__ = (
        Index("idx_reembolsos_pedido_status", "pedido_id", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    pedido_id = Column(Integer, ForeignKey("pedidos.id", ondelete="CASCADE"), nullable=False)

    tipo = Column(TipoReembolsoEnum, nullable=False)
    # [{"produto_id": 1, "quantidade": 2}] quando parcial
    itens = Column(JSONType, nullable=True)

    valor_solicitado_centavos = Column(Integer, nullable=False)
    valor_aprovado_centavos = Column(Integer, nullable=True)
    status_destino = Column(String(30), nullable=True)

    status = Column(StatusReembolsoEnum, nullable=False, default=StatusReembolso.SOLICITADO.value)
    gateway_reembolso_id = Column(String(100), nullable=True)
    ultimo_erro = Column(Text, nullable=True)
    tentativas = Column(Integer, nullable=False, default=0)
    motivo_reprovacao = Column(Text, nullable=True)

    solicitado_por = Column(String(64), nullable=False)
    resolvido_por = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed, onupdate=now_trimmed)
    resolvido_em = Column(DateTime(timezone=True), nullable=True)

    pedido = relationship("PedidoModel", lazy="select")

    @property
    def chave_idempotencia(self) -> str:
        return f"reembolso-{self.id}"
