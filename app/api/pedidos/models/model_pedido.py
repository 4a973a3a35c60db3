# app/api/pedidos/models/model_pedido.py
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, Enum as SAEnum, Index, JSON, Text
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship, validates
import enum

from app.config.settings import get_app_config
from app.core.exceptions import OrderAmountOutOfRangeError
from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class StatusPedido(enum.Enum):
    """Status possíveis para um pedido.

    Fluxo normal: Pendente -> Pago -> Enviado -> Entregue
    Cancelamento: Pendente -> Cancelado
    Reembolso:    Pago -> ReembolsoSolicitado -> (AguardandoDevolucao) -> Reembolsado
                  | ReembolsadoParcialmente | ReembolsoReprovado -> Pago
    """
    PENDENTE = "Pendente"
    PAGO = "Pago"
    ENVIADO = "Enviado"
    ENTREGUE = "Entregue"
    CANCELADO = "Cancelado"
    REEMBOLSO_SOLICITADO = "ReembolsoSolicitado"
    AGUARDANDO_DEVOLUCAO = "AguardandoDevolucao"
    REEMBOLSADO = "Reembolsado"
    REEMBOLSADO_PARCIALMENTE = "ReembolsadoParcialmente"
    REEMBOLSO_REPROVADO = "ReembolsoReprovado"


# Gravado como VARCHAR para funcionar igual em Postgres e SQLite
StatusPedidoEnum = SAEnum(
    *[s.value for s in StatusPedido],
    name="pedido_status_enum",
    native_enum=False,
    length=30,
)

JSONType = JSON().with_variant(JSONB, "postgresql")


class PedidoModel(Base):
    __tablename__ = "pedidos"
    __table_args__ = (
        Index("idx_pedidos_usuario", "usuario_id"),
        Index("idx_pedidos_status", "status"),
        Index("idx_pedidos_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    usuario_id = Column(String(64), nullable=False)

    status = Column(StatusPedidoEnum, nullable=False, default=StatusPedido.PENDENTE.value)

    # Valores (snapshot do fechamento)
    subtotal = Column(Numeric(18, 2), nullable=False)
    desconto = Column(Numeric(18, 2), nullable=False, default=Decimal("0.00"))
    taxa_entrega = Column(Numeric(18, 2), nullable=False, default=Decimal("0.00"))
    valor_total = Column(Numeric(18, 2), nullable=False)

    # Frete escolhido
    metodo_envio = Column(String(100), nullable=False)
    prazo_entrega_dias = Column(Integer, nullable=True)

    # Cupom congelado no pedido (independente de alterações no cadastro)
    cupom_codigo = Column(String(30), nullable=True)
    cupom_percentual = Column(Numeric(5, 2), nullable=True)

    # Pagamento: preenchido somente na confirmação
    transacao_id = Column(String(100), nullable=True, unique=True)

    # Endereço copiado por valor
    endereco_snapshot = Column(JSONType, nullable=False)
    cep_entrega = Column(String(8), nullable=False)

    # Logística
    codigo_rastreio = Column(String(50), nullable=True)
    data_entrega = Column(DateTime(timezone=True), nullable=True)
    codigo_logistica_reversa = Column(String(50), nullable=True)
    instrucoes_devolucao = Column(Text, nullable=True)

    ip_cliente = Column(String(45), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_trimmed, onupdate=now_trimmed)

    # Controle otimista de concorrência
    versao = Column(Integer, nullable=False)

    itens = relationship(
        "PedidoItemModel",
        back_populates="pedido",
        cascade="all, delete-orphan",
        order_by="PedidoItemModel.id",
    )
    historico = relationship(
        "PedidoHistoricoModel",
        back_populates="pedido",
        cascade="all, delete-orphan",
        order_by="[PedidoHistoricoModel.created_at, PedidoHistoricoModel.id]",
    )

    __mapper_args__ = {"version_id_col": versao}

    @validates("valor_total")
    def _validar_valor_total(self, key, valor):
        config = get_app_config()
        valor = Decimal(valor)
        if valor < config.pedido_valor_minimo or valor > config.pedido_valor_maximo:
            raise OrderAmountOutOfRangeError(
                f"Valor do pedido deve estar entre {config.pedido_valor_minimo} e {config.pedido_valor_maximo}."
            )
        return valor

    @property
    def status_enum(self) -> StatusPedido:
        return StatusPedido(self.status)

    @property
    def valor_total_centavos(self) -> int:
        return int((Decimal(self.valor_total) * 100).quantize(Decimal("1")))
