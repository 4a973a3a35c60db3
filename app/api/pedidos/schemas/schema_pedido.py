from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.api.cadastros.schemas.schema_endereco import EnderecoIn


class PedidoStatusEnum(str, Enum):
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


# ======================================================================
# ============================ CLIENT ==================================
# ======================================================================
class CriarPedidoRequest(BaseModel):
    """Fecha o carrinho atual. Informe `endereco_id` (salvo) ou `endereco` (avulso)."""
    endereco_id: Optional[int] = None
    endereco: Optional[EnderecoIn] = None
    cupom_codigo: Optional[str] = Field(None, max_length=30)
    metodo_envio: str = Field(..., min_length=1, max_length=100)

    @model_validator(mode="after")
    def _um_endereco(self):
        if (self.endereco_id is None) == (self.endereco is None):
            raise ValueError("Informe exatamente um entre endereco_id e endereco")
        return self


class PedidoItemOut(BaseModel):
    id: int
    produto_id: int
    produto_nome: str
    quantidade: int
    preco_unitario: Decimal

    model_config = ConfigDict(from_attributes=True)


class PedidoResumoOut(BaseModel):
    id: int
    status: PedidoStatusEnum
    valor_total: Decimal
    metodo_envio: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PedidoOut(BaseModel):
    id: int
    usuario_id: str
    status: PedidoStatusEnum
    itens: List[PedidoItemOut]
    subtotal: Decimal
    desconto: Decimal
    taxa_entrega: Decimal
    valor_total: Decimal
    metodo_envio: str
    prazo_entrega_dias: Optional[int] = None
    cupom_codigo: Optional[str] = None
    cupom_percentual: Optional[Decimal] = None
    transacao_id: Optional[str] = None
    endereco_snapshot: Dict[str, Any]
    codigo_rastreio: Optional[str] = None
    data_entrega: Optional[datetime] = None
    codigo_logistica_reversa: Optional[str] = None
    instrucoes_devolucao: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PedidosPaginadosOut(BaseModel):
    items: List[PedidoResumoOut]
    total: int
    page: int
    page_size: int
    has_more: bool


class PedidoHistoricoOut(BaseModel):
    id: int
    status_anterior: Optional[PedidoStatusEnum] = None
    status_novo: PedidoStatusEnum
    ator: str
    motivo: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HistoricoDoPedidoResponse(BaseModel):
    pedido_id: int
    historicos: List[PedidoHistoricoOut]


class CheckoutResponse(BaseModel):
    pedido_id: int
    url_pagamento: str
    referencia_gateway: str


# ======================================================================
# ============================ ADMIN ===================================
# ======================================================================
class AtualizarStatusRequest(BaseModel):
    status: PedidoStatusEnum
    motivo: Optional[str] = Field(None, max_length=500)
    codigo_rastreio: Optional[str] = Field(None, max_length=50)
    codigo_logistica_reversa: Optional[str] = Field(None, max_length=50)
    instrucoes_devolucao: Optional[str] = Field(None, max_length=2000)


class ProdutoEstoqueBaixoOut(BaseModel):
    id: int
    nome: str
    estoque: int

    model_config = ConfigDict(from_attributes=True)


class DashboardOut(BaseModel):
    """Receita líquida = receita bruta (pedidos pagos em diante) - estornos concluídos."""
    total_pedidos: int
    pedidos_pendentes: int
    receita_bruta: Decimal
    total_reembolsado: Decimal
    receita_liquida: Decimal
    produtos_estoque_baixo: List[ProdutoEstoqueBaixoOut]
    pedidos_recentes: List[PedidoResumoOut]
