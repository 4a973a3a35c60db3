from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class MercadoPagoNotificacao(BaseModel):
    """Corpo da notificação do Mercado Pago (campos extras são preservados)."""
    id: Optional[Any] = None
    type: Optional[str] = None
    action: Optional[str] = None
    topic: Optional[str] = None
    live_mode: Optional[bool] = None
    data: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")


class WebhookResponse(BaseModel):
    status: str
    pedido_id: Optional[int] = None
    motivo: Optional[str] = None


class PagamentoEventoOut(BaseModel):
    id: int
    chave_idempotencia: str
    pedido_id: Optional[int] = None
    transacao_id: str
    valor_pago_centavos: int
    valor_esperado_centavos: Optional[int] = None
    resultado: str
    detalhe: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
