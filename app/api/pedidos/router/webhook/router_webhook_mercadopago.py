from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, Query

from app.api.pedidos.schemas.schema_pagamento import MercadoPagoNotificacao, WebhookResponse
from app.api.pedidos.services.dependencies import get_webhook_service
from app.api.pedidos.services.service_webhook_pagamento import WebhookPagamentoService

router = APIRouter(prefix="/api/pagamentos/webhooks", tags=["Webhooks - Pagamentos"])


@router.post("/mercadopago", response_model=WebhookResponse)
async def webhook_mercadopago(
    payload: MercadoPagoNotificacao = Body(...),
    data_id: Optional[str] = Query(None, alias="data.id"),
    topico: Optional[str] = Query(None, alias="type"),
    x_signature: Optional[str] = Header(None, alias="x-signature"),
    x_request_id: Optional[str] = Header(None, alias="x-request-id"),
    svc: WebhookPagamentoService = Depends(get_webhook_service),
):
    """
    Notificação de pagamento do Mercado Pago. Autenticada pelo header
    `x-signature`; sem token de usuário.
    """
    return await svc.processar_notificacao(
        payload.model_dump(),
        x_signature=x_signature,
        x_request_id=x_request_id,
        query_data_id=data_id,
        query_topico=topico,
    )
