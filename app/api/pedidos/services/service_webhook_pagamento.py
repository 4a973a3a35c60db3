from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from app.api.pedidos.contracts.pagamento_contract import IPagamentoGateway
from app.api.pedidos.services.metadata_pagamento import metadata_confere
from app.api.pedidos.services.pagamento_reconciler import PagamentoReconciler
from app.config.settings import AppConfig
from app.core.assinatura import AssinadorMetadados
from app.core.exceptions import InvalidMetadataSignatureError, InvalidWebhookSignatureError
from app.integrations.mercadopago.webhook_signature import assinatura_valida
from app.utils.logger import logger
from app.utils.prometheus_metrics import webhooks_pagamento_total

TOPICOS_PAGAMENTO = {"payment", "payment.created", "payment.updated"}


class WebhookPagamentoService:
    """
    Notificações do Mercado Pago.

    Fluxo: assinatura do header -> consulta do pagamento no gateway ->
    somente `approved` segue -> `external_reference` identifica o pedido ->
    metadados assinados precisam conferir -> reconciliação.
    """

    def __init__(
        self,
        db: Session,
        gateway: IPagamentoGateway,
        config: AppConfig,
        assinador: AssinadorMetadados,
    ):
        self.gateway = gateway
        self.config = config
        self.assinador = assinador
        self.reconciler = PagamentoReconciler(db)

    @staticmethod
    def extrair_data_id(payload: Mapping[str, Any], query_data_id: Optional[str] = None) -> Optional[str]:
        if query_data_id:
            return str(query_data_id)
        data = payload.get("data") or {}
        if isinstance(data, Mapping) and data.get("id") is not None:
            return str(data["id"])
        return None

    @staticmethod
    def _topico(payload: Mapping[str, Any], query_topico: Optional[str]) -> str:
        return str(query_topico or payload.get("type") or payload.get("topic") or payload.get("action") or "")

    async def processar_notificacao(
        self,
        payload: Mapping[str, Any],
        *,
        x_signature: Optional[str],
        x_request_id: Optional[str],
        query_data_id: Optional[str] = None,
        query_topico: Optional[str] = None,
    ) -> Dict[str, Any]:
        data_id = self.extrair_data_id(payload, query_data_id)

        if not assinatura_valida(self.config.segredos_webhook, x_signature, x_request_id, data_id):
            webhooks_pagamento_total.labels(resultado="ASSINATURA_INVALIDA").inc()
            logger.warning(f"[webhook] Assinatura inválida data_id={data_id} request_id={x_request_id}")
            raise InvalidWebhookSignatureError()

        topico = self._topico(payload, query_topico)
        if topico not in TOPICOS_PAGAMENTO or not data_id:
            logger.info(f"[webhook] Notificação ignorada topico={topico!r} data_id={data_id}")
            return {"status": "ignorado", "motivo": f"tópico '{topico}' não tratado"}

        pagamento = await self.gateway.consultar_pagamento(data_id)
        if not pagamento.aprovado:
            webhooks_pagamento_total.labels(resultado="IGNORADO").inc()
            logger.info(f"[webhook] Pagamento {pagamento.id} com status '{pagamento.status}', nada a reconciliar")
            return {"status": "ignorado", "motivo": f"pagamento {pagamento.status}"}

        try:
            pedido_id = int(pagamento.external_reference)
        except (TypeError, ValueError):
            logger.error(
                f"[SEGURANCA] Pagamento {pagamento.id} com external_reference inválida: "
                f"{pagamento.external_reference!r}"
            )
            raise InvalidMetadataSignatureError("Referência externa do pagamento inválida.")

        if not metadata_confere(self.assinador, pedido_id, pagamento.metadata):
            webhooks_pagamento_total.labels(resultado="METADADOS_INVALIDOS").inc()
            logger.error(
                f"[SEGURANCA] Metadados do pagamento {pagamento.id} não conferem com o pedido {pedido_id}"
            )
            raise InvalidMetadataSignatureError()

        resultado = self.reconciler.confirmar_pagamento_via_webhook(
            pedido_id=pedido_id,
            transacao_id=pagamento.id,
            valor_pago_centavos=pagamento.valor_centavos,
        )
        return {"status": resultado.value, "pedido_id": pedido_id}
