from __future__ import annotations

from decimal import Decimal
from time import time
from typing import Any, Dict

import httpx

from app.api.pedidos.contracts.pagamento_contract import (
    IPagamentoGateway,
    PagamentoConsultado,
    ResultadoReembolso,
    SessaoCheckout,
)
from app.api.pedidos.models.model_pedido import PedidoModel
from app.config.settings import AppConfig
from app.core.exceptions import ExternalServiceError
from app.integrations.mercadopago.client import MercadoPagoClient
from app.utils.logger import logger
from app.utils.prometheus_metrics import chamadas_externas_duracao_seconds


def _centavos(valor: Decimal) -> int:
    return int((Decimal(valor) * 100).quantize(Decimal("1")))


class MercadoPagoGateway(IPagamentoGateway):
    """Checkout Pro, consulta de pagamentos e estornos via API do Mercado Pago."""

    def __init__(self, config: AppConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self.transport = transport

    def _client(self) -> MercadoPagoClient:
        if not self.config.mercadopago_access_token:
            raise ExternalServiceError("Gateway de pagamento não configurado (MERCADOPAGO_ACCESS_TOKEN).")
        return MercadoPagoClient(
            access_token=self.config.mercadopago_access_token,
            base_url=self.config.mercadopago_base_url,
            timeout=self.config.mercadopago_timeout,
            transport=self.transport,
        )

    async def _executar(self, operacao: str, chamada):
        client = self._client()
        inicio = time()
        try:
            return await chamada(client)
        except httpx.TimeoutException as e:
            logger.error(f"[MercadoPago] Timeout em {operacao}: {e}")
            raise ExternalServiceError(f"Tempo esgotado no gateway de pagamento ({operacao}).") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                f"[MercadoPago] HTTP {e.response.status_code} em {operacao}: {e.response.text[:500]}"
            )
            raise ExternalServiceError(f"Gateway de pagamento recusou a operação ({operacao}).") from e
        except httpx.HTTPError as e:
            logger.error(f"[MercadoPago] Erro de comunicação em {operacao}: {e}")
            raise ExternalServiceError(f"Falha de comunicação com o gateway ({operacao}).") from e
        finally:
            chamadas_externas_duracao_seconds.labels(servico="mercadopago", operacao=operacao).observe(time() - inicio)
            await client.close()

    async def criar_checkout(self, pedido: PedidoModel, metadata: Dict[str, Any]) -> SessaoCheckout:
        frontend = self.config.frontend_url.rstrip("/")

        async def chamada(client: MercadoPagoClient):
            return await client.create_preference(
                external_reference=str(pedido.id),
                items=[{
                    "id": str(pedido.id),
                    "title": f"Pedido #{pedido.id}",
                    "quantity": 1,
                    "currency_id": "BRL",
                    "unit_price": float(pedido.valor_total),
                }],
                metadata=metadata,
                notification_url=self.config.mercadopago_notification_url or None,
                back_urls={
                    "success": f"{frontend}/pedidos/{pedido.id}?pagamento=sucesso",
                    "failure": f"{frontend}/pedidos/{pedido.id}?pagamento=falha",
                    "pending": f"{frontend}/pedidos/{pedido.id}?pagamento=pendente",
                },
            )

        data = await self._executar("criar_checkout", chamada)
        url = data.get("init_point")
        if not url:
            raise ExternalServiceError("Gateway não retornou a URL de pagamento.")
        return SessaoCheckout(url=url, referencia_gateway=str(data.get("id")))

    async def consultar_pagamento(self, pagamento_id: str) -> PagamentoConsultado:
        pagamento = await self._executar(
            "consultar_pagamento",
            lambda client: client.get_payment(pagamento_id),
        )
        return PagamentoConsultado(
            id=pagamento.id,
            status=pagamento.status,
            external_reference=pagamento.external_reference,
            valor_centavos=_centavos(pagamento.transaction_amount),
            metadata=pagamento.metadata,
        )

    async def reembolsar(
        self,
        transacao_id: str,
        valor_centavos: int,
        chave_idempotencia: str,
    ) -> ResultadoReembolso:
        valor = (Decimal(valor_centavos) / 100).quantize(Decimal("0.01"))
        refund = await self._executar(
            "reembolsar",
            lambda client: client.refund_payment(
                transacao_id,
                amount=valor,
                idempotency_key=chave_idempotencia,
            ),
        )
        return ResultadoReembolso(
            reembolso_gateway_id=refund.id,
            valor_centavos=_centavos(refund.amount),
            status=refund.status,
        )
