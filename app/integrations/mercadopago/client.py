from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx


@dataclass(slots=True)
class MercadoPagoPayment:
    """Representa uma resposta simplificada de pagamento do Mercado Pago."""

    id: str
    status: str
    status_detail: str | None
    external_reference: str | None
    transaction_amount: Decimal
    metadata: Dict[str, Any]
    raw: Dict[str, Any]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MercadoPagoPayment":
        return cls(
            id=str(data.get("id")),
            status=data.get("status", "pending"),
            status_detail=data.get("status_detail"),
            external_reference=data.get("external_reference"),
            # str() evita herdar imprecisão de float na conversão
            transaction_amount=Decimal(str(data.get("transaction_amount") or "0")),
            metadata=data.get("metadata") or {},
            raw=data,
        )


@dataclass(slots=True)
class MercadoPagoRefund:
    id: str
    payment_id: str
    amount: Decimal
    status: str | None
    raw: Dict[str, Any]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MercadoPagoRefund":
        return cls(
            id=str(data.get("id")),
            payment_id=str(data.get("payment_id")),
            amount=Decimal(str(data.get("amount") or "0")),
            status=data.get("status"),
            raw=data,
        )


class MercadoPagoClient:
    """Cliente HTTP simples para acessar a API do Mercado Pago."""

    def __init__(
        self,
        *,
        access_token: str,
        base_url: str = "https://api.mercadopago.com",
        timeout: float = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not access_token:
            raise ValueError("access_token é obrigatório para o Mercado Pago")

        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def create_preference(
        self,
        *,
        external_reference: str,
        items: List[Dict[str, Any]],
        metadata: Dict[str, Any] | None = None,
        notification_url: str | None = None,
        back_urls: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        """
        Cria uma preferência do Checkout Pro e retorna o JSON da API
        (a URL de pagamento fica em `init_point`).

        - `external_reference` deve ser único para o pedido (ex.: ID do pedido).
        """
        payload: Dict[str, Any] = {
            "external_reference": external_reference,
            "items": items,
            "metadata": metadata or {},
        }
        if notification_url:
            payload["notification_url"] = notification_url
        if back_urls:
            payload["back_urls"] = back_urls
            payload["auto_return"] = "approved"

        resp = await self._client.post("/checkout/preferences", json=payload)
        resp.raise_for_status()
        return resp.json()

    async def get_payment(self, payment_id: str) -> MercadoPagoPayment:
        resp = await self._client.get(f"/v1/payments/{payment_id}")
        resp.raise_for_status()
        return MercadoPagoPayment.from_dict(resp.json())

    async def refund_payment(
        self,
        payment_id: str,
        *,
        amount: Optional[Decimal] = None,
        idempotency_key: Optional[str] = None,
    ) -> MercadoPagoRefund:
        """
        Solicita reembolso total (sem `amount`) ou parcial do pagamento.
        `idempotency_key` faz o Mercado Pago devolver o mesmo refund em
        reenvios da mesma solicitação.
        """
        headers = {"X-Idempotency-Key": idempotency_key} if idempotency_key else None
        body = {"amount": float(amount)} if amount is not None else {}
        resp = await self._client.post(
            f"/v1/payments/{payment_id}/refunds",
            json=body,
            headers=headers,
        )
        resp.raise_for_status()
        return MercadoPagoRefund.from_dict(resp.json())
