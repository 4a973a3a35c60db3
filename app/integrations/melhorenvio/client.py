from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel


class MelhorEnvioProduto(BaseModel):
    id: str
    width: float
    height: float
    length: float
    weight: float
    insurance_value: float
    quantity: int


class MelhorEnvioCompany(BaseModel):
    name: Optional[str] = None


class MelhorEnvioCotacao(BaseModel):
    id: Optional[int] = None
    name: str
    price: Optional[Decimal] = None
    custom_price: Optional[Decimal] = None
    delivery_time: Optional[int] = None
    custom_delivery_time: Optional[int] = None
    company: Optional[MelhorEnvioCompany] = None
    error: Optional[str] = None

    @property
    def preco_final(self) -> Optional[Decimal]:
        return self.custom_price if self.custom_price is not None else self.price

    @property
    def prazo_final(self) -> int:
        prazo = self.custom_delivery_time if self.custom_delivery_time is not None else self.delivery_time
        return int(prazo or 0)


class MelhorEnvioClient:
    """Cliente da API de cotação de fretes do Melhor Envio."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://melhorenvio.com.br",
        timeout: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not token:
            raise ValueError("token é obrigatório para o Melhor Envio")

        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": "loja-api (suporte@loja.com.br)",
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def calcular(
        self,
        *,
        cep_origem: str,
        cep_destino: str,
        produtos: List[MelhorEnvioProduto],
    ) -> List[MelhorEnvioCotacao]:
        payload: Dict[str, Any] = {
            "from": {"postal_code": cep_origem},
            "to": {"postal_code": cep_destino},
            "products": [p.model_dump() for p in produtos],
        }
        resp = await self._client.post("/api/v2/me/shipment/calculate", json=payload)
        resp.raise_for_status()
        return [MelhorEnvioCotacao(**item) for item in resp.json()]
