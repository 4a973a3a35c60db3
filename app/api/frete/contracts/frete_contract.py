from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List

from pydantic import BaseModel


class ItemFrete(BaseModel):
    produto_id: int
    quantidade: int
    preco_unitario: Decimal
    peso_kg: Decimal
    largura_cm: Decimal
    altura_cm: Decimal
    comprimento_cm: Decimal


class OpcaoFrete(BaseModel):
    nome: str
    preco: Decimal
    prazo_dias: int


class IFreteContract(ABC):
    """Oráculo de preços de frete (serviço externo)."""

    @abstractmethod
    async def cotar(self, cep: str, itens: List[ItemFrete]) -> List[OpcaoFrete]:
        """Retorna as opções disponíveis para o CEP de destino."""
        raise NotImplementedError
