from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field


class AdicionarItemRequest(BaseModel):
    produto_id: int = Field(..., gt=0)
    quantidade: int = Field(1, ge=1, le=1000)


class AtualizarItemRequest(BaseModel):
    quantidade: int = Field(..., ge=1, le=1000)


class CarrinhoItemOut(BaseModel):
    produto_id: int
    nome: str
    preco_unitario: Decimal
    quantidade: int
    total: Decimal
    estoque_disponivel: int


class CarrinhoOut(BaseModel):
    itens: List[CarrinhoItemOut] = []
    subtotal: Decimal = Decimal("0.00")
    quantidade_itens: int = 0
