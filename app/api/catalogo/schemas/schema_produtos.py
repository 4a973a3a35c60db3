from decimal import Decimal
from typing import Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CriarProdutoRequest(BaseModel):
    nome: str = Field(..., min_length=1, max_length=150)
    descricao: Optional[str] = Field(None, max_length=1000)
    preco: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2)
    estoque: int = Field(0, ge=0)
    ativo: bool = True
    peso_kg: Decimal = Field(Decimal("0.3"), gt=0)
    largura_cm: Decimal = Field(Decimal("11"), gt=0)
    altura_cm: Decimal = Field(Decimal("2"), gt=0)
    comprimento_cm: Decimal = Field(Decimal("16"), gt=0)


class AtualizarProdutoRequest(BaseModel):
    nome: Optional[str] = Field(None, min_length=1, max_length=150)
    descricao: Optional[str] = Field(None, max_length=1000)
    preco: Optional[Decimal] = Field(None, ge=0, max_digits=18, decimal_places=2)
    estoque: Optional[int] = Field(None, ge=0)
    ativo: Optional[bool] = None


class ProdutoResponse(BaseModel):
    id: int
    nome: str
    descricao: Optional[str] = None
    preco: Decimal
    estoque: int
    ativo: bool
    peso_kg: Decimal
    largura_cm: Decimal
    altura_cm: Decimal
    comprimento_cm: Decimal
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
