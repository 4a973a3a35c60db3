from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CupomCreate(BaseModel):
    codigo: str = Field(..., min_length=3, max_length=30)
    descricao: Optional[str] = Field(None, max_length=120)
    desconto_percentual: Decimal = Field(..., gt=0, le=100, decimal_places=2)
    validade_dias: int = Field(..., ge=1, le=3650, description="Dias de validade a partir de agora")
    limite_usos: Optional[int] = Field(None, ge=1)

    @field_validator("codigo")
    @classmethod
    def normalizar_codigo(cls, v: str) -> str:
        return v.strip().upper()


class CupomUpdate(BaseModel):
    descricao: Optional[str] = Field(None, max_length=120)
    desconto_percentual: Optional[Decimal] = Field(None, gt=0, le=100, decimal_places=2)
    validade_fim: Optional[datetime] = None
    limite_usos: Optional[int] = Field(None, ge=1)
    ativo: Optional[bool] = None


class CupomOut(BaseModel):
    id: int
    codigo: str
    descricao: Optional[str] = None
    desconto_percentual: Decimal
    validade_fim: datetime
    limite_usos: Optional[int] = None
    usos: int
    ativo: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CupomValidacaoResponse(BaseModel):
    codigo: str
    desconto_percentual: Decimal
