import re
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field, field_validator


class CotarFreteRequest(BaseModel):
    cep: str = Field(..., description="CEP de destino")

    @field_validator("cep")
    @classmethod
    def normalizar_cep(cls, v: str) -> str:
        cep = re.sub(r"\D", "", v or "")
        if len(cep) != 8:
            raise ValueError("CEP deve ter 8 dígitos")
        return cep


class OpcaoFreteOut(BaseModel):
    nome: str
    preco: Decimal
    prazo_dias: int


class CotarFreteResponse(BaseModel):
    cep: str
    opcoes: List[OpcaoFreteOut]
