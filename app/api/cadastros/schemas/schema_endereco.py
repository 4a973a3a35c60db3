import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalizar_cep(v: str) -> str:
    cep = re.sub(r"\D", "", v or "")
    if len(cep) != 8:
        raise ValueError("CEP deve ter 8 dígitos")
    return cep


class EnderecoBase(BaseModel):
    destinatario: str = Field(..., min_length=1, max_length=100)
    cep: str = Field(..., description="CEP com ou sem hífen")
    logradouro: str = Field(..., min_length=1, max_length=100)
    numero: str = Field(..., min_length=1, max_length=10)
    complemento: Optional[str] = Field(None, max_length=50)
    bairro: str = Field(..., min_length=1, max_length=50)
    cidade: str = Field(..., min_length=1, max_length=50)
    estado: str = Field(..., min_length=2, max_length=2)
    ponto_referencia: Optional[str] = Field(None, max_length=120)
    telefone: Optional[str] = Field(None, max_length=20)

    @field_validator("cep")
    @classmethod
    def normalizar_cep(cls, v: str) -> str:
        return _normalizar_cep(v)

    @field_validator("estado")
    @classmethod
    def normalizar_estado(cls, v: str) -> str:
        return v.strip().upper()


class EnderecoIn(EnderecoBase):
    """Endereço avulso informado no fechamento do pedido (não é salvo)."""


class EnderecoCreate(EnderecoBase):
    nome: str = Field(..., min_length=1, max_length=50)
    is_padrao: bool = False


class EnderecoUpdate(BaseModel):
    nome: Optional[str] = Field(None, min_length=1, max_length=50)
    destinatario: Optional[str] = Field(None, min_length=1, max_length=100)
    cep: Optional[str] = None
    logradouro: Optional[str] = Field(None, min_length=1, max_length=100)
    numero: Optional[str] = Field(None, min_length=1, max_length=10)
    complemento: Optional[str] = Field(None, max_length=50)
    bairro: Optional[str] = Field(None, min_length=1, max_length=50)
    cidade: Optional[str] = Field(None, min_length=1, max_length=50)
    estado: Optional[str] = Field(None, min_length=2, max_length=2)
    ponto_referencia: Optional[str] = Field(None, max_length=120)
    telefone: Optional[str] = Field(None, max_length=20)

    @field_validator("cep")
    @classmethod
    def normalizar_cep(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _normalizar_cep(v)


class EnderecoOut(BaseModel):
    id: int
    nome: str
    destinatario: str
    cep: str
    logradouro: str
    numero: str
    complemento: Optional[str] = None
    bairro: str
    cidade: str
    estado: str
    ponto_referencia: Optional[str] = None
    telefone: Optional[str] = None
    is_padrao: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
