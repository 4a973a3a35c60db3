from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TipoReembolsoEnum(str, Enum):
    TOTAL = "Total"
    PARCIAL = "Parcial"


class ItemReembolsoIn(BaseModel):
    produto_id: int
    quantidade: int = Field(..., ge=1)


class SolicitarReembolsoRequest(BaseModel):
    tipo: TipoReembolsoEnum
    itens: Optional[List[ItemReembolsoIn]] = None
    motivo: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def _itens_para_parcial(self):
        if self.tipo == TipoReembolsoEnum.PARCIAL and not self.itens:
            raise ValueError("Reembolso parcial exige a lista de itens")
        return self


class ResolverReembolsoRequest(BaseModel):
    aprovado: bool
    valor_aprovado_centavos: Optional[int] = Field(None, description="Padrão: valor solicitado")
    motivo: Optional[str] = Field(None, max_length=500)


class ItemReembolsoOut(BaseModel):
    produto_id: int
    quantidade: int


class ReembolsoOut(BaseModel):
    id: int
    pedido_id: int
    tipo: TipoReembolsoEnum
    itens: Optional[List[ItemReembolsoOut]] = None
    valor_solicitado_centavos: int
    valor_aprovado_centavos: Optional[int] = None
    status: str
    status_destino: Optional[str] = None
    gateway_reembolso_id: Optional[str] = None
    ultimo_erro: Optional[str] = None
    tentativas: int
    motivo_reprovacao: Optional[str] = None
    solicitado_por: str
    resolvido_por: Optional[str] = None
    created_at: datetime
    resolvido_em: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
