"""
Contract (Interface) do provedor de pagamentos.

Implementações devem aplicar timeout às chamadas externas e converter
qualquer falha (timeout, erro HTTP, resposta inválida) em ExternalServiceError:
uma chamada sem resposta nunca é tratada como sucesso.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from app.api.pedidos.models.model_pedido import PedidoModel


@dataclass(frozen=True)
class SessaoCheckout:
    url: str
    referencia_gateway: str


@dataclass(frozen=True)
class PagamentoConsultado:
    id: str
    status: str
    external_reference: Optional[str]
    valor_centavos: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def aprovado(self) -> bool:
        return self.status == "approved"


@dataclass(frozen=True)
class ResultadoReembolso:
    reembolso_gateway_id: str
    valor_centavos: int
    status: Optional[str] = None


class IPagamentoGateway(ABC):

    @abstractmethod
    async def criar_checkout(self, pedido: PedidoModel, metadata: Dict[str, Any]) -> SessaoCheckout:
        raise NotImplementedError

    @abstractmethod
    async def consultar_pagamento(self, pagamento_id: str) -> PagamentoConsultado:
        raise NotImplementedError

    @abstractmethod
    async def reembolsar(
        self,
        transacao_id: str,
        valor_centavos: int,
        chave_idempotencia: str,
    ) -> ResultadoReembolso:
        raise NotImplementedError
