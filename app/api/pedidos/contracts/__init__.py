"""
Contracts do bounded context de Pedidos.
"""

from .pagamento_contract import (
    IPagamentoGateway,
    PagamentoConsultado,
    ResultadoReembolso,
    SessaoCheckout,
)

__all__ = [
    "IPagamentoGateway",
    "PagamentoConsultado",
    "ResultadoReembolso",
    "SessaoCheckout",
]
