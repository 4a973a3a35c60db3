"""
Models do bounded context de Pedidos.
"""
from .model_pedido import PedidoModel, StatusPedido, StatusPedidoEnum
from .model_pedido_item import PedidoItemModel
from .model_pedido_historico import PedidoHistoricoModel
from .model_pagamento_evento import PagamentoEventoModel, ResultadoEventoPagamento
from .model_reembolso import ReembolsoModel, StatusReembolso, TipoReembolso

__all__ = [
    "PedidoModel",
    "PedidoItemModel",
    "PedidoHistoricoModel",
    "PagamentoEventoModel",
    "ReembolsoModel",
    # Enums e tipos
    "StatusPedido",
    "StatusPedidoEnum",
    "ResultadoEventoPagamento",
    "StatusReembolso",
    "TipoReembolso",
]
