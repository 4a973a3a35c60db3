"""
Services do bounded context de Pedidos.
"""

from .pagamento_reconciler import PagamentoReconciler
from .pedido_factory import PedidoFactory
from .service_pedido import PedidoService
from .service_precificacao import PrecificacaoService
from .service_reembolso import ReembolsoService
from .state_machine import PedidoStateMachine

__all__ = [
    "PagamentoReconciler",
    "PedidoFactory",
    "PedidoService",
    "PrecificacaoService",
    "ReembolsoService",
    "PedidoStateMachine",
]
