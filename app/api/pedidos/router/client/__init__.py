from .router_pedidos_client import router as router_pedidos_client

__all__ = ["router_pedidos_client"]
