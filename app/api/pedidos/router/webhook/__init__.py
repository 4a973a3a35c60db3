from .router_webhook_mercadopago import router as router_webhook_mercadopago

__all__ = ["router_webhook_mercadopago"]
