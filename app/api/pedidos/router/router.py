"""
Router principal do bounded context de Pedidos.
"""
from fastapi import APIRouter

from app.api.pedidos.router.admin import router_pedidos_admin
from app.api.pedidos.router.client import router_pedidos_client
from app.api.pedidos.router.webhook import router_webhook_mercadopago

api_pedidos = APIRouter()

api_pedidos.include_router(router_pedidos_client)
api_pedidos.include_router(router_pedidos_admin)
api_pedidos.include_router(router_webhook_mercadopago)
