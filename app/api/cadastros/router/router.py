# app/api/cadastros/router/router.py

from fastapi import APIRouter

from app.api.cadastros.router.admin import router_cupons
from app.api.cadastros.router.client import (
    router_cupons as router_cupons_client,
    router_enderecos as router_enderecos_client,
)

api_cadastros = APIRouter(
    tags=["API - Cadastros"]
)

# Routers para clientes
api_cadastros.include_router(router_cupons_client)
api_cadastros.include_router(router_enderecos_client)

# Routers para admin
api_cadastros.include_router(router_cupons)
