from .router_cupons import router as router_cupons
from .router_enderecos import router as router_enderecos

__all__ = ["router_cupons", "router_enderecos"]
