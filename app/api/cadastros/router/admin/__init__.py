from .router_cupons import router as router_cupons

__all__ = ["router_cupons"]
