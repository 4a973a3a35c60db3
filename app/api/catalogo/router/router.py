from fastapi import APIRouter

from app.api.catalogo.router.admin.router_produtos import router as router_produtos_admin

router = APIRouter()
router.include_router(router_produtos_admin)
