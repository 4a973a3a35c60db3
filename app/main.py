from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from sqlalchemy.orm.exc import StaleDataError

from app.config.settings import CORS_ORIGINS, CORS_ALLOW_ALL, BASE_URL, ENABLE_DOCS
from app.core.exception_handlers import (
    app_error_handler,
    general_exception_handler,
    http_exception_handler,
    stale_data_handler,
    validation_exception_handler,
)
from app.core.exceptions import AppError
from app.core.request_context import TraceIdMiddleware
from app.utils.logger import logger
from app.utils.prometheus_metrics import PrometheusMiddleware

# Importar os routers registra os models no SQLAlchemy
from app.api.cadastros.router.router import api_cadastros
from app.api.carrinho.router.router_carrinho_client import router as carrinho_router
from app.api.catalogo.router.router import router as catalogo_router
from app.api.frete.router.router_frete_client import router as frete_router
from app.api.monitoring.router import router as monitoring_router, router_public as monitoring_router_public
from app.api.pedidos.router.router import api_pedidos

# Rotas sem Bearer no Swagger
PUBLIC_PATHS = {"/", "/health", "/api/monitoring/metrics", "/api/pagamentos/webhooks/mercadopago"}

app = FastAPI(
    title="API da Loja",
    version="1.0.0",
    description="Carrinho, pedidos, pagamentos e reembolsos",
    docs_url=("/swagger" if ENABLE_DOCS else None),
    redoc_url=("/redoc" if ENABLE_DOCS else None),
    openapi_url=("/openapi.json" if ENABLE_DOCS else None),
    servers=[{"url": BASE_URL or "http://localhost:8000", "description": "Base URL do ambiente"}],
    redirect_slashes=False,
)

for tipo, handler in (
    (AppError, app_error_handler),
    (StaleDataError, stale_data_handler),
    (RequestValidationError, validation_exception_handler),
    (HTTPException, http_exception_handler),
    (Exception, general_exception_handler),
):
    app.add_exception_handler(tipo, handler)


# Último middleware adicionado é o primeiro a executar: CORS -> trace id -> métricas
app.add_middleware(PrometheusMiddleware)
app.add_middleware(TraceIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if CORS_ALLOW_ALL else (CORS_ORIGINS or ["*"]),
    allow_credentials=bool(CORS_ORIGINS) and not CORS_ALLOW_ALL,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


@app.on_event("startup")
async def startup():
    from app.database.init_db import inicializar_banco

    logger.info("Iniciando API e banco de dados...")
    inicializar_banco()
    logger.info("API iniciada com sucesso.")


@app.on_event("shutdown")
async def shutdown():
    logger.info("API encerrada.")


@app.get("/")
async def root():
    return {"status": "ok", "message": "API is running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


for r in (
    monitoring_router_public,
    monitoring_router,
    catalogo_router,
    api_cadastros,
    carrinho_router,
    frete_router,
    api_pedidos,
):
    app.include_router(r)


def custom_openapi():
    """Bearer JWT global no Swagger, exceto nas rotas públicas."""
    if app.openapi_schema:
        return app.openapi_schema

    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        servers=app.servers,
    )
    schema.setdefault("components", {}).setdefault("securitySchemes", {})["bearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }
    schema["security"] = [{"bearerAuth": []}]

    for path, metodos in schema.get("paths", {}).items():
        if path in PUBLIC_PATHS:
            for operacao in metodos.values():
                operacao["security"] = []

    app.openapi_schema = schema
    return schema


app.openapi = custom_openapi
