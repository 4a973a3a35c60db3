"""
Métricas Prometheus da loja: tráfego HTTP, logs, pedidos, pagamentos e chamadas externas.
"""
import re
from time import time
from typing import Callable

from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST  # noqa: F401
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

_UUID = re.compile(r"/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}")
_NUMERO = re.compile(r"/\d+")

# HTTP
http_requests_total = Counter(
    "http_requests_total",
    "Requisições HTTP por rota e status",
    ["method", "endpoint", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "Duração das requisições HTTP",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)
requisicoes_em_andamento = Gauge(
    "requisicoes_em_andamento",
    "Requisições sendo atendidas no momento",
)

log_messages_total = Counter(
    "log_messages_total",
    "Mensagens de log por nível",
    ["level"],
)

# Negócio
pedidos_criados_total = Counter(
    "pedidos_criados_total",
    "Pedidos criados a partir do carrinho",
)
webhooks_pagamento_total = Counter(
    "webhooks_pagamento_total",
    "Confirmações de pagamento por resultado",
    ["resultado"],
)
reembolsos_total = Counter(
    "reembolsos_total",
    "Resoluções de reembolso por resultado",
    ["resultado"],
)
chamadas_externas_duracao_seconds = Histogram(
    "chamadas_externas_duracao_seconds",
    "Duração das chamadas ao gateway de pagamento e à cotação de frete",
    ["servico", "operacao"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0],
)


def normalizar_endpoint(path: str) -> str:
    """/api/pedidos/client/123 -> /api/pedidos/client/{id}"""
    return _NUMERO.sub("/{id}", _UUID.sub("/{uuid}", path))


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        if request.url.path.endswith("/metrics"):
            return await call_next(request)

        endpoint = normalizar_endpoint(request.url.path)
        inicio = time()
        status_code = 500
        requisicoes_em_andamento.inc()
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            requisicoes_em_andamento.dec()
            http_requests_total.labels(
                method=request.method, endpoint=endpoint, status_code=status_code
            ).inc()
            http_request_duration_seconds.labels(
                method=request.method, endpoint=endpoint
            ).observe(time() - inicio)


def get_metrics():
    return generate_latest()


def record_log(level: str):
    log_messages_total.labels(level=level).inc()
