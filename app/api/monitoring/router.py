"""
Router de monitoramento: métricas Prometheus (públicas) e leitura dos logs (admin).
"""
from collections import deque
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from app.utils.logger import LOG_DIR
from app.core.admin_dependencies import require_admin
from app.utils.prometheus_metrics import get_metrics, CONTENT_TYPE_LATEST

router = APIRouter(
    prefix="/api/monitoring",
    tags=["Monitoring - Monitoramento"],
    dependencies=[Depends(require_admin)],
)

# Router público para métricas (sem autenticação)
router_public = APIRouter(
    prefix="/api/monitoring",
    tags=["Monitoring - Monitoramento"]
)

LOG_FILE = LOG_DIR / "app.log"


class LogsResponse(BaseModel):
    arquivo: str
    total: int
    linhas: List[str]


@router_public.get("/metrics")
async def metrics():
    """
    Endpoint de métricas Prometheus (público, sem autenticação).
    Acesse em: /api/monitoring/metrics
    """
    return StreamingResponse(
        iter([get_metrics()]),
        media_type=CONTENT_TYPE_LATEST
    )


@router.get("/logs", response_model=LogsResponse)
def ultimas_linhas_log(
    lines: int = Query(100, ge=1, le=1000, description="Número de linhas"),
    level: Optional[str] = Query(None, description="Filtrar por nível (INFO, ERROR, WARNING, DEBUG)"),
    search: Optional[str] = Query(None, description="Texto a buscar"),
    trace_id: Optional[str] = Query(None, description="Filtrar por X-Request-ID"),
):
    """Últimas linhas do log da aplicação, com filtros opcionais."""
    if not LOG_FILE.exists():
        return LogsResponse(arquivo=str(LOG_FILE), total=0, linhas=[])

    with open(LOG_FILE, "r", encoding="utf-8", errors="replace") as f:
        log_lines = [line.rstrip("\n") for line in deque(f, maxlen=lines)]

    if level:
        marcador = f"[{level.upper()}]"
        log_lines = [line for line in log_lines if marcador in line.upper()]
    if search:
        log_lines = [line for line in log_lines if search.lower() in line.lower()]
    if trace_id:
        log_lines = [line for line in log_lines if f"[trace={trace_id}]" in line]

    return LogsResponse(arquivo=str(LOG_FILE), total=len(log_lines), linhas=log_lines)
