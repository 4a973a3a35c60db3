"""
Exception handlers globais para capturar e logar erros da API.

Todas as respostas de erro seguem o envelope:
    {"detail": ..., "error_code": ..., "status_code": ..., "trace_id": ...}
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.orm.exc import StaleDataError
import traceback
import json

from app.core.exceptions import AppError, ConcurrentModificationError, IntegrityError
from app.core.request_context import get_trace_id
from app.utils.logger import logger


def _trace_id(request: Request) -> str | None:
    return getattr(request.state, "trace_id", None) or get_trace_id()


def _envelope(request: Request, status_code: int, detail, error_code: str, **extra) -> JSONResponse:
    content = {
        "detail": detail,
        "error_code": error_code,
        "status_code": status_code,
        "trace_id": _trace_id(request),
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


async def app_error_handler(request: Request, exc: AppError):
    """
    Handler para exceções de domínio.
    Erros de integridade e 5xx são logados como ERROR; os demais como WARNING.
    """
    log_message = (
        f"[{exc.codigo} {exc.status_code}] {request.method} {request.url.path} - "
        f"{exc.mensagem}"
    )
    if exc.contexto:
        log_message += f" | contexto={exc.contexto}"

    if isinstance(exc, IntegrityError) or exc.status_code >= 500:
        logger.error(log_message)
    else:
        logger.warning(log_message)

    return _envelope(request, exc.status_code, exc.mensagem, exc.codigo)


async def stale_data_handler(request: Request, exc: StaleDataError):
    """Versão do registro mudou entre a leitura e a escrita (controle otimista)."""
    logger.warning(f"[CONCORRENCIA] {request.method} {request.url.path} - {exc}")
    erro = ConcurrentModificationError()
    return _envelope(request, erro.status_code, erro.mensagem, erro.codigo)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler para erros de validação (422) do FastAPI/Pydantic.
    Registra os erros detalhados nos logs.
    """
    error_details = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []))
        error_details.append({
            "field": field,
            "type": error.get("type", "unknown"),
            "message": error.get("msg", "Erro de validação"),
        })

    logger.warning(
        f"[VALIDATION ERROR 422] {request.method} {request.url.path} - "
        f"Erros de validação detectados:\n{json.dumps(error_details, indent=2, ensure_ascii=False)}"
    )

    return _envelope(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        error_details,
        "VALIDACAO_REQUISICAO",
        message="Erro de validação nos dados fornecidos",
    )


async def http_exception_handler(request: Request, exc):
    """
    Handler para HTTPExceptions (rotas inexistentes, métodos não permitidos etc).
    """
    status_code = exc.status_code
    log_message = (
        f"[HTTP ERROR {status_code}] {request.method} {request.url.path} - "
        f"Detalhes: {exc.detail}"
    )
    if status_code >= 500:
        logger.error(log_message)
    else:
        logger.warning(log_message)

    response = _envelope(request, status_code, str(exc.detail), "HTTP_ERROR")
    headers = getattr(exc, "headers", None)
    if headers:
        response.headers.update(headers)
    return response


async def general_exception_handler(request: Request, exc: Exception):
    """
    Handler para exceções não tratadas.
    O cliente recebe uma mensagem genérica; o detalhe completo vai para o log.
    """
    logger.error(
        f"[UNHANDLED EXCEPTION] {request.method} {request.url.path} - "
        f"{type(exc).__name__}: {str(exc)}"
    )
    logger.error(
        "[UNHANDLED EXCEPTION] Traceback completo:\n"
        + "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )

    return _envelope(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Erro interno do servidor",
        "ERRO_INTERNO",
    )
