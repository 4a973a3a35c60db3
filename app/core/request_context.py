from __future__ import annotations

import uuid
from contextvars import ContextVar, Token
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Contexto por request (thread/task-local) com o identificador de rastreio.
_trace_id: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

TRACE_HEADER = "X-Request-ID"


def set_trace_id(trace_id: Optional[str]) -> Token:
    return _trace_id.set(trace_id)


def reset_trace_id(token: Token) -> None:
    _trace_id.reset(token)


def get_trace_id() -> Optional[str]:
    return _trace_id.get()


class TraceIdMiddleware(BaseHTTPMiddleware):
    """Atribui um trace id a cada requisição e devolve no header de resposta."""

    async def dispatch(self, request: Request, call_next: Callable):
        trace_id = request.headers.get(TRACE_HEADER) or uuid.uuid4().hex
        request.state.trace_id = trace_id
        token = set_trace_id(trace_id)
        try:
            response = await call_next(request)
        finally:
            reset_trace_id(token)
        response.headers[TRACE_HEADER] = trace_id
        return response
