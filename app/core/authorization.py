from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from app.core.exceptions import ForbiddenError
from app.utils.logger import logger


class Papel(str, enum.Enum):
    ADMIN = "Admin"
    USER = "User"


@dataclass(frozen=True)
class UsuarioAutenticado:
    """Identidade extraída do token; a API não guarda usuários."""
    id: str
    papel: Papel

    @property
    def is_admin(self) -> bool:
        return self.papel == Papel.ADMIN


class Capacidade(str, enum.Enum):
    VER_PEDIDO = "pedido:ver"
    LISTAR_TODOS_PEDIDOS = "pedido:listar_todos"
    ALTERAR_STATUS_PEDIDO = "pedido:alterar_status"
    SOLICITAR_REEMBOLSO = "reembolso:solicitar"
    RESOLVER_REEMBOLSO = "reembolso:resolver"
    REVISAR_PAGAMENTOS = "pagamento:revisar"
    VER_DASHBOARD = "dashboard:ver"
    GERENCIAR_CUPONS = "cupom:gerenciar"
    GERENCIAR_PRODUTOS = "produto:gerenciar"


# Capacidades exclusivas de administradores
CAPACIDADES_ADMIN = frozenset({
    Capacidade.LISTAR_TODOS_PEDIDOS,
    Capacidade.ALTERAR_STATUS_PEDIDO,
    Capacidade.RESOLVER_REEMBOLSO,
    Capacidade.REVISAR_PAGAMENTOS,
    Capacidade.VER_DASHBOARD,
    Capacidade.GERENCIAR_CUPONS,
    Capacidade.GERENCIAR_PRODUTOS,
})

# Capacidades restritas ao dono do recurso (admin não herda)
CAPACIDADES_SOMENTE_DONO = frozenset({
    Capacidade.SOLICITAR_REEMBOLSO,
})


@dataclass(frozen=True)
class ResultadoAutorizacao:
    permitido: bool
    capacidade: Capacidade
    usuario_id: str
    motivo: Optional[str] = None

    def __bool__(self) -> bool:
        return self.permitido


def autorizar(
    usuario: UsuarioAutenticado,
    capacidade: Capacidade,
    dono_id: Optional[str] = None,
) -> ResultadoAutorizacao:
    """
    Decide se `usuario` pode exercer `capacidade`.

    Regras:
    - Capacidades de admin exigem papel Admin.
    - Quando `dono_id` é informado, o usuário precisa ser o dono do recurso;
      admins passam, exceto nas capacidades marcadas como somente dono.
    """
    if capacidade in CAPACIDADES_ADMIN and not usuario.is_admin:
        return ResultadoAutorizacao(False, capacidade, usuario.id, "Requer papel Admin")

    if dono_id is not None and str(dono_id) != usuario.id:
        if capacidade in CAPACIDADES_SOMENTE_DONO or not usuario.is_admin:
            return ResultadoAutorizacao(False, capacidade, usuario.id, "Recurso pertence a outro usuário")

    return ResultadoAutorizacao(True, capacidade, usuario.id)


def exigir(
    usuario: UsuarioAutenticado,
    capacidade: Capacidade,
    dono_id: Optional[str] = None,
) -> ResultadoAutorizacao:
    resultado = autorizar(usuario, capacidade, dono_id)
    if not resultado.permitido:
        logger.warning(
            "[AUTHZ] Acesso negado. usuario=%s capacidade=%s motivo=%s",
            usuario.id,
            capacidade.value,
            resultado.motivo,
        )
        raise ForbiddenError()
    return resultado
