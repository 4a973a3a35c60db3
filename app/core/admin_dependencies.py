# app/core/admin_dependencies.py

from fastapi import Depends, Request

from app.core.authorization import Papel, UsuarioAutenticado
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.security import JWTError, decode_access_token
from app.utils.logger import logger


def get_current_user(request: Request) -> UsuarioAutenticado:
    """
    Recupera o usuário autenticado a partir do header Authorization (Bearer <token>).
    O token traz `sub` (id do usuário) e `role` (Admin | User).
    """
    # 1. Pega o token do header Authorization
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        logger.warning("[AUTH] Cabeçalho Authorization ausente ou malformado.")
        raise UnauthorizedError()

    access_token = auth_header.replace("Bearer ", "", 1)

    # 2. Decodifica o JWT
    try:
        payload = decode_access_token(access_token)
    except JWTError as e:
        logger.warning(f"[AUTH] Erro ao decodificar JWT: {e}")
        raise UnauthorizedError()

    raw_sub = payload.get("sub")
    if not raw_sub:
        raise UnauthorizedError()

    try:
        papel = Papel(payload.get("role", Papel.USER.value))
    except ValueError:
        logger.warning(f"[AUTH] Papel desconhecido no token: {payload.get('role')}")
        raise UnauthorizedError()

    return UsuarioAutenticado(id=str(raw_sub), papel=papel)


def require_admin(current_user: UsuarioAutenticado = Depends(get_current_user)) -> UsuarioAutenticado:
    """
    Atalho para rotas que só podem ser acessadas por usuários com papel Admin.
    """
    if not current_user.is_admin:
        logger.warning(
            "[AUTH] Acesso negado. usuario=%s papel=%s tentou acessar rota admin.",
            current_user.id,
            current_user.papel.value,
        )
        raise ForbiddenError()
    return current_user
