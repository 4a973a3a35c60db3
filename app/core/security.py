# app/core/security.py
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from app.config.settings import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES

# Validação de SECRET_KEY
if not SECRET_KEY or not isinstance(SECRET_KEY, str):
    raise RuntimeError("SECRET_KEY não configurada. Defina SECRET_KEY no .env ou variáveis de ambiente.")


def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    """
    Emite um token no formato aceito pela API.
    A emissão real é do provedor de identidade; aqui serve a scripts e testes.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({
        "exp": expire,
        # garante que sempre é string:
        "sub": str(to_encode.get("sub", ""))
    })
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Valida assinatura e expiração. Levanta JWTError se inválido."""
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])


__all__ = ["create_access_token", "decode_access_token", "JWTError", "SECRET_KEY", "ALGORITHM"]
