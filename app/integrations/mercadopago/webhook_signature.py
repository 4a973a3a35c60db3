"""
Validação do header `x-signature` enviado pelo Mercado Pago nas notificações.

Formato do header: ``ts=1704908010,v1=<hmac-sha256 hex>``.
Manifesto assinado: ``id:{data.id};request-id:{x-request-id};ts:{ts};``
(partes ausentes são omitidas do manifesto).
"""
import hashlib
import hmac
from typing import Optional

from app.config.settings import ChavesVersionadas


def _parse_header(x_signature: str) -> dict[str, str]:
    partes: dict[str, str] = {}
    for item in x_signature.split(","):
        chave, sep, valor = item.strip().partition("=")
        if sep:
            partes[chave.strip()] = valor.strip()
    return partes


def montar_manifesto(data_id: Optional[str], request_id: Optional[str], ts: str) -> str:
    manifesto = ""
    if data_id:
        # IDs alfanuméricos são assinados em minúsculas
        manifesto += f"id:{str(data_id).lower()};"
    if request_id:
        manifesto += f"request-id:{request_id};"
    manifesto += f"ts:{ts};"
    return manifesto


def assinatura_valida(
    segredos: ChavesVersionadas,
    x_signature: Optional[str],
    request_id: Optional[str],
    data_id: Optional[str],
) -> bool:
    """Aceita a assinatura gerada com qualquer segredo ainda presente na tabela."""
    if not x_signature or not segredos.chaves:
        return False

    partes = _parse_header(x_signature)
    ts, v1 = partes.get("ts"), partes.get("v1")
    if not ts or not v1:
        return False

    manifesto = montar_manifesto(data_id, request_id, ts).encode("utf-8")
    for segredo in segredos.chaves.values():
        esperado = hmac.new(segredo, manifesto, hashlib.sha256).hexdigest()
        if hmac.compare_digest(esperado, v1):
            return True
    return False
