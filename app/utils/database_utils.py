from datetime import datetime
from zoneinfo import ZoneInfo

TZ_SP = ZoneInfo('America/Sao_Paulo')


def now_trimmed():
    """Retorna datetime atual em timezone de São Paulo, sem microsegundos"""
    return datetime.now(TZ_SP).replace(microsecond=0)


def as_aware(dt: datetime | None) -> datetime | None:
    """Bancos sem timezone (ex.: SQLite) devolvem datetime ingênuo; assume São Paulo."""
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=TZ_SP)
