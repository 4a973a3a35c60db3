# app/utils/logger.py

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.config.settings import LOG_DIR as LOG_DIR_ENV
from app.core.request_context import get_trace_id

# Caminho da pasta logs/
BASE_DIR = Path(__file__).resolve().parent.parent
LOG_DIR = Path(LOG_DIR_ENV) if LOG_DIR_ENV else BASE_DIR / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)


class TraceIdFilter(logging.Filter):
    """Anexa o trace id da requisição corrente (ou '-') a cada registro."""

    def filter(self, record):
        record.trace_id = get_trace_id() or "-"
        return True


class PrometheusLogHandler(logging.Handler):
    """Handler customizado para registrar logs nas métricas Prometheus."""

    def emit(self, record):
        from app.utils.prometheus_metrics import record_log
        record_log(record.levelname)


# Instância do logger
logger = logging.getLogger("app_logger")
logger.setLevel(logging.INFO)

# Evita duplicar handlers se importar várias vezes
if not logger.handlers:
    # Formatação
    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] [trace=%(trace_id)s] %(name)s: %(message)s"
    )
    trace_filter = TraceIdFilter()

    # Handler para arquivo com rotação
    file_handler = RotatingFileHandler(
        filename=LOG_DIR / "app.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    file_handler.addFilter(trace_filter)
    logger.addHandler(file_handler)

    # Handler opcional para console
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.addFilter(trace_filter)
    logger.addHandler(console_handler)

    logger.addHandler(PrometheusLogHandler())
