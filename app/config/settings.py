import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from dotenv import load_dotenv

# Carrega o .env manualmente se estiver fora do Docker
if not os.getenv("RUNNING_IN_DOCKER"):
    dotenv_path = Path(__file__).resolve().parents[2] / ".env"
    load_dotenv(dotenv_path=dotenv_path)

# Configuração de conexão
# DATABASE_URL tem precedência sobre as partes DB_* (ex.: sqlite em testes)
DATABASE_URL = os.getenv("DATABASE_URL")
DB_CONFIG = {
    'database': os.getenv('DB_NAME'),
    'user': os.getenv('DB_USER'),
    'password': os.getenv('DB_PASSWORD'),
    'host': os.getenv('DB_HOST'),
    'port': int(os.getenv('DB_PORT', 5432)),
}

# SSL do banco (opcional)
DB_SSL_MODE = os.getenv('DB_SSL_MODE')  # ex.: require, verify-ca, verify-full

# JWT / Segurança
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 90))

# CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
CORS_ALLOW_ALL = os.getenv("CORS_ALLOW_ALL", "false").lower() in ("1", "true", "yes")

# FastAPI / App
BASE_URL = os.getenv("BASE_URL", "")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
ENABLE_DOCS = os.getenv("ENABLE_DOCS", "true").lower() in ("1", "true", "yes")
LOG_DIR = os.getenv("LOG_DIR")

# Limites de valor do pedido
PEDIDO_VALOR_MINIMO = Decimal(os.getenv("PEDIDO_VALOR_MINIMO", "1.00"))
PEDIDO_VALOR_MAXIMO = Decimal(os.getenv("PEDIDO_VALOR_MAXIMO", "100000.00"))

# Gateway de pagamento: "mercadopago" ou "mock"
GATEWAY_MODE = os.getenv("GATEWAY_MODE", "mercadopago").lower()

# Mercado Pago
MERCADOPAGO_ACCESS_TOKEN = os.getenv("MERCADOPAGO_ACCESS_TOKEN")
MERCADOPAGO_BASE_URL = os.getenv("MERCADOPAGO_BASE_URL", "https://api.mercadopago.com")
MERCADOPAGO_TIMEOUT_SECONDS = int(os.getenv("MERCADOPAGO_TIMEOUT_SECONDS", 20))
MERCADOPAGO_NOTIFICATION_URL = os.getenv("MERCADOPAGO_NOTIFICATION_URL", "")
# Formato: "v1:segredo1,v2:segredo2"
MERCADOPAGO_WEBHOOK_SECRETS = os.getenv("MERCADOPAGO_WEBHOOK_SECRETS", "")
MERCADOPAGO_WEBHOOK_SECRET_VERSION = os.getenv("MERCADOPAGO_WEBHOOK_SECRET_VERSION", "")

# Melhor Envio (cotação de frete)
MELHORENVIO_TOKEN = os.getenv("MELHORENVIO_TOKEN")
MELHORENVIO_BASE_URL = os.getenv("MELHORENVIO_BASE_URL", "https://melhorenvio.com.br")
MELHORENVIO_TIMEOUT_SECONDS = int(os.getenv("MELHORENVIO_TIMEOUT_SECONDS", 10))
MELHORENVIO_CEP_ORIGEM = os.getenv("MELHORENVIO_CEP_ORIGEM", "01001000")

# Assinatura de metadados enviados ao gateway. Formato: "v1:chave1,v2:chave2"
METADATA_HMAC_KEYS = os.getenv("METADATA_HMAC_KEYS", "")
METADATA_HMAC_KEY_VERSION = os.getenv("METADATA_HMAC_KEY_VERSION", "")


# ---------------- Configuração imutável ----------------

@dataclass(frozen=True)
class ChavesVersionadas:
    """Tabela somente-leitura versão -> chave, com a versão usada para assinar."""

    versao_atual: str
    chaves: Mapping[str, bytes]

    def chave(self, versao: str) -> Optional[bytes]:
        return self.chaves.get(versao)

    @property
    def chave_atual(self) -> bytes:
        return self.chaves[self.versao_atual]

    @classmethod
    def from_env(cls, raw: str, versao_atual: str = "") -> "ChavesVersionadas":
        tabela: dict[str, bytes] = {}
        for parte in raw.split(","):
            parte = parte.strip()
            if not parte:
                continue
            versao, sep, chave = parte.partition(":")
            if not sep or not versao.strip() or not chave.strip():
                raise RuntimeError(f"Entrada de chave inválida (esperado versao:chave): {versao!r}")
            tabela[versao.strip()] = chave.strip().encode("utf-8")

        if tabela and not versao_atual:
            versao_atual = sorted(tabela)[-1]
        if tabela and versao_atual not in tabela:
            raise RuntimeError(f"Versão de chave '{versao_atual}' não encontrada na tabela.")
        return cls(versao_atual=versao_atual, chaves=MappingProxyType(tabela))


@dataclass(frozen=True)
class AppConfig:
    pedido_valor_minimo: Decimal
    pedido_valor_maximo: Decimal
    chaves_metadados: ChavesVersionadas
    segredos_webhook: ChavesVersionadas
    mercadopago_access_token: Optional[str]
    mercadopago_base_url: str
    mercadopago_timeout: float
    mercadopago_notification_url: str
    melhorenvio_token: Optional[str]
    melhorenvio_base_url: str
    melhorenvio_timeout: float
    melhorenvio_cep_origem: str
    frontend_url: str
    gateway_mode: str


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """Monta a configuração uma única vez por processo."""
    return AppConfig(
        pedido_valor_minimo=PEDIDO_VALOR_MINIMO,
        pedido_valor_maximo=PEDIDO_VALOR_MAXIMO,
        chaves_metadados=ChavesVersionadas.from_env(METADATA_HMAC_KEYS, METADATA_HMAC_KEY_VERSION),
        segredos_webhook=ChavesVersionadas.from_env(
            MERCADOPAGO_WEBHOOK_SECRETS, MERCADOPAGO_WEBHOOK_SECRET_VERSION
        ),
        mercadopago_access_token=MERCADOPAGO_ACCESS_TOKEN,
        mercadopago_base_url=MERCADOPAGO_BASE_URL,
        mercadopago_timeout=float(MERCADOPAGO_TIMEOUT_SECONDS),
        mercadopago_notification_url=MERCADOPAGO_NOTIFICATION_URL,
        melhorenvio_token=MELHORENVIO_TOKEN,
        melhorenvio_base_url=MELHORENVIO_BASE_URL,
        melhorenvio_timeout=float(MELHORENVIO_TIMEOUT_SECONDS),
        melhorenvio_cep_origem=MELHORENVIO_CEP_ORIGEM,
        frontend_url=FRONTEND_URL,
        gateway_mode=GATEWAY_MODE,
    )
