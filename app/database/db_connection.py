# app/database/db_connection.py

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from ..config.settings import DATABASE_URL, DB_CONFIG, DB_SSL_MODE

Base = declarative_base()


def montar_url_banco() -> str:
    """DATABASE_URL tem precedência; sem ela, monta a URL do Postgres a partir de DB_*."""
    if DATABASE_URL:
        return DATABASE_URL

    faltando = [k for k in ("database", "user", "password", "host", "port") if not DB_CONFIG.get(k)]
    if faltando:
        raise RuntimeError(f"Configuração do banco inválida, faltando variáveis: {', '.join(faltando)}")

    sslmode = f"?sslmode={DB_SSL_MODE}" if DB_SSL_MODE else ""
    return (
        f"postgresql://{DB_CONFIG['user']}:{DB_CONFIG['password']}"
        f"@{DB_CONFIG['host']}:{DB_CONFIG['port']}/{DB_CONFIG['database']}{sslmode}"
    )


def criar_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # uma única conexão compartilhada entre threads (testes e desenvolvimento local)
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args={"options": "-c timezone=America/Sao_Paulo"},
    )


engine = criar_engine(montar_url_banco())

# Objetos continuam utilizáveis após o commit (respostas montadas depois do commit).
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)


def get_db():
    """Sessão por requisição: commit ao final, rollback em qualquer erro."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
