"""
Inicialização do banco: registra todos os models no metadata e cria as tabelas.
"""
import logging

from app.database.db_connection import Base, engine

logger = logging.getLogger(__name__)


def importar_models():
    """Importa os models para que fiquem registrados no `Base.metadata`."""
    from app.api.catalogo import models as catalogo_models  # noqa: F401
    from app.api.cadastros import models as cadastros_models  # noqa: F401
    from app.api.carrinho import models as carrinho_models  # noqa: F401
    from app.api.pedidos import models as pedidos_models  # noqa: F401


def inicializar_banco():
    importar_models()
    logger.info("Criando tabelas (se não existirem)...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tabelas verificadas/criadas com sucesso.")
