from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.api.catalogo.models.model_produto import ProdutoModel
from app.utils.database_utils import now_trimmed


class ProdutoRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, produto_id: int) -> Optional[ProdutoModel]:
        return self.db.query(ProdutoModel).filter(ProdutoModel.id == produto_id).first()

    def get_atual(self, produto_id: int) -> Optional[ProdutoModel]:
        """Relê a linha do banco, ignorando o que estiver em cache na sessão."""
        return (
            self.db.query(ProdutoModel)
            .filter(ProdutoModel.id == produto_id)
            .populate_existing()
            .first()
        )

    def listar(self, skip: int = 0, limit: int = 50, apenas_ativos: bool = False):
        query = self.db.query(ProdutoModel)
        if apenas_ativos:
            query = query.filter(ProdutoModel.ativo.is_(True))
        return query.order_by(ProdutoModel.id).offset(skip).limit(limit).all()

    def create(self, produto: ProdutoModel) -> ProdutoModel:
        self.db.add(produto)
        self.db.commit()
        self.db.refresh(produto)
        return produto

    def update(self, produto: ProdutoModel) -> ProdutoModel:
        self.db.commit()
        self.db.refresh(produto)
        return produto

    # ---------------- Estoque ----------------
    def debitar_estoque(self, produto_id: int, quantidade: int) -> bool:
        """
        Check-and-decrement numa única instrução: duas transações concorrentes
        nunca deixam o estoque negativo. Não faz commit.
        """
        result = self.db.execute(
            update(ProdutoModel)
            .where(
                ProdutoModel.id == produto_id,
                ProdutoModel.ativo.is_(True),
                ProdutoModel.estoque >= quantidade,
            )
            .values(estoque=ProdutoModel.estoque - quantidade, updated_at=now_trimmed())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def repor_estoque(self, produto_id: int, quantidade: int) -> None:
        self.db.execute(
            update(ProdutoModel)
            .where(ProdutoModel.id == produto_id)
            .values(estoque=ProdutoModel.estoque + quantidade, updated_at=now_trimmed())
            .execution_options(synchronize_session=False)
        )
