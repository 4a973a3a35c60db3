from typing import Optional
from sqlalchemy.orm import Session

from app.api.catalogo.contracts.produto_contract import IProdutoContract, ProdutoDTO
from app.api.catalogo.models.model_produto import ProdutoModel
from app.api.catalogo.repositories.repo_produto import ProdutoRepository


class ProdutoAdapter(IProdutoContract):
    """Implementação do contrato de produtos baseada no repositório do catálogo."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProdutoRepository(db)

    def _to_produto_dto(self, produto: ProdutoModel) -> ProdutoDTO:
        return ProdutoDTO(
            id=produto.id,
            nome=produto.nome,
            preco=produto.preco,
            estoque=produto.estoque,
            ativo=bool(produto.ativo),
            peso_kg=produto.peso_kg,
            largura_cm=produto.largura_cm,
            altura_cm=produto.altura_cm,
            comprimento_cm=produto.comprimento_cm,
        )

    def get_produto(self, produto_id: int) -> Optional[ProdutoDTO]:
        produto = self.repo.get_atual(produto_id)
        if not produto:
            return None
        return self._to_produto_dto(produto)

    def debitar_estoque(self, produto_id: int, quantidade: int) -> bool:
        return self.repo.debitar_estoque(produto_id, quantidade)

    def repor_estoque(self, produto_id: int, quantidade: int) -> None:
        self.repo.repor_estoque(produto_id, quantidade)
