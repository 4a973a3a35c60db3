from typing import List

from sqlalchemy.orm import Session

from app.api.catalogo.models.model_produto import ProdutoModel
from app.api.catalogo.repositories.repo_produto import ProdutoRepository
from app.api.catalogo.schemas.schema_produtos import AtualizarProdutoRequest, CriarProdutoRequest
from app.core.authorization import Capacidade, UsuarioAutenticado, exigir
from app.core.exceptions import ProductNotFoundError
from app.utils.logger import logger


class ProdutoService:
    def __init__(self, db: Session):
        self.repo = ProdutoRepository(db)

    def listar(self, skip: int = 0, limit: int = 50) -> List[ProdutoModel]:
        return self.repo.listar(skip=skip, limit=limit)

    def obter(self, produto_id: int) -> ProdutoModel:
        produto = self.repo.get(produto_id)
        if not produto:
            raise ProductNotFoundError()
        return produto

    def criar(self, admin: UsuarioAutenticado, data: CriarProdutoRequest) -> ProdutoModel:
        exigir(admin, Capacidade.GERENCIAR_PRODUTOS)
        produto = self.repo.create(ProdutoModel(**data.model_dump()))
        logger.info(f"[Produtos] Criado id={produto.id} nome={produto.nome} por admin={admin.id}")
        return produto

    def atualizar(self, admin: UsuarioAutenticado, produto_id: int, data: AtualizarProdutoRequest) -> ProdutoModel:
        exigir(admin, Capacidade.GERENCIAR_PRODUTOS)
        produto = self.obter(produto_id)
        for campo, valor in data.model_dump(exclude_unset=True).items():
            setattr(produto, campo, valor)
        produto = self.repo.update(produto)
        logger.info(f"[Produtos] Atualizado id={produto.id} por admin={admin.id}")
        return produto
