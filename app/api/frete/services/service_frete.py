from typing import Iterable, List, Tuple

from sqlalchemy.orm import Session

from app.api.carrinho.repositories.repo_carrinho import CarrinhoRepository
from app.api.catalogo.contracts.produto_contract import IProdutoContract, ProdutoDTO
from app.api.frete.contracts.frete_contract import IFreteContract, ItemFrete, OpcaoFrete
from app.core.exceptions import EmptyCartError, ProductNotFoundError


def itens_frete(linhas: Iterable[Tuple[ProdutoDTO, int]]) -> List[ItemFrete]:
    return [
        ItemFrete(
            produto_id=produto.id,
            quantidade=quantidade,
            preco_unitario=produto.preco,
            peso_kg=produto.peso_kg,
            largura_cm=produto.largura_cm,
            altura_cm=produto.altura_cm,
            comprimento_cm=produto.comprimento_cm,
        )
        for produto, quantidade in linhas
    ]


class FreteService:
    def __init__(self, db: Session, produto_contract: IProdutoContract, frete_contract: IFreteContract):
        self.carrinho_repo = CarrinhoRepository(db)
        self.produto_contract = produto_contract
        self.frete_contract = frete_contract

    async def cotar_carrinho(self, usuario_id: str, cep: str) -> List[OpcaoFrete]:
        itens = self.carrinho_repo.listar_itens(usuario_id)
        if not itens:
            raise EmptyCartError()

        linhas = []
        for item in itens:
            produto = self.produto_contract.get_produto(item.produto_id)
            if not produto or not produto.ativo:
                raise ProductNotFoundError(f"Produto {item.produto_id} indisponível.")
            linhas.append((produto, item.quantidade))

        return await self.frete_contract.cotar(cep, itens_frete(linhas))
