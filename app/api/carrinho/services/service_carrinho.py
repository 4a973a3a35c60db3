from decimal import Decimal

from sqlalchemy.orm import Session

from app.api.carrinho.repositories.repo_carrinho import CarrinhoRepository
from app.api.carrinho.schemas.schema_carrinho import CarrinhoItemOut, CarrinhoOut
from app.api.catalogo.contracts.produto_contract import IProdutoContract, ProdutoDTO
from app.core.exceptions import NotFoundError, OutOfStockError, ProductNotFoundError
from app.utils.logger import logger


class CarrinhoService:
    """Carrinho do usuário. Preços não são gravados: são resolvidos no fechamento."""

    def __init__(self, db: Session, produto_contract: IProdutoContract):
        self.db = db
        self.repo = CarrinhoRepository(db)
        self.produto_contract = produto_contract

    # ---------------- Helpers ----------------
    def _produto_disponivel(self, produto_id: int) -> ProdutoDTO:
        produto = self.produto_contract.get_produto(produto_id)
        if not produto or not produto.ativo:
            raise ProductNotFoundError()
        return produto

    def _validar_estoque(self, produto: ProdutoDTO, quantidade: int) -> None:
        if quantidade > produto.estoque:
            raise OutOfStockError(
                f"Estoque insuficiente para o produto '{produto.nome}'. Disponível: {produto.estoque}"
            )

    # ---------------- Operações ----------------
    def obter(self, usuario_id: str) -> CarrinhoOut:
        itens_out = []
        subtotal = Decimal("0.00")
        for item in self.repo.listar_itens(usuario_id):
            produto = self.produto_contract.get_produto(item.produto_id)
            if not produto:
                continue
            total = (produto.preco * item.quantidade).quantize(Decimal("0.01"))
            subtotal += total
            itens_out.append(
                CarrinhoItemOut(
                    produto_id=produto.id,
                    nome=produto.nome,
                    preco_unitario=produto.preco,
                    quantidade=item.quantidade,
                    total=total,
                    estoque_disponivel=produto.estoque,
                )
            )
        return CarrinhoOut(
            itens=itens_out,
            subtotal=subtotal,
            quantidade_itens=sum(i.quantidade for i in itens_out),
        )

    def adicionar_item(self, usuario_id: str, produto_id: int, quantidade: int) -> CarrinhoOut:
        """Soma à quantidade existente quando o produto já está no carrinho."""
        produto = self._produto_disponivel(produto_id)
        try:
            carrinho = self.repo.get_or_create(usuario_id)
            item = self.repo.get_item(carrinho.id, produto_id)
            nova_quantidade = quantidade + (item.quantidade if item else 0)
            self._validar_estoque(produto, nova_quantidade)
            if item:
                item.quantidade = nova_quantidade
            else:
                self.repo.add_item(carrinho, produto_id, quantidade)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"[Carrinho] Item adicionado usuario={usuario_id} produto={produto_id} qtd={quantidade}")
        return self.obter(usuario_id)

    def atualizar_item(self, usuario_id: str, produto_id: int, quantidade: int) -> CarrinhoOut:
        carrinho = self.repo.get_by_usuario(usuario_id)
        item = self.repo.get_item(carrinho.id, produto_id) if carrinho else None
        if not item:
            raise NotFoundError("Item não encontrado no carrinho.")
        produto = self._produto_disponivel(produto_id)
        self._validar_estoque(produto, quantidade)
        item.quantidade = quantidade
        self.repo.commit()
        return self.obter(usuario_id)

    def remover_item(self, usuario_id: str, produto_id: int) -> CarrinhoOut:
        carrinho = self.repo.get_by_usuario(usuario_id)
        item = self.repo.get_item(carrinho.id, produto_id) if carrinho else None
        if not item:
            raise NotFoundError("Item não encontrado no carrinho.")
        self.repo.remove_item(item)
        self.repo.commit()
        return self.obter(usuario_id)

    def limpar(self, usuario_id: str) -> None:
        self.repo.limpar(usuario_id)
        self.repo.commit()
