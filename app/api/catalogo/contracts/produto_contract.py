from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ProdutoDTO(BaseModel):
    """DTO de produto para comunicação entre contextos (preço e estoque atuais)."""
    id: int
    nome: str
    preco: Decimal
    estoque: int
    ativo: bool
    peso_kg: Decimal
    largura_cm: Decimal
    altura_cm: Decimal
    comprimento_cm: Decimal


class IProdutoContract(ABC):
    """Contrato para acesso a produtos do contexto Catalogo."""

    @abstractmethod
    def get_produto(self, produto_id: int) -> Optional[ProdutoDTO]:
        """Leitura atual do produto (preço e estoque)."""
        raise NotImplementedError

    @abstractmethod
    def debitar_estoque(self, produto_id: int, quantidade: int) -> bool:
        """
        Debita o estoque de forma atômica.
        Retorna False quando o estoque disponível é menor que `quantidade`.
        """
        raise NotImplementedError

    @abstractmethod
    def repor_estoque(self, produto_id: int, quantidade: int) -> None:
        """Devolve quantidade ao estoque (ex.: cancelamento de pedido pendente)."""
        raise NotImplementedError
