"""
Cálculo dos valores do pedido a partir do carrinho.

Função pura sobre os dados recebidos: não lê nem grava no banco. Valores em
Decimal, arredondados a centavos com ROUND_HALF_UP.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from app.api.cadastros.services.cupom_validator import CupomSnapshot
from app.api.catalogo.contracts.produto_contract import ProdutoDTO
from app.api.frete.contracts.frete_contract import OpcaoFrete
from app.core.exceptions import EmptyCartError, InvalidShippingOptionError, OutOfStockError

CENTAVO = Decimal("0.01")
ZERO = Decimal("0.00")


def quantizar(valor: Decimal) -> Decimal:
    return Decimal(valor).quantize(CENTAVO, rounding=ROUND_HALF_UP)


def para_centavos(valor: Decimal) -> int:
    return int((Decimal(valor) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def de_centavos(centavos: int) -> Decimal:
    return (Decimal(centavos) / 100).quantize(CENTAVO)


@dataclass(frozen=True)
class LinhaCarrinho:
    produto: ProdutoDTO
    quantidade: int


@dataclass(frozen=True)
class LinhaPrecificada:
    produto_id: int
    produto_nome: str
    quantidade: int
    preco_unitario: Decimal
    total: Decimal


@dataclass(frozen=True)
class ResultadoPrecificacao:
    itens: tuple
    subtotal: Decimal
    desconto: Decimal
    taxa_entrega: Decimal
    valor_total: Decimal
    opcao_frete: OpcaoFrete
    cupom: Optional[CupomSnapshot] = None


class PrecificacaoService:

    @staticmethod
    def selecionar_opcao_frete(opcoes: Sequence[OpcaoFrete], metodo_envio: str) -> OpcaoFrete:
        """Casa o método escolhido com as opções cotadas (nome, sem diferenciar caixa)."""
        escolhido = (metodo_envio or "").strip().lower()
        if escolhido:
            for opcao in opcoes:
                if opcao.nome.strip().lower() == escolhido:
                    return opcao
        raise InvalidShippingOptionError()

    @staticmethod
    def calcular_desconto(subtotal: Decimal, cupom: Optional[CupomSnapshot]) -> Decimal:
        if cupom is None:
            return ZERO
        desconto = quantizar(subtotal * Decimal(cupom.desconto_percentual) / Decimal(100))
        return min(desconto, subtotal)

    def calcular(
        self,
        linhas: Sequence[LinhaCarrinho],
        cupom: Optional[CupomSnapshot],
        opcoes_frete: Sequence[OpcaoFrete],
        metodo_envio: str,
    ) -> ResultadoPrecificacao:
        if not linhas:
            raise EmptyCartError()

        itens: List[LinhaPrecificada] = []
        for linha in linhas:
            produto = linha.produto
            if linha.quantidade > produto.estoque:
                raise OutOfStockError(
                    f"Estoque insuficiente para o produto '{produto.nome}'. Disponível: {produto.estoque}"
                )
            preco = quantizar(produto.preco)
            itens.append(
                LinhaPrecificada(
                    produto_id=produto.id,
                    produto_nome=produto.nome,
                    quantidade=linha.quantidade,
                    preco_unitario=preco,
                    total=preco * linha.quantidade,
                )
            )

        opcao = self.selecionar_opcao_frete(opcoes_frete, metodo_envio)

        subtotal = quantizar(sum((i.total for i in itens), ZERO))
        desconto = self.calcular_desconto(subtotal, cupom)
        taxa_entrega = quantizar(opcao.preco)
        valor_total = quantizar(subtotal - desconto + taxa_entrega)

        return ResultadoPrecificacao(
            itens=tuple(itens),
            subtotal=subtotal,
            desconto=desconto,
            taxa_entrega=taxa_entrega,
            valor_total=valor_total,
            opcao_frete=opcao,
            cupom=cupom,
        )
