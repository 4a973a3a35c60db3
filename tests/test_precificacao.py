from decimal import Decimal

import pytest

from app.api.cadastros.services.cupom_validator import CupomSnapshot
from app.api.catalogo.contracts.produto_contract import ProdutoDTO
from app.api.frete.contracts.frete_contract import OpcaoFrete
from app.api.pedidos.services.service_precificacao import (
    LinhaCarrinho,
    PrecificacaoService,
    de_centavos,
    para_centavos,
)
from app.core.exceptions import EmptyCartError, InvalidShippingOptionError, OutOfStockError

OPCOES = [
    OpcaoFrete(nome="PAC", preco=Decimal("5.00"), prazo_dias=7),
    OpcaoFrete(nome="SEDEX", preco=Decimal("15.00"), prazo_dias=2),
]


def _produto(produto_id=1, preco="10.00", estoque=10, nome="Caneca"):
    return ProdutoDTO(
        id=produto_id,
        nome=nome,
        preco=Decimal(preco),
        estoque=estoque,
        ativo=True,
        peso_kg=Decimal("0.3"),
        largura_cm=Decimal("11"),
        altura_cm=Decimal("2"),
        comprimento_cm=Decimal("16"),
    )


def _cupom(percentual="10"):
    return CupomSnapshot(id=1, codigo="DEZ", desconto_percentual=Decimal(percentual))


def test_total_com_cupom_e_frete():
    svc = PrecificacaoService()
    resultado = svc.calcular([LinhaCarrinho(_produto(), 2)], _cupom("10"), OPCOES, "PAC")

    assert resultado.subtotal == Decimal("20.00")
    assert resultado.desconto == Decimal("2.00")
    assert resultado.taxa_entrega == Decimal("5.00")
    assert resultado.valor_total == Decimal("23.00")
    assert resultado.opcao_frete.nome == "PAC"
    assert resultado.itens[0].preco_unitario == Decimal("10.00")


def test_metodo_envio_ignora_caixa():
    svc = PrecificacaoService()
    resultado = svc.calcular([LinhaCarrinho(_produto(), 1)], None, OPCOES, "  sedex ")
    assert resultado.taxa_entrega == Decimal("15.00")
    assert resultado.valor_total == Decimal("25.00")


def test_metodo_envio_inexistente():
    with pytest.raises(InvalidShippingOptionError):
        PrecificacaoService().calcular([LinhaCarrinho(_produto(), 1)], None, OPCOES, "Drone")


def test_carrinho_vazio():
    with pytest.raises(EmptyCartError):
        PrecificacaoService().calcular([], None, OPCOES, "PAC")


def test_quantidade_acima_do_estoque():
    with pytest.raises(OutOfStockError):
        PrecificacaoService().calcular([LinhaCarrinho(_produto(estoque=1), 2)], None, OPCOES, "PAC")


def test_desconto_limitado_ao_subtotal():
    desconto = PrecificacaoService.calcular_desconto(Decimal("20.00"), _cupom("150"))
    assert desconto == Decimal("20.00")


def test_desconto_arredonda_meio_para_cima():
    # 3,33 * 15% = 0,4995 -> 0,50
    desconto = PrecificacaoService.calcular_desconto(Decimal("3.33"), _cupom("15"))
    assert desconto == Decimal("0.50")


def test_varias_linhas_somam_subtotal():
    linhas = [
        LinhaCarrinho(_produto(1, "10.00"), 2),
        LinhaCarrinho(_produto(2, "7.35", nome="Camiseta"), 3),
    ]
    resultado = PrecificacaoService().calcular(linhas, None, OPCOES, "PAC")
    assert resultado.subtotal == Decimal("42.05")
    assert resultado.valor_total == Decimal("47.05")


def test_conversao_centavos():
    assert para_centavos(Decimal("23.00")) == 2300
    assert para_centavos(Decimal("0.005")) == 1
    assert de_centavos(2305) == Decimal("23.05")
