import asyncio
import threading
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.api.cadastros.models.model_cupom import CupomModel, CupomUsoModel
from app.api.cadastros.models.model_endereco import EnderecoModel
from app.api.carrinho.repositories.repo_carrinho import CarrinhoRepository
from app.api.catalogo.adapters.produto_adapter import ProdutoAdapter
from app.api.catalogo.models.model_produto import ProdutoModel
from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido
from app.api.pedidos.services.pedido_factory import PedidoFactory
from app.core.exceptions import (
    AddressNotFoundError,
    CouponExhaustedError,
    CouponNotFoundError,
    EmptyCartError,
    InvalidShippingOptionError,
    OrderAmountOutOfRangeError,
    OutOfStockError,
    ProductNotFoundError,
)
from app.database.db_connection import Base

from conftest import adicionar_ao_carrinho, criar_cupom, criar_produto, endereco_avulso


class CatalogoDesatualizado(ProdutoAdapter):
    """Leitura de estoque desatualizada, como a de uma réplica atrasada."""

    def get_produto(self, produto_id):
        dto = super().get_produto(produto_id)
        return dto.model_copy(update={"estoque": 99}) if dto else None


def _criar(factory, usuario_id="cliente-1", cupom=None, metodo="PAC", endereco=None):
    return asyncio.run(
        factory.criar_pedido_do_carrinho(
            usuario_id,
            endereco=endereco if endereco is not None else endereco_avulso(),
            cupom_codigo=cupom,
            metodo_envio=metodo,
        )
    )


def test_cria_pedido_a_partir_do_carrinho(db, factory, frete):
    produto = criar_produto(db, preco="10.00", estoque=5)
    criar_cupom(db, codigo="DEZ", percentual="10")
    adicionar_ao_carrinho(db, "cliente-1", produto.id, 2)

    pedido = _criar(factory, cupom="dez")

    assert pedido.status == StatusPedido.PENDENTE.value
    assert pedido.subtotal == Decimal("20.00")
    assert pedido.desconto == Decimal("2.00")
    assert pedido.taxa_entrega == Decimal("5.00")
    assert pedido.valor_total == Decimal("23.00")
    assert pedido.cupom_codigo == "DEZ"
    assert pedido.metodo_envio == "PAC"
    assert pedido.prazo_entrega_dias == 7
    assert pedido.transacao_id is None
    assert pedido.endereco_snapshot["cep"] == "01310100"
    assert pedido.endereco_snapshot["estado"] == "SP"
    assert [(i.produto_id, i.quantidade, i.preco_unitario) for i in pedido.itens] == [
        (produto.id, 2, Decimal("10.00"))
    ]
    assert len(pedido.historico) == 1
    assert frete.chamadas == ["01310100"]

    db.expire_all()
    assert db.get(ProdutoModel, produto.id).estoque == 3
    assert db.query(CupomModel).filter_by(codigo="DEZ").one().usos == 1
    assert db.query(CupomUsoModel).filter_by(usuario_id="cliente-1").one().pedido_id == pedido.id
    assert CarrinhoRepository(db).listar_itens("cliente-1") == []


def test_preco_congelado_no_pedido(db, factory):
    produto = criar_produto(db, preco="10.00")
    adicionar_ao_carrinho(db, "cliente-1", produto.id, 1)
    pedido = _criar(factory)

    produto.preco = Decimal("99.00")
    db.commit()

    db.expire_all()
    recarregado = db.get(PedidoModel, pedido.id)
    assert recarregado.itens[0].preco_unitario == Decimal("10.00")
    assert recarregado.valor_total == Decimal("15.00")


def test_endereco_salvo_vira_snapshot(db, factory):
    produto = criar_produto(db)
    endereco = EnderecoModel(
        usuario_id="cliente-1",
        nome="Casa",
        destinatario="Maria",
        cep="20040002",
        logradouro="Rua da Assembleia",
        numero="10",
        bairro="Centro",
        cidade="Rio de Janeiro",
        estado="RJ",
    )
    db.add(endereco)
    db.commit()
    adicionar_ao_carrinho(db, "cliente-1", produto.id, 1)

    pedido = _criar(factory, endereco=endereco.id)

    endereco.logradouro = "Outra rua"
    db.commit()
    assert pedido.endereco_snapshot["logradouro"] == "Rua da Assembleia"
    assert pedido.endereco_snapshot["endereco_id"] == endereco.id
    assert pedido.cep_entrega == "20040002"


def test_endereco_de_outro_usuario(db, factory):
    produto = criar_produto(db)
    endereco = EnderecoModel(
        usuario_id="cliente-2",
        nome="Casa",
        destinatario="João",
        cep="20040002",
        logradouro="Rua X",
        numero="1",
        bairro="Centro",
        cidade="Rio de Janeiro",
        estado="RJ",
    )
    db.add(endereco)
    db.commit()
    adicionar_ao_carrinho(db, "cliente-1", produto.id, 1)

    with pytest.raises(AddressNotFoundError):
        _criar(factory, endereco=endereco.id)


def test_carrinho_vazio(factory):
    with pytest.raises(EmptyCartError):
        _criar(factory)


def test_produto_inativo(db, factory):
    produto = criar_produto(db)
    adicionar_ao_carrinho(db, "cliente-1", produto.id, 1)
    produto.ativo = False
    db.commit()

    with pytest.raises(ProductNotFoundError):
        _criar(factory)


def test_metodo_envio_invalido_nao_grava_nada(db, factory):
    produto = criar_produto(db, estoque=5)
    adicionar_ao_carrinho(db, "cliente-1", produto.id, 1)

    with pytest.raises(InvalidShippingOptionError):
        _criar(factory, metodo="Drone")

    db.expire_all()
    assert db.query(PedidoModel).count() == 0
    assert db.get(ProdutoModel, produto.id).estoque == 5


def test_cupom_inexistente(db, factory):
    produto = criar_produto(db)
    adicionar_ao_carrinho(db, "cliente-1", produto.id, 1)
    with pytest.raises(CouponNotFoundError):
        _criar(factory, cupom="NADA")


def test_ultima_unidade_vendida_uma_vez(db, factory):
    produto = criar_produto(db, estoque=1)
    adicionar_ao_carrinho(db, "cliente-1", produto.id, 1)
    adicionar_ao_carrinho(db, "cliente-2", produto.id, 1)

    _criar(factory, usuario_id="cliente-1")
    with pytest.raises(OutOfStockError):
        _criar(factory, usuario_id="cliente-2")

    db.expire_all()
    assert db.get(ProdutoModel, produto.id).estoque == 0
    assert db.query(PedidoModel).count() == 1


def test_baixa_condicional_desfaz_tudo_com_leitura_desatualizada(db, frete):
    factory = PedidoFactory(db, produto_contract=CatalogoDesatualizado(db), frete_contract=frete)
    barato = criar_produto(db, nome="Adesivo", preco="3.00", estoque=10)
    escasso = criar_produto(db, nome="Caneca", preco="10.00", estoque=1)
    criar_cupom(db, codigo="DEZ")
    adicionar_ao_carrinho(db, "cliente-1", escasso.id, 1)
    adicionar_ao_carrinho(db, "cliente-2", barato.id, 2)
    adicionar_ao_carrinho(db, "cliente-2", escasso.id, 1)

    _criar(factory, usuario_id="cliente-1")
    with pytest.raises(OutOfStockError):
        _criar(factory, usuario_id="cliente-2", cupom="DEZ")

    db.expire_all()
    assert db.get(ProdutoModel, escasso.id).estoque == 0
    assert db.get(ProdutoModel, barato.id).estoque == 10
    assert db.query(CupomModel).filter_by(codigo="DEZ").one().usos == 0
    assert db.query(PedidoModel).filter_by(usuario_id="cliente-2").count() == 0
    assert len(CarrinhoRepository(db).listar_itens("cliente-2")) == 2


def test_cupom_com_limite_um(db, factory):
    produto = criar_produto(db, estoque=10)
    criar_cupom(db, codigo="UNICO", limite_usos=1)
    adicionar_ao_carrinho(db, "cliente-1", produto.id, 1)
    adicionar_ao_carrinho(db, "cliente-2", produto.id, 1)

    _criar(factory, usuario_id="cliente-1", cupom="UNICO")
    with pytest.raises(CouponExhaustedError):
        _criar(factory, usuario_id="cliente-2", cupom="UNICO")

    db.expire_all()
    assert db.query(CupomModel).filter_by(codigo="UNICO").one().usos == 1
    assert db.get(ProdutoModel, produto.id).estoque == 9


def test_valor_fora_do_limite(db, factory):
    produto = criar_produto(db, preco="60000.00", estoque=5)
    adicionar_ao_carrinho(db, "cliente-1", produto.id, 2)

    with pytest.raises(OrderAmountOutOfRangeError):
        _criar(factory)

    db.expire_all()
    assert db.get(ProdutoModel, produto.id).estoque == 5
    assert db.query(PedidoModel).count() == 0


# ---------------- Concorrência ----------------

@pytest.fixture
def sessoes_em_arquivo(tmp_path):
    """
    Banco SQLite em arquivo, uma conexão por thread. Cada transação abre com
    BEGIN IMMEDIATE: a segunda espera a primeira terminar e enxerga o que ela gravou.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'loja.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _sem_begin_do_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


def _criar_em_paralelo(sessoes, frete, pedidos):
    """Dispara `criar_pedido_do_carrinho` ao mesmo tempo para cada (usuario_id, cupom)."""
    barreira = threading.Barrier(len(pedidos))
    resultados = {}

    def rodar(usuario_id, cupom):
        session = sessoes()
        try:
            factory = PedidoFactory(session, produto_contract=ProdutoAdapter(session), frete_contract=frete)
            barreira.wait()
            resultados[usuario_id] = _criar(factory, usuario_id=usuario_id, cupom=cupom)
        except Exception as e:
            resultados[usuario_id] = e
        finally:
            session.close()

    threads = [threading.Thread(target=rodar, args=pedido) for pedido in pedidos]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return resultados


def test_ultima_unidade_disputada_em_paralelo(sessoes_em_arquivo, frete):
    with sessoes_em_arquivo() as db:
        produto = criar_produto(db, estoque=1)
        for usuario_id in ("cliente-1", "cliente-2"):
            adicionar_ao_carrinho(db, usuario_id, produto.id, 1)

    resultados = _criar_em_paralelo(sessoes_em_arquivo, frete, [("cliente-1", None), ("cliente-2", None)])

    pedidos = [r for r in resultados.values() if isinstance(r, PedidoModel)]
    erros = [r for r in resultados.values() if not isinstance(r, PedidoModel)]
    assert len(pedidos) == 1
    assert len(erros) == 1 and isinstance(erros[0], OutOfStockError)

    with sessoes_em_arquivo() as db:
        assert db.get(ProdutoModel, produto.id).estoque == 0
        assert db.query(PedidoModel).count() == 1


def test_cupom_de_uso_unico_disputado_em_paralelo(sessoes_em_arquivo, frete):
    with sessoes_em_arquivo() as db:
        produto = criar_produto(db, estoque=10)
        criar_cupom(db, codigo="UNICO", limite_usos=1)
        for usuario_id in ("cliente-1", "cliente-2"):
            adicionar_ao_carrinho(db, usuario_id, produto.id, 1)

    resultados = _criar_em_paralelo(sessoes_em_arquivo, frete, [("cliente-1", "UNICO"), ("cliente-2", "UNICO")])

    pedidos = [r for r in resultados.values() if isinstance(r, PedidoModel)]
    erros = [r for r in resultados.values() if not isinstance(r, PedidoModel)]
    assert len(pedidos) == 1
    assert pedidos[0].cupom_percentual == Decimal("10")
    assert len(erros) == 1 and isinstance(erros[0], CouponExhaustedError)

    with sessoes_em_arquivo() as db:
        assert db.query(CupomModel).filter_by(codigo="UNICO").one().usos == 1
        assert db.get(ProdutoModel, produto.id).estoque == 9
