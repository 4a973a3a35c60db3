from decimal import Decimal

import pytest

from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido
from app.api.pedidos.services.state_machine import (
    STATUS_TERMINAIS,
    TRANSICOES,
    PedidoStateMachine,
    ator_admin,
    ator_usuario,
)
from app.core.exceptions import IllegalStateTransitionError

S = StatusPedido


def _pedido() -> PedidoModel:
    pedido = PedidoModel(
        usuario_id="cliente-1",
        subtotal=Decimal("20.00"),
        desconto=Decimal("0.00"),
        taxa_entrega=Decimal("5.00"),
        valor_total=Decimal("25.00"),
        metodo_envio="PAC",
        endereco_snapshot={"cep": "01310100"},
        cep_entrega="01310100",
    )
    PedidoStateMachine.registrar_criacao(pedido, ator=ator_usuario("cliente-1"))
    return pedido


@pytest.mark.parametrize(
    "de,para",
    [
        (S.PENDENTE, S.PAGO),
        (S.PENDENTE, S.CANCELADO),
        (S.PAGO, S.ENVIADO),
        (S.PAGO, S.REEMBOLSO_SOLICITADO),
        (S.ENVIADO, S.ENTREGUE),
        (S.REEMBOLSO_SOLICITADO, S.AGUARDANDO_DEVOLUCAO),
        (S.REEMBOLSO_SOLICITADO, S.REEMBOLSADO),
        (S.REEMBOLSO_SOLICITADO, S.REEMBOLSADO_PARCIALMENTE),
        (S.REEMBOLSO_SOLICITADO, S.REEMBOLSO_REPROVADO),
        (S.AGUARDANDO_DEVOLUCAO, S.REEMBOLSADO),
        (S.REEMBOLSO_REPROVADO, S.PAGO),
    ],
)
def test_transicoes_permitidas(de, para):
    assert PedidoStateMachine.pode_transicionar(de, para)
    PedidoStateMachine.validar_transicao(de.value, para.value)


@pytest.mark.parametrize(
    "de,para",
    [
        (S.PENDENTE, S.ENVIADO),
        (S.PAGO, S.CANCELADO),
        (S.PAGO, S.PAGO),
        (S.ENTREGUE, S.REEMBOLSO_SOLICITADO),
        (S.CANCELADO, S.PAGO),
        (S.AGUARDANDO_DEVOLUCAO, S.REEMBOLSO_REPROVADO),
        (S.REEMBOLSADO, S.PAGO),
    ],
)
def test_transicoes_proibidas(de, para):
    assert not PedidoStateMachine.pode_transicionar(de, para)
    with pytest.raises(IllegalStateTransitionError):
        PedidoStateMachine.validar_transicao(de, para)


def test_status_terminais():
    assert STATUS_TERMINAIS == {S.ENTREGUE, S.CANCELADO, S.REEMBOLSADO, S.REEMBOLSADO_PARCIALMENTE}
    assert set(TRANSICOES) == set(StatusPedido)


def test_criacao_gera_primeiro_historico():
    pedido = _pedido()
    assert pedido.status == S.PENDENTE.value
    assert len(pedido.historico) == 1
    registro = pedido.historico[0]
    assert registro.status_anterior is None
    assert registro.status_novo == S.PENDENTE.value
    assert registro.ator == "USUARIO:cliente-1"


def test_transicao_grava_um_historico():
    pedido = _pedido()
    registro = PedidoStateMachine.transicionar(
        pedido, S.PAGO, ator="WEBHOOK:mercadopago", payload={"transacao_id": "123"}
    )

    assert pedido.status == S.PAGO.value
    assert len(pedido.historico) == 2
    assert registro.status_anterior == S.PENDENTE.value
    assert registro.status_novo == S.PAGO.value
    assert registro.payload == {"transacao_id": "123"}


def test_transicao_invalida_nao_altera_pedido():
    pedido = _pedido()
    with pytest.raises(IllegalStateTransitionError):
        PedidoStateMachine.transicionar(pedido, S.ENTREGUE, ator=ator_admin("admin-1"))

    assert pedido.status == S.PENDENTE.value
    assert len(pedido.historico) == 1


def test_atores():
    assert ator_usuario("42") == "USUARIO:42"
    assert ator_admin("7") == "ADMIN:7"
