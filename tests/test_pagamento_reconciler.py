import pytest

from app.api.pedidos.models.model_pagamento_evento import PagamentoEventoModel, ResultadoEventoPagamento
from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido
from app.api.pedidos.services.state_machine import PedidoStateMachine
from app.core.exceptions import (
    AmountMismatchError,
    IllegalStateTransitionError,
    IntegrityError,
    OrderNotFoundError,
)

from conftest import criar_pedido, pagar

R = ResultadoEventoPagamento


def _eventos(db, pedido_id):
    return db.query(PagamentoEventoModel).filter_by(pedido_id=pedido_id).order_by(PagamentoEventoModel.id).all()


def test_confirmacao_marca_pedido_como_pago(db, factory, reconciler):
    pedido = criar_pedido(db, factory)

    resultado = pagar(reconciler, pedido, "pay-1")

    assert resultado == R.PROCESSADO
    db.expire_all()
    pedido = db.get(PedidoModel, pedido.id)
    assert pedido.status == StatusPedido.PAGO.value
    assert pedido.transacao_id == "pay-1"
    ultimo = pedido.historico[-1]
    assert ultimo.ator == "WEBHOOK:mercadopago"
    assert ultimo.payload == {"transacao_id": "pay-1", "valor_pago_centavos": 2500}
    eventos = _eventos(db, pedido.id)
    assert [e.resultado for e in eventos] == [R.PROCESSADO.value]
    assert eventos[0].chave_idempotencia == f"{pedido.id}:pay-1"


def test_confirmacao_repetida_e_idempotente(db, factory, reconciler):
    pedido = criar_pedido(db, factory)

    assert pagar(reconciler, pedido, "pay-1") == R.PROCESSADO
    assert pagar(reconciler, pedido, "pay-1") == R.DUPLICADO
    assert pagar(reconciler, pedido, "pay-1") == R.DUPLICADO

    db.expire_all()
    pedido = db.get(PedidoModel, pedido.id)
    assert pedido.status == StatusPedido.PAGO.value
    assert len(pedido.historico) == 2
    assert [e.resultado for e in _eventos(db, pedido.id)] == [
        R.PROCESSADO.value, R.DUPLICADO.value, R.DUPLICADO.value
    ]


def test_repeticao_apos_envio_continua_duplicada(db, factory, reconciler):
    pedido = criar_pedido(db, factory)
    pagar(reconciler, pedido, "pay-1")

    travado = db.get(PedidoModel, pedido.id)
    PedidoStateMachine.transicionar(travado, StatusPedido.ENVIADO, ator="ADMIN:admin-1")
    db.commit()

    assert pagar(reconciler, pedido, "pay-1") == R.DUPLICADO
    db.expire_all()
    assert db.get(PedidoModel, pedido.id).status == StatusPedido.ENVIADO.value


def test_valor_divergente(db, factory, reconciler):
    pedido = criar_pedido(db, factory)

    with pytest.raises(AmountMismatchError):
        reconciler.confirmar_pagamento_via_webhook(pedido.id, "pay-1", 100)

    db.expire_all()
    recarregado = db.get(PedidoModel, pedido.id)
    assert recarregado.status == StatusPedido.PENDENTE.value
    assert recarregado.transacao_id is None
    evento = _eventos(db, pedido.id)[0]
    assert evento.resultado == R.DIVERGENCIA_VALOR.value
    assert evento.valor_pago_centavos == 100
    assert evento.valor_esperado_centavos == 2500


def test_divergencia_verificada_antes_do_status(db, factory, reconciler):
    pedido = criar_pedido(db, factory)
    pagar(reconciler, pedido, "pay-1")

    with pytest.raises(AmountMismatchError):
        reconciler.confirmar_pagamento_via_webhook(pedido.id, "pay-2", 1)


def test_webhook_atrasado_para_pedido_cancelado(db, factory, reconciler):
    pedido = criar_pedido(db, factory)
    travado = db.get(PedidoModel, pedido.id)
    PedidoStateMachine.transicionar(travado, StatusPedido.CANCELADO, ator="ADMIN:admin-1")
    db.commit()

    with pytest.raises(IllegalStateTransitionError):
        pagar(reconciler, pedido, "pay-1")

    db.expire_all()
    recarregado = db.get(PedidoModel, pedido.id)
    assert recarregado.status == StatusPedido.CANCELADO.value
    assert recarregado.transacao_id is None
    assert [e.resultado for e in _eventos(db, pedido.id)] == [R.REJEITADO.value]


def test_segunda_transacao_para_pedido_pago(db, factory, reconciler):
    pedido = criar_pedido(db, factory)
    pagar(reconciler, pedido, "pay-1")

    with pytest.raises(IllegalStateTransitionError):
        pagar(reconciler, pedido, "pay-2")

    db.expire_all()
    assert db.get(PedidoModel, pedido.id).transacao_id == "pay-1"
    assert [e.resultado for e in _eventos(db, pedido.id)] == [R.PROCESSADO.value, R.REJEITADO.value]


def test_transacao_ja_vinculada_a_outro_pedido(db, factory, reconciler):
    primeiro = criar_pedido(db, factory, usuario_id="cliente-1")
    segundo = criar_pedido(db, factory, usuario_id="cliente-2")
    pagar(reconciler, primeiro, "pay-1")

    with pytest.raises(IntegrityError):
        pagar(reconciler, segundo, "pay-1")

    db.expire_all()
    recarregado = db.get(PedidoModel, segundo.id)
    assert recarregado.status == StatusPedido.PENDENTE.value
    assert recarregado.transacao_id is None


def test_pedido_inexistente(reconciler):
    with pytest.raises(OrderNotFoundError):
        reconciler.confirmar_pagamento_via_webhook(999, "pay-1", 1000)
