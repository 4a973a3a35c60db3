from app.api.pedidos.contracts.pagamento_contract import PagamentoConsultado

from conftest import URL_WEBHOOK, assinar_notificacao, auth_headers, criar_pedido, criar_produto, notificacao, pagar

CLIENTE = auth_headers("cliente-1")
OUTRO = auth_headers("cliente-2")
ADMIN = auth_headers("admin-1", "Admin")

ENDERECO = {
    "destinatario": "Maria Silva",
    "cep": "01310-100",
    "logradouro": "Av. Paulista",
    "numero": "1000",
    "bairro": "Bela Vista",
    "cidade": "São Paulo",
    "estado": "SP",
}


def _setup_catalogo(client):
    produto = client.post(
        "/api/catalogo/admin/produtos",
        json={"nome": "Caneca", "preco": "10.00", "estoque": 5},
        headers=ADMIN,
    )
    assert produto.status_code == 201
    cupom = client.post(
        "/api/cadastros/admin/cupons",
        json={"codigo": "dez", "desconto_percentual": "10", "validade_dias": 30},
        headers=ADMIN,
    )
    assert cupom.status_code == 201
    assert cupom.json()["codigo"] == "DEZ"
    return produto.json()["id"]


def test_fluxo_http_do_carrinho_ao_reembolso(client, gateway):
    produto_id = _setup_catalogo(client)

    carrinho = client.post("/api/carrinho/client/itens", json={"produto_id": produto_id, "quantidade": 2}, headers=CLIENTE)
    assert carrinho.status_code == 200
    assert carrinho.json()["subtotal"] in ("20.00", "20")

    cotacao = client.post("/api/frete/client/cotar", json={"cep": "01310100"}, headers=CLIENTE)
    assert cotacao.status_code == 200
    assert [o["nome"] for o in cotacao.json()["opcoes"]] == ["PAC", "SEDEX"]

    validacao = client.get("/api/cadastros/client/cupons/validar/dez", headers=CLIENTE)
    assert validacao.status_code == 200

    criado = client.post(
        "/api/pedidos/client",
        json={"endereco": ENDERECO, "cupom_codigo": "DEZ", "metodo_envio": "pac"},
        headers=CLIENTE,
    )
    assert criado.status_code == 201, criado.text
    pedido = criado.json()
    assert pedido["status"] == "Pendente"
    assert float(pedido["valor_total"]) == 23.0
    pedido_id = pedido["id"]

    assert client.get("/api/carrinho/client", headers=CLIENTE).json()["itens"] == []

    checkout = client.post(f"/api/pedidos/client/{pedido_id}/checkout", headers=CLIENTE)
    assert checkout.status_code == 200
    assert checkout.json()["url_pagamento"].endswith(f"/checkout/{pedido_id}")
    metadata = gateway.checkouts[0]["metadata"]
    assert metadata["pedido_id"] == pedido_id
    assert metadata["valor_centavos"] == 2300

    # confirmação do provedor
    gateway.pagamentos["pay-1"] = PagamentoConsultado(
        id="pay-1", status="approved", external_reference=str(pedido_id), valor_centavos=2300, metadata=metadata
    )
    webhook = client.post(URL_WEBHOOK, json=notificacao("pay-1"), headers=assinar_notificacao("pay-1"))
    assert webhook.status_code == 200
    assert client.get(f"/api/pedidos/client/{pedido_id}", headers=CLIENTE).json()["status"] == "Pago"

    solicitacao = client.post(
        f"/api/pedidos/client/{pedido_id}/solicitar-reembolso",
        json={"tipo": "Total", "motivo": "Chegou quebrada"},
        headers=CLIENTE,
    )
    assert solicitacao.status_code == 201
    assert solicitacao.json()["valor_solicitado_centavos"] == 2300

    resolucao = client.post(
        f"/api/pedidos/admin/{pedido_id}/resolver-reembolso",
        json={"aprovado": True},
        headers=ADMIN,
    )
    assert resolucao.status_code == 200
    assert resolucao.json()["status"] == "CONCLUIDO"

    historico = client.get(f"/api/pedidos/client/{pedido_id}/historico", headers=CLIENTE).json()["historicos"]
    assert [h["status_novo"] for h in historico] == ["Pendente", "Pago", "ReembolsoSolicitado", "Reembolsado"]

    reembolsos = client.get(f"/api/pedidos/admin/{pedido_id}/reembolsos", headers=ADMIN)
    assert [r["status"] for r in reembolsos.json()] == ["CONCLUIDO"]


def test_fluxo_de_envio_pelo_admin(client, db, factory, reconciler):
    pedido = criar_pedido(db, factory)
    pagar(reconciler, pedido)
    url = f"/api/pedidos/admin/{pedido.id}/status"

    sem_rastreio = client.patch(url, json={"status": "Enviado"}, headers=ADMIN)
    assert sem_rastreio.status_code == 400

    enviado = client.patch(url, json={"status": "Enviado", "codigo_rastreio": "BR123"}, headers=ADMIN)
    assert enviado.status_code == 200
    assert enviado.json()["codigo_rastreio"] == "BR123"

    entregue = client.patch(url, json={"status": "Entregue"}, headers=ADMIN)
    assert entregue.status_code == 200
    assert entregue.json()["data_entrega"] is not None

    invalida = client.patch(url, json={"status": "Pago"}, headers=ADMIN)
    assert invalida.status_code == 409
    assert invalida.json()["error_code"] == "TRANSICAO_INVALIDA"


def test_admin_nao_confirma_pagamento_manualmente(client, db, factory):
    pedido = criar_pedido(db, factory)
    response = client.patch(f"/api/pedidos/admin/{pedido.id}/status", json={"status": "Pago"}, headers=ADMIN)
    assert response.status_code == 409


def test_cancelamento_devolve_estoque(client, db, factory):
    pedido = criar_pedido(db, factory, quantidade=3)
    produto_id = pedido.itens[0].produto_id

    response = client.patch(
        f"/api/pedidos/admin/{pedido.id}/status",
        json={"status": "Cancelado", "motivo": "Cliente desistiu"},
        headers=ADMIN,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "Cancelado"

    produto = client.get(f"/api/catalogo/admin/produtos/{produto_id}", headers=ADMIN).json()
    assert produto["estoque"] == 10


def test_listagem_paginada(client, db, factory):
    for _ in range(3):
        criar_pedido(db, factory, usuario_id="cliente-1", quantidade=1)
    criar_pedido(db, factory, usuario_id="cliente-2", quantidade=1)

    pagina = client.get("/api/pedidos/client?page=1&page_size=2", headers=CLIENTE).json()
    assert pagina["total"] == 3
    assert len(pagina["items"]) == 2
    assert pagina["has_more"] is True

    todos = client.get("/api/pedidos/client?page_size=10", headers=ADMIN).json()
    assert todos["total"] == 4

    filtrados = client.get("/api/pedidos/client?status=Pago", headers=CLIENTE).json()
    assert filtrados["total"] == 0


def test_pedido_de_outro_usuario(client, db, factory):
    pedido = criar_pedido(db, factory)

    assert client.get(f"/api/pedidos/client/{pedido.id}", headers=OUTRO).status_code == 403
    assert client.get(f"/api/pedidos/client/{pedido.id}", headers=ADMIN).status_code == 200
    assert client.get("/api/pedidos/client/999", headers=CLIENTE).status_code == 404


def test_envelope_de_erro_com_trace_id(client):
    response = client.post(
        "/api/pedidos/client",
        json={"endereco": ENDERECO, "metodo_envio": "PAC"},
        headers={**CLIENTE, "X-Request-ID": "trace-abc"},
    )
    assert response.status_code == 400
    corpo = response.json()
    assert corpo["error_code"] == "CARRINHO_VAZIO"
    assert corpo["status_code"] == 400
    assert corpo["trace_id"] == "trace-abc"
    assert response.headers["X-Request-ID"] == "trace-abc"


def test_validacao_do_corpo(client):
    response = client.post(
        "/api/pedidos/client",
        json={"endereco_id": 1, "endereco": ENDERECO, "metodo_envio": "PAC"},
        headers=CLIENTE,
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDACAO_REQUISICAO"


def test_autenticacao_obrigatoria(client):
    assert client.get("/api/pedidos/client").status_code == 401
    assert client.get("/api/pedidos/client", headers={"Authorization": "Bearer invalido"}).status_code == 401
    assert client.get("/api/pedidos/admin/pagamentos/revisao", headers=CLIENTE).status_code == 403
    assert client.post("/api/catalogo/admin/produtos", json={"nome": "X", "preco": "1"}, headers=CLIENTE).status_code == 403


def test_health_e_metricas(client):
    assert client.get("/health").json() == {"status": "healthy"}
    metricas = client.get("/api/monitoring/metrics")
    assert metricas.status_code == 200
    assert "pedidos_criados_total" in metricas.text


def test_logs_filtrados_por_trace_id(client):
    client.post(
        "/api/pedidos/client",
        json={"endereco": ENDERECO, "metodo_envio": "PAC"},
        headers={**CLIENTE, "X-Request-ID": "trace-logs"},
    )

    logs = client.get("/api/monitoring/logs?trace_id=trace-logs&lines=1000", headers=ADMIN)
    assert logs.status_code == 200
    assert logs.json()["total"] >= 1
    assert all("trace=trace-logs" in linha for linha in logs.json()["linhas"])

    assert client.get("/api/monitoring/logs", headers=CLIENTE).status_code == 403


def test_dashboard_do_admin(client, db, factory, reconciler):
    pago = criar_pedido(db, factory)                     # 25.00
    pagar(reconciler, pago, "pay-1")
    pendente = criar_pedido(db, factory, quantidade=1)   # 15.00
    cancelado = criar_pedido(db, factory, quantidade=1)
    reembolsado = criar_pedido(db, factory, quantidade=3)  # 35.00
    pagar(reconciler, reembolsado, "pay-4")
    esgotado = criar_produto(db, nome="Esgotado", estoque=0)
    criar_produto(db, nome="Inativo", estoque=1, ativo=False)

    cancelamento = client.patch(
        f"/api/pedidos/admin/{cancelado.id}/status", json={"status": "Cancelado"}, headers=ADMIN
    )
    assert cancelamento.status_code == 200
    solicitacao = client.post(
        f"/api/pedidos/client/{reembolsado.id}/solicitar-reembolso",
        json={"tipo": "Total", "motivo": "Desistência"},
        headers=CLIENTE,
    )
    assert solicitacao.status_code == 201
    resolucao = client.post(
        f"/api/pedidos/admin/{reembolsado.id}/resolver-reembolso", json={"aprovado": True}, headers=ADMIN
    )
    assert resolucao.json()["status"] == "CONCLUIDO"

    response = client.get("/api/pedidos/admin/dashboard?limite_estoque=8", headers=ADMIN)
    assert response.status_code == 200
    dashboard = response.json()

    assert dashboard["total_pedidos"] == 4
    assert dashboard["pedidos_pendentes"] == 1
    # pendentes e cancelados não entram; o estorno sai da receita líquida
    assert float(dashboard["receita_bruta"]) == 60.0
    assert float(dashboard["total_reembolsado"]) == 35.0
    assert float(dashboard["receita_liquida"]) == 25.0
    assert [(p["nome"], p["estoque"]) for p in dashboard["produtos_estoque_baixo"]] == [
        ("Esgotado", 0),
        ("Caneca", 7),
    ]
    assert dashboard["produtos_estoque_baixo"][0]["id"] == esgotado.id
    assert [p["id"] for p in dashboard["pedidos_recentes"]] == [reembolsado.id, cancelado.id, pendente.id, pago.id]


def test_dashboard_vazio_e_restrito_ao_admin(client):
    assert client.get("/api/pedidos/admin/dashboard", headers=CLIENTE).status_code == 403

    dashboard = client.get("/api/pedidos/admin/dashboard", headers=ADMIN).json()
    assert dashboard["total_pedidos"] == 0
    assert float(dashboard["receita_liquida"]) == 0.0
    assert dashboard["produtos_estoque_baixo"] == []
    assert dashboard["pedidos_recentes"] == []
