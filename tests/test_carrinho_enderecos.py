from conftest import auth_headers, criar_cupom, criar_produto

CLIENTE = auth_headers("cliente-1")
OUTRO = auth_headers("cliente-2")
ADMIN = auth_headers("admin-1", "Admin")

ENDERECO = {
    "nome": "Casa",
    "destinatario": "Maria Silva",
    "cep": "01310-100",
    "logradouro": "Av. Paulista",
    "numero": "1000",
    "bairro": "Bela Vista",
    "cidade": "São Paulo",
    "estado": "sp",
}


# ---------------- Carrinho ----------------

def test_carrinho_adiciona_atualiza_remove(client, db):
    caneca = criar_produto(db, nome="Caneca", preco="10.00", estoque=5)
    camiseta = criar_produto(db, nome="Camiseta", preco="49.90", estoque=5)

    client.post("/api/carrinho/client/itens", json={"produto_id": caneca.id, "quantidade": 1}, headers=CLIENTE)
    client.post("/api/carrinho/client/itens", json={"produto_id": caneca.id, "quantidade": 1}, headers=CLIENTE)
    resposta = client.post(
        "/api/carrinho/client/itens", json={"produto_id": camiseta.id, "quantidade": 1}, headers=CLIENTE
    )
    carrinho = resposta.json()
    assert {i["produto_id"]: i["quantidade"] for i in carrinho["itens"]} == {caneca.id: 2, camiseta.id: 1}

    atualizado = client.put(f"/api/carrinho/client/itens/{caneca.id}", json={"quantidade": 3}, headers=CLIENTE)
    assert {i["produto_id"]: i["quantidade"] for i in atualizado.json()["itens"]}[caneca.id] == 3

    removido = client.delete(f"/api/carrinho/client/itens/{camiseta.id}", headers=CLIENTE)
    assert [i["produto_id"] for i in removido.json()["itens"]] == [caneca.id]

    # carrinho é por usuário
    assert client.get("/api/carrinho/client", headers=OUTRO).json()["itens"] == []

    assert client.delete("/api/carrinho/client", headers=CLIENTE).status_code == 204
    assert client.get("/api/carrinho/client", headers=CLIENTE).json()["itens"] == []


def test_carrinho_produto_inexistente(client):
    resposta = client.post("/api/carrinho/client/itens", json={"produto_id": 999, "quantidade": 1}, headers=CLIENTE)
    assert resposta.status_code == 404


# ---------------- Endereços ----------------

def test_enderecos_isolados_por_usuario(client):
    criado = client.post("/api/cadastros/client/enderecos", json=ENDERECO, headers=CLIENTE)
    assert criado.status_code == 201
    endereco = criado.json()
    assert endereco["cep"] == "01310100"
    assert endereco["estado"] == "SP"

    assert client.get(f"/api/cadastros/client/enderecos/{endereco['id']}", headers=OUTRO).status_code == 404
    assert client.get("/api/cadastros/client/enderecos", headers=OUTRO).json() == []

    atualizado = client.put(
        f"/api/cadastros/client/enderecos/{endereco['id']}", json={"numero": "1001"}, headers=CLIENTE
    )
    assert atualizado.json()["numero"] == "1001"

    assert client.delete(f"/api/cadastros/client/enderecos/{endereco['id']}", headers=CLIENTE).status_code == 204
    assert client.get("/api/cadastros/client/enderecos", headers=CLIENTE).json() == []


def test_cep_invalido(client):
    resposta = client.post("/api/cadastros/client/enderecos", json={**ENDERECO, "cep": "123"}, headers=CLIENTE)
    assert resposta.status_code == 422


# ---------------- Cupons ----------------

def test_validar_cupom(client, db):
    criar_cupom(db, codigo="BEMVINDO", percentual="15")

    ok = client.get("/api/cadastros/client/cupons/validar/bemvindo", headers=CLIENTE)
    assert ok.status_code == 200
    assert ok.json()["codigo"] == "BEMVINDO"

    inexistente = client.get("/api/cadastros/client/cupons/validar/NADA", headers=CLIENTE)
    assert inexistente.status_code == 404
    assert inexistente.json()["error_code"] == "CUPOM_NAO_ENCONTRADO"


def test_cupom_duplicado(client):
    corpo = {"codigo": "PROMO", "desconto_percentual": "10", "validade_dias": 10}
    assert client.post("/api/cadastros/admin/cupons", json=corpo, headers=ADMIN).status_code == 201
    assert client.post("/api/cadastros/admin/cupons", json=corpo, headers=ADMIN).status_code == 409
    assert client.post("/api/cadastros/admin/cupons", json=corpo, headers=CLIENTE).status_code == 403
