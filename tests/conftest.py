import asyncio
import hashlib
import hmac
import os
import tempfile

# Ambiente de teste definido antes de qualquer import da aplicação
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "chave-de-teste"
os.environ["METADATA_HMAC_KEYS"] = "v1:metadados-antigo,v2:metadados-atual"
os.environ["METADATA_HMAC_KEY_VERSION"] = "v2"
os.environ["MERCADOPAGO_WEBHOOK_SECRETS"] = "v1:segredo-webhook"
os.environ["MERCADOPAGO_ACCESS_TOKEN"] = "TEST-token"
os.environ["GATEWAY_MODE"] = "mercadopago"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="loja-logs-")
os.environ["RUNNING_IN_DOCKER"] = "1"

from datetime import timedelta
from decimal import Decimal
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from app.api.cadastros.models.model_cupom import CupomModel
from app.api.cadastros.schemas.schema_endereco import EnderecoIn
from app.api.carrinho.repositories.repo_carrinho import CarrinhoRepository
from app.api.catalogo.adapters.produto_adapter import ProdutoAdapter
from app.api.catalogo.models.model_produto import ProdutoModel
from app.api.frete.contracts.frete_contract import IFreteContract, ItemFrete, OpcaoFrete
from app.api.frete.dependencies import get_frete_contract
from app.api.pedidos.contracts.pagamento_contract import (
    IPagamentoGateway,
    PagamentoConsultado,
    ResultadoReembolso,
    SessaoCheckout,
)
from app.api.pedidos.services.dependencies import get_pagamento_gateway
from app.api.pedidos.services.pedido_factory import PedidoFactory
from app.api.pedidos.services.pagamento_reconciler import PagamentoReconciler
from app.core.authorization import Papel, UsuarioAutenticado
from app.core.exceptions import ExternalServiceError
from app.core.security import create_access_token
from app.database.db_connection import Base, SessionLocal, engine
from app.database.init_db import importar_models
from app.integrations.mercadopago.webhook_signature import montar_manifesto
from app.main import app
from app.utils.database_utils import now_trimmed

importar_models()


# ---------------- Fakes dos serviços externos ----------------

class FakeFrete(IFreteContract):
    def __init__(self):
        self.opcoes = [
            OpcaoFrete(nome="PAC", preco=Decimal("5.00"), prazo_dias=7),
            OpcaoFrete(nome="SEDEX", preco=Decimal("15.00"), prazo_dias=2),
        ]
        self.chamadas: List[str] = []

    async def cotar(self, cep: str, itens: List[ItemFrete]) -> List[OpcaoFrete]:
        self.chamadas.append(cep)
        return list(self.opcoes)


class FakeGateway(IPagamentoGateway):
    def __init__(self):
        self.pagamentos: Dict[str, PagamentoConsultado] = {}
        self.checkouts: List[dict] = []
        self.reembolsos: List[tuple] = []
        self.falhas_reembolso = 0

    async def criar_checkout(self, pedido, metadata):
        self.checkouts.append({"pedido_id": pedido.id, "metadata": dict(metadata)})
        return SessaoCheckout(url=f"https://pagamento.test/checkout/{pedido.id}", referencia_gateway=f"pref-{pedido.id}")

    async def consultar_pagamento(self, pagamento_id):
        if pagamento_id not in self.pagamentos:
            raise ExternalServiceError("Pagamento desconhecido")
        return self.pagamentos[pagamento_id]

    async def reembolsar(self, transacao_id, valor_centavos, chave_idempotencia):
        self.reembolsos.append((transacao_id, valor_centavos, chave_idempotencia))
        if self.falhas_reembolso > 0:
            self.falhas_reembolso -= 1
            raise ExternalServiceError("Tempo esgotado no gateway de pagamento (reembolsar).")
        return ResultadoReembolso(
            reembolso_gateway_id=f"refund-{chave_idempotencia}",
            valor_centavos=valor_centavos,
            status="approved",
        )


# ---------------- Fixtures ----------------

@pytest.fixture(autouse=True)
def banco():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def frete():
    return FakeFrete()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(frete, gateway):
    app.dependency_overrides[get_frete_contract] = lambda: frete
    app.dependency_overrides[get_pagamento_gateway] = lambda: gateway
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def factory(db, frete):
    return PedidoFactory(db, produto_contract=ProdutoAdapter(db), frete_contract=frete)


@pytest.fixture
def reconciler(db):
    return PagamentoReconciler(db)


# ---------------- Helpers ----------------

def usuario(usuario_id: str = "cliente-1") -> UsuarioAutenticado:
    return UsuarioAutenticado(id=usuario_id, papel=Papel.USER)


def admin(usuario_id: str = "admin-1") -> UsuarioAutenticado:
    return UsuarioAutenticado(id=usuario_id, papel=Papel.ADMIN)


def auth_headers(usuario_id: str = "cliente-1", papel: str = "User") -> Dict[str, str]:
    token = create_access_token({"sub": usuario_id, "role": papel})
    return {"Authorization": f"Bearer {token}"}


def endereco_avulso(cep: str = "01310-100") -> EnderecoIn:
    return EnderecoIn(
        destinatario="Maria Silva",
        cep=cep,
        logradouro="Av. Paulista",
        numero="1000",
        bairro="Bela Vista",
        cidade="São Paulo",
        estado="sp",
    )


def criar_produto(db, nome="Caneca", preco="10.00", estoque=10, ativo=True) -> ProdutoModel:
    produto = ProdutoModel(nome=nome, preco=Decimal(preco), estoque=estoque, ativo=ativo)
    db.add(produto)
    db.commit()
    return produto


def criar_cupom(db, codigo="DEZ", percentual="10", limite_usos=None, validade_dias=30, ativo=True) -> CupomModel:
    cupom = CupomModel(
        codigo=codigo,
        desconto_percentual=Decimal(percentual),
        validade_fim=now_trimmed() + timedelta(days=validade_dias),
        limite_usos=limite_usos,
        usos=0,
        ativo=ativo,
    )
    db.add(cupom)
    db.commit()
    return cupom


def adicionar_ao_carrinho(db, usuario_id: str, produto_id: int, quantidade: int) -> None:
    repo = CarrinhoRepository(db)
    carrinho = repo.get_or_create(usuario_id)
    repo.add_item(carrinho, produto_id, quantidade)
    repo.commit()


def criar_pedido(db, factory, usuario_id: str = "cliente-1", quantidade: int = 2, preco: str = "10.00",
                 cupom: str = None, produto: ProdutoModel = None):
    """Pedido Pendente de `quantidade` x produto + frete PAC (5,00)."""
    produto = produto or criar_produto(db, preco=preco, estoque=10)
    adicionar_ao_carrinho(db, usuario_id, produto.id, quantidade)
    return asyncio.run(
        factory.criar_pedido_do_carrinho(
            usuario_id,
            endereco=endereco_avulso(),
            cupom_codigo=cupom,
            metodo_envio="PAC",
        )
    )


def pagar(reconciler: PagamentoReconciler, pedido, transacao_id: str = "pay-1"):
    return reconciler.confirmar_pagamento_via_webhook(
        pedido_id=pedido.id,
        transacao_id=transacao_id,
        valor_pago_centavos=pedido.valor_total_centavos,
    )


# ---------------- Webhook ----------------

URL_WEBHOOK = "/api/pagamentos/webhooks/mercadopago"
SEGREDO_WEBHOOK = b"segredo-webhook"


def assinar_notificacao(data_id, request_id="req-1", ts="1704908010", segredo=SEGREDO_WEBHOOK) -> Dict[str, str]:
    """Headers `x-signature`/`x-request-id` como o Mercado Pago envia."""
    manifesto = montar_manifesto(data_id, request_id, ts).encode("utf-8")
    v1 = hmac.new(segredo, manifesto, hashlib.sha256).hexdigest()
    return {"x-signature": f"ts={ts},v1={v1}", "x-request-id": request_id}


def notificacao(data_id) -> dict:
    return {"type": "payment", "action": "payment.updated", "data": {"id": data_id}}
