from fastapi import Depends
from sqlalchemy.orm import Session

from app.api.catalogo.adapters.produto_adapter import ProdutoAdapter
from app.api.catalogo.contracts.produto_contract import IProdutoContract
from app.api.frete.contracts.frete_contract import IFreteContract
from app.api.frete.dependencies import get_frete_contract
from app.api.pedidos.adapters.mercadopago_gateway import MercadoPagoGateway
from app.api.pedidos.adapters.mock_gateway import MockPagamentoGateway
from app.api.pedidos.contracts.pagamento_contract import IPagamentoGateway
from app.api.pedidos.services.pedido_factory import PedidoFactory
from app.api.pedidos.services.service_pedido import PedidoService
from app.api.pedidos.services.service_reembolso import ReembolsoService
from app.api.pedidos.services.service_webhook_pagamento import WebhookPagamentoService
from app.config.settings import AppConfig, get_app_config
from app.core.assinatura import AssinadorMetadados
from app.database.db_connection import get_db


def get_produto_contract(db: Session = Depends(get_db)) -> IProdutoContract:
    return ProdutoAdapter(db)


def get_pagamento_gateway(config: AppConfig = Depends(get_app_config)) -> IPagamentoGateway:
    if config.gateway_mode == "mock":
        return MockPagamentoGateway(frontend_url=config.frontend_url)
    return MercadoPagoGateway(config)


def get_assinador(config: AppConfig = Depends(get_app_config)) -> AssinadorMetadados:
    return AssinadorMetadados(config.chaves_metadados)


def get_pedido_factory(
    db: Session = Depends(get_db),
    produto_contract: IProdutoContract = Depends(get_produto_contract),
    frete_contract: IFreteContract = Depends(get_frete_contract),
) -> PedidoFactory:
    return PedidoFactory(db, produto_contract=produto_contract, frete_contract=frete_contract)


def get_pedido_service(
    db: Session = Depends(get_db),
    produto_contract: IProdutoContract = Depends(get_produto_contract),
) -> PedidoService:
    return PedidoService(db, produto_contract=produto_contract)


def get_pedido_checkout_service(
    db: Session = Depends(get_db),
    gateway: IPagamentoGateway = Depends(get_pagamento_gateway),
    assinador: AssinadorMetadados = Depends(get_assinador),
) -> PedidoService:
    return PedidoService(db, gateway=gateway, assinador=assinador)


def get_reembolso_service(
    db: Session = Depends(get_db),
    gateway: IPagamentoGateway = Depends(get_pagamento_gateway),
) -> ReembolsoService:
    return ReembolsoService(db, gateway=gateway)


def get_webhook_service(
    db: Session = Depends(get_db),
    gateway: IPagamentoGateway = Depends(get_pagamento_gateway),
    config: AppConfig = Depends(get_app_config),
    assinador: AssinadorMetadados = Depends(get_assinador),
) -> WebhookPagamentoService:
    return WebhookPagamentoService(db, gateway=gateway, config=config, assinador=assinador)
