from __future__ import annotations

import uuid
from collections import OrderedDict
from typing import Any, Dict

from app.api.pedidos.contracts.pagamento_contract import (
    IPagamentoGateway,
    PagamentoConsultado,
    ResultadoReembolso,
    SessaoCheckout,
)
from app.api.pedidos.models.model_pedido import PedidoModel
from app.core.exceptions import ExternalServiceError
from app.utils.logger import logger

# Pagamentos "aprovados" pelo mock, por id (processo único, desenvolvimento).
# Guarda só os mais recentes; os antigos são descartados na ordem de criação.
LIMITE_PAGAMENTOS_MOCK = 500
_PAGAMENTOS_MOCK: "OrderedDict[str, PagamentoConsultado]" = OrderedDict()


class MockPagamentoGateway(IPagamentoGateway):
    """
    Gateway local para desenvolvimento (GATEWAY_MODE=mock).

    O checkout aprova o pagamento na hora e o guarda em memória, para que uma
    notificação com o id retornado possa ser reconciliada normalmente.
    """

    def __init__(self, frontend_url: str = "http://localhost:3000", limite: int = LIMITE_PAGAMENTOS_MOCK):
        self.frontend_url = frontend_url.rstrip("/")
        self.limite = limite

    async def criar_checkout(self, pedido: PedidoModel, metadata: Dict[str, Any]) -> SessaoCheckout:
        pagamento_id = f"mock-{uuid.uuid4().hex[:12]}"
        _PAGAMENTOS_MOCK[pagamento_id] = PagamentoConsultado(
            id=pagamento_id,
            status="approved",
            external_reference=str(pedido.id),
            valor_centavos=pedido.valor_total_centavos,
            metadata=dict(metadata),
        )
        while len(_PAGAMENTOS_MOCK) > self.limite:
            _PAGAMENTOS_MOCK.popitem(last=False)
        logger.info(f"[MockGateway] Checkout criado pedido={pedido.id} pagamento={pagamento_id}")
        return SessaoCheckout(
            url=f"{self.frontend_url}/checkout/mock/{pagamento_id}",
            referencia_gateway=pagamento_id,
        )

    async def consultar_pagamento(self, pagamento_id: str) -> PagamentoConsultado:
        pagamento = _PAGAMENTOS_MOCK.get(pagamento_id)
        if pagamento is None:
            raise ExternalServiceError(f"Pagamento {pagamento_id} desconhecido pelo gateway mock.")
        return pagamento

    async def reembolsar(
        self,
        transacao_id: str,
        valor_centavos: int,
        chave_idempotencia: str,
    ) -> ResultadoReembolso:
        logger.info(f"[MockGateway] Reembolso transacao={transacao_id} valor={valor_centavos} chave={chave_idempotencia}")
        return ResultadoReembolso(
            reembolso_gateway_id=f"mock-refund-{chave_idempotencia}",
            valor_centavos=valor_centavos,
            status="approved",
        )
