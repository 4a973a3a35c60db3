from decimal import Decimal
from time import time
from typing import List

import httpx

from app.api.frete.contracts.frete_contract import IFreteContract, ItemFrete, OpcaoFrete
from app.config.settings import AppConfig
from app.core.exceptions import ExternalServiceError
from app.integrations.melhorenvio.client import MelhorEnvioClient, MelhorEnvioProduto
from app.utils.logger import logger
from app.utils.prometheus_metrics import chamadas_externas_duracao_seconds


class MelhorEnvioAdapter(IFreteContract):
    def __init__(self, config: AppConfig, transport: httpx.AsyncBaseTransport | None = None):
        if not config.melhorenvio_token:
            raise ExternalServiceError("Cotação de frete indisponível: Melhor Envio não configurado.")
        self.config = config
        self.transport = transport

    async def cotar(self, cep: str, itens: List[ItemFrete]) -> List[OpcaoFrete]:
        produtos = [
            MelhorEnvioProduto(
                id=str(item.produto_id),
                width=float(item.largura_cm),
                height=float(item.altura_cm),
                length=float(item.comprimento_cm),
                weight=float(item.peso_kg),
                insurance_value=float(item.preco_unitario),
                quantity=item.quantidade,
            )
            for item in itens
        ]

        client = MelhorEnvioClient(
            token=self.config.melhorenvio_token,
            base_url=self.config.melhorenvio_base_url,
            timeout=self.config.melhorenvio_timeout,
            transport=self.transport,
        )
        inicio = time()
        try:
            cotacoes = await client.calcular(
                cep_origem=self.config.melhorenvio_cep_origem,
                cep_destino=cep,
                produtos=produtos,
            )
        except httpx.TimeoutException as e:
            logger.error(f"[Frete] Timeout na cotação Melhor Envio cep={cep}: {e}")
            raise ExternalServiceError("Tempo esgotado ao cotar o frete.") from e
        except httpx.HTTPError as e:
            logger.error(f"[Frete] Erro na cotação Melhor Envio cep={cep}: {e}")
            raise ExternalServiceError("Falha ao cotar o frete.") from e
        finally:
            chamadas_externas_duracao_seconds.labels(servico="melhorenvio", operacao="cotar").observe(time() - inicio)
            await client.close()

        opcoes = []
        for cotacao in cotacoes:
            # Transportadoras que não atendem o CEP vêm com `error`
            if cotacao.error or cotacao.preco_final is None:
                continue
            nome = f"{cotacao.company.name} {cotacao.name}" if cotacao.company and cotacao.company.name else cotacao.name
            opcoes.append(
                OpcaoFrete(
                    nome=nome.strip(),
                    preco=Decimal(cotacao.preco_final).quantize(Decimal("0.01")),
                    prazo_dias=cotacao.prazo_final,
                )
            )
        logger.info(f"[Frete] {len(opcoes)} opções cotadas para cep={cep}")
        return opcoes
