"""
Fluxo de reembolso.

A resolução aprovada acontece em três etapas para não segurar o lock do pedido
durante a chamada ao gateway:

1. com o pedido travado, valida a transição e grava o reembolso como PROCESSANDO;
2. sem lock, chama o gateway com a chave de idempotência `reembolso-{id}`;
3. trava o pedido de novo, aplica a transição e marca o reembolso CONCLUIDO.

Falha na etapa 2 deixa o reembolso em FALHOU e o pedido onde estava; uma nova
resolução reaproveita o registro (mesma chave, mesmo valor). Um reembolso que já
foi ao gateway não pode mais ser reprovado.
"""
from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.api.pedidos.contracts.pagamento_contract import IPagamentoGateway
from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido
from app.api.pedidos.models.model_reembolso import ReembolsoModel, StatusReembolso, TipoReembolso
from app.api.pedidos.repositories.repo_pedidos import PedidoRepository
from app.api.pedidos.repositories.repo_reembolso import ReembolsoRepository
from app.api.pedidos.services.service_precificacao import para_centavos
from app.api.pedidos.services.state_machine import (
    ATOR_SISTEMA,
    PedidoStateMachine,
    ator_admin,
    ator_usuario,
)
from app.core.authorization import Capacidade, UsuarioAutenticado, exigir
from app.core.exceptions import (
    ExternalServiceError,
    InvalidOrderStateError,
    InvalidRefundAmountError,
    InvalidRefundQuantityError,
    OrderNotFoundError,
)
from app.utils.database_utils import now_trimmed
from app.utils.logger import logger
from app.utils.prometheus_metrics import reembolsos_total

STATUS_RESOLUCAO = (StatusPedido.REEMBOLSO_SOLICITADO, StatusPedido.AGUARDANDO_DEVOLUCAO)
STATUS_ENVIADO_GATEWAY = (StatusReembolso.PROCESSANDO.value, StatusReembolso.FALHOU.value)


class ReembolsoService:
    def __init__(self, db: Session, gateway: IPagamentoGateway):
        self.db = db
        self.repo = PedidoRepository(db)
        self.reembolso_repo = ReembolsoRepository(db)
        self.gateway = gateway

    def _pedido_travado(self, pedido_id: int) -> PedidoModel:
        pedido = self.repo.get_pedido_para_atualizacao(pedido_id)
        if pedido is None:
            raise OrderNotFoundError()
        return pedido

    # ---------------- Solicitação ----------------
    @staticmethod
    def _validar_itens(pedido: PedidoModel, itens: Sequence[Dict[str, int]]) -> Dict[int, int]:
        """Soma linhas repetidas e confere cada produto contra o pedido."""
        if not itens:
            raise InvalidRefundQuantityError("Informe os itens do reembolso parcial.")

        solicitados: Counter = Counter()
        for item in itens:
            quantidade = int(item["quantidade"])
            if quantidade <= 0:
                raise InvalidRefundQuantityError("Quantidade deve ser maior que zero.")
            solicitados[int(item["produto_id"])] += quantidade

        comprados: Counter = Counter()
        for item in pedido.itens:
            comprados[item.produto_id] += item.quantidade

        for produto_id, quantidade in solicitados.items():
            if produto_id not in comprados:
                raise InvalidRefundQuantityError(f"Produto {produto_id} não pertence ao pedido.")
            if quantidade > comprados[produto_id]:
                raise InvalidRefundQuantityError(
                    f"Quantidade solicitada ({quantidade}) maior que a comprada "
                    f"({comprados[produto_id]}) para o produto {produto_id}."
                )
        return dict(solicitados)

    @staticmethod
    def _valor_itens_centavos(pedido: PedidoModel, solicitados: Dict[int, int]) -> int:
        precos = {item.produto_id: Decimal(item.preco_unitario) for item in pedido.itens}
        valor = sum((precos[pid] * qtd for pid, qtd in solicitados.items()), Decimal("0"))
        return min(para_centavos(valor), pedido.valor_total_centavos)

    def solicitar_reembolso(
        self,
        pedido_id: int,
        usuario: UsuarioAutenticado,
        tipo: TipoReembolso,
        itens: Optional[Sequence[Dict[str, int]]] = None,
        motivo: Optional[str] = None,
    ) -> ReembolsoModel:
        tipo = TipoReembolso(tipo)
        try:
            pedido = self._pedido_travado(pedido_id)
            exigir(usuario, Capacidade.SOLICITAR_REEMBOLSO, dono_id=pedido.usuario_id)

            if pedido.status_enum != StatusPedido.PAGO:
                raise InvalidOrderStateError(
                    f"Reembolso só pode ser solicitado para pedidos pagos (status atual: {pedido.status})."
                )

            if tipo == TipoReembolso.PARCIAL:
                solicitados = self._validar_itens(pedido, itens or [])
                escopo = [{"produto_id": pid, "quantidade": qtd} for pid, qtd in sorted(solicitados.items())]
                valor = self._valor_itens_centavos(pedido, solicitados)
            else:
                escopo = None
                valor = pedido.valor_total_centavos

            reembolso = self.reembolso_repo.add(
                ReembolsoModel(
                    pedido_id=pedido.id,
                    tipo=tipo.value,
                    itens=escopo,
                    valor_solicitado_centavos=valor,
                    status=StatusReembolso.SOLICITADO.value,
                    solicitado_por=usuario.id,
                )
            )

            PedidoStateMachine.transicionar(
                pedido,
                StatusPedido.REEMBOLSO_SOLICITADO,
                ator=ator_usuario(usuario.id),
                motivo=motivo or "Reembolso solicitado pelo cliente",
                payload={
                    "reembolso_id": reembolso.id,
                    "tipo": tipo.value,
                    "itens": escopo,
                    "valor_solicitado_centavos": valor,
                },
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"[reembolso] Solicitado pedido={pedido.id} reembolso={reembolso.id} tipo={tipo.value} valor={valor}"
        )
        return reembolso

    # ---------------- Resolução ----------------
    async def resolver_reembolso(
        self,
        pedido_id: int,
        admin: UsuarioAutenticado,
        aprovado: bool,
        valor_aprovado_centavos: Optional[int] = None,
        motivo: Optional[str] = None,
    ) -> ReembolsoModel:
        exigir(admin, Capacidade.RESOLVER_REEMBOLSO)

        if not aprovado:
            return self._reprovar(pedido_id, admin, motivo)

        reembolso, transacao_id, destino = self._iniciar_processamento(pedido_id, admin, valor_aprovado_centavos)

        try:
            resultado = await self.gateway.reembolsar(
                transacao_id,
                reembolso.valor_aprovado_centavos,
                chave_idempotencia=reembolso.chave_idempotencia,
            )
        except ExternalServiceError as e:
            self._marcar_falha(reembolso, str(e))
            raise

        return self._concluir(pedido_id, reembolso.id, admin, destino, resultado.reembolso_gateway_id, motivo)

    def _reprovar(self, pedido_id: int, admin: UsuarioAutenticado, motivo: Optional[str]) -> ReembolsoModel:
        try:
            pedido = self._pedido_travado(pedido_id)
            reembolso = self._reembolso_aberto(pedido)
            # Depois de enviado ao gateway o resultado pode ser desconhecido: só resta reprocessar
            # com a mesma chave de idempotência.
            if reembolso.valor_aprovado_centavos is not None or reembolso.status in STATUS_ENVIADO_GATEWAY:
                raise InvalidOrderStateError(
                    "Reembolso já enviado ao gateway não pode ser reprovado; reprocesse a aprovação."
                )

            PedidoStateMachine.transicionar(
                pedido,
                StatusPedido.REEMBOLSO_REPROVADO,
                ator=ator_admin(admin.id),
                motivo=motivo or "Reembolso reprovado",
                payload={"reembolso_id": reembolso.id},
            )
            PedidoStateMachine.transicionar(
                pedido,
                StatusPedido.PAGO,
                ator=ATOR_SISTEMA,
                motivo="Pedido volta para Pago após reprovação do reembolso",
            )
            reembolso.status = StatusReembolso.REPROVADO.value
            reembolso.motivo_reprovacao = motivo
            reembolso.resolvido_por = admin.id
            reembolso.resolvido_em = now_trimmed()
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        reembolsos_total.labels(resultado="reprovado").inc()
        logger.info(f"[reembolso] Reprovado pedido={pedido_id} reembolso={reembolso.id} admin={admin.id}")
        return reembolso

    def _reembolso_aberto(self, pedido: PedidoModel) -> ReembolsoModel:
        if pedido.status_enum not in STATUS_RESOLUCAO:
            raise InvalidOrderStateError(
                f"Pedido em '{pedido.status}' não tem reembolso aguardando resolução."
            )
        reembolso = self.reembolso_repo.get_aberto(pedido.id)
        if reembolso is None:
            raise InvalidOrderStateError("Nenhuma solicitação de reembolso em aberto para o pedido.")
        return reembolso

    def _iniciar_processamento(
        self,
        pedido_id: int,
        admin: UsuarioAutenticado,
        valor_aprovado_centavos: Optional[int],
    ):
        try:
            pedido = self._pedido_travado(pedido_id)
            reembolso = self._reembolso_aberto(pedido)
            total = pedido.valor_total_centavos

            if reembolso.status == StatusReembolso.SOLICITADO.value:
                valor = (
                    int(valor_aprovado_centavos)
                    if valor_aprovado_centavos is not None
                    else reembolso.valor_solicitado_centavos
                )
                if valor <= 0 or valor > total:
                    raise InvalidRefundAmountError(
                        f"Valor aprovado deve ser maior que zero e no máximo {total} centavos."
                    )
                destino = StatusPedido.REEMBOLSADO if valor == total else StatusPedido.REEMBOLSADO_PARCIALMENTE
            else:
                # Reprocessamento: mantém valor e destino da primeira aprovação
                valor = reembolso.valor_aprovado_centavos
                if valor_aprovado_centavos is not None and int(valor_aprovado_centavos) != valor:
                    raise InvalidRefundAmountError(
                        f"Reembolso já aprovado com {valor} centavos; o valor não pode ser alterado."
                    )
                destino = StatusPedido(reembolso.status_destino)

            PedidoStateMachine.validar_transicao(pedido.status, destino)

            if not pedido.transacao_id:
                raise InvalidOrderStateError("Pedido sem transação de pagamento registrada.")

            reembolso.status = StatusReembolso.PROCESSANDO.value
            reembolso.valor_aprovado_centavos = valor
            reembolso.status_destino = destino.value
            reembolso.resolvido_por = admin.id
            reembolso.tentativas = (reembolso.tentativas or 0) + 1
            transacao_id = pedido.transacao_id
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"[reembolso] Processando pedido={pedido_id} reembolso={reembolso.id} valor={valor} "
            f"destino={destino.value} tentativa={reembolso.tentativas}"
        )
        return reembolso, transacao_id, destino

    def _marcar_falha(self, reembolso: ReembolsoModel, erro: str) -> None:
        try:
            reembolso.status = StatusReembolso.FALHOU.value
            reembolso.ultimo_erro = erro[:1000]
            self.reembolso_repo.commit()
        except Exception:
            self.reembolso_repo.rollback()
            raise
        reembolsos_total.labels(resultado="falhou").inc()
        logger.error(
            f"[reembolso] Falha no gateway pedido={reembolso.pedido_id} reembolso={reembolso.id}: {erro}"
        )

    def _concluir(
        self,
        pedido_id: int,
        reembolso_id: int,
        admin: UsuarioAutenticado,
        destino: StatusPedido,
        gateway_reembolso_id: str,
        motivo: Optional[str],
    ) -> ReembolsoModel:
        try:
            pedido = self._pedido_travado(pedido_id)
            reembolso = self.reembolso_repo.get_aberto(pedido_id)
            if reembolso is None or reembolso.id != reembolso_id:
                raise InvalidOrderStateError("Reembolso não está mais em processamento.")

            PedidoStateMachine.transicionar(
                pedido,
                destino,
                ator=ator_admin(admin.id),
                motivo=motivo or "Reembolso aprovado",
                payload={
                    "reembolso_id": reembolso.id,
                    "valor_centavos": reembolso.valor_aprovado_centavos,
                    "gateway_reembolso_id": gateway_reembolso_id,
                },
            )
            reembolso.status = StatusReembolso.CONCLUIDO.value
            reembolso.gateway_reembolso_id = gateway_reembolso_id
            reembolso.ultimo_erro = None
            reembolso.resolvido_em = now_trimmed()
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        reembolsos_total.labels(resultado="concluido").inc()
        logger.info(
            f"[reembolso] Concluído pedido={pedido_id} reembolso={reembolso.id} "
            f"gateway={gateway_reembolso_id} status={destino.value}"
        )
        return reembolso

    # ---------------- Consultas ----------------
    def listar_reembolsos(self, pedido_id: int, admin: UsuarioAutenticado) -> List[ReembolsoModel]:
        exigir(admin, Capacidade.RESOLVER_REEMBOLSO)
        if self.repo.get_pedido(pedido_id) is None:
            raise OrderNotFoundError()
        return self.reembolso_repo.list_by_pedido(pedido_id)
