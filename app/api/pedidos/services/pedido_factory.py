"""
Conversão do carrinho em pedido.

As consultas externas (frete) acontecem antes de qualquer escrita; a baixa de
estoque, o pedido com itens e histórico, o resgate do cupom e a limpeza do
carrinho vão numa única transação.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from app.api.cadastros.repositories.repo_endereco import EnderecoRepository
from app.api.cadastros.schemas.schema_endereco import EnderecoIn
from app.api.cadastros.services.cupom_validator import CupomValidator
from app.api.carrinho.repositories.repo_carrinho import CarrinhoRepository
from app.api.catalogo.contracts.produto_contract import IProdutoContract
from app.api.frete.contracts.frete_contract import IFreteContract
from app.api.frete.services.service_frete import itens_frete
from app.api.pedidos.models.model_pedido import PedidoModel
from app.api.pedidos.models.model_pedido_item import PedidoItemModel
from app.api.pedidos.repositories.repo_pedidos import PedidoRepository
from app.api.pedidos.services.service_precificacao import (
    LinhaCarrinho,
    PrecificacaoService,
    ResultadoPrecificacao,
)
from app.api.pedidos.services.state_machine import PedidoStateMachine, ator_usuario
from app.core.exceptions import (
    AddressNotFoundError,
    EmptyCartError,
    OutOfStockError,
    ProductNotFoundError,
)
from app.utils.database_utils import now_trimmed
from app.utils.logger import logger
from app.utils.prometheus_metrics import pedidos_criados_total

CAMPOS_ENDERECO = (
    "destinatario", "cep", "logradouro", "numero", "complemento",
    "bairro", "cidade", "estado", "ponto_referencia", "telefone",
)


class PedidoFactory:
    def __init__(
        self,
        db: Session,
        produto_contract: IProdutoContract,
        frete_contract: IFreteContract,
        precificacao: Optional[PrecificacaoService] = None,
    ):
        self.db = db
        self.repo = PedidoRepository(db)
        self.carrinho_repo = CarrinhoRepository(db)
        self.endereco_repo = EnderecoRepository(db)
        self.cupom_validator = CupomValidator(db)
        self.produto_contract = produto_contract
        self.frete_contract = frete_contract
        self.precificacao = precificacao or PrecificacaoService()

    # ---------------- Endereço ----------------
    def _snapshot_endereco(self, usuario_id: str, endereco: Union[int, EnderecoIn]) -> Dict[str, Any]:
        if isinstance(endereco, EnderecoIn):
            dados = endereco.model_dump()
            origem = None
        else:
            salvo = self.endereco_repo.get_by_usuario(usuario_id, int(endereco))
            if not salvo:
                raise AddressNotFoundError()
            dados = {campo: getattr(salvo, campo) for campo in CAMPOS_ENDERECO}
            origem = salvo.id

        dados["endereco_id"] = origem
        dados["snapshot_em"] = now_trimmed().isoformat()
        return dados

    # ---------------- Carrinho ----------------
    def _linhas_carrinho(self, usuario_id: str) -> List[LinhaCarrinho]:
        itens = self.carrinho_repo.listar_itens(usuario_id)
        if not itens:
            raise EmptyCartError()

        linhas = []
        for item in itens:
            produto = self.produto_contract.get_produto(item.produto_id)
            if not produto or not produto.ativo:
                raise ProductNotFoundError(f"Produto {item.produto_id} não está mais disponível.")
            linhas.append(LinhaCarrinho(produto=produto, quantidade=item.quantidade))
        return linhas

    # ---------------- Criação ----------------
    async def criar_pedido_do_carrinho(
        self,
        usuario_id: str,
        endereco: Union[int, EnderecoIn],
        cupom_codigo: Optional[str],
        metodo_envio: str,
        ip_cliente: Optional[str] = None,
    ) -> PedidoModel:
        linhas = self._linhas_carrinho(usuario_id)
        endereco_snapshot = self._snapshot_endereco(usuario_id, endereco)

        opcoes = await self.frete_contract.cotar(
            endereco_snapshot["cep"],
            itens_frete((linha.produto, linha.quantidade) for linha in linhas),
        )

        cupom = None
        if cupom_codigo and cupom_codigo.strip():
            cupom = self.cupom_validator.validar(cupom_codigo, usuario_id=usuario_id)

        resultado = self.precificacao.calcular(linhas, cupom, opcoes, metodo_envio)

        try:
            pedido = self._montar_pedido(usuario_id, resultado, endereco_snapshot, ip_cliente)

            for item in resultado.itens:
                if not self.produto_contract.debitar_estoque(item.produto_id, item.quantidade):
                    raise OutOfStockError(
                        f"Estoque insuficiente para o produto '{item.produto_nome}'."
                    )

            self.repo.add(pedido)

            if cupom is not None:
                self.cupom_validator.resgatar(cupom, usuario_id, pedido.id)

            self.carrinho_repo.limpar(usuario_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        pedidos_criados_total.inc()
        logger.info(
            f"[criar_pedido] pedido={pedido.id} usuario={usuario_id} total={pedido.valor_total} "
            f"cupom={pedido.cupom_codigo} envio={pedido.metodo_envio}"
        )
        return pedido

    @staticmethod
    def _montar_pedido(
        usuario_id: str,
        resultado: ResultadoPrecificacao,
        endereco_snapshot: Dict[str, Any],
        ip_cliente: Optional[str],
    ) -> PedidoModel:
        # valor_total é validado contra os limites na atribuição
        pedido = PedidoModel(
            usuario_id=usuario_id,
            subtotal=resultado.subtotal,
            desconto=resultado.desconto,
            taxa_entrega=resultado.taxa_entrega,
            valor_total=resultado.valor_total,
            metodo_envio=resultado.opcao_frete.nome,
            prazo_entrega_dias=resultado.opcao_frete.prazo_dias,
            cupom_codigo=resultado.cupom.codigo if resultado.cupom else None,
            cupom_percentual=resultado.cupom.desconto_percentual if resultado.cupom else None,
            endereco_snapshot=endereco_snapshot,
            cep_entrega=endereco_snapshot["cep"],
            ip_cliente=ip_cliente,
        )
        for item in resultado.itens:
            pedido.itens.append(
                PedidoItemModel(
                    produto_id=item.produto_id,
                    produto_nome=item.produto_nome,
                    quantidade=item.quantidade,
                    preco_unitario=item.preco_unitario,
                )
            )
        PedidoStateMachine.registrar_criacao(pedido, ator=ator_usuario(usuario_id))
        return pedido
