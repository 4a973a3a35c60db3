from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session, selectinload

from app.api.catalogo.models.model_produto import ProdutoModel
from app.api.pedidos.models.model_pedido import PedidoModel, StatusPedido
from app.api.pedidos.models.model_pedido_historico import PedidoHistoricoModel

# Pedidos que nunca geraram receita
STATUS_SEM_RECEITA = (StatusPedido.PENDENTE.value, StatusPedido.CANCELADO.value)


class PedidoRepository:
    def __init__(self, db: Session):
        self.db = db

    # ------------- Queries -------------
    def get_pedido(self, pedido_id: int) -> Optional[PedidoModel]:
        return (
            self.db.query(PedidoModel)
            .options(selectinload(PedidoModel.itens))
            .filter(PedidoModel.id == pedido_id)
            .first()
        )

    def get_pedido_para_atualizacao(self, pedido_id: int) -> Optional[PedidoModel]:
        """
        SELECT ... FOR UPDATE na linha do pedido: serializa webhook, admin e
        reembolso sobre o mesmo pedido até o fim da transação.
        Sempre relê do banco (descarta estado em cache na sessão).
        """
        return (
            self.db.query(PedidoModel)
            .filter(PedidoModel.id == pedido_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def listar_paginado(
        self,
        *,
        usuario_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[PedidoModel], int]:
        query = self.db.query(PedidoModel)
        if usuario_id is not None:
            query = query.filter(PedidoModel.usuario_id == usuario_id)
        if status is not None:
            query = query.filter(PedidoModel.status == status)

        total = query.count()
        itens = (
            query.options(selectinload(PedidoModel.itens))
            .order_by(PedidoModel.created_at.desc(), PedidoModel.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return itens, total

    def get_historico(self, pedido_id: int, limit: int = 100) -> List[PedidoHistoricoModel]:
        return (
            self.db.query(PedidoHistoricoModel)
            .filter(PedidoHistoricoModel.pedido_id == pedido_id)
            .order_by(PedidoHistoricoModel.created_at.asc(), PedidoHistoricoModel.id.asc())
            .limit(limit)
            .all()
        )

    # ------------- Dashboard -------------
    def resumo_totais(self):
        """Contagens e faturamento bruto numa única consulta agregada."""
        pago_ou_alem = PedidoModel.status.notin_(STATUS_SEM_RECEITA)
        return self.db.query(
            func.count(PedidoModel.id).label("total_pedidos"),
            func.sum(
                case((PedidoModel.status == StatusPedido.PENDENTE.value, 1), else_=0)
            ).label("pedidos_pendentes"),
            func.sum(
                case((pago_ou_alem, PedidoModel.valor_total), else_=0)
            ).label("receita_bruta"),
        ).one()

    def listar_recentes(self, limit: int = 5) -> List[PedidoModel]:
        return (
            self.db.query(PedidoModel)
            .order_by(PedidoModel.created_at.desc(), PedidoModel.id.desc())
            .limit(limit)
            .all()
        )

    def listar_produtos_estoque_baixo(self, abaixo_de: int, limit: int = 5) -> List[ProdutoModel]:
        return (
            self.db.query(ProdutoModel)
            .filter(ProdutoModel.ativo.is_(True), ProdutoModel.estoque < abaixo_de)
            .order_by(ProdutoModel.estoque.asc(), ProdutoModel.id.asc())
            .limit(limit)
            .all()
        )

    # ------------- Escrita -------------
    def add(self, pedido: PedidoModel) -> PedidoModel:
        self.db.add(pedido)
        self.db.flush()
        return pedido

    # ------------- Transações -------------
    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
