from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.pedidos.models.model_reembolso import ReembolsoModel, STATUS_REEMBOLSO_ABERTO, StatusReembolso


class ReembolsoRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, reembolso: ReembolsoModel) -> ReembolsoModel:
        self.db.add(reembolso)
        self.db.flush()
        return reembolso

    def get_aberto(self, pedido_id: int) -> Optional[ReembolsoModel]:
        return (
            self.db.query(ReembolsoModel)
            .filter(
                ReembolsoModel.pedido_id == pedido_id,
                ReembolsoModel.status.in_(STATUS_REEMBOLSO_ABERTO),
            )
            .order_by(ReembolsoModel.id.desc())
            .populate_existing()
            .first()
        )

    def existe_processando(self, pedido_id: int) -> bool:
        return (
            self.db.query(ReembolsoModel.id)
            .filter(
                ReembolsoModel.pedido_id == pedido_id,
                ReembolsoModel.status == StatusReembolso.PROCESSANDO.value,
            )
            .first()
            is not None
        )

    def list_by_pedido(self, pedido_id: int) -> List[ReembolsoModel]:
        return (
            self.db.query(ReembolsoModel)
            .filter(ReembolsoModel.pedido_id == pedido_id)
            .order_by(ReembolsoModel.created_at.asc(), ReembolsoModel.id.asc())
            .all()
        )

    def total_concluido_centavos(self) -> int:
        total = (
            self.db.query(func.sum(ReembolsoModel.valor_aprovado_centavos))
            .filter(ReembolsoModel.status == StatusReembolso.CONCLUIDO.value)
            .scalar()
        )
        return int(total or 0)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
