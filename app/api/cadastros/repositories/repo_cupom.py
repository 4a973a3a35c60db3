from typing import List, Optional

from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session

from app.api.cadastros.models.model_cupom import CupomModel, CupomUsoModel
from app.utils.database_utils import now_trimmed


class CupomRepository:
    def __init__(self, db: Session):
        self.db = db

    # ---------------- CUPOM ----------------
    def get(self, id_: int) -> Optional[CupomModel]:
        return (
            self.db.query(CupomModel)
            .filter(CupomModel.id == id_)
            .first()
        )

    def get_by_code(self, codigo: str) -> Optional[CupomModel]:
        """Busca sem diferenciar maiúsculas/minúsculas (ativos e inativos)."""
        return (
            self.db.query(CupomModel)
            .filter(func.upper(CupomModel.codigo) == codigo.strip().upper())
            .first()
        )

    def get_ativo_by_code(self, codigo: str) -> Optional[CupomModel]:
        return (
            self.db.query(CupomModel)
            .filter(
                func.upper(CupomModel.codigo) == codigo.strip().upper(),
                CupomModel.ativo.is_(True),
            )
            .populate_existing()
            .first()
        )

    def list(self, incluir_inativos: bool = False) -> List[CupomModel]:
        query = self.db.query(CupomModel)
        if not incluir_inativos:
            query = query.filter(CupomModel.ativo.is_(True))
        return query.order_by(CupomModel.created_at.desc(), CupomModel.id.desc()).all()

    def create(self, obj: CupomModel) -> CupomModel:
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update(self, obj: CupomModel) -> CupomModel:
        self.db.commit()
        self.db.refresh(obj)
        return obj

    # ---------------- RESGATE ----------------
    def incrementar_uso(self, cupom_id: int) -> bool:
        """
        Consome um uso respeitando o limite na própria instrução UPDATE.
        Não faz commit: participa da transação do pedido.
        """
        result = self.db.execute(
            update(CupomModel)
            .where(
                CupomModel.id == cupom_id,
                CupomModel.ativo.is_(True),
                or_(CupomModel.limite_usos.is_(None), CupomModel.usos < CupomModel.limite_usos),
            )
            .values(usos=CupomModel.usos + 1, updated_at=now_trimmed())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def usuario_ja_utilizou(self, cupom_id: int, usuario_id: str) -> bool:
        return (
            self.db.query(CupomUsoModel.id)
            .filter(CupomUsoModel.cupom_id == cupom_id, CupomUsoModel.usuario_id == usuario_id)
            .first()
            is not None
        )

    def registrar_uso(self, cupom_id: int, usuario_id: str, pedido_id: Optional[int]) -> CupomUsoModel:
        uso = CupomUsoModel(cupom_id=cupom_id, usuario_id=usuario_id, pedido_id=pedido_id)
        self.db.add(uso)
        self.db.flush()
        return uso
