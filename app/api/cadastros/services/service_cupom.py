from datetime import timedelta
from typing import List

from sqlalchemy.orm import Session

from app.api.cadastros.models.model_cupom import CupomModel
from app.api.cadastros.repositories.repo_cupom import CupomRepository
from app.api.cadastros.schemas.schema_cupom import CupomCreate, CupomUpdate
from app.core.authorization import Capacidade, UsuarioAutenticado, exigir
from app.core.exceptions import ConflictError, CouponNotFoundError
from app.utils.database_utils import now_trimmed
from app.utils.logger import logger


class CuponsService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CupomRepository(db)

    # ---------------- CUPOM ----------------
    def create(self, admin: UsuarioAutenticado, data: CupomCreate) -> CupomModel:
        exigir(admin, Capacidade.GERENCIAR_CUPONS)

        # Código é único mesmo entre cupons desativados
        if self.repo.get_by_code(data.codigo):
            raise ConflictError("Código de cupom já existe.")

        payload = data.model_dump(exclude={"validade_dias"})
        cupom = CupomModel(
            **payload,
            validade_fim=now_trimmed() + timedelta(days=data.validade_dias),
            usos=0,
            ativo=True,
        )
        self.repo.create(cupom)
        logger.info(f"[Cupons] Criado codigo={cupom.codigo} pct={cupom.desconto_percentual} admin={admin.id}")
        return cupom

    def update(self, admin: UsuarioAutenticado, cupom_id: int, data: CupomUpdate) -> CupomModel:
        exigir(admin, Capacidade.GERENCIAR_CUPONS)
        cupom = self.get(cupom_id)

        # Alterações não afetam pedidos já criados (percentual congelado no pedido)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(cupom, key, value)

        self.repo.update(cupom)
        logger.info(f"[Cupons] Atualizado id={cupom.id} admin={admin.id}")
        return cupom

    def get(self, cupom_id: int) -> CupomModel:
        cupom = self.repo.get(cupom_id)
        if not cupom:
            raise CouponNotFoundError("Cupom não encontrado.")
        return cupom

    def list(self, incluir_inativos: bool = False) -> List[CupomModel]:
        return self.repo.list(incluir_inativos=incluir_inativos)

    def delete(self, admin: UsuarioAutenticado, cupom_id: int) -> None:
        """Exclusão lógica: o cupom deixa de ser aceito, o histórico fica intacto."""
        exigir(admin, Capacidade.GERENCIAR_CUPONS)
        cupom = self.get(cupom_id)
        cupom.ativo = False
        self.repo.update(cupom)
        logger.info(f"[Cupons] Desativado id={cupom.id} codigo={cupom.codigo} admin={admin.id}")
