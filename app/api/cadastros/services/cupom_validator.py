"""
Validação e resgate de cupons no momento do fechamento do pedido.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from app.api.cadastros.repositories.repo_cupom import CupomRepository
from app.core.exceptions import (
    CouponAlreadyUsedError,
    CouponExhaustedError,
    CouponExpiredError,
    CouponNotFoundError,
)
from app.utils.database_utils import as_aware, now_trimmed
from app.utils.logger import logger


@dataclass(frozen=True)
class CupomSnapshot:
    """Cópia imutável do cupom usada na precificação."""
    id: int
    codigo: str
    desconto_percentual: Decimal


class CupomValidator:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CupomRepository(db)

    @staticmethod
    def normalizar_codigo(codigo: Optional[str]) -> str:
        return (codigo or "").strip().upper()

    def validar(
        self,
        codigo: str,
        em: Optional[datetime] = None,
        usuario_id: Optional[str] = None,
    ) -> CupomSnapshot:
        """
        Valida o cupom no instante `em` (agora, por padrão).

        Levanta CouponNotFoundError, CouponExpiredError ou CouponExhaustedError,
        nessa ordem; com `usuario_id`, também CouponAlreadyUsedError.
        """
        codigo_normalizado = self.normalizar_codigo(codigo)
        if not codigo_normalizado:
            raise CouponNotFoundError()

        cupom = self.repo.get_ativo_by_code(codigo_normalizado)
        if not cupom:
            raise CouponNotFoundError()

        instante = as_aware(em or now_trimmed())
        if instante > as_aware(cupom.validade_fim):
            raise CouponExpiredError()

        if cupom.limite_usos is not None and cupom.usos >= cupom.limite_usos:
            raise CouponExhaustedError()

        if usuario_id is not None and self.repo.usuario_ja_utilizou(cupom.id, usuario_id):
            raise CouponAlreadyUsedError()

        return CupomSnapshot(
            id=cupom.id,
            codigo=cupom.codigo,
            desconto_percentual=Decimal(cupom.desconto_percentual),
        )

    def resgatar(self, cupom: CupomSnapshot, usuario_id: str, pedido_id: Optional[int]) -> None:
        """
        Consome um uso do cupom dentro da transação corrente (sem commit).
        Quem chama faz o rollback se qualquer etapa falhar.
        """
        if self.repo.usuario_ja_utilizou(cupom.id, usuario_id):
            raise CouponAlreadyUsedError()

        if not self.repo.incrementar_uso(cupom.id):
            logger.info(f"[Cupons] Limite atingido no resgate codigo={cupom.codigo}")
            raise CouponExhaustedError()

        try:
            self.repo.registrar_uso(cupom.id, usuario_id, pedido_id)
        except sa_exc.IntegrityError as e:
            raise CouponAlreadyUsedError() from e
