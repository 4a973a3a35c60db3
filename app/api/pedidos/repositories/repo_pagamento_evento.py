from typing import List

from sqlalchemy.orm import Session

from app.api.pedidos.models.model_pagamento_evento import PagamentoEventoModel, RESULTADOS_REVISAO


class PagamentoEventoRepository:
    def __init__(self, db: Session):
        self.db = db

    def registrar(self, evento: PagamentoEventoModel) -> PagamentoEventoModel:
        self.db.add(evento)
        self.db.flush()
        return evento

    def list_para_revisao(self, skip: int = 0, limit: int = 50) -> List[PagamentoEventoModel]:
        return (
            self.db.query(PagamentoEventoModel)
            .filter(PagamentoEventoModel.resultado.in_(RESULTADOS_REVISAO))
            .order_by(PagamentoEventoModel.created_at.desc(), PagamentoEventoModel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
