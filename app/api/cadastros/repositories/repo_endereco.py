from typing import List, Optional

from sqlalchemy.orm import Session

from app.api.cadastros.models.model_endereco import EnderecoModel


class EnderecoRepository:
    def __init__(self, db: Session):
        self.db = db

    # Listar todos endereços de um usuário (padrão primeiro)
    def list_by_usuario(self, usuario_id: str) -> List[EnderecoModel]:
        return (
            self.db.query(EnderecoModel)
            .filter(EnderecoModel.usuario_id == usuario_id)
            .order_by(EnderecoModel.is_padrao.desc(), EnderecoModel.created_at.desc(), EnderecoModel.id.desc())
            .all()
        )

    def count_by_usuario(self, usuario_id: str) -> int:
        return self.db.query(EnderecoModel).filter(EnderecoModel.usuario_id == usuario_id).count()

    # Buscar endereço específico (None quando não pertence ao usuário)
    def get_by_usuario(self, usuario_id: str, end_id: int) -> Optional[EnderecoModel]:
        return (
            self.db.query(EnderecoModel)
            .filter(
                EnderecoModel.id == end_id,
                EnderecoModel.usuario_id == usuario_id,
            )
            .first()
        )

    def add(self, obj: EnderecoModel) -> EnderecoModel:
        self.db.add(obj)
        self.db.flush()
        return obj

    def delete(self, obj: EnderecoModel) -> None:
        self.db.delete(obj)
        self.db.flush()

    def limpar_padrao(self, usuario_id: str, exceto_id: Optional[int] = None) -> None:
        query = self.db.query(EnderecoModel).filter(EnderecoModel.usuario_id == usuario_id)
        if exceto_id is not None:
            query = query.filter(EnderecoModel.id != exceto_id)
        query.update({"is_padrao": False}, synchronize_session="fetch")

    def primeiro_restante(self, usuario_id: str) -> Optional[EnderecoModel]:
        return (
            self.db.query(EnderecoModel)
            .filter(EnderecoModel.usuario_id == usuario_id)
            .order_by(EnderecoModel.created_at.desc(), EnderecoModel.id.desc())
            .first()
        )

    # Transações
    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
