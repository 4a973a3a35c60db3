from typing import List

from sqlalchemy.orm import Session

from app.api.cadastros.models.model_endereco import EnderecoModel
from app.api.cadastros.repositories.repo_endereco import EnderecoRepository
from app.api.cadastros.schemas.schema_endereco import EnderecoCreate, EnderecoOut, EnderecoUpdate
from app.core.exceptions import AddressNotFoundError
from app.utils.logger import logger


class EnderecosService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = EnderecoRepository(db)

    def list(self, usuario_id: str) -> List[EnderecoOut]:
        return [EnderecoOut.model_validate(x) for x in self.repo.list_by_usuario(usuario_id)]

    def get(self, usuario_id: str, endereco_id: int) -> EnderecoModel:
        endereco = self.repo.get_by_usuario(usuario_id, endereco_id)
        if not endereco:
            raise AddressNotFoundError()
        return endereco

    def create(self, usuario_id: str, payload: EnderecoCreate) -> EnderecoOut:
        """O primeiro endereço do usuário vira o padrão automaticamente."""
        try:
            primeiro = self.repo.count_by_usuario(usuario_id) == 0
            is_padrao = payload.is_padrao or primeiro
            obj = self.repo.add(
                EnderecoModel(**payload.model_dump(exclude={"is_padrao"}), usuario_id=usuario_id, is_padrao=is_padrao)
            )
            if is_padrao:
                self.repo.limpar_padrao(usuario_id, exceto_id=obj.id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"[Enderecos] Criado id={obj.id} usuario={usuario_id} padrao={is_padrao}")
        return EnderecoOut.model_validate(obj)

    def update(self, usuario_id: str, endereco_id: int, payload: EnderecoUpdate) -> EnderecoOut:
        obj = self.get(usuario_id, endereco_id)
        for k, v in payload.model_dump(exclude_unset=True).items():
            setattr(obj, k, v)
        self.repo.commit()
        return EnderecoOut.model_validate(obj)

    def set_padrao(self, usuario_id: str, endereco_id: int) -> EnderecoOut:
        obj = self.get(usuario_id, endereco_id)
        try:
            self.repo.limpar_padrao(usuario_id, exceto_id=obj.id)
            obj.is_padrao = True
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        return EnderecoOut.model_validate(obj)

    def delete(self, usuario_id: str, endereco_id: int) -> None:
        """Ao remover o padrão, o endereço mais recente restante assume."""
        obj = self.get(usuario_id, endereco_id)
        era_padrao = obj.is_padrao
        try:
            self.repo.delete(obj)
            if era_padrao:
                substituto = self.repo.primeiro_restante(usuario_id)
                if substituto:
                    substituto.is_padrao = True
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"[Enderecos] Removido id={endereco_id} usuario={usuario_id}")
