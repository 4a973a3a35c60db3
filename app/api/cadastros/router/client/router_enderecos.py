from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session
from typing import List
from app.api.cadastros.services.service_endereco import EnderecosService
from app.api.cadastros.schemas.schema_endereco import EnderecoOut, EnderecoCreate, EnderecoUpdate
from app.core.admin_dependencies import get_current_user
from app.core.authorization import UsuarioAutenticado
from app.database.db_connection import get_db
from app.utils.logger import logger


router = APIRouter(
    prefix="/api/cadastros/client/enderecos",
    tags=["Client - Cadastros - Endereços"],
    dependencies=[Depends(get_current_user)],
)

# Todas as operações filtram por usuario_id: um usuário nunca enxerga
# endereços de outro (resposta 404).


@router.get("", response_model=List[EnderecoOut])
def listar_enderecos(
    usuario: UsuarioAutenticado = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    logger.info(f"[Enderecos] Listar - usuario={usuario.id}")
    return EnderecosService(db).list(usuario.id)


@router.get("/{endereco_id}", response_model=EnderecoOut)
def get_endereco(
    endereco_id: int = Path(...),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return EnderecosService(db).get(usuario.id, endereco_id)


@router.post("", response_model=EnderecoOut, status_code=status.HTTP_201_CREATED)
def criar_endereco(
    payload: EnderecoCreate,
    usuario: UsuarioAutenticado = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    logger.info(f"[Enderecos] Criar - usuario={usuario.id}")
    return EnderecosService(db).create(usuario.id, payload)


@router.put("/{endereco_id}", response_model=EnderecoOut)
def atualizar_endereco(
    payload: EnderecoUpdate,
    endereco_id: int = Path(...),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return EnderecosService(db).update(usuario.id, endereco_id, payload)


@router.put("/{endereco_id}/padrao", response_model=EnderecoOut)
def definir_endereco_padrao(
    endereco_id: int = Path(...),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return EnderecosService(db).set_padrao(usuario.id, endereco_id)


@router.delete("/{endereco_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_endereco(
    endereco_id: int = Path(...),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    EnderecosService(db).delete(usuario.id, endereco_id)
