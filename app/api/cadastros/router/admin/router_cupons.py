from typing import List

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from app.api.cadastros.schemas.schema_cupom import CupomCreate, CupomOut, CupomUpdate
from app.api.cadastros.services.service_cupom import CuponsService
from app.core.admin_dependencies import require_admin
from app.core.authorization import UsuarioAutenticado
from app.database.db_connection import get_db

router = APIRouter(
    prefix="/api/cadastros/admin/cupons",
    tags=["Admin - Cadastros - Cupons"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=List[CupomOut])
def listar_cupons(
    incluir_inativos: bool = Query(False),
    db: Session = Depends(get_db),
):
    return CuponsService(db).list(incluir_inativos=incluir_inativos)


@router.get("/{cupom_id}", response_model=CupomOut)
def obter_cupom(cupom_id: int = Path(...), db: Session = Depends(get_db)):
    return CuponsService(db).get(cupom_id)


@router.post("", response_model=CupomOut, status_code=status.HTTP_201_CREATED)
def criar_cupom(
    body: CupomCreate,
    admin: UsuarioAutenticado = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return CuponsService(db).create(admin, body)


@router.put("/{cupom_id}", response_model=CupomOut)
def atualizar_cupom(
    body: CupomUpdate,
    cupom_id: int = Path(...),
    admin: UsuarioAutenticado = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return CuponsService(db).update(admin, cupom_id, body)


@router.delete("/{cupom_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_cupom(
    cupom_id: int = Path(...),
    admin: UsuarioAutenticado = Depends(require_admin),
    db: Session = Depends(get_db),
):
    CuponsService(db).delete(admin, cupom_id)
