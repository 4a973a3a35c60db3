from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.api.cadastros.schemas.schema_cupom import CupomValidacaoResponse
from app.api.cadastros.services.cupom_validator import CupomValidator
from app.core.admin_dependencies import get_current_user
from app.core.authorization import UsuarioAutenticado
from app.database.db_connection import get_db

router = APIRouter(
    prefix="/api/cadastros/client/cupons",
    tags=["Client - Cadastros - Cupons"],
)


@router.get("/validar/{codigo}", response_model=CupomValidacaoResponse)
def validar_cupom(
    codigo: str = Path(..., min_length=1, max_length=30),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Confere se o cupom pode ser aplicado agora pelo usuário (não consome uso)."""
    snapshot = CupomValidator(db).validar(codigo, usuario_id=usuario.id)
    return CupomValidacaoResponse(codigo=snapshot.codigo, desconto_percentual=snapshot.desconto_percentual)
