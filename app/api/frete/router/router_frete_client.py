from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.catalogo.adapters.produto_adapter import ProdutoAdapter
from app.api.frete.contracts.frete_contract import IFreteContract
from app.api.frete.dependencies import get_frete_contract
from app.api.frete.schemas.schema_frete import CotarFreteRequest, CotarFreteResponse, OpcaoFreteOut
from app.api.frete.services.service_frete import FreteService
from app.core.admin_dependencies import get_current_user
from app.core.authorization import UsuarioAutenticado
from app.database.db_connection import get_db

router = APIRouter(
    prefix="/api/frete/client",
    tags=["Client - Frete"],
    dependencies=[Depends(get_current_user)],
)


@router.post("/cotar", response_model=CotarFreteResponse)
async def cotar_frete(
    body: CotarFreteRequest,
    usuario: UsuarioAutenticado = Depends(get_current_user),
    db: Session = Depends(get_db),
    frete: IFreteContract = Depends(get_frete_contract),
):
    """Cota o frete do carrinho atual. O método escolhido é reenviado no fechamento do pedido."""
    opcoes = await FreteService(db, ProdutoAdapter(db), frete).cotar_carrinho(usuario.id, body.cep)
    return CotarFreteResponse(
        cep=body.cep,
        opcoes=[OpcaoFreteOut(**o.model_dump()) for o in opcoes],
    )
