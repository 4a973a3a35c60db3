from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from app.api.carrinho.schemas.schema_carrinho import AdicionarItemRequest, AtualizarItemRequest, CarrinhoOut
from app.api.carrinho.services.service_carrinho import CarrinhoService
from app.api.catalogo.adapters.produto_adapter import ProdutoAdapter
from app.core.admin_dependencies import get_current_user
from app.core.authorization import UsuarioAutenticado
from app.database.db_connection import get_db

router = APIRouter(
    prefix="/api/carrinho/client",
    tags=["Client - Carrinho"],
    dependencies=[Depends(get_current_user)],
)


def get_carrinho_service(db: Session = Depends(get_db)) -> CarrinhoService:
    return CarrinhoService(db, ProdutoAdapter(db))


@router.get("", response_model=CarrinhoOut)
def obter_carrinho(
    usuario: UsuarioAutenticado = Depends(get_current_user),
    svc: CarrinhoService = Depends(get_carrinho_service),
):
    return svc.obter(usuario.id)


@router.post("/itens", response_model=CarrinhoOut)
def adicionar_item(
    body: AdicionarItemRequest,
    usuario: UsuarioAutenticado = Depends(get_current_user),
    svc: CarrinhoService = Depends(get_carrinho_service),
):
    return svc.adicionar_item(usuario.id, body.produto_id, body.quantidade)


@router.put("/itens/{produto_id}", response_model=CarrinhoOut)
def atualizar_item(
    body: AtualizarItemRequest,
    produto_id: int = Path(...),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    svc: CarrinhoService = Depends(get_carrinho_service),
):
    return svc.atualizar_item(usuario.id, produto_id, body.quantidade)


@router.delete("/itens/{produto_id}", response_model=CarrinhoOut)
def remover_item(
    produto_id: int = Path(...),
    usuario: UsuarioAutenticado = Depends(get_current_user),
    svc: CarrinhoService = Depends(get_carrinho_service),
):
    return svc.remover_item(usuario.id, produto_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def limpar_carrinho(
    usuario: UsuarioAutenticado = Depends(get_current_user),
    svc: CarrinhoService = Depends(get_carrinho_service),
):
    svc.limpar(usuario.id)
