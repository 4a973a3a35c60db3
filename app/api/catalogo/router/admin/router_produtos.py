# app/api/catalogo/router/admin/router_produtos.py
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.catalogo.schemas.schema_produtos import (
    AtualizarProdutoRequest,
    CriarProdutoRequest,
    ProdutoResponse,
)
from app.api.catalogo.services.service_produto import ProdutoService
from app.core.admin_dependencies import require_admin
from app.core.authorization import UsuarioAutenticado
from app.database.db_connection import get_db

router = APIRouter(
    prefix="/api/catalogo/admin/produtos",
    tags=["Admin - Catalogo - Produtos"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=List[ProdutoResponse])
def listar_produtos(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    return ProdutoService(db).listar(skip=skip, limit=limit)


@router.get("/{produto_id}", response_model=ProdutoResponse)
def obter_produto(produto_id: int, db: Session = Depends(get_db)):
    return ProdutoService(db).obter(produto_id)


@router.post("", response_model=ProdutoResponse, status_code=status.HTTP_201_CREATED)
def criar_produto(
    body: CriarProdutoRequest,
    admin: UsuarioAutenticado = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return ProdutoService(db).criar(admin, body)


@router.put("/{produto_id}", response_model=ProdutoResponse)
def atualizar_produto(
    produto_id: int,
    body: AtualizarProdutoRequest,
    admin: UsuarioAutenticado = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return ProdutoService(db).atualizar(admin, produto_id, body)
