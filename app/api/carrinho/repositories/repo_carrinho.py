from typing import List, Optional

from sqlalchemy.orm import Session

from app.api.carrinho.models.model_carrinho import CarrinhoItemModel, CarrinhoModel


class CarrinhoRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_usuario(self, usuario_id: str) -> Optional[CarrinhoModel]:
        return self.db.query(CarrinhoModel).filter(CarrinhoModel.usuario_id == usuario_id).first()

    def get_or_create(self, usuario_id: str) -> CarrinhoModel:
        carrinho = self.get_by_usuario(usuario_id)
        if carrinho is None:
            carrinho = CarrinhoModel(usuario_id=usuario_id)
            self.db.add(carrinho)
            self.db.flush()
        return carrinho

    def listar_itens(self, usuario_id: str) -> List[CarrinhoItemModel]:
        return (
            self.db.query(CarrinhoItemModel)
            .join(CarrinhoModel, CarrinhoItemModel.carrinho_id == CarrinhoModel.id)
            .filter(CarrinhoModel.usuario_id == usuario_id)
            .order_by(CarrinhoItemModel.id)
            .all()
        )

    def get_item(self, carrinho_id: int, produto_id: int) -> Optional[CarrinhoItemModel]:
        return (
            self.db.query(CarrinhoItemModel)
            .filter(CarrinhoItemModel.carrinho_id == carrinho_id, CarrinhoItemModel.produto_id == produto_id)
            .first()
        )

    def add_item(self, carrinho: CarrinhoModel, produto_id: int, quantidade: int) -> CarrinhoItemModel:
        item = CarrinhoItemModel(carrinho_id=carrinho.id, produto_id=produto_id, quantidade=quantidade)
        self.db.add(item)
        self.db.flush()
        return item

    def remove_item(self, item: CarrinhoItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def limpar(self, usuario_id: str) -> int:
        carrinho = self.get_by_usuario(usuario_id)
        if carrinho is None:
            return 0
        removidos = (
            self.db.query(CarrinhoItemModel)
            .filter(CarrinhoItemModel.carrinho_id == carrinho.id)
            .delete(synchronize_session=False)
        )
        self.db.expire(carrinho, ["itens"])
        return removidos

    # Transações
    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
