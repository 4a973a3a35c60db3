from .model_carrinho import CarrinhoModel, CarrinhoItemModel

__all__ = ["CarrinhoModel", "CarrinhoItemModel"]
