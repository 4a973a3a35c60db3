"""
Models de Cadastros
"""
from app.api.cadastros.models.model_cupom import CupomModel, CupomUsoModel
from app.api.cadastros.models.model_endereco import EnderecoModel

__all__ = [
    "CupomModel",
    "CupomUsoModel",
    "EnderecoModel",
]
