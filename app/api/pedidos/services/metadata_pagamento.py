"""
Metadados assinados enviados ao gateway no checkout e conferidos no webhook.
"""
from typing import Any, Dict, Mapping

from app.api.pedidos.models.model_pedido import PedidoModel
from app.core.assinatura import AssinadorMetadados

CAMPO_ASSINATURA = "pedido_assinatura"


def conteudo_assinado(pedido_id: int, valor_centavos: int) -> str:
    return f"pedido:{int(pedido_id)};valor:{int(valor_centavos)}"


def montar_metadata(assinador: AssinadorMetadados, pedido: PedidoModel) -> Dict[str, Any]:
    valor = pedido.valor_total_centavos
    return {
        "pedido_id": pedido.id,
        "valor_centavos": valor,
        CAMPO_ASSINATURA: assinador.assinar(conteudo_assinado(pedido.id, valor)),
    }


def metadata_confere(assinador: AssinadorMetadados, pedido_id: int, metadata: Mapping[str, Any]) -> bool:
    """A assinatura precisa bater e apontar para o mesmo pedido da referência externa."""
    try:
        pedido_metadata = int(metadata.get("pedido_id"))
        valor = int(metadata.get("valor_centavos"))
    except (TypeError, ValueError):
        return False
    if pedido_metadata != int(pedido_id):
        return False
    return assinador.verificar(conteudo_assinado(pedido_metadata, valor), metadata.get(CAMPO_ASSINATURA))
