from app.api.frete.adapters.melhorenvio_adapter import MelhorEnvioAdapter
from app.api.frete.contracts.frete_contract import IFreteContract
from app.config.settings import get_app_config


def get_frete_contract() -> IFreteContract:
    return MelhorEnvioAdapter(get_app_config())
