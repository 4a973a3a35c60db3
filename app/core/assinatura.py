"""
Assinatura HMAC-SHA256 com chaves versionadas.

A assinatura carrega a versão da chave (`v2.<hex>`), permitindo rotacionar a
chave de assinatura sem invalidar o que já foi emitido com versões anteriores.
"""
import hashlib
import hmac

from app.config.settings import ChavesVersionadas


class AssinadorMetadados:
    def __init__(self, chaves: ChavesVersionadas):
        if not chaves.chaves:
            raise RuntimeError("Chaves de assinatura de metadados não configuradas.")
        self.chaves = chaves

    @staticmethod
    def _hmac(chave: bytes, conteudo: str) -> str:
        return hmac.new(chave, conteudo.encode("utf-8"), hashlib.sha256).hexdigest()

    def assinar(self, conteudo: str) -> str:
        versao = self.chaves.versao_atual
        return f"{versao}.{self._hmac(self.chaves.chave_atual, conteudo)}"

    def verificar(self, conteudo: str, assinatura: str | None) -> bool:
        if not assinatura or "." not in assinatura:
            return False
        versao, _, digest = assinatura.partition(".")
        chave = self.chaves.chave(versao)
        if chave is None:
            return False
        return hmac.compare_digest(self._hmac(chave, conteudo), digest)
