"""
Exceções de domínio da API.

Cada exceção carrega o status HTTP e um código estável usado no envelope de
erro (ver `app.core.exception_handlers`).
"""
from typing import Any, Optional


class AppError(Exception):
    status_code: int = 500
    codigo: str = "ERRO_INTERNO"
    mensagem_padrao: str = "Erro interno do servidor"

    def __init__(self, mensagem: Optional[str] = None, **contexto: Any):
        self.mensagem = mensagem or self.mensagem_padrao
        self.contexto = contexto
        super().__init__(self.mensagem)


# ---------------- Tipos base ----------------

class ValidationError(AppError):
    status_code = 400
    codigo = "VALIDACAO"
    mensagem_padrao = "Dados inválidos"


class UnauthorizedError(AppError):
    status_code = 401
    codigo = "NAO_AUTENTICADO"
    mensagem_padrao = "Não autenticado"


class ForbiddenError(AppError):
    status_code = 403
    codigo = "PROIBIDO"
    mensagem_padrao = "Você não tem permissão para acessar este recurso"


class NotFoundError(AppError):
    status_code = 404
    codigo = "NAO_ENCONTRADO"
    mensagem_padrao = "Recurso não encontrado"


class ConflictError(AppError):
    status_code = 409
    codigo = "CONFLITO"
    mensagem_padrao = "Conflito com o estado atual do recurso"


class IntegrityError(AppError):
    """Violação de integridade (ex.: valor pago divergente). Sempre logada."""
    status_code = 409
    codigo = "INTEGRIDADE"
    mensagem_padrao = "Violação de integridade detectada"


class ExternalServiceError(AppError):
    status_code = 502
    codigo = "SERVICO_EXTERNO"
    mensagem_padrao = "Serviço externo indisponível. Tente novamente."


# ---------------- Validação ----------------

class EmptyCartError(ValidationError):
    codigo = "CARRINHO_VAZIO"
    mensagem_padrao = "Carrinho vazio."


class InvalidShippingOptionError(ValidationError):
    codigo = "FRETE_INVALIDO"
    mensagem_padrao = "O método de envio selecionado não está mais disponível ou é inválido."


class InvalidRefundQuantityError(ValidationError):
    codigo = "QUANTIDADE_REEMBOLSO_INVALIDA"
    mensagem_padrao = "Quantidade solicitada para reembolso é inválida."


class InvalidRefundAmountError(ValidationError):
    codigo = "VALOR_REEMBOLSO_INVALIDO"
    mensagem_padrao = "Valor de reembolso inválido."


class CouponExpiredError(ValidationError):
    codigo = "CUPOM_EXPIRADO"
    mensagem_padrao = "Cupom expirado."


class OrderAmountOutOfRangeError(ValidationError):
    codigo = "VALOR_PEDIDO_FORA_DO_LIMITE"
    mensagem_padrao = "Valor do pedido fora dos limites permitidos."


# ---------------- Autenticação ----------------

class InvalidWebhookSignatureError(UnauthorizedError):
    codigo = "ASSINATURA_WEBHOOK_INVALIDA"
    mensagem_padrao = "Assinatura do webhook inválida."


# ---------------- Não encontrado ----------------

class OrderNotFoundError(NotFoundError):
    codigo = "PEDIDO_NAO_ENCONTRADO"
    mensagem_padrao = "Pedido não encontrado."


class CouponNotFoundError(NotFoundError):
    codigo = "CUPOM_NAO_ENCONTRADO"
    mensagem_padrao = "Cupom inválido."


class AddressNotFoundError(NotFoundError):
    codigo = "ENDERECO_NAO_ENCONTRADO"
    mensagem_padrao = "Endereço não encontrado."


class ProductNotFoundError(NotFoundError):
    codigo = "PRODUTO_NAO_ENCONTRADO"
    mensagem_padrao = "Produto não encontrado."


# ---------------- Conflito ----------------

class IllegalStateTransitionError(ConflictError):
    codigo = "TRANSICAO_INVALIDA"
    mensagem_padrao = "Transição de status não permitida."


class InvalidOrderStateError(ConflictError):
    codigo = "STATUS_PEDIDO_INVALIDO"
    mensagem_padrao = "O pedido não está em um status válido para esta operação."


class OutOfStockError(ConflictError):
    codigo = "ESTOQUE_INSUFICIENTE"
    mensagem_padrao = "Estoque insuficiente."


class CouponExhaustedError(ConflictError):
    codigo = "CUPOM_ESGOTADO"
    mensagem_padrao = "Cupom esgotado."


class CouponAlreadyUsedError(ConflictError):
    codigo = "CUPOM_JA_UTILIZADO"
    mensagem_padrao = "Cupom já utilizado."


class ConcurrentModificationError(ConflictError):
    codigo = "MODIFICACAO_CONCORRENTE"
    mensagem_padrao = "O recurso foi alterado por outra operação. Tente novamente."


# ---------------- Integridade ----------------

class AmountMismatchError(IntegrityError):
    codigo = "DIVERGENCIA_VALOR"
    mensagem_padrao = "Divergência de valores entre pagamento e pedido."


class InvalidMetadataSignatureError(IntegrityError):
    codigo = "ASSINATURA_METADADOS_INVALIDA"
    mensagem_padrao = "Assinatura dos metadados inválida."
