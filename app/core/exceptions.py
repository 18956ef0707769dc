"""
Exceções de domínio da loja.

Os serviços levantam estas exceções; o handler registrado em app.main as
converte em respostas JSON {"detail": ...} com o status HTTP de cada classe.
"""

from fastapi import status


class StoreError(Exception):
    """Base de todas as exceções de domínio"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Erro na requisição"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(StoreError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Recurso não encontrado"


class ProductNotFound(NotFound):
    default_detail = "Produto não encontrado/ativo"


class OrderNotFound(NotFound):
    default_detail = "Pedido não encontrado"


class DigitalProductNotFound(NotFound):
    default_detail = "Produto digital não encontrado"


class CartItemNotFound(NotFound):
    default_detail = "Item não está no carrinho"


class UserNotFound(NotFound):
    default_detail = "Usuário não encontrado"


class SubscriptionNotFound(NotFound):
    default_detail = "Inscrição não encontrada"


class Unauthorized(StoreError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Não autenticado"


class Forbidden(StoreError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Sem permissão"


class ValidationError(StoreError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Dados inválidos"


class Conflict(StoreError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflito de estado"


class InvalidStatusTransition(Conflict):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Transição de status inválida: {current} -> {target}")


class EmailAlreadyRegistered(Conflict):
    default_detail = "E-mail já cadastrado"


class PaymentProviderError(StoreError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Falha ao comunicar com o provedor de pagamento"
