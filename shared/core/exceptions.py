"""
Exceções customizadas do Ads Manager.

Cada exceção carrega uma mensagem legível, um dicionário de detalhes e um
``error_code`` estável usado pela camada de comandos para montar respostas.
"""

from typing import Any, Optional


class AdsManagerException(Exception):
    """Exceção base para erros do Ads Manager."""

    error_code = "internal_error"

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(AdsManagerException):
    """Erro de validação de dados. Nenhuma chamada remota é feita."""

    error_code = "validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(
            message=f"Erro de validação em '{field}': {message}",
            details={"field": field}
        )
        self.field = field


class UnauthorizedException(AdsManagerException):
    """Usuário sem credencial do Facebook ou sem conta de anúncios vinculada."""

    error_code = "unauthorized"

    def __init__(self, message: str, owner_id: Optional[str] = None):
        super().__init__(
            message=message,
            details={"owner_id": owner_id} if owner_id else {}
        )


class EntityNotFoundException(AdsManagerException):
    """Entidade (campanha, adset, ad) não encontrada ou de outro usuário."""

    error_code = "not_found"

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(
            message=f"{entity_type.capitalize()} com ID {entity_id} não encontrado",
            details={"entity_type": entity_type, "entity_id": entity_id}
        )


class RemotePlatformException(AdsManagerException):
    """Falha na chamada à plataforma de anúncios remota."""

    error_code = "remote_error"
