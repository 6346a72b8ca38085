"""Peças comuns aos serviços de entidades."""

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel

from shared.core.exceptions import EntityNotFoundException, ValidationException
from shared.domain.interfaces.repository import Repository
from shared.domain.value_objects import PageRequest
from projects.ads_manager.client.marketing import MarketingClient
from projects.ads_manager.config import ads_settings
from projects.ads_manager.schemas.common import PaginationParams
from projects.ads_manager.services.credential_cache import CredentialCache
from projects.ads_manager.utils.date_helpers import parse_facebook_datetime

ClientFactory = Callable[[str], MarketingClient]


class RemoteEntityService:
    """Base dos serviços que falam com a Graph API em nome de um dono."""

    def __init__(
        self,
        credentials: CredentialCache,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.credentials = credentials
        self.client_factory = client_factory or MarketingClient.from_token

    async def _client(self, owner_id: str) -> MarketingClient:
        token = await self.credentials.ensure(owner_id)
        return self.client_factory(token)


async def get_owned(
    repository: Repository,
    entity_type: str,
    owner_id: str,
    entity_id: str,
) -> Any:
    """Entidade do dono ou EntityNotFoundException (inclusive se de outro dono)."""
    entity = await repository.get_by_id(entity_id)
    if entity is None or entity.owner_id != owner_id:
        raise EntityNotFoundException(entity_type, entity_id)
    return entity


def build_page_request(pagination: Optional[PaginationParams]) -> PageRequest:
    pagination = pagination or PaginationParams(limit=ads_settings.ads_default_page_size)
    try:
        return PageRequest(
            page=pagination.page,
            limit=pagination.limit,
            sort_by=pagination.sort_by,
            sort_order=pagination.sort_order,
            max_limit=ads_settings.ads_max_page_size,
        )
    except ValueError as e:
        raise ValidationException("pagination", str(e)) from e


def filter_criteria(owner_id: str, filters: Optional[BaseModel]) -> dict[str, Any]:
    """Filtros de igualdade exata, sempre restritos ao dono."""
    criteria: dict[str, Any] = {"owner_id": owner_id}
    if filters is not None:
        criteria.update(filters.model_dump(mode="json", exclude_none=True))
    return criteria


def apply_patch(entity: Any, patch: BaseModel, renames: Optional[dict[str, str]] = None) -> None:
    """Copia para a entidade apenas os campos enviados no patch."""
    renames = renames or {}
    for field in patch.model_fields_set:
        value = getattr(patch, field)
        if isinstance(value, Enum):
            value = value.value
        elif field.endswith("_time"):
            value = parse_facebook_datetime(value)
        elif isinstance(value, list):
            value = [v.model_dump(mode="json") if isinstance(v, BaseModel) else v for v in value]
        setattr(entity, renames.get(field, field), value)
