"""
Superfície de comandos do Ads Manager.

Cada comando devolve um ``OperationResult``: exceções do domínio viram
``success=False`` com ``error_code``; qualquer outra exceção é logada e
reportada como ``internal_error``.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from shared.core.exceptions import AdsManagerException
from shared.core.logging import bind_owner_context, clear_log_context, get_logger, setup_logging
from shared.db.session import session_scope
from shared.domain.value_objects import PageResponse
from shared.infrastructure.config.settings import settings
from projects.ads_manager.repositories import (
    AdRepository,
    AdSetRepository,
    CampaignRepository,
    OwnerProfileRepository,
)
from projects.ads_manager.schemas.ads import AdFilters, AdResponse, CreateAdRequest, UpdateAdRequest
from projects.ads_manager.schemas.adsets import AdSetResponse, CreateAdSetRequest, UpdateAdSetRequest
from projects.ads_manager.schemas.campaigns import (
    BulkCampaignOperation,
    CampaignFilters,
    CampaignResponse,
    CreateCampaignRequest,
    UpdateCampaignRequest,
)
from projects.ads_manager.schemas.common import (
    OperationResult,
    PaginatedResponse,
    PaginationInfo,
    PaginationParams,
)
from projects.ads_manager.schemas.creatives import (
    CreateCreativeRequest,
    CreativeListRequest,
    CreativePerformanceRequest,
    CreativePreviewRequest,
    CreativeSearchRequest,
    CreativeUpdateItem,
    CreativeWithInsightsRequest,
    UpdateCreativeRequest,
)
from projects.ads_manager.schemas.insights import DateRange, InsightsRequest
from projects.ads_manager.services.ad_service import AdService
from projects.ads_manager.services.adset_service import AdSetService
from projects.ads_manager.services.base import ClientFactory
from projects.ads_manager.services.campaign_service import CampaignService
from projects.ads_manager.services.creative_service import CreativeService
from projects.ads_manager.services.credential_cache import (
    CredentialCache,
    CredentialStore,
    RedisCredentialStore,
)
from projects.ads_manager.services.owner_accounts import OwnerAccountResolver

logger = get_logger(__name__)

Serializer = Callable[[Any], Any]


def dump(value: Any) -> Any:
    """Serializa modelos Pydantic em camelCase, tipos JSON."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    return value


def as_response(schema: type[BaseModel]) -> Serializer:
    def serialize(entity: Any) -> dict[str, Any]:
        return dump(schema.model_validate(entity))
    return serialize


def as_list(schema: type[BaseModel]) -> Serializer:
    def serialize(entities: Any) -> list[dict[str, Any]]:
        return [dump(schema.model_validate(e)) for e in entities]
    return serialize


def as_page(schema: type[BaseModel]) -> Serializer:
    def serialize(page: PageResponse) -> dict[str, Any]:
        return dump(
            PaginatedResponse[schema](
                data=[schema.model_validate(item) for item in page.items],
                pagination=PaginationInfo(
                    page=page.page,
                    limit=page.limit,
                    total=page.total,
                    total_pages=page.total_pages,
                ),
            )
        )
    return serialize


_campaign = as_response(CampaignResponse)
_adset = as_response(AdSetResponse)
_ad = as_response(AdResponse)


class AdsManagerCommands:
    """Comandos de entrada, um por operação de serviço."""

    def __init__(
        self,
        campaigns: CampaignService,
        adsets: AdSetService,
        ads: AdService,
        creatives: CreativeService,
        accounts: OwnerAccountResolver,
        credentials: CredentialCache,
    ):
        self.campaigns = campaigns
        self.adsets = adsets
        self.ads = ads
        self.creatives = creatives
        self.accounts = accounts
        self.credentials = credentials

    @classmethod
    def from_session(
        cls,
        session: AsyncSession,
        credential_store: Optional[CredentialStore] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> "AdsManagerCommands":
        """Monta o grafo de serviços sobre uma sessão do banco."""
        credentials = CredentialCache(credential_store or RedisCredentialStore(url=settings.redis_url))
        accounts = OwnerAccountResolver(OwnerProfileRepository(session))
        campaign_repo = CampaignRepository(session)
        return cls(
            campaigns=CampaignService(campaign_repo, accounts, credentials, client_factory),
            adsets=AdSetService(
                AdSetRepository(session), campaign_repo, accounts, credentials, client_factory
            ),
            ads=AdService(AdRepository(session), accounts, credentials, client_factory),
            creatives=CreativeService(accounts, credentials, client_factory),
            accounts=accounts,
            credentials=credentials,
        )

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        credential_store: Optional[CredentialStore] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> AsyncIterator["AdsManagerCommands"]:
        """
        Abre uma sessão do banco e entrega os comandos ligados a ela.

        O commit acontece na saída do bloco; qualquer exceção faz rollback.
        """
        setup_logging(settings.log_level)
        async with session_scope() as session:
            yield cls.from_session(session, credential_store, client_factory)

    async def _run(
        self,
        owner_id: str,
        message: str,
        operation: Callable[[], Awaitable[Any]],
        serialize: Serializer = dump,
    ) -> OperationResult:
        bind_owner_context(owner_id)
        try:
            result = await operation()
            return OperationResult(success=True, message=message, data=serialize(result))
        except AdsManagerException as e:
            logger.warning("Comando falhou", command=message, error_code=e.error_code, error=e.message)
            return OperationResult(
                success=False,
                message=e.message,
                error=e.message,
                error_code=e.error_code,
            )
        except Exception as e:
            logger.exception("Erro inesperado no comando", command=message)
            return OperationResult(
                success=False,
                message="Erro interno ao executar a operação",
                error=str(e) or type(e).__name__,
                error_code="internal_error",
            )
        finally:
            clear_log_context()

    # =========================================================================
    # Credenciais e conta
    # =========================================================================

    async def store_credential(
        self, owner_id: str, token: str, ttl_seconds: Optional[int] = None
    ) -> OperationResult:
        async def operation() -> dict[str, Any]:
            await self.credentials.set(owner_id, token, ttl_seconds)
            return {"ttl": await self.credentials.ttl_remaining(owner_id)}
        return await self._run(owner_id, "Credencial armazenada", operation)

    async def remove_credential(self, owner_id: str) -> OperationResult:
        async def operation() -> dict[str, Any]:
            return {"removed": await self.credentials.remove(owner_id)}
        return await self._run(owner_id, "Credencial removida", operation)

    async def link_ad_account(self, owner_id: str, ad_account_id: str) -> OperationResult:
        async def operation() -> dict[str, Any]:
            profile = await self.accounts.link_account(owner_id, ad_account_id)
            return {"ownerId": profile.owner_id, "adAccountId": profile.ad_account_id}
        return await self._run(owner_id, "Conta de anúncios vinculada", operation)

    # =========================================================================
    # Campanhas
    # =========================================================================

    async def create_campaign(self, owner_id: str, request: CreateCampaignRequest) -> OperationResult:
        return await self._run(
            owner_id, "Campanha criada",
            lambda: self.campaigns.create(owner_id, request), _campaign,
        )

    async def update_campaign(
        self, owner_id: str, campaign_id: str, patch: UpdateCampaignRequest
    ) -> OperationResult:
        return await self._run(
            owner_id, "Campanha atualizada",
            lambda: self.campaigns.update(owner_id, campaign_id, patch), _campaign,
        )

    async def delete_campaign(self, owner_id: str, campaign_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Campanha removida",
            lambda: self.campaigns.delete(owner_id, campaign_id), _campaign,
        )

    async def duplicate_campaign(self, owner_id: str, campaign_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Campanha duplicada",
            lambda: self.campaigns.duplicate(owner_id, campaign_id), _campaign,
        )

    async def get_campaign(self, owner_id: str, campaign_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Campanha encontrada",
            lambda: self.campaigns.get_by_id(owner_id, campaign_id), _campaign,
        )

    async def list_campaigns(
        self,
        owner_id: str,
        filters: Optional[CampaignFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> OperationResult:
        return await self._run(
            owner_id, "Campanhas listadas",
            lambda: self.campaigns.list(owner_id, filters, pagination),
            as_page(CampaignResponse),
        )

    async def campaign_insights(
        self, owner_id: str, campaign_id: str, date_range: Optional[DateRange] = None
    ) -> OperationResult:
        return await self._run(
            owner_id, "Insights da campanha",
            lambda: self.campaigns.insights(owner_id, campaign_id, date_range),
        )

    async def bulk_campaigns(self, owner_id: str, request: BulkCampaignOperation) -> OperationResult:
        return await self._run(
            owner_id, f"Operação em lote '{request.operation}' concluída",
            lambda: self.campaigns.bulk(owner_id, request.campaign_ids, request.operation),
        )

    async def sync_campaigns(
        self, owner_id: str, remote_account_id: Optional[str] = None
    ) -> OperationResult:
        return await self._run(
            owner_id, "Campanhas sincronizadas",
            lambda: self.campaigns.sync_with_remote(owner_id, remote_account_id),
        )

    # =========================================================================
    # Ad sets
    # =========================================================================

    async def create_adset(self, owner_id: str, request: CreateAdSetRequest) -> OperationResult:
        return await self._run(
            owner_id, "Ad set criado",
            lambda: self.adsets.create(owner_id, request), _adset,
        )

    async def update_adset(
        self, owner_id: str, adset_id: str, patch: UpdateAdSetRequest
    ) -> OperationResult:
        return await self._run(
            owner_id, "Ad set atualizado",
            lambda: self.adsets.update(owner_id, adset_id, patch), _adset,
        )

    async def delete_adset(self, owner_id: str, adset_id: str) -> OperationResult:
        async def operation() -> dict[str, Any]:
            return {"id": adset_id, "deleted": await self.adsets.delete(owner_id, adset_id)}
        return await self._run(owner_id, "Ad set removido", operation)

    async def duplicate_adset(self, owner_id: str, adset_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Ad set duplicado",
            lambda: self.adsets.duplicate(owner_id, adset_id), _adset,
        )

    async def get_adset(self, owner_id: str, adset_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Ad set encontrado",
            lambda: self.adsets.get_by_id(owner_id, adset_id), _adset,
        )

    async def list_adsets(self, owner_id: str, campaign_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Ad sets listados",
            lambda: self.adsets.list_by_campaign(owner_id, campaign_id),
            as_list(AdSetResponse),
        )

    async def pause_adset(self, owner_id: str, adset_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Ad set pausado",
            lambda: self.adsets.pause(owner_id, adset_id), _adset,
        )

    async def activate_adset(self, owner_id: str, adset_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Ad set ativado",
            lambda: self.adsets.activate(owner_id, adset_id), _adset,
        )

    async def adset_insights(
        self, owner_id: str, adset_id: str, date_range: Optional[DateRange] = None
    ) -> OperationResult:
        return await self._run(
            owner_id, "Insights do ad set",
            lambda: self.adsets.insights(owner_id, adset_id, date_range),
        )

    async def sync_adsets(self, owner_id: str, campaign_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Ad sets sincronizados",
            lambda: self.adsets.sync_with_remote(owner_id, campaign_id),
        )

    # =========================================================================
    # Anúncios
    # =========================================================================

    async def create_ad(self, owner_id: str, request: CreateAdRequest) -> OperationResult:
        return await self._run(
            owner_id, "Anúncio criado",
            lambda: self.ads.create(owner_id, request), _ad,
        )

    async def update_ad(self, owner_id: str, ad_id: str, patch: UpdateAdRequest) -> OperationResult:
        return await self._run(
            owner_id, "Anúncio atualizado",
            lambda: self.ads.update(owner_id, ad_id, patch), _ad,
        )

    async def delete_ad(self, owner_id: str, ad_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Anúncio removido",
            lambda: self.ads.delete(owner_id, ad_id), _ad,
        )

    async def duplicate_ad(self, owner_id: str, ad_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Anúncio duplicado",
            lambda: self.ads.duplicate(owner_id, ad_id), _ad,
        )

    async def get_ad(self, owner_id: str, ad_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Anúncio encontrado",
            lambda: self.ads.get_by_id(owner_id, ad_id), _ad,
        )

    async def list_ads(
        self,
        owner_id: str,
        filters: Optional[AdFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> OperationResult:
        return await self._run(
            owner_id, "Anúncios listados",
            lambda: self.ads.list(owner_id, filters, pagination),
            as_page(AdResponse),
        )

    async def list_ads_by_adset(self, owner_id: str, adset_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Anúncios listados",
            lambda: self.ads.list_by_adset(owner_id, adset_id),
            as_list(AdResponse),
        )

    async def activate_ad(self, owner_id: str, ad_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Anúncio ativado",
            lambda: self.ads.activate(owner_id, ad_id), _ad,
        )

    async def pause_ad(self, owner_id: str, ad_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Anúncio pausado",
            lambda: self.ads.pause(owner_id, ad_id), _ad,
        )

    async def ad_insights(
        self, owner_id: str, ad_id: str, date_range: Optional[DateRange] = None
    ) -> OperationResult:
        return await self._run(
            owner_id, "Insights do anúncio",
            lambda: self.ads.insights(owner_id, ad_id, date_range),
        )

    async def ad_preview(
        self, owner_id: str, ad_id: str, ad_format: Optional[str] = None
    ) -> OperationResult:
        return await self._run(
            owner_id, "Preview do anúncio",
            lambda: self.ads.get_preview(owner_id, ad_id, ad_format),
        )

    # =========================================================================
    # Criativos
    # =========================================================================

    async def create_creative(self, owner_id: str, request: CreateCreativeRequest) -> OperationResult:
        return await self._run(
            owner_id, "Criativo criado",
            lambda: self.creatives.create(owner_id, request),
        )

    async def get_creative(self, owner_id: str, creative_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Criativo encontrado",
            lambda: self.creatives.get(owner_id, creative_id),
        )

    async def update_creative(
        self, owner_id: str, creative_id: str, patch: UpdateCreativeRequest
    ) -> OperationResult:
        return await self._run(
            owner_id, "Criativo atualizado",
            lambda: self.creatives.update(owner_id, creative_id, patch),
        )

    async def delete_creative(self, owner_id: str, creative_id: str) -> OperationResult:
        return await self._run(
            owner_id, "Criativo removido",
            lambda: self.creatives.delete(owner_id, creative_id),
        )

    async def list_creatives(
        self, owner_id: str, request: Optional[CreativeListRequest] = None
    ) -> OperationResult:
        return await self._run(
            owner_id, "Criativos listados",
            lambda: self.creatives.list(owner_id, request),
        )

    async def generate_creative_preview(
        self, owner_id: str, request: CreativePreviewRequest
    ) -> OperationResult:
        return await self._run(
            owner_id, "Preview gerado",
            lambda: self.creatives.generate_preview(owner_id, request),
        )

    async def creative_insights(
        self, owner_id: str, creative_id: str, request: Optional[InsightsRequest] = None
    ) -> OperationResult:
        return await self._run(
            owner_id, "Insights do criativo",
            lambda: self.creatives.insights(owner_id, creative_id, request),
        )

    async def creative_with_insights(
        self, owner_id: str, request: CreativeWithInsightsRequest
    ) -> OperationResult:
        return await self._run(
            owner_id, "Criativo com insights",
            lambda: self.creatives.get_with_insights(owner_id, request),
        )

    async def bulk_update_creatives(
        self, owner_id: str, items: list[CreativeUpdateItem]
    ) -> OperationResult:
        return await self._run(
            owner_id, "Atualização em lote de criativos concluída",
            lambda: self.creatives.bulk_update(owner_id, items),
        )

    async def bulk_delete_creatives(self, owner_id: str, creative_ids: list[str]) -> OperationResult:
        return await self._run(
            owner_id, "Remoção em lote de criativos concluída",
            lambda: self.creatives.bulk_delete(owner_id, creative_ids),
        )

    async def search_creatives(self, owner_id: str, request: CreativeSearchRequest) -> OperationResult:
        return await self._run(
            owner_id, "Busca de criativos concluída",
            lambda: self.creatives.search(owner_id, request),
        )

    async def creative_performance(
        self, owner_id: str, request: CreativePerformanceRequest
    ) -> OperationResult:
        return await self._run(
            owner_id, "Resumo de performance do criativo",
            lambda: self.creatives.performance_summary(owner_id, request),
        )
