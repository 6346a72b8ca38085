"""
Serviço de campanhas.

Fluxo de criação: validação → conta de anúncios → persistência local →
criação remota (somente se ACTIVE). Falha remota na criação rebaixa a
campanha local para PAUSED. Atualização e exclusão remotas são best-effort.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from shared.core.exceptions import AdsManagerException, ValidationException
from shared.core.logging import get_logger
from shared.domain.interfaces.repository import Repository
from shared.domain.value_objects import PageResponse
from projects.ads_manager.client.base import FacebookAPIError
from projects.ads_manager.models import Campaign
from projects.ads_manager.schemas.base import BidStrategy, CampaignObjective, EntityStatus
from projects.ads_manager.schemas.campaigns import (
    BulkCampaignAction,
    CampaignFilters,
    CampaignInsights,
    CampaignSyncResult,
    CreateCampaignRequest,
    UpdateCampaignRequest,
)
from projects.ads_manager.schemas.common import BulkOperationResult, PaginationParams
from projects.ads_manager.schemas.insights import DateRange
from projects.ads_manager.services.base import (
    ClientFactory,
    RemoteEntityService,
    apply_patch,
    build_page_request,
    filter_criteria,
    get_owned,
)
from projects.ads_manager.services.bulk import BulkOperationRunner
from projects.ads_manager.services.credential_cache import CredentialCache
from projects.ads_manager.services.owner_accounts import OwnerAccountResolver
from projects.ads_manager.utils.date_helpers import parse_facebook_datetime
from projects.ads_manager.utils.metrics import (
    CAMPAIGN_METRIC_FIELDS,
    parse_insight_metrics,
    zero_metrics,
)
from projects.ads_manager.utils.money import from_minor_units
from projects.ads_manager.utils.validators import (
    validate_campaign_create,
    validate_campaign_update,
)

logger = get_logger(__name__)

CAMPAIGN_REFRESH_FIELDS = ["id", "status", "bid_amount"]

# Objetivos legados da Graph API → objetivos ODAX
LEGACY_OBJECTIVES = {
    "BRAND_AWARENESS": CampaignObjective.OUTCOME_AWARENESS,
    "REACH": CampaignObjective.OUTCOME_AWARENESS,
    "TRAFFIC": CampaignObjective.OUTCOME_TRAFFIC,
    "LINK_CLICKS": CampaignObjective.OUTCOME_TRAFFIC,
    "ENGAGEMENT": CampaignObjective.OUTCOME_ENGAGEMENT,
    "POST_ENGAGEMENT": CampaignObjective.OUTCOME_ENGAGEMENT,
    "PAGE_LIKES": CampaignObjective.OUTCOME_ENGAGEMENT,
    "EVENT_RESPONSES": CampaignObjective.OUTCOME_ENGAGEMENT,
    "MESSAGES": CampaignObjective.OUTCOME_ENGAGEMENT,
    "VIDEO_VIEWS": CampaignObjective.OUTCOME_ENGAGEMENT,
    "LEAD_GENERATION": CampaignObjective.OUTCOME_LEADS,
    "APP_INSTALLS": CampaignObjective.OUTCOME_APP_PROMOTION,
    "CONVERSIONS": CampaignObjective.OUTCOME_SALES,
    "CATALOG_SALES": CampaignObjective.OUTCOME_SALES,
    "PRODUCT_CATALOG_SALES": CampaignObjective.OUTCOME_SALES,
    "STORE_TRAFFIC": CampaignObjective.OUTCOME_SALES,
}

BULK_STATUS_ACTIONS = {
    "pause": EntityStatus.PAUSED,
    "activate": EntityStatus.ACTIVE,
    "archive": EntityStatus.ARCHIVED,
}


def map_remote_status(status: Optional[str]) -> EntityStatus:
    """Status desconhecidos viram PAUSED."""
    try:
        return EntityStatus((status or "").upper())
    except ValueError:
        return EntityStatus.PAUSED


def map_remote_objective(objective: Optional[str]) -> CampaignObjective:
    raw = (objective or "").upper()
    try:
        return CampaignObjective(raw)
    except ValueError:
        return LEGACY_OBJECTIVES.get(raw, CampaignObjective.OUTCOME_TRAFFIC)


def map_remote_bid_strategy(strategy: Optional[str]) -> BidStrategy:
    try:
        return BidStrategy(strategy)
    except ValueError:
        return BidStrategy.LOWEST_COST_WITHOUT_CAP


class CampaignService(RemoteEntityService):
    """CRUD de campanhas com espelho local."""

    def __init__(
        self,
        campaigns: Repository[Campaign, str],
        accounts: OwnerAccountResolver,
        credentials: CredentialCache,
        client_factory: Optional[ClientFactory] = None,
    ):
        super().__init__(credentials, client_factory)
        self.campaigns = campaigns
        self.accounts = accounts

    async def _get(self, owner_id: str, campaign_id: str) -> Campaign:
        return await get_owned(self.campaigns, "campanha", owner_id, campaign_id)

    @staticmethod
    def _remote_create_request(campaign: Campaign) -> CreateCampaignRequest:
        return CreateCampaignRequest(
            name=campaign.name,
            objective=campaign.objective,
            status=campaign.status,
            daily_budget=campaign.daily_budget,
            lifetime_budget=campaign.lifetime_budget,
            bid_strategy=campaign.bid_strategy,
            bid_amount=campaign.bid_amount,
            start_time=campaign.start_time,
            end_time=campaign.end_time,
            targeting_spec=campaign.targeting_spec,
            special_ad_categories=list(campaign.special_ad_categories or []),
        )

    # =========================================================================
    # Escrita
    # =========================================================================

    async def create(self, owner_id: str, request: CreateCampaignRequest) -> Campaign:
        strategy, bid_amount = validate_campaign_create(request)
        account_id = await self.accounts.resolve(owner_id, request.remote_account_id)

        is_active = request.status == EntityStatus.ACTIVE
        token = await self.credentials.ensure(owner_id) if is_active else None

        now = datetime.utcnow()
        campaign = Campaign(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=request.name,
            objective=request.objective.value,
            status=request.status.value,
            daily_budget=request.daily_budget,
            lifetime_budget=request.lifetime_budget,
            bid_strategy=strategy.value,
            bid_amount=bid_amount,
            start_time=parse_facebook_datetime(request.start_time),
            end_time=parse_facebook_datetime(request.end_time),
            targeting_spec=request.targeting_spec,
            special_ad_categories=list(request.special_ad_categories),
            remote_account_id=account_id,
            remote_campaign_id=None,
            created_at=now,
            updated_at=now,
            **zero_metrics(CAMPAIGN_METRIC_FIELDS),
        )
        campaign = await self.campaigns.add(campaign)
        logger.info(
            "Campanha criada localmente",
            campaign_id=campaign.id,
            status=campaign.status,
            account_id=account_id,
        )

        if not is_active:
            return campaign

        try:
            async with self.client_factory(token) as remote:
                response = await remote.campaigns.create_campaign(
                    account_id, self._remote_create_request(campaign)
                )
            if not response.get("id"):
                raise FacebookAPIError("Falha ao criar campanha no Facebook: resposta sem ID")
            campaign.remote_campaign_id = str(response["id"])
            logger.info(
                "Campanha criada no Facebook",
                campaign_id=campaign.id,
                remote_campaign_id=campaign.remote_campaign_id,
            )
        except AdsManagerException as e:
            logger.error(
                "Falha ao criar campanha no Facebook; mantida localmente como PAUSED",
                campaign_id=campaign.id,
                error=e.message,
            )
            campaign.status = EntityStatus.PAUSED.value

        campaign.updated_at = datetime.utcnow()
        return await self.campaigns.update(campaign)

    async def update(
        self, owner_id: str, campaign_id: str, patch: UpdateCampaignRequest
    ) -> Campaign:
        campaign = await self._get(owner_id, campaign_id)
        strategy, bid_amount = validate_campaign_update(patch, campaign)

        if campaign.remote_campaign_id:
            remote = await self._client(owner_id)
            try:
                async with remote:
                    await remote.campaigns.update_campaign(
                        campaign.remote_campaign_id, patch, bid_strategy=strategy
                    )
            except AdsManagerException as e:
                logger.warning(
                    "Falha ao atualizar campanha no Facebook; alteração local mantida",
                    campaign_id=campaign.id,
                    error=e.message,
                )

        apply_patch(campaign, patch)
        campaign.bid_strategy = strategy.value
        campaign.bid_amount = bid_amount
        campaign.updated_at = datetime.utcnow()
        return await self.campaigns.update(campaign)

    async def delete(self, owner_id: str, campaign_id: str) -> Campaign:
        campaign = await self._get(owner_id, campaign_id)

        if campaign.remote_campaign_id:
            remote = await self._client(owner_id)
            try:
                async with remote:
                    await remote.campaigns.delete_campaign(campaign.remote_campaign_id)
            except AdsManagerException as e:
                logger.warning(
                    "Falha ao remover campanha no Facebook",
                    campaign_id=campaign.id,
                    error=e.message,
                )

        campaign.status = EntityStatus.DELETED.value
        campaign.updated_at = datetime.utcnow()
        logger.info("Campanha marcada como DELETED", campaign_id=campaign.id)
        return await self.campaigns.update(campaign)

    async def duplicate(self, owner_id: str, campaign_id: str) -> Campaign:
        original = await self._get(owner_id, campaign_id)
        request = self._remote_create_request(original).model_copy(
            update={
                "name": f"{original.name} (Copy)",
                "status": EntityStatus.PAUSED,
                "remote_account_id": original.remote_account_id,
            }
        )
        return await self.create(owner_id, request)

    async def bulk(
        self, owner_id: str, campaign_ids: list[str], operation: BulkCampaignAction
    ) -> BulkOperationResult:
        if operation == "delete":
            async def run_item(campaign_id: str) -> dict[str, Any]:
                campaign = await self.delete(owner_id, campaign_id)
                return {"id": campaign.id, "status": campaign.status}
        elif operation in BULK_STATUS_ACTIONS:
            patch = UpdateCampaignRequest(status=BULK_STATUS_ACTIONS[operation])

            async def run_item(campaign_id: str) -> dict[str, Any]:
                campaign = await self.update(owner_id, campaign_id, patch)
                return {"id": campaign.id, "status": campaign.status}
        else:
            raise ValidationException("operation", f"operação em lote inválida: {operation}")

        runner = BulkOperationRunner(f"campaign.{operation}")
        return await runner.run(campaign_ids, run_item)

    # =========================================================================
    # Leitura
    # =========================================================================

    async def get_by_id(self, owner_id: str, campaign_id: str) -> Campaign:
        campaign = await self._get(owner_id, campaign_id)
        if not campaign.remote_campaign_id:
            return campaign

        try:
            async with await self._client(owner_id) as remote:
                data = await remote.campaigns.get_campaign(
                    campaign.remote_campaign_id, CAMPAIGN_REFRESH_FIELDS
                )
        except AdsManagerException as e:
            logger.warning(
                "Falha ao sincronizar campanha com o Facebook; usando dados locais",
                campaign_id=campaign.id,
                error=e.message,
            )
            return campaign

        if data.get("status"):
            campaign.status = map_remote_status(data["status"]).value
        if data.get("bid_amount") is not None:
            campaign.bid_amount = from_minor_units(data["bid_amount"])
        return await self.campaigns.update(campaign)

    async def list(
        self,
        owner_id: str,
        filters: Optional[CampaignFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> PageResponse[Campaign]:
        page = build_page_request(pagination)
        criteria = filter_criteria(owner_id, filters)
        items = await self.campaigns.find(
            criteria,
            sort_by=page.sort_by,
            descending=page.descending,
            offset=page.offset,
            limit=page.limit,
        )
        total = await self.campaigns.count(criteria)
        return PageResponse(items=items, total=total, page=page.page, limit=page.limit)

    async def insights(
        self,
        owner_id: str,
        campaign_id: str,
        date_range: Optional[DateRange] = None,
    ) -> CampaignInsights:
        """Métricas remotas (atualizando o cache local) ou zeradas em caso de falha."""
        campaign = await self._get(owner_id, campaign_id)
        if not campaign.remote_campaign_id:
            return CampaignInsights.model_validate(
                {field: getattr(campaign, field) for field in CAMPAIGN_METRIC_FIELDS}
            )

        try:
            async with await self._client(owner_id) as remote:
                row = await remote.campaigns.get_campaign_insights(
                    campaign.remote_campaign_id, date_range
                )
        except AdsManagerException as e:
            logger.warning(
                "Falha ao buscar insights da campanha; retornando métricas zeradas",
                campaign_id=campaign.id,
                error=e.message,
            )
            return CampaignInsights(**zero_metrics(CAMPAIGN_METRIC_FIELDS))

        metrics = parse_insight_metrics(row, CAMPAIGN_METRIC_FIELDS)
        for field, value in metrics.items():
            setattr(campaign, field, value)
        campaign.updated_at = datetime.utcnow()
        await self.campaigns.update(campaign)
        return CampaignInsights(**metrics)

    # =========================================================================
    # Sincronização remoto → local
    # =========================================================================

    async def sync_with_remote(
        self, owner_id: str, remote_account_id: Optional[str] = None
    ) -> CampaignSyncResult:
        account_id = await self.accounts.resolve(owner_id, remote_account_id)
        account_id = account_id.removeprefix("act_")
        result = CampaignSyncResult()

        try:
            async with await self._client(owner_id) as remote:
                remote_campaigns = await remote.campaigns.get_campaigns(account_id)
        except FacebookAPIError as e:
            logger.error("Falha ao buscar campanhas do Facebook", account_id=account_id, error=e.message)
            result.errors.append(e.message)
            return result

        for item in remote_campaigns:
            remote_id = str(item.get("id") or "")
            try:
                if not remote_id:
                    raise ValidationException("id", "campanha remota sem ID")
                existing = await self.campaigns.find_one(
                    {"owner_id": owner_id, "remote_campaign_id": remote_id}
                )
                if existing is None:
                    await self.campaigns.add(self._from_remote(owner_id, account_id, item))
                    result.created += 1
                else:
                    self._merge_remote(existing, item)
                    await self.campaigns.update(existing)
                    result.updated += 1
                result.synced += 1
            except AdsManagerException as e:
                logger.warning("Falha ao sincronizar campanha", remote_campaign_id=remote_id, error=e.message)
                result.errors.append(f"{remote_id or '?'}: {e.message}")

        logger.info(
            "Sincronização de campanhas concluída",
            account_id=account_id,
            synced=result.synced,
            created=result.created,
            updated=result.updated,
            errors=len(result.errors),
        )
        return result

    def _merge_remote(self, campaign: Campaign, item: dict[str, Any]) -> None:
        campaign.name = item.get("name") or campaign.name
        campaign.objective = map_remote_objective(item.get("objective")).value
        campaign.status = map_remote_status(item.get("status")).value
        campaign.daily_budget = from_minor_units(item.get("daily_budget"))
        campaign.lifetime_budget = from_minor_units(item.get("lifetime_budget"))
        campaign.bid_strategy = map_remote_bid_strategy(item.get("bid_strategy")).value
        campaign.bid_amount = from_minor_units(item.get("bid_amount"))
        campaign.start_time = parse_facebook_datetime(item.get("start_time"))
        campaign.end_time = parse_facebook_datetime(item.get("stop_time"))
        if item.get("special_ad_categories") is not None:
            campaign.special_ad_categories = list(item["special_ad_categories"])
        campaign.updated_at = datetime.utcnow()

    def _from_remote(self, owner_id: str, account_id: str, item: dict[str, Any]) -> Campaign:
        now = datetime.utcnow()
        campaign = Campaign(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=item.get("name") or "",
            remote_account_id=account_id,
            remote_campaign_id=str(item["id"]),
            targeting_spec=None,
            special_ad_categories=[],
            created_at=parse_facebook_datetime(item.get("created_time")) or now,
            **zero_metrics(CAMPAIGN_METRIC_FIELDS),
        )
        self._merge_remote(campaign, item)
        return campaign
