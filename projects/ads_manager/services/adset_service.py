"""
Serviço de ad sets.

O ad set referencia a campanha local; o ID remoto da campanha é resolvido a
partir dela. A conta de anúncios vem sempre do perfil do dono.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from shared.core.exceptions import AdsManagerException, ValidationException
from shared.core.logging import get_logger
from shared.domain.interfaces.repository import Repository
from projects.ads_manager.client.base import FacebookAPIError
from projects.ads_manager.models import AdSet, Campaign
from projects.ads_manager.schemas.adsets import (
    AdSetSyncResult,
    CreateAdSetRequest,
    UpdateAdSetRequest,
)
from projects.ads_manager.schemas.base import EntityStatus
from projects.ads_manager.schemas.insights import DateRange
from projects.ads_manager.services.base import (
    ClientFactory,
    RemoteEntityService,
    apply_patch,
    get_owned,
)
from projects.ads_manager.services.campaign_service import (
    map_remote_bid_strategy,
    map_remote_status,
)
from projects.ads_manager.services.credential_cache import CredentialCache
from projects.ads_manager.services.owner_accounts import OwnerAccountResolver
from projects.ads_manager.utils.date_helpers import parse_facebook_datetime
from projects.ads_manager.utils.metrics import summarize_insights
from projects.ads_manager.utils.money import from_minor_units
from projects.ads_manager.utils.validators import validate_adset_create, validate_adset_update

logger = get_logger(__name__)

ADSET_REFRESH_FIELDS = ["id", "status", "bid_amount", "daily_budget", "lifetime_budget"]


class AdSetService(RemoteEntityService):
    """CRUD de ad sets com espelho local."""

    def __init__(
        self,
        adsets: Repository[AdSet, str],
        campaigns: Repository[Campaign, str],
        accounts: OwnerAccountResolver,
        credentials: CredentialCache,
        client_factory: Optional[ClientFactory] = None,
    ):
        super().__init__(credentials, client_factory)
        self.adsets = adsets
        self.campaigns = campaigns
        self.accounts = accounts

    async def _get(self, owner_id: str, adset_id: str) -> AdSet:
        return await get_owned(self.adsets, "ad set", owner_id, adset_id)

    async def _parent_campaign(self, owner_id: str, campaign_id: Optional[str]) -> Optional[Campaign]:
        """Campanha pai do dono; sem campaign_id a validação de campos obrigatórios falha depois."""
        if not campaign_id:
            return None
        return await get_owned(self.campaigns, "campanha", owner_id, campaign_id)

    @staticmethod
    def _remote_create_request(adset: AdSet) -> CreateAdSetRequest:
        return CreateAdSetRequest(
            campaign_id=adset.campaign_id,
            name=adset.name,
            optimization_goal=adset.optimization_goal,
            billing_event=adset.billing_event,
            bid_strategy=adset.bid_strategy,
            bid_amount=adset.bid_amount,
            daily_budget=adset.daily_budget,
            lifetime_budget=adset.lifetime_budget,
            status=adset.status,
            targeting=adset.targeting,
            promoted_object=adset.promoted_object,
            start_time=adset.start_time,
            end_time=adset.end_time,
        )

    # =========================================================================
    # Escrita
    # =========================================================================

    async def create(self, owner_id: str, request: CreateAdSetRequest) -> AdSet:
        campaign = await self._parent_campaign(owner_id, request.campaign_id)
        parent_has_budget = None
        if campaign is not None:
            parent_has_budget = (
                campaign.daily_budget is not None or campaign.lifetime_budget is not None
            )

        strategy, bid_amount = validate_adset_create(request, parent_has_budget)
        account_id = await self.accounts.get_ad_account_id(owner_id)

        remote_campaign_id = campaign.remote_campaign_id if campaign is not None else None
        is_active = request.status == EntityStatus.ACTIVE
        token = None
        if is_active and remote_campaign_id:
            token = await self.credentials.ensure(owner_id)

        now = datetime.utcnow()
        adset = AdSet(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            campaign_id=request.campaign_id,
            name=request.name,
            optimization_goal=request.optimization_goal,
            billing_event=request.billing_event,
            bid_strategy=strategy.value,
            bid_amount=bid_amount,
            daily_budget=request.daily_budget,
            lifetime_budget=request.lifetime_budget,
            status=request.status.value,
            targeting=request.targeting,
            promoted_object=request.promoted_object,
            remote_ad_account_id=account_id,
            remote_campaign_id=remote_campaign_id,
            remote_adset_id=None,
            start_time=parse_facebook_datetime(request.start_time),
            end_time=parse_facebook_datetime(request.end_time),
            created_at=now,
            updated_at=now,
        )
        adset = await self.adsets.add(adset)
        logger.info("Ad set criado localmente", adset_id=adset.id, campaign_id=adset.campaign_id)

        if not is_active:
            return adset

        if not remote_campaign_id:
            logger.warning(
                "Campanha sem ID remoto; ad set mantido como PAUSED",
                adset_id=adset.id,
                campaign_id=adset.campaign_id,
            )
            adset.status = EntityStatus.PAUSED.value
            return await self.adsets.update(adset)

        try:
            async with self.client_factory(token) as remote:
                response = await remote.adsets.create_adset(
                    account_id, self._remote_create_request(adset), remote_campaign_id
                )
            if not response.get("id"):
                raise FacebookAPIError("Falha ao criar ad set no Facebook: resposta sem ID")
            adset.remote_adset_id = str(response["id"])
            logger.info(
                "Ad set criado no Facebook",
                adset_id=adset.id,
                remote_adset_id=adset.remote_adset_id,
            )
        except AdsManagerException as e:
            logger.error(
                "Falha ao criar ad set no Facebook; mantido localmente como PAUSED",
                adset_id=adset.id,
                error=e.message,
            )
            adset.status = EntityStatus.PAUSED.value

        adset.updated_at = datetime.utcnow()
        return await self.adsets.update(adset)

    async def update(self, owner_id: str, adset_id: str, patch: UpdateAdSetRequest) -> AdSet:
        adset = await self._get(owner_id, adset_id)
        strategy, bid_amount = validate_adset_update(patch, adset)

        if adset.remote_adset_id:
            remote = await self._client(owner_id)
            try:
                async with remote:
                    await remote.adsets.update_adset(
                        adset.remote_adset_id, patch, bid_strategy=strategy
                    )
            except AdsManagerException as e:
                logger.warning(
                    "Falha ao atualizar ad set no Facebook; alteração local mantida",
                    adset_id=adset.id,
                    error=e.message,
                )

        apply_patch(adset, patch)
        adset.bid_strategy = strategy.value
        adset.bid_amount = bid_amount
        adset.updated_at = datetime.utcnow()
        return await self.adsets.update(adset)

    async def _set_status(self, owner_id: str, adset_id: str, status: EntityStatus) -> AdSet:
        adset = await self._get(owner_id, adset_id)

        if adset.remote_adset_id:
            remote = await self._client(owner_id)
            try:
                async with remote:
                    await remote.adsets.set_status(adset.remote_adset_id, status)
            except AdsManagerException as e:
                logger.warning(
                    "Falha ao alterar status do ad set no Facebook",
                    adset_id=adset.id,
                    status=status.value,
                    error=e.message,
                )

        adset.status = status.value
        adset.updated_at = datetime.utcnow()
        return await self.adsets.update(adset)

    async def pause(self, owner_id: str, adset_id: str) -> AdSet:
        return await self._set_status(owner_id, adset_id, EntityStatus.PAUSED)

    async def activate(self, owner_id: str, adset_id: str) -> AdSet:
        return await self._set_status(owner_id, adset_id, EntityStatus.ACTIVE)

    async def delete(self, owner_id: str, adset_id: str) -> bool:
        adset = await self._get(owner_id, adset_id)

        if adset.remote_adset_id:
            remote = await self._client(owner_id)
            try:
                async with remote:
                    await remote.adsets.delete_adset(adset.remote_adset_id)
            except AdsManagerException as e:
                logger.warning(
                    "Falha ao remover ad set no Facebook",
                    adset_id=adset.id,
                    error=e.message,
                )

        deleted = await self.adsets.delete(adset.id)
        logger.info("Ad set removido localmente", adset_id=adset.id)
        return deleted

    async def duplicate(self, owner_id: str, adset_id: str) -> AdSet:
        original = await self._get(owner_id, adset_id)
        request = self._remote_create_request(original).model_copy(
            update={"name": f"{original.name} (Copy)", "status": EntityStatus.PAUSED}
        )
        return await self.create(owner_id, request)

    # =========================================================================
    # Leitura
    # =========================================================================

    async def get_by_id(self, owner_id: str, adset_id: str) -> AdSet:
        adset = await self._get(owner_id, adset_id)
        if not adset.remote_adset_id:
            return adset

        try:
            async with await self._client(owner_id) as remote:
                data = await remote.adsets.get_adset(adset.remote_adset_id, ADSET_REFRESH_FIELDS)
        except AdsManagerException as e:
            logger.warning(
                "Falha ao sincronizar ad set com o Facebook; usando dados locais",
                adset_id=adset.id,
                error=e.message,
            )
            return adset

        if data.get("status"):
            adset.status = map_remote_status(data["status"]).value
        if data.get("bid_amount") is not None:
            adset.bid_amount = from_minor_units(data["bid_amount"])
        return await self.adsets.update(adset)

    async def list_by_campaign(self, owner_id: str, campaign_id: str) -> list[AdSet]:
        return list(
            await self.adsets.find(
                {"owner_id": owner_id, "campaign_id": campaign_id},
                sort_by="created_at",
                descending=True,
            )
        )

    async def insights(
        self,
        owner_id: str,
        adset_id: str,
        date_range: Optional[DateRange] = None,
    ) -> dict[str, Any]:
        """Linhas de insights e resumo; vazio/zerado em caso de falha remota."""
        adset = await self._get(owner_id, adset_id)
        rows: list[dict[str, Any]] = []

        if adset.remote_adset_id:
            try:
                async with await self._client(owner_id) as remote:
                    rows = await remote.adsets.get_adset_insights(adset.remote_adset_id, date_range)
            except AdsManagerException as e:
                logger.warning(
                    "Falha ao buscar insights do ad set",
                    adset_id=adset.id,
                    error=e.message,
                )

        return {"data": rows, "summary": summarize_insights(rows)}

    # =========================================================================
    # Sincronização remoto → local
    # =========================================================================

    async def sync_with_remote(self, owner_id: str, campaign_id: str) -> AdSetSyncResult:
        campaign = await get_owned(self.campaigns, "campanha", owner_id, campaign_id)
        if not campaign.remote_campaign_id:
            raise ValidationException("campaign_id", "campanha ainda não existe no Facebook")

        account_id = await self.accounts.get_ad_account_id(owner_id)
        result = AdSetSyncResult()

        try:
            async with await self._client(owner_id) as remote:
                remote_adsets = await remote.adsets.get_adsets_by_campaign(campaign.remote_campaign_id)
        except FacebookAPIError as e:
            logger.error(
                "Falha ao buscar ad sets do Facebook",
                campaign_id=campaign.id,
                error=e.message,
            )
            result.errors.append(e.message)
            return result

        for item in remote_adsets:
            remote_id = str(item.get("id") or "")
            try:
                if not remote_id:
                    raise ValidationException("id", "ad set remoto sem ID")
                existing = await self.adsets.find_one(
                    {"owner_id": owner_id, "remote_adset_id": remote_id}
                )
                if existing is None:
                    await self.adsets.add(self._from_remote(owner_id, account_id, campaign, item))
                    result.created += 1
                else:
                    self._merge_remote(existing, item)
                    await self.adsets.update(existing)
                    result.updated += 1
                result.synced += 1
            except AdsManagerException as e:
                logger.warning("Falha ao sincronizar ad set", remote_adset_id=remote_id, error=e.message)
                result.errors.append(f"{remote_id or '?'}: {e.message}")

        logger.info(
            "Sincronização de ad sets concluída",
            campaign_id=campaign.id,
            synced=result.synced,
            created=result.created,
            updated=result.updated,
        )
        return result

    def _merge_remote(self, adset: AdSet, item: dict[str, Any]) -> None:
        adset.name = item.get("name") or adset.name
        adset.status = map_remote_status(item.get("status")).value
        adset.optimization_goal = item.get("optimization_goal") or adset.optimization_goal
        adset.billing_event = item.get("billing_event") or adset.billing_event
        adset.bid_strategy = map_remote_bid_strategy(item.get("bid_strategy")).value
        adset.bid_amount = from_minor_units(item.get("bid_amount"))
        adset.daily_budget = from_minor_units(item.get("daily_budget"))
        adset.lifetime_budget = from_minor_units(item.get("lifetime_budget"))
        if item.get("targeting") is not None:
            adset.targeting = item["targeting"]
        if item.get("promoted_object") is not None:
            adset.promoted_object = item["promoted_object"]
        adset.start_time = parse_facebook_datetime(item.get("start_time"))
        adset.end_time = parse_facebook_datetime(item.get("end_time"))
        adset.updated_at = datetime.utcnow()

    def _from_remote(
        self,
        owner_id: str,
        account_id: str,
        campaign: Campaign,
        item: dict[str, Any],
    ) -> AdSet:
        adset = AdSet(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            campaign_id=campaign.id,
            name=item.get("name") or "",
            optimization_goal=item.get("optimization_goal") or "",
            billing_event=item.get("billing_event") or "",
            remote_ad_account_id=account_id,
            remote_campaign_id=campaign.remote_campaign_id,
            remote_adset_id=str(item["id"]),
            targeting=None,
            promoted_object=None,
            created_at=parse_facebook_datetime(item.get("created_time")) or datetime.utcnow(),
        )
        self._merge_remote(adset, item)
        return adset
