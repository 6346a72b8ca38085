"""
Serviço de anúncios.

Ao contrário de campanhas, o anúncio nasce na Graph API: cria remoto, lê os
campos confirmados e só então persiste. Falhas remotas em criação e
atualização propagam.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from shared.core.exceptions import AdsManagerException
from shared.core.logging import get_logger
from shared.domain.interfaces.repository import Repository
from shared.domain.value_objects import PageResponse
from projects.ads_manager.client.ads import AD_REFRESH_FIELDS
from projects.ads_manager.client.base import FacebookAPIError
from projects.ads_manager.config import ads_settings
from projects.ads_manager.models import Ad
from projects.ads_manager.schemas.ads import AdFilters, CreateAdRequest, UpdateAdRequest
from projects.ads_manager.schemas.base import EntityStatus
from projects.ads_manager.schemas.common import PaginationParams
from projects.ads_manager.schemas.insights import DateRange
from projects.ads_manager.services.base import (
    ClientFactory,
    RemoteEntityService,
    apply_patch,
    build_page_request,
    filter_criteria,
    get_owned,
)
from projects.ads_manager.services.campaign_service import map_remote_status
from projects.ads_manager.services.credential_cache import CredentialCache
from projects.ads_manager.services.owner_accounts import OwnerAccountResolver
from projects.ads_manager.utils.date_helpers import parse_facebook_datetime
from projects.ads_manager.utils.metrics import AD_METRIC_FIELDS, parse_insight_metrics, zero_metrics
from projects.ads_manager.utils.money import from_minor_units
from projects.ads_manager.utils.validators import validate_ad_create

logger = get_logger(__name__)


def _creative_id(data: dict[str, Any], fallback: Optional[str]) -> Optional[str]:
    creative = data.get("creative")
    if isinstance(creative, dict) and creative.get("id"):
        return str(creative["id"])
    return fallback


def _ad_labels(data: dict[str, Any], request: CreateAdRequest) -> list[dict[str, Any]]:
    """Labels confirmados pelo Facebook; os do request só se a leitura não os trouxer."""
    labels = data.get("adlabels")
    if isinstance(labels, dict):
        labels = labels.get("data")
    if labels:
        return list(labels)
    return [label.model_dump(mode="json") for label in request.ad_labels or []]


class AdService(RemoteEntityService):
    """CRUD de anúncios (remoto primeiro)."""

    def __init__(
        self,
        ads: Repository[Ad, str],
        accounts: OwnerAccountResolver,
        credentials: CredentialCache,
        client_factory: Optional[ClientFactory] = None,
    ):
        super().__init__(credentials, client_factory)
        self.ads = ads
        self.accounts = accounts

    async def _get(self, owner_id: str, ad_id: str) -> Ad:
        return await get_owned(self.ads, "anúncio", owner_id, ad_id)

    # =========================================================================
    # Escrita
    # =========================================================================

    async def create(self, owner_id: str, request: CreateAdRequest) -> Ad:
        validate_ad_create(request)
        account_id = await self.accounts.get_ad_account_id(owner_id)

        async with await self._client(owner_id) as remote:
            response = await remote.ads.create_ad(account_id, request)
            remote_ad_id = response.get("id")
            if not remote_ad_id:
                raise FacebookAPIError("Falha ao criar anúncio no Facebook: resposta sem ID")
            remote_ad_id = str(remote_ad_id)
            data = await remote.ads.get_ad(remote_ad_id)

        now = datetime.utcnow()
        ad = Ad(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            remote_ad_id=remote_ad_id,
            name=data.get("name") or request.name,
            adset_id=str(data.get("adset_id") or request.adset_id),
            campaign_id=str(data["campaign_id"]) if data.get("campaign_id") else None,
            creative_id=_creative_id(data, request.creative_id),
            status=map_remote_status(data.get("status") or request.status.value).value,
            tracking_specs=request.tracking_specs,
            conversion_domain=request.conversion_domain,
            ad_labels=_ad_labels(data, request),
            issues=[],
            recommendations=[],
            ad_schedule_start_time=parse_facebook_datetime(request.ad_schedule_start_time),
            ad_schedule_end_time=parse_facebook_datetime(request.ad_schedule_end_time),
            created_time=parse_facebook_datetime(data.get("created_time")) or now,
            created_at=now,
            **zero_metrics(AD_METRIC_FIELDS),
        )
        self._apply_remote(ad, data)
        ad = await self.ads.add(ad)
        logger.info("Anúncio criado", ad_id=ad.id, remote_ad_id=remote_ad_id)
        return ad

    async def update(self, owner_id: str, ad_id: str, patch: UpdateAdRequest) -> Ad:
        ad = await self._get(owner_id, ad_id)

        async with await self._client(owner_id) as remote:
            await remote.ads.update_ad(ad.remote_ad_id, patch)

        apply_patch(ad, patch)
        ad.updated_time = datetime.utcnow()
        return await self.ads.update(ad)

    async def activate(self, owner_id: str, ad_id: str) -> Ad:
        return await self.update(owner_id, ad_id, UpdateAdRequest(status=EntityStatus.ACTIVE))

    async def pause(self, owner_id: str, ad_id: str) -> Ad:
        return await self.update(owner_id, ad_id, UpdateAdRequest(status=EntityStatus.PAUSED))

    async def delete(self, owner_id: str, ad_id: str) -> Ad:
        ad = await self._get(owner_id, ad_id)

        remote = await self._client(owner_id)
        try:
            async with remote:
                await remote.ads.delete_ad(ad.remote_ad_id)
        except AdsManagerException as e:
            logger.warning("Falha ao remover anúncio no Facebook", ad_id=ad.id, error=e.message)

        ad.status = EntityStatus.DELETED.value
        ad.updated_time = datetime.utcnow()
        logger.info("Anúncio marcado como DELETED", ad_id=ad.id)
        return await self.ads.update(ad)

    async def duplicate(self, owner_id: str, ad_id: str) -> Ad:
        original = await self._get(owner_id, ad_id)
        request = CreateAdRequest(
            name=f"{original.name} (Copy)",
            adset_id=original.adset_id,
            creative_id=original.creative_id,
            status=EntityStatus.PAUSED,
            tracking_specs=original.tracking_specs,
            conversion_domain=original.conversion_domain,
            ad_labels=original.ad_labels or None,
            ad_schedule_start_time=original.ad_schedule_start_time,
            ad_schedule_end_time=original.ad_schedule_end_time,
        )
        return await self.create(owner_id, request)

    # =========================================================================
    # Leitura
    # =========================================================================

    async def get_by_id(self, owner_id: str, ad_id: str) -> Ad:
        ad = await self._get(owner_id, ad_id)

        try:
            async with await self._client(owner_id) as remote:
                data = await remote.ads.get_ad(ad.remote_ad_id, AD_REFRESH_FIELDS)
        except AdsManagerException as e:
            logger.warning(
                "Falha ao sincronizar anúncio com o Facebook; usando dados locais",
                ad_id=ad.id,
                error=e.message,
            )
            return ad

        self._apply_remote(ad, data)
        return await self.ads.update(ad)

    async def list(
        self,
        owner_id: str,
        filters: Optional[AdFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> PageResponse[Ad]:
        page = build_page_request(pagination)
        criteria = filter_criteria(owner_id, filters)
        items = await self.ads.find(
            criteria,
            sort_by=page.sort_by,
            descending=page.descending,
            offset=page.offset,
            limit=page.limit,
        )
        total = await self.ads.count(criteria)
        return PageResponse(items=items, total=total, page=page.page, limit=page.limit)

    async def list_by_adset(self, owner_id: str, adset_id: str) -> list[Ad]:
        return list(
            await self.ads.find(
                {"owner_id": owner_id, "adset_id": adset_id},
                sort_by="created_at",
                descending=True,
            )
        )

    async def insights(
        self,
        owner_id: str,
        ad_id: str,
        date_range: Optional[DateRange] = None,
    ) -> dict[str, Any]:
        """Linhas de insights e métricas; métricas zeradas se a API falhar."""
        ad = await self._get(owner_id, ad_id)

        try:
            async with await self._client(owner_id) as remote:
                rows = await remote.ads.get_ad_insights(ad.remote_ad_id, date_range)
        except AdsManagerException as e:
            logger.warning("Falha ao buscar insights do anúncio", ad_id=ad.id, error=e.message)
            return {"data": [], "metrics": zero_metrics(AD_METRIC_FIELDS)}

        metrics = parse_insight_metrics(rows[0] if rows else {}, AD_METRIC_FIELDS)
        for field, value in metrics.items():
            setattr(ad, field, value)
        ad.updated_time = datetime.utcnow()
        await self.ads.update(ad)
        return {"data": rows, "metrics": metrics}

    async def get_preview(
        self,
        owner_id: str,
        ad_id: str,
        ad_format: Optional[str] = None,
    ) -> dict[str, Any]:
        ad = await self._get(owner_id, ad_id)
        async with await self._client(owner_id) as remote:
            return await remote.ads.get_ad_preview(
                ad.remote_ad_id, ad_format or ads_settings.ads_default_preview_format
            )

    def _apply_remote(self, ad: Ad, data: dict[str, Any]) -> None:
        """Copia os campos voláteis devolvidos pela Graph API."""
        if data.get("status"):
            ad.status = map_remote_status(data["status"]).value
        if data.get("effective_status"):
            ad.effective_status = data["effective_status"]
        if data.get("configured_status"):
            ad.configured_status = data["configured_status"]
        if data.get("bid_amount") is not None:
            ad.bid_amount = from_minor_units(data["bid_amount"])
        if data.get("issues_info") is not None:
            ad.issues = list(data["issues_info"])
        if data.get("recommendations") is not None:
            ad.recommendations = list(data["recommendations"])
        if data.get("ad_review_feedback") is not None:
            ad.review_feedback = data["ad_review_feedback"]
        if data.get("preview_shareable_link"):
            ad.preview_shareable_link = data["preview_shareable_link"]
        ad.updated_time = parse_facebook_datetime(data.get("updated_time")) or datetime.utcnow()
