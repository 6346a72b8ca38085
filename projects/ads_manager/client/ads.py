"""Cliente para anúncios da Facebook Graph API."""

from typing import Any, Optional

from shared.core.logging import get_logger
from projects.ads_manager.client.base import FacebookGraphClient, account_path
from projects.ads_manager.client.insights import AD_INSIGHT_FIELDS, InsightsClient
from projects.ads_manager.client.payloads import build_ad_create_payload, build_ad_update_payload
from projects.ads_manager.schemas.ads import CreateAdRequest, UpdateAdRequest
from projects.ads_manager.schemas.insights import DateRange

logger = get_logger(__name__)

# Campos confirmados após a criação
AD_FIELDS = [
    "id",
    "name",
    "adset_id",
    "campaign_id",
    "creative",
    "status",
    "effective_status",
    "configured_status",
    "bid_amount",
    "conversion_domain",
    "tracking_specs",
    "issues_info",
    "recommendations",
    "created_time",
    "updated_time",
    "ad_review_feedback",
    "ad_schedule_start_time",
    "ad_schedule_end_time",
    "adlabels",
    "preview_shareable_link",
]

# Campos voláteis usados no refresh de leitura
AD_REFRESH_FIELDS = [
    "id",
    "status",
    "effective_status",
    "configured_status",
    "bid_amount",
    "issues_info",
    "recommendations",
    "updated_time",
    "preview_shareable_link",
]


class AdsClient:
    """Client para operações com anúncios."""

    def __init__(self, graph_client: FacebookGraphClient):
        self.client = graph_client
        self.insights = InsightsClient(graph_client)

    async def create_ad(self, ad_account_id: str, request: CreateAdRequest) -> dict[str, Any]:
        payload = build_ad_create_payload(request)
        logger.info(
            "Criando anúncio",
            account_id=ad_account_id,
            adset_id=request.adset_id,
            creative_id=request.creative_id,
        )
        return await self.client.post(f"{account_path(ad_account_id)}/ads", data=payload)

    async def update_ad(self, ad_id: str, patch: UpdateAdRequest) -> dict[str, Any]:
        payload = build_ad_update_payload(patch)
        logger.info("Atualizando anúncio", ad_id=ad_id, fields=sorted(payload))
        return await self.client.post(ad_id, data=payload)

    async def delete_ad(self, ad_id: str) -> dict[str, Any]:
        logger.info("Removendo anúncio", ad_id=ad_id)
        return await self.client.delete(ad_id)

    async def get_ad(self, ad_id: str, fields: Optional[list[str]] = None) -> dict[str, Any]:
        params = {"fields": ",".join(fields or AD_FIELDS)}
        return await self.client.get(ad_id, params)

    async def get_ad_insights(
        self,
        ad_id: str,
        date_range: Optional[DateRange] = None,
        fields: Optional[list[str]] = None,
    ) -> list[dict[str, Any]]:
        return await self.insights.get_insight_rows(ad_id, date_range, fields, AD_INSIGHT_FIELDS)

    async def get_ad_preview(self, ad_id: str, ad_format: str) -> dict[str, Any]:
        return await self.client.get(f"{ad_id}/previews", {"ad_format": ad_format})
