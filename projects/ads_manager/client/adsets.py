"""Cliente para ad sets da Facebook Graph API."""

import json
from typing import Any, Optional

from shared.core.logging import get_logger
from projects.ads_manager.client.base import FacebookGraphClient, account_path
from projects.ads_manager.client.insights import ADSET_INSIGHT_FIELDS, InsightsClient
from projects.ads_manager.client.payloads import (
    build_adset_create_payload,
    build_adset_update_payload,
)
from projects.ads_manager.schemas.adsets import CreateAdSetRequest, UpdateAdSetRequest
from projects.ads_manager.schemas.base import BidStrategy, EntityStatus
from projects.ads_manager.schemas.insights import DateRange

logger = get_logger(__name__)

ADSET_FIELDS = [
    "id",
    "name",
    "campaign_id",
    "optimization_goal",
    "billing_event",
    "bid_strategy",
    "bid_amount",
    "daily_budget",
    "lifetime_budget",
    "status",
    "targeting",
    "promoted_object",
    "start_time",
    "end_time",
    "created_time",
    "updated_time",
]


class AdSetsClient:
    """Client para operações com ad sets."""

    def __init__(self, graph_client: FacebookGraphClient):
        self.client = graph_client
        self.insights = InsightsClient(graph_client)

    async def create_adset(
        self,
        ad_account_id: str,
        request: CreateAdSetRequest,
        remote_campaign_id: str,
    ) -> dict[str, Any]:
        payload = build_adset_create_payload(request, remote_campaign_id)
        logger.info(
            "Criando ad set",
            account_id=ad_account_id,
            campaign_id=remote_campaign_id,
            name=request.name,
        )
        return await self.client.post(f"{account_path(ad_account_id)}/adsets", data=payload)

    async def update_adset(
        self,
        adset_id: str,
        patch: UpdateAdSetRequest,
        bid_strategy: Optional[BidStrategy] = None,
    ) -> dict[str, Any]:
        payload = build_adset_update_payload(patch, bid_strategy)
        logger.info("Atualizando ad set", adset_id=adset_id, fields=sorted(payload))
        return await self.client.post(adset_id, data=payload)

    async def delete_adset(self, adset_id: str) -> dict[str, Any]:
        logger.info("Removendo ad set", adset_id=adset_id)
        return await self.client.delete(adset_id)

    async def set_status(self, adset_id: str, status: EntityStatus) -> dict[str, Any]:
        return await self.client.post(adset_id, data={"status": status.value})

    async def get_adsets(
        self,
        ad_account_id: str,
        campaign_id: Optional[str] = None,
        fields: Optional[list[str]] = None,
    ) -> list[dict[str, Any]]:
        """Busca ad sets da conta, opcionalmente filtrando pela campanha remota."""
        params: dict = {"fields": ",".join(fields or ADSET_FIELDS)}
        if campaign_id:
            params["filtering"] = json.dumps(
                [{"field": "campaign.id", "operator": "IN", "value": [campaign_id]}]
            )
        return await self.client.get_all(f"{account_path(ad_account_id)}/adsets", params)

    async def get_adsets_by_campaign(
        self, campaign_id: str, fields: Optional[list[str]] = None
    ) -> list[dict[str, Any]]:
        params = {"fields": ",".join(fields or ADSET_FIELDS)}
        results = await self.client.get_all(f"{campaign_id}/adsets", params)
        logger.info("Ad sets encontrados", count=len(results), campaign_id=campaign_id)
        return results

    async def get_adset(
        self, adset_id: str, fields: Optional[list[str]] = None
    ) -> dict[str, Any]:
        params = {"fields": ",".join(fields or ADSET_FIELDS)}
        return await self.client.get(adset_id, params)

    async def get_adset_insights(
        self,
        adset_id: str,
        date_range: Optional[DateRange] = None,
        fields: Optional[list[str]] = None,
    ) -> list[dict[str, Any]]:
        return await self.insights.get_insight_rows(
            adset_id, date_range, fields, ADSET_INSIGHT_FIELDS
        )
