"""Cliente para campanhas da Facebook Graph API."""

from typing import Any, Optional

from shared.core.logging import get_logger
from projects.ads_manager.client.base import FacebookGraphClient, account_path
from projects.ads_manager.client.insights import CAMPAIGN_INSIGHT_FIELDS, InsightsClient
from projects.ads_manager.client.payloads import (
    build_campaign_create_payload,
    build_campaign_update_payload,
)
from projects.ads_manager.schemas.base import BidStrategy
from projects.ads_manager.schemas.campaigns import CreateCampaignRequest, UpdateCampaignRequest
from projects.ads_manager.schemas.insights import DateRange

logger = get_logger(__name__)

CAMPAIGN_FIELDS = [
    "id",
    "name",
    "objective",
    "status",
    "daily_budget",
    "lifetime_budget",
    "bid_strategy",
    "bid_amount",
    "start_time",
    "stop_time",
    "special_ad_categories",
    "created_time",
    "updated_time",
]


class CampaignsClient:
    """Client para operações com campanhas."""

    def __init__(self, graph_client: FacebookGraphClient):
        self.client = graph_client
        self.insights = InsightsClient(graph_client)

    async def create_campaign(
        self, ad_account_id: str, request: CreateCampaignRequest
    ) -> dict[str, Any]:
        """Cria a campanha na conta de anúncios. Retorna {"id": ...}."""
        payload = build_campaign_create_payload(request)
        logger.info("Criando campanha", account_id=ad_account_id, name=request.name)
        return await self.client.post(f"{account_path(ad_account_id)}/campaigns", data=payload)

    async def update_campaign(
        self,
        campaign_id: str,
        patch: UpdateCampaignRequest,
        bid_strategy: Optional[BidStrategy] = None,
    ) -> dict[str, Any]:
        payload = build_campaign_update_payload(patch, bid_strategy)
        logger.info("Atualizando campanha", campaign_id=campaign_id, fields=sorted(payload))
        return await self.client.post(campaign_id, data=payload)

    async def delete_campaign(self, campaign_id: str) -> dict[str, Any]:
        logger.info("Removendo campanha", campaign_id=campaign_id)
        return await self.client.delete(campaign_id)

    async def get_campaigns(
        self,
        ad_account_id: str,
        fields: Optional[list[str]] = None,
    ) -> list[dict[str, Any]]:
        """Busca todas as campanhas de uma ad account."""
        params = {"fields": ",".join(fields or CAMPAIGN_FIELDS)}
        results = await self.client.get_all(f"{account_path(ad_account_id)}/campaigns", params)
        logger.info(
            "Campanhas encontradas",
            count=len(results),
            account_id=ad_account_id,
        )
        return results

    async def get_campaign(
        self, campaign_id: str, fields: Optional[list[str]] = None
    ) -> dict[str, Any]:
        """Busca uma campanha específica."""
        params = {"fields": ",".join(fields or CAMPAIGN_FIELDS)}
        return await self.client.get(campaign_id, params)

    async def get_campaign_insights(
        self,
        campaign_id: str,
        date_range: Optional[DateRange] = None,
        fields: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        """Primeira linha de insights da campanha ({} quando não há dados)."""
        rows = await self.insights.get_insight_rows(
            campaign_id, date_range, fields, CAMPAIGN_INSIGHT_FIELDS
        )
        return rows[0] if rows else {}
