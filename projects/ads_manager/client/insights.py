"""Cliente para o edge /insights de campanhas, ad sets, anúncios e criativos."""

from typing import Any, Optional, Sequence

from shared.core.logging import get_logger
from projects.ads_manager.client.base import FacebookGraphClient
from projects.ads_manager.client.payloads import build_insights_params
from projects.ads_manager.schemas.insights import DateRange, InsightsRequest

logger = get_logger(__name__)

# Campos padrão por nível
CAMPAIGN_INSIGHT_FIELDS = [
    "impressions",
    "clicks",
    "spend",
    "conversions",
    "ctr",
    "cpc",
    "cpm",
    "frequency",
    "reach",
    "purchase_roas",
]

ADSET_INSIGHT_FIELDS = [
    "impressions",
    "clicks",
    "spend",
    "ctr",
    "cpc",
    "cpm",
    "reach",
    "frequency",
    "actions",
]

AD_INSIGHT_FIELDS = [
    "impressions",
    "clicks",
    "spend",
    "ctr",
    "cpc",
    "conversions",
]

CREATIVE_SUMMARY_FIELDS = [
    "impressions",
    "clicks",
    "spend",
    "ctr",
    "cpc",
    "cpm",
    "reach",
    "frequency",
    "actions",
    "cost_per_action_type",
]


class InsightsClient:
    """Client para consultas síncronas de insights."""

    def __init__(self, graph_client: FacebookGraphClient):
        self.client = graph_client

    async def get_insights(
        self,
        object_id: str,
        request: Optional[InsightsRequest] = None,
        default_fields: Sequence[str] = CAMPAIGN_INSIGHT_FIELDS,
    ) -> dict[str, Any]:
        """Busca insights de um objeto. Retorna a resposta completa (data + paging)."""
        params = build_insights_params(request, default_fields)
        logger.debug("Buscando insights", object_id=object_id, params=sorted(params))
        return await self.client.get(f"{object_id}/insights", params)

    async def get_insight_rows(
        self,
        object_id: str,
        date_range: Optional[DateRange] = None,
        fields: Optional[Sequence[str]] = None,
        default_fields: Sequence[str] = CAMPAIGN_INSIGHT_FIELDS,
    ) -> list[dict[str, Any]]:
        """Atalho para consultas com intervalo de datas opcional."""
        request = InsightsRequest(
            fields=list(fields) if fields else None,
            time_range=date_range,
        )
        response = await self.get_insights(object_id, request, default_fields)
        return response.get("data", [])
