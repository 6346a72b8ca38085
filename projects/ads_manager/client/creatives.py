"""Cliente para criativos (AdCreative) da Facebook Graph API."""

from typing import Any, Optional

from shared.core.logging import get_logger
from projects.ads_manager.client.base import FacebookGraphClient, account_path
from projects.ads_manager.client.insights import CREATIVE_SUMMARY_FIELDS, InsightsClient
from projects.ads_manager.client.payloads import (
    build_creative_create_payload,
    build_creative_update_payload,
    build_preview_params,
)
from projects.ads_manager.schemas.creatives import (
    CreateCreativeRequest,
    CreativePreviewRequest,
    UpdateCreativeRequest,
)
from projects.ads_manager.schemas.insights import InsightsRequest

logger = get_logger(__name__)

CREATIVE_FIELDS = [
    "id",
    "name",
    "status",
    "object_story_id",
    "object_story_spec",
    "asset_feed_spec",
    "template_url",
    "title",
    "body",
    "image_hash",
    "image_url",
    "video_id",
    "thumbnail_url",
    "call_to_action_type",
    "url_tags",
    "adlabels",
    "created_time",
]

DEFAULT_LIST_LIMIT = 25


class CreativesClient:
    """Client para operações com criativos."""

    def __init__(self, graph_client: FacebookGraphClient):
        self.client = graph_client
        self.insights = InsightsClient(graph_client)

    async def create_creative(
        self, ad_account_id: str, request: CreateCreativeRequest
    ) -> dict[str, Any]:
        payload = build_creative_create_payload(request)
        logger.info("Criando criativo", account_id=ad_account_id, fields=sorted(payload))
        return await self.client.post(f"{account_path(ad_account_id)}/adcreatives", data=payload)

    async def get_creative(
        self, creative_id: str, fields: Optional[list[str]] = None
    ) -> dict[str, Any]:
        params = {"fields": ",".join(fields or CREATIVE_FIELDS)}
        return await self.client.get(creative_id, params)

    async def update_creative(
        self, creative_id: str, patch: UpdateCreativeRequest
    ) -> dict[str, Any]:
        payload = build_creative_update_payload(patch)
        return await self.client.post(creative_id, data=payload)

    async def delete_creative(self, creative_id: str) -> dict[str, Any]:
        logger.info("Removendo criativo", creative_id=creative_id)
        return await self.client.delete(creative_id)

    async def get_creatives(
        self,
        ad_account_id: str,
        fields: Optional[list[str]] = None,
        limit: Optional[int] = None,
        after: Optional[str] = None,
    ) -> dict[str, Any]:
        """Uma página de criativos ({"data": [...], "paging": {...}})."""
        params: dict = {
            "fields": ",".join(fields or CREATIVE_FIELDS),
            "limit": limit or DEFAULT_LIST_LIMIT,
        }
        if after:
            params["after"] = after
        return await self.client.get(f"{account_path(ad_account_id)}/adcreatives", params)

    async def generate_preview(
        self, ad_account_id: str, request: CreativePreviewRequest
    ) -> dict[str, Any]:
        """Preview de criativo existente (creative_id) ou de uma especificação."""
        params = build_preview_params(request)
        if request.creative_id:
            return await self.client.get(f"{request.creative_id}/previews", params)
        return await self.client.get(f"{account_path(ad_account_id)}/generatepreviews", params)

    async def get_creative_insights(
        self, creative_id: str, request: Optional[InsightsRequest] = None
    ) -> dict[str, Any]:
        return await self.insights.get_insights(creative_id, request, CREATIVE_SUMMARY_FIELDS)
