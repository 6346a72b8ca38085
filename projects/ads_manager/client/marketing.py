"""
Fachada da Marketing API: um FacebookGraphClient compartilhado pelos
clients de cada entidade, mais leituras de conta e targeting.
"""

from typing import Any, Optional

import httpx

from shared.core.exceptions import ValidationException
from shared.core.logging import get_logger
from projects.ads_manager.client.adsets import AdSetsClient
from projects.ads_manager.client.ads import AdsClient
from projects.ads_manager.client.base import FacebookAPIError, FacebookGraphClient, account_path
from projects.ads_manager.client.campaigns import CampaignsClient
from projects.ads_manager.client.creatives import CreativesClient

logger = get_logger(__name__)

AD_ACCOUNT_FIELDS = [
    "id",
    "name",
    "account_id",
    "currency",
    "timezone_name",
    "account_status",
    "spend_cap",
    "balance",
]

TARGETING_CLASSES = ("interests", "behaviors", "demographics")


class MarketingClient:
    """Ponto único de acesso às operações remotas de um dono."""

    def __init__(self, graph_client: FacebookGraphClient):
        self.graph = graph_client
        self.campaigns = CampaignsClient(graph_client)
        self.adsets = AdSetsClient(graph_client)
        self.ads = AdsClient(graph_client)
        self.creatives = CreativesClient(graph_client)

    @classmethod
    def from_token(
        cls,
        access_token: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "MarketingClient":
        return cls(FacebookGraphClient(access_token, timeout=timeout, transport=transport))

    async def __aenter__(self) -> "MarketingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.graph.close()

    async def get_ad_account(self, ad_account_id: str) -> dict[str, Any]:
        params = {"fields": ",".join(AD_ACCOUNT_FIELDS)}
        return await self.graph.get(account_path(ad_account_id), params)

    async def validate_access_token(self) -> bool:
        """True se o token é aceito pelo endpoint /me."""
        try:
            await self.graph.get("me")
        except FacebookAPIError as e:
            logger.info("Token do Facebook rejeitado", error_code=e.code)
            return False
        return True

    async def search_targeting(self, targeting_class: str) -> list[dict[str, Any]]:
        """Categorias de targeting (interests, behaviors, demographics)."""
        if targeting_class not in TARGETING_CLASSES:
            raise ValidationException("targeting_class", f"classe inválida: {targeting_class}")
        response = await self.graph.get(
            "search", {"type": "adTargetingCategory", "class": targeting_class}
        )
        return response.get("data", [])
