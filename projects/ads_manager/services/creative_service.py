"""
Serviço de criativos.

Criativos não têm espelho local: todas as operações vão direto à Graph API,
usando a conta de anúncios do perfil do dono.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from shared.core.exceptions import AdsManagerException, ValidationException
from shared.core.logging import get_logger
from projects.ads_manager.client.base import FacebookAPIError
from projects.ads_manager.client.insights import CREATIVE_SUMMARY_FIELDS
from projects.ads_manager.client.marketing import MarketingClient
from projects.ads_manager.config import ads_settings
from projects.ads_manager.schemas.common import BulkOperationResult
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
from projects.ads_manager.services.base import ClientFactory, RemoteEntityService
from projects.ads_manager.services.bulk import BulkOperationRunner
from projects.ads_manager.services.credential_cache import CredentialCache
from projects.ads_manager.services.owner_accounts import OwnerAccountResolver
from projects.ads_manager.utils.date_helpers import get_date_range
from projects.ads_manager.utils.metrics import summarize_insights
from projects.ads_manager.utils.validators import (
    validate_creative_create,
    validate_preview_request,
)

logger = get_logger(__name__)

SEARCH_PAGE_LIMIT = 100


class CreativeService(RemoteEntityService):
    """Operações remotas com AdCreatives."""

    def __init__(
        self,
        accounts: OwnerAccountResolver,
        credentials: CredentialCache,
        client_factory: Optional[ClientFactory] = None,
    ):
        super().__init__(credentials, client_factory)
        self.accounts = accounts

    async def create(self, owner_id: str, request: CreateCreativeRequest) -> dict[str, Any]:
        validate_creative_create(request)
        account_id = await self.accounts.get_ad_account_id(owner_id)

        async with await self._client(owner_id) as remote:
            response = await remote.creatives.create_creative(account_id, request)
            creative_id = response.get("id")
            if not creative_id:
                raise FacebookAPIError("Falha ao criar criativo no Facebook: resposta sem ID")
            creative = await remote.creatives.get_creative(str(creative_id))

        logger.info("Criativo criado", creative_id=creative_id, owner_id=owner_id)
        return creative

    async def get(self, owner_id: str, creative_id: str) -> dict[str, Any]:
        async with await self._client(owner_id) as remote:
            return await remote.creatives.get_creative(creative_id)

    async def update(
        self, owner_id: str, creative_id: str, patch: UpdateCreativeRequest
    ) -> dict[str, Any]:
        async with await self._client(owner_id) as remote:
            return await self._update(remote, creative_id, patch)

    async def _update(
        self, remote: MarketingClient, creative_id: str, patch: UpdateCreativeRequest
    ) -> dict[str, Any]:
        await remote.creatives.update_creative(creative_id, patch)
        return await remote.creatives.get_creative(creative_id)

    async def delete(self, owner_id: str, creative_id: str) -> dict[str, Any]:
        async with await self._client(owner_id) as remote:
            await remote.creatives.delete_creative(creative_id)
        logger.info("Criativo removido", creative_id=creative_id)
        return {"id": creative_id, "deleted": True}

    async def list(
        self, owner_id: str, request: Optional[CreativeListRequest] = None
    ) -> dict[str, Any]:
        """Uma página de criativos; ``paging.cursors.after`` continua a listagem."""
        request = request or CreativeListRequest()
        account_id = await self.accounts.get_ad_account_id(owner_id)
        async with await self._client(owner_id) as remote:
            return await remote.creatives.get_creatives(
                account_id,
                fields=request.fields,
                limit=request.limit,
                after=request.after,
            )

    async def generate_preview(
        self, owner_id: str, request: CreativePreviewRequest
    ) -> dict[str, Any]:
        validate_preview_request(request)
        account_id = await self.accounts.get_ad_account_id(owner_id)
        async with await self._client(owner_id) as remote:
            return await remote.creatives.generate_preview(account_id, request)

    async def insights(
        self,
        owner_id: str,
        creative_id: str,
        request: Optional[InsightsRequest] = None,
    ) -> dict[str, Any]:
        async with await self._client(owner_id) as remote:
            return await self._safe_insights(remote, creative_id, request)

    async def _safe_insights(
        self,
        remote: MarketingClient,
        creative_id: str,
        request: Optional[InsightsRequest],
    ) -> dict[str, Any]:
        try:
            return await remote.creatives.get_creative_insights(creative_id, request)
        except AdsManagerException as e:
            logger.warning(
                "Falha ao buscar insights do criativo",
                creative_id=creative_id,
                error=e.message,
            )
            return {"data": []}

    async def get_with_insights(
        self, owner_id: str, request: CreativeWithInsightsRequest
    ) -> dict[str, Any]:
        """Criativo e insights buscados em paralelo."""
        async with await self._client(owner_id) as remote:
            creative, insights = await asyncio.gather(
                remote.creatives.get_creative(request.creative_id),
                self._safe_insights(remote, request.creative_id, request.insights),
            )
        return {**creative, "insights": insights.get("data", [])}

    async def bulk_update(
        self, owner_id: str, items: list[CreativeUpdateItem]
    ) -> BulkOperationResult:
        updates = {item.creative_id: item.update for item in items}
        if len(updates) != len(items):
            raise ValidationException("items", "creative_id repetido no lote")

        async with await self._client(owner_id) as remote:
            async def run_item(creative_id: str) -> dict[str, Any]:
                return await self._update(remote, creative_id, updates[creative_id])

            runner = BulkOperationRunner("creative.update")
            return await runner.run(list(updates), run_item)

    async def bulk_delete(self, owner_id: str, creative_ids: list[str]) -> BulkOperationResult:
        async with await self._client(owner_id) as remote:
            async def run_item(creative_id: str) -> dict[str, Any]:
                await remote.creatives.delete_creative(creative_id)
                return {"id": creative_id, "deleted": True}

            runner = BulkOperationRunner("creative.delete")
            return await runner.run(creative_ids, run_item)

    async def search(self, owner_id: str, request: CreativeSearchRequest) -> list[dict[str, Any]]:
        """Busca por nome (case-insensitive) percorrendo todas as páginas."""
        query = request.query.strip().lower()
        if not query:
            raise ValidationException("query", "campo obrigatório")

        account_id = await self.accounts.get_ad_account_id(owner_id)
        matches: list[dict[str, Any]] = []
        after: Optional[str] = None

        async with await self._client(owner_id) as remote:
            while True:
                page = await remote.creatives.get_creatives(
                    account_id, fields=request.fields, limit=SEARCH_PAGE_LIMIT, after=after
                )
                for creative in page.get("data", []):
                    if query in (creative.get("name") or "").lower():
                        matches.append(creative)
                        if request.limit and len(matches) >= request.limit:
                            return matches

                paging = page.get("paging", {})
                after = paging.get("cursors", {}).get("after")
                if not paging.get("next") or not after:
                    break

        return matches

    async def performance_summary(
        self, owner_id: str, request: CreativePerformanceRequest
    ) -> dict[str, Any]:
        date_range = request.date_range
        if date_range is None:
            since, until = get_date_range(ads_settings.ads_performance_summary_days)
            date_range = DateRange(since=since, until=until)

        insights = await self.insights(
            owner_id,
            request.creative_id,
            InsightsRequest(fields=list(CREATIVE_SUMMARY_FIELDS), time_range=date_range),
        )
        return {
            "creative_id": request.creative_id,
            "date_range": date_range.to_wire(),
            "summary": summarize_insights(insights.get("data", [])),
        }
