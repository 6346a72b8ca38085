from datetime import datetime
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from shared.domain.interfaces.repository import Repository
from projects.ads_manager.models import OwnerProfile
from projects.ads_manager.services.credential_cache import CredentialCache, InMemoryCredentialStore
from projects.ads_manager.services.owner_accounts import OwnerAccountResolver

OWNER_ID = "owner-1"
AD_ACCOUNT_ID = "1234567890"
TOKEN = "EAAB-token"


class FakeRepository(Repository):
    """Repository em memória com filtros de igualdade e ordenação simples."""

    def __init__(self, id_attr: str = "id"):
        self.id_attr = id_attr
        self.items = {}
        self.updates = 0

    async def get_by_id(self, id):
        return self.items.get(id)

    def _matches(self, entity, filters):
        return all(getattr(entity, k) == v for k, v in filters.items())

    async def find_one(self, filters):
        for entity in self.items.values():
            if self._matches(entity, filters):
                return entity
        return None

    async def find(self, filters, sort_by=None, descending=True, offset=0, limit=None):
        result = [e for e in self.items.values() if self._matches(e, filters)]
        if sort_by:
            result.sort(key=lambda e: getattr(e, sort_by), reverse=descending)
        result = result[offset:]
        if limit is not None:
            result = result[:limit]
        return result

    async def count(self, filters):
        return len([e for e in self.items.values() if self._matches(e, filters)])

    async def add(self, entity):
        self.items[getattr(entity, self.id_attr)] = entity
        return entity

    async def update(self, entity):
        self.updates += 1
        self.items[getattr(entity, self.id_attr)] = entity
        return entity

    async def delete(self, id):
        return self.items.pop(id, None) is not None


class FakeMarketingClient:
    """Substitui MarketingClient; cada sub-cliente é um AsyncMock."""

    def __init__(self):
        self.campaigns = AsyncMock()
        self.adsets = AsyncMock()
        self.ads = AsyncMock()
        self.creatives = AsyncMock()
        self.tokens = []
        self.closed = 0

        self.campaigns.create_campaign.return_value = {"id": "238000001"}
        self.campaigns.get_campaign.return_value = {}
        self.campaigns.get_campaign_insights.return_value = {}
        self.campaigns.get_campaigns.return_value = []
        self.adsets.create_adset.return_value = {"id": "238000002"}
        self.adsets.get_adset.return_value = {}
        self.adsets.get_adset_insights.return_value = []
        self.adsets.get_adsets_by_campaign.return_value = []
        self.ads.create_ad.return_value = {"id": "238000003"}
        self.ads.get_ad.return_value = {}
        self.ads.get_ad_insights.return_value = []
        self.creatives.create_creative.return_value = {"id": "238000004"}
        self.creatives.get_creative.return_value = {}
        self.creatives.get_creative_insights.return_value = {"data": []}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed += 1

    def factory(self, token):
        self.tokens.append(token)
        return self


@pytest.fixture
def remote():
    return FakeMarketingClient()


@pytest_asyncio.fixture
async def credentials():
    cache = CredentialCache(InMemoryCredentialStore(), ttl_seconds=3600, key_prefix="facebook_token:")
    await cache.set(OWNER_ID, TOKEN)
    return cache


@pytest.fixture
def profiles():
    repo = FakeRepository(id_attr="owner_id")
    repo.items[OWNER_ID] = OwnerProfile(
        owner_id=OWNER_ID,
        ad_account_id=AD_ACCOUNT_ID,
        updated_at=datetime(2025, 1, 1),
    )
    return repo


@pytest.fixture
def accounts(profiles):
    return OwnerAccountResolver(profiles)


@pytest.fixture
def campaign_repo():
    return FakeRepository()


@pytest.fixture
def adset_repo():
    return FakeRepository()


@pytest.fixture
def ad_repo():
    return FakeRepository()
