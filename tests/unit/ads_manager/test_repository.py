import asyncio

import pytest
from sqlalchemy.sql import Select

from shared.core.exceptions import ValidationException
from projects.ads_manager.models import Campaign
from projects.ads_manager.repositories import CampaignRepository


class _FakeResult:
    def __init__(self, values=None, scalar=None):
        self._values = values or []
        self._scalar = scalar

    def scalars(self):
        return self

    def all(self):
        return self._values

    def first(self):
        return self._values[0] if self._values else None

    def scalar_one(self):
        return self._scalar


class _FakeSession:
    def __init__(self, values=None, count=0):
        self.info = {}
        self.values = values or []
        self.count = count
        self.executed = []
        self.added = []
        self.flushes = 0
        self.active = 0
        self.max_active = 0

    async def execute(self, stmt):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0)
        self.executed.append(stmt)
        self.active -= 1
        if "count(*)" in str(stmt).lower():
            return _FakeResult(scalar=self.count)
        return _FakeResult(self.values)

    def add(self, entity):
        self.added.append(entity)

    async def flush(self):
        self.flushes += 1

    async def merge(self, entity):
        return entity


def _sql(stmt) -> str:
    return str(stmt.compile(compile_kwargs={"literal_binds": True}))


@pytest.mark.asyncio
async def test_find_builds_filtered_sorted_paginated_select():
    session = _FakeSession(values=["c1"])
    repo = CampaignRepository(session)

    result = await repo.find(
        {"owner_id": "owner-1", "status": "ACTIVE"},
        sort_by="name",
        descending=False,
        offset=20,
        limit=10,
    )

    assert result == ["c1"]
    stmt = session.executed[0]
    assert isinstance(stmt, Select)
    sql = _sql(stmt)
    assert "ads_manager_campaigns.owner_id = 'owner-1'" in sql
    assert "ads_manager_campaigns.status = 'ACTIVE'" in sql
    assert "ORDER BY ads_manager_campaigns.name ASC" in sql
    assert "LIMIT 10" in sql
    assert "OFFSET 20" in sql


@pytest.mark.asyncio
async def test_count_uses_same_filters():
    session = _FakeSession(count=7)
    repo = CampaignRepository(session)

    assert await repo.count({"owner_id": "owner-1"}) == 7
    assert "ads_manager_campaigns.owner_id = 'owner-1'" in _sql(session.executed[0])


@pytest.mark.asyncio
async def test_unknown_column_is_a_validation_error():
    repo = CampaignRepository(_FakeSession())
    with pytest.raises(ValidationException):
        await repo.find({"owner_id": "x"}, sort_by="password")
    with pytest.raises(ValidationException):
        await repo.find_one({"drop_table": 1})


@pytest.mark.asyncio
async def test_add_flushes_entity():
    session = _FakeSession()
    repo = CampaignRepository(session)
    campaign = Campaign(id="c1", owner_id="owner-1", name="C")

    assert await repo.add(campaign) is campaign
    assert session.added == [campaign]
    assert session.flushes == 1


@pytest.mark.asyncio
async def test_repositories_sharing_a_session_never_overlap():
    session = _FakeSession()
    first = CampaignRepository(session)
    second = CampaignRepository(session)

    await asyncio.gather(
        first.find({"owner_id": "a"}),
        second.find({"owner_id": "b"}),
        first.count({"owner_id": "a"}),
    )

    assert first._lock is second._lock
    assert session.max_active == 1
