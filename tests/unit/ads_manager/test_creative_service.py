from datetime import date

import pytest

from shared.core.exceptions import ValidationException
from projects.ads_manager.client.base import FacebookAPIError
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
from projects.ads_manager.schemas.insights import DateRange
from projects.ads_manager.services.creative_service import CreativeService

OWNER = "owner-1"


@pytest.fixture
def service(accounts, credentials, remote):
    return CreativeService(accounts, credentials, client_factory=remote.factory)


@pytest.mark.asyncio
async def test_create_reads_back_created_creative(service, remote):
    remote.creatives.get_creative.return_value = {"id": "238000004", "name": "Criativo"}

    creative = await service.create(
        OWNER, CreateCreativeRequest(name="Criativo", object_story_id="111_222")
    )

    assert creative == {"id": "238000004", "name": "Criativo"}
    account_id, _ = remote.creatives.create_creative.await_args.args
    assert account_id == "1234567890"
    remote.creatives.get_creative.assert_awaited_once_with("238000004")


@pytest.mark.asyncio
async def test_create_requires_a_creative_type(service, remote):
    with pytest.raises(ValidationException):
        await service.create(OWNER, CreateCreativeRequest(name="Sem tipo"))
    remote.creatives.create_creative.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_then_get(service, remote):
    remote.creatives.get_creative.return_value = {"id": "5", "name": "Novo"}

    result = await service.update(OWNER, "5", UpdateCreativeRequest(name="Novo"))

    assert result["name"] == "Novo"
    remote.creatives.update_creative.assert_awaited_once()


@pytest.mark.asyncio
async def test_list_passes_cursor(service, remote):
    remote.creatives.get_creatives.return_value = {"data": [], "paging": {}}

    await service.list(OWNER, CreativeListRequest(limit=10, after="cursor-1"))

    remote.creatives.get_creatives.assert_awaited_once_with(
        "1234567890", fields=None, limit=10, after="cursor-1"
    )


@pytest.mark.asyncio
async def test_preview_validation(service, remote):
    with pytest.raises(ValidationException):
        await service.generate_preview(OWNER, CreativePreviewRequest(ad_format="MOBILE_FEED_STANDARD"))

    request = CreativePreviewRequest(ad_format="MOBILE_FEED_STANDARD", creative_id="5")
    remote.creatives.generate_preview.return_value = {"data": [{"body": "<iframe>"}]}
    assert (await service.generate_preview(OWNER, request))["data"]


@pytest.mark.asyncio
async def test_insights_degrade_to_empty(service, remote):
    remote.creatives.get_creative_insights.side_effect = FacebookAPIError("erro")
    assert await service.insights(OWNER, "5") == {"data": []}


@pytest.mark.asyncio
async def test_get_with_insights_merges_results(service, remote):
    remote.creatives.get_creative.return_value = {"id": "5", "name": "C"}
    remote.creatives.get_creative_insights.return_value = {"data": [{"impressions": "10"}]}

    result = await service.get_with_insights(OWNER, CreativeWithInsightsRequest(creative_id="5"))

    assert result == {"id": "5", "name": "C", "insights": [{"impressions": "10"}]}
    assert len(remote.tokens) == 1


@pytest.mark.asyncio
async def test_bulk_delete_isolates_failures(service, remote):
    async def delete(creative_id):
        if creative_id == "2":
            raise FacebookAPIError("não pode remover")
        return {"success": True}

    remote.creatives.delete_creative.side_effect = delete

    result = await service.bulk_delete(OWNER, ["1", "2", "3"])

    assert result.success_count == 2
    assert result.failure_count == 1
    assert result.results[1].error == "não pode remover"
    assert len(remote.tokens) == 1


@pytest.mark.asyncio
async def test_bulk_update_reads_back_each_creative(service, remote):
    remote.creatives.get_creative.side_effect = lambda creative_id: {"id": creative_id}

    result = await service.bulk_update(
        OWNER,
        [
            CreativeUpdateItem(creative_id="1", update=UpdateCreativeRequest(name="A")),
            CreativeUpdateItem(creative_id="2", update=UpdateCreativeRequest(name="B")),
        ],
    )

    assert result.success_count == 2
    assert [r.data for r in result.results] == [{"id": "1"}, {"id": "2"}]


@pytest.mark.asyncio
async def test_bulk_update_rejects_repeated_ids(service):
    item = CreativeUpdateItem(creative_id="1", update=UpdateCreativeRequest(name="A"))
    with pytest.raises(ValidationException):
        await service.bulk_update(OWNER, [item, item])


@pytest.mark.asyncio
async def test_search_is_case_insensitive_across_pages(service, remote):
    remote.creatives.get_creatives.side_effect = [
        {
            "data": [{"id": "1", "name": "Promo VERÃO"}, {"id": "2", "name": "Institucional"}],
            "paging": {"cursors": {"after": "c1"}, "next": "https://next"},
        },
        {"data": [{"id": "3", "name": "verão 2"}], "paging": {"cursors": {"after": "c2"}}},
    ]

    matches = await service.search(OWNER, CreativeSearchRequest(query="Verão"))

    assert [m["id"] for m in matches] == ["1", "3"]
    assert remote.creatives.get_creatives.await_args.kwargs["after"] == "c1"


@pytest.mark.asyncio
async def test_performance_summary_with_explicit_range(service, remote):
    remote.creatives.get_creative_insights.return_value = {
        "data": [{"impressions": "2000", "clicks": "50", "spend": "25.00", "reach": "1500"}]
    }

    result = await service.performance_summary(
        OWNER,
        CreativePerformanceRequest(
            creative_id="5",
            date_range=DateRange(since=date(2025, 1, 1), until=date(2025, 1, 31)),
        ),
    )

    assert result["date_range"] == {"since": "2025-01-01", "until": "2025-01-31"}
    assert result["summary"]["ctr"] == 2.5
    assert result["summary"]["cpc"] == 0.5
    assert result["summary"]["cpm"] == 12.5


@pytest.mark.asyncio
async def test_performance_summary_defaults_to_recent_window(service, remote):
    result = await service.performance_summary(OWNER, CreativePerformanceRequest(creative_id="5"))

    since = date.fromisoformat(result["date_range"]["since"])
    until = date.fromisoformat(result["date_range"]["until"])
    assert (until - since).days == 30
    assert result["summary"]["impressions"] == 0
