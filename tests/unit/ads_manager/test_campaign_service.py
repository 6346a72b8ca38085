from decimal import Decimal

import pytest

from shared.core.exceptions import EntityNotFoundException, UnauthorizedException, ValidationException
from projects.ads_manager.client.base import FacebookAPIError
from projects.ads_manager.schemas.base import BidStrategy, CampaignObjective, EntityStatus
from projects.ads_manager.schemas.campaigns import (
    CampaignFilters,
    CreateCampaignRequest,
    UpdateCampaignRequest,
)
from projects.ads_manager.schemas.common import PaginationParams
from projects.ads_manager.services.campaign_service import (
    CampaignService,
    map_remote_objective,
    map_remote_status,
)

OWNER = "owner-1"


@pytest.fixture
def service(campaign_repo, accounts, credentials, remote):
    return CampaignService(campaign_repo, accounts, credentials, client_factory=remote.factory)


def _request(**overrides) -> CreateCampaignRequest:
    data = {
        "name": "Black Friday",
        "objective": CampaignObjective.OUTCOME_SALES,
        "daily_budget": Decimal("50"),
    }
    data.update(overrides)
    return CreateCampaignRequest(**data)


@pytest.mark.asyncio
async def test_paused_create_makes_no_remote_call(service, campaign_repo, remote):
    campaign = await service.create(OWNER, _request())

    assert campaign.status == "PAUSED"
    assert campaign.remote_campaign_id is None
    assert campaign.remote_account_id == "1234567890"
    assert campaign.bid_strategy == "LOWEST_COST_WITHOUT_CAP"
    assert campaign.impressions == 0
    assert remote.tokens == []
    remote.campaigns.create_campaign.assert_not_awaited()
    assert campaign_repo.items[campaign.id] is campaign


@pytest.mark.asyncio
async def test_active_create_stores_remote_id(service, remote):
    campaign = await service.create(OWNER, _request(status=EntityStatus.ACTIVE))

    assert campaign.status == "ACTIVE"
    assert campaign.remote_campaign_id == "238000001"
    assert remote.tokens == ["EAAB-token"]
    account_id, sent = remote.campaigns.create_campaign.await_args.args
    assert account_id == "1234567890"
    assert sent.name == "Black Friday"
    assert sent.status is EntityStatus.ACTIVE


@pytest.mark.asyncio
async def test_active_create_with_failing_remote_is_kept_paused(service, campaign_repo, remote):
    remote.campaigns.create_campaign.side_effect = FacebookAPIError("boom", code=1)

    campaign = await service.create(OWNER, _request(status=EntityStatus.ACTIVE))

    assert campaign.status == "PAUSED"
    assert campaign.remote_campaign_id is None
    assert campaign_repo.items[campaign.id].status == "PAUSED"


@pytest.mark.asyncio
async def test_active_create_without_token_fails_before_persisting(service, campaign_repo, credentials):
    await credentials.remove(OWNER)

    with pytest.raises(UnauthorizedException):
        await service.create(OWNER, _request(status=EntityStatus.ACTIVE))

    assert campaign_repo.items == {}


@pytest.mark.asyncio
async def test_capped_strategy_without_bid_fails_before_remote(service, campaign_repo, remote):
    with pytest.raises(ValidationException):
        await service.create(
            OWNER,
            _request(status=EntityStatus.ACTIVE, bid_strategy=BidStrategy.LOWEST_COST_WITH_BID_CAP),
        )

    remote.campaigns.create_campaign.assert_not_awaited()
    assert campaign_repo.items == {}


@pytest.mark.asyncio
async def test_create_without_linked_account_is_unauthorized(service, profiles):
    profiles.items.clear()
    with pytest.raises(UnauthorizedException):
        await service.create(OWNER, _request())


@pytest.mark.asyncio
async def test_request_account_overrides_profile(service):
    campaign = await service.create(OWNER, _request(remote_account_id="555"))
    assert campaign.remote_account_id == "555"


@pytest.mark.asyncio
async def test_update_keeps_local_write_when_remote_fails(service, remote):
    campaign = await service.create(OWNER, _request(status=EntityStatus.ACTIVE))
    remote.campaigns.update_campaign.side_effect = FacebookAPIError("indisponível")

    updated = await service.update(OWNER, campaign.id, UpdateCampaignRequest(name="Renomeada"))

    assert updated.name == "Renomeada"
    remote.campaigns.update_campaign.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_of_other_owner_campaign_is_not_found(service):
    campaign = await service.create(OWNER, _request())
    with pytest.raises(EntityNotFoundException):
        await service.update("owner-2", campaign.id, UpdateCampaignRequest(name="x"))


@pytest.mark.asyncio
async def test_delete_is_soft(service, campaign_repo, remote):
    campaign = await service.create(OWNER, _request(status=EntityStatus.ACTIVE))
    remote.campaigns.delete_campaign.side_effect = FacebookAPIError("falhou")

    deleted = await service.delete(OWNER, campaign.id)

    assert deleted.status == "DELETED"
    assert campaign.id in campaign_repo.items


@pytest.mark.asyncio
async def test_duplicate_creates_paused_copy(service, remote):
    original = await service.create(
        OWNER, _request(status=EntityStatus.ACTIVE, targeting_spec={"age_min": 21})
    )

    copy = await service.duplicate(OWNER, original.id)

    assert copy.id != original.id
    assert copy.name == "Black Friday (Copy)"
    assert copy.status == "PAUSED"
    assert copy.remote_campaign_id is None
    assert copy.daily_budget == original.daily_budget
    assert copy.targeting_spec == {"age_min": 21}
    remote.campaigns.create_campaign.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_by_id_refresh_is_idempotent(service, remote):
    campaign = await service.create(
        OWNER,
        _request(
            status=EntityStatus.ACTIVE,
            bid_strategy=BidStrategy.COST_CAP,
            bid_amount=Decimal("1.00"),
        ),
    )
    remote.campaigns.get_campaign.return_value = {"id": "238000001", "status": "PAUSED", "bid_amount": "250"}

    first = await service.get_by_id(OWNER, campaign.id)
    snapshot = (first.status, first.bid_amount, first.name)
    second = await service.get_by_id(OWNER, campaign.id)

    assert snapshot == ("PAUSED", Decimal("2.50"), "Black Friday")
    assert (second.status, second.bid_amount, second.name) == snapshot


@pytest.mark.asyncio
async def test_get_by_id_falls_back_to_local_on_remote_error(service, remote, credentials):
    campaign = await service.create(OWNER, _request(status=EntityStatus.ACTIVE))
    remote.campaigns.get_campaign.side_effect = FacebookAPIError("fora do ar")

    found = await service.get_by_id(OWNER, campaign.id)
    assert found.status == "ACTIVE"

    await credentials.remove(OWNER)
    assert (await service.get_by_id(OWNER, campaign.id)).id == campaign.id


@pytest.mark.asyncio
async def test_list_filters_and_paginates(service):
    for i in range(3):
        await service.create(OWNER, _request(name=f"C{i}"))
    await service.create(OWNER, _request(name="Tráfego", objective=CampaignObjective.OUTCOME_TRAFFIC))

    page = await service.list(
        OWNER,
        CampaignFilters(objective=CampaignObjective.OUTCOME_SALES),
        PaginationParams(page=2, limit=2, sort_by="name", sort_order="asc"),
    )

    assert page.total == 3
    assert page.total_pages == 2
    assert [c.name for c in page.items] == ["C2"]


@pytest.mark.asyncio
async def test_list_rejects_limit_above_maximum(service):
    with pytest.raises(ValidationException):
        await service.list(OWNER, pagination=PaginationParams(limit=1000))


@pytest.mark.asyncio
async def test_insights_zeroed_on_remote_failure(service, remote):
    campaign = await service.create(OWNER, _request(status=EntityStatus.ACTIVE))
    remote.campaigns.get_campaign_insights.side_effect = FacebookAPIError("erro")

    insights = await service.insights(OWNER, campaign.id)

    assert insights.impressions == 0
    assert insights.spend == 0.0


@pytest.mark.asyncio
async def test_insights_refresh_cached_metrics(service, campaign_repo, remote):
    campaign = await service.create(OWNER, _request(status=EntityStatus.ACTIVE))
    remote.campaigns.get_campaign_insights.return_value = {
        "impressions": "1000",
        "clicks": "25",
        "spend": "12.50",
        "ctr": "2.5",
        "reach": "800",
    }

    insights = await service.insights(OWNER, campaign.id)

    assert insights.impressions == 1000
    assert insights.clicks == 25
    assert campaign_repo.items[campaign.id].spend == 12.5


@pytest.mark.asyncio
async def test_bulk_pause_isolates_missing_ids(service):
    first = await service.create(OWNER, _request(name="A"))
    second = await service.create(OWNER, _request(name="B"))

    result = await service.bulk(OWNER, [first.id, "missing", second.id], "archive")

    assert result.success_count == 2
    assert result.failure_count == 1
    assert [r.status for r in result.results] == ["fulfilled", "rejected", "fulfilled"]
    assert result.results[0].data == {"id": first.id, "status": "ARCHIVED"}


@pytest.mark.asyncio
async def test_sync_with_remote_upserts_by_remote_id(service, campaign_repo, remote):
    existing = await service.create(OWNER, _request(status=EntityStatus.ACTIVE))
    remote.campaigns.get_campaigns.return_value = [
        {"id": "238000001", "name": "Renomeada", "status": "PAUSED", "objective": "OUTCOME_SALES", "daily_budget": "5000"},
        {"id": "238000099", "name": "Nova", "status": "ACTIVE", "objective": "LINK_CLICKS", "lifetime_budget": "100000"},
        {"name": "Sem ID"},
    ]

    result = await service.sync_with_remote(OWNER)

    assert (result.synced, result.created, result.updated) == (2, 1, 1)
    assert len(result.errors) == 1
    assert campaign_repo.items[existing.id].name == "Renomeada"
    assert campaign_repo.items[existing.id].daily_budget == Decimal("50.00")
    created = [c for c in campaign_repo.items.values() if c.remote_campaign_id == "238000099"][0]
    assert created.objective == "OUTCOME_TRAFFIC"
    assert created.lifetime_budget == Decimal("1000.00")


@pytest.mark.asyncio
async def test_sync_with_remote_records_fetch_failure(service, remote):
    remote.campaigns.get_campaigns.side_effect = FacebookAPIError("sem permissão")

    result = await service.sync_with_remote(OWNER)

    assert result.synced == 0
    assert result.errors == ["sem permissão"]


def test_remote_status_and_objective_mapping():
    assert map_remote_status("active") is EntityStatus.ACTIVE
    assert map_remote_status("WITH_ISSUES") is EntityStatus.PAUSED
    assert map_remote_objective("CONVERSIONS") is CampaignObjective.OUTCOME_SALES
    assert map_remote_objective(None) is CampaignObjective.OUTCOME_TRAFFIC


async def _import_remote_campaigns(service, campaign_repo, remote):
    remote.campaigns.get_campaigns.return_value = [
        {"id": "238000777", "name": "Sem orçamento", "status": "ACTIVE", "objective": "OUTCOME_LEADS"},
        {
            "id": "238000778",
            "name": "Bid cap",
            "status": "ACTIVE",
            "objective": "OUTCOME_SALES",
            "daily_budget": "5000",
            "bid_strategy": "LOWEST_COST_WITH_BID_CAP",
        },
    ]
    await service.sync_with_remote(OWNER)
    by_remote_id = {c.remote_campaign_id: c for c in campaign_repo.items.values()}
    return by_remote_id["238000777"], by_remote_id["238000778"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("operation", "expected"),
    [("pause", "PAUSED"), ("activate", "ACTIVE"), ("archive", "ARCHIVED")],
)
async def test_bulk_status_change_on_imported_campaigns(service, campaign_repo, remote, operation, expected):
    no_budget, bid_cap = await _import_remote_campaigns(service, campaign_repo, remote)
    assert no_budget.daily_budget is None and no_budget.lifetime_budget is None
    assert bid_cap.bid_amount is None

    result = await service.bulk(OWNER, [no_budget.id, bid_cap.id], operation)

    assert result.success_count == 2
    assert result.failure_count == 0
    assert no_budget.status == expected
    assert bid_cap.status == expected
    assert bid_cap.bid_strategy == "LOWEST_COST_WITH_BID_CAP"
    assert remote.campaigns.update_campaign.await_count == 2


@pytest.mark.asyncio
async def test_status_update_on_imported_campaign_without_budget(service, campaign_repo, remote):
    no_budget, _ = await _import_remote_campaigns(service, campaign_repo, remote)

    updated = await service.update(OWNER, no_budget.id, UpdateCampaignRequest(status=EntityStatus.PAUSED))

    assert updated.status == "PAUSED"
    assert updated.daily_budget is None
    sent = remote.campaigns.update_campaign.await_args.args[1]
    assert sent.model_fields_set == {"status"}


@pytest.mark.asyncio
async def test_setting_bid_strategy_on_imported_campaign_still_requires_bid(service, campaign_repo, remote):
    no_budget, _ = await _import_remote_campaigns(service, campaign_repo, remote)

    with pytest.raises(ValidationException) as exc:
        await service.update(
            OWNER, no_budget.id, UpdateCampaignRequest(bid_strategy=BidStrategy.COST_CAP)
        )
    assert exc.value.field == "bid_amount"
