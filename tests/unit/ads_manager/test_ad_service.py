from datetime import datetime

import pytest

from shared.core.exceptions import UnauthorizedException, ValidationException
from projects.ads_manager.client.base import FacebookAPIError, TokenExpiredError
from projects.ads_manager.schemas.ads import AdFilters, AdLabel, CreateAdRequest, UpdateAdRequest
from projects.ads_manager.schemas.base import EntityStatus
from projects.ads_manager.services.ad_service import AdService

OWNER = "owner-1"

CONFIRMED_AD = {
    "id": "238000003",
    "name": "Anúncio",
    "adset_id": "120200",
    "campaign_id": "120100",
    "creative": {"id": "987"},
    "status": "PAUSED",
    "effective_status": "PAUSED",
    "configured_status": "PAUSED",
    "issues_info": [],
    "created_time": "2025-01-10T12:00:00+0000",
    "updated_time": "2025-01-10T12:00:00+0000",
}


@pytest.fixture
def service(ad_repo, accounts, credentials, remote):
    remote.ads.get_ad.return_value = dict(CONFIRMED_AD)
    return AdService(ad_repo, accounts, credentials, client_factory=remote.factory)


def _request(**overrides) -> CreateAdRequest:
    data = {"name": "Anúncio", "adset_id": "120200", "creative_id": "987"}
    data.update(overrides)
    return CreateAdRequest(**data)


@pytest.mark.asyncio
async def test_create_is_remote_first(service, ad_repo, remote):
    ad = await service.create(
        OWNER,
        _request(
            tracking_specs=[{"action.type": ["offsite_conversion"]}],
            ad_labels=[AdLabel(id="1", name="promo")],
        ),
    )

    assert ad.remote_ad_id == "238000003"
    assert ad.campaign_id == "120100"
    assert ad.creative_id == "987"
    assert ad.effective_status == "PAUSED"
    assert ad.created_time == datetime(2025, 1, 10, 12, 0)
    assert ad.ad_labels == [{"id": "1", "name": "promo"}]
    assert ad_repo.items[ad.id] is ad
    account_id, _ = remote.ads.create_ad.await_args.args
    assert account_id == "1234567890"
    remote.ads.get_ad.assert_awaited_once_with("238000003")


@pytest.mark.asyncio
async def test_create_keeps_labels_confirmed_by_remote(service, remote):
    remote.ads.get_ad.return_value = {
        **CONFIRMED_AD,
        "adlabels": [{"id": "77", "name": "black-friday"}],
    }

    ad = await service.create(OWNER, _request(ad_labels=[AdLabel(id="1", name="promo")]))

    assert ad.ad_labels == [{"id": "77", "name": "black-friday"}]


@pytest.mark.asyncio
async def test_create_propagates_remote_failure(service, ad_repo, remote):
    remote.ads.create_ad.side_effect = FacebookAPIError("Invalid creative", code=100)

    with pytest.raises(FacebookAPIError):
        await service.create(OWNER, _request())

    assert ad_repo.items == {}


@pytest.mark.asyncio
async def test_create_validates_ids_before_remote(service, remote):
    with pytest.raises(ValidationException):
        await service.create(OWNER, _request(creative_id="abc"))
    remote.ads.create_ad.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_without_token_is_unauthorized(service, credentials, remote):
    await credentials.remove(OWNER)
    with pytest.raises(UnauthorizedException):
        await service.create(OWNER, _request())
    remote.ads.create_ad.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_propagates_remote_failure_without_local_write(service, ad_repo, remote):
    ad = await service.create(OWNER, _request())
    writes = ad_repo.updates
    remote.ads.update_ad.side_effect = TokenExpiredError("expired", code=190)

    with pytest.raises(TokenExpiredError):
        await service.update(OWNER, ad.id, UpdateAdRequest(name="Outro nome"))

    assert ad_repo.items[ad.id].name == "Anúncio"
    assert ad_repo.updates == writes


@pytest.mark.asyncio
async def test_activate_and_pause(service, remote):
    ad = await service.create(OWNER, _request())

    assert (await service.activate(OWNER, ad.id)).status == "ACTIVE"
    patch = remote.ads.update_ad.await_args.args[1]
    assert patch.status is EntityStatus.ACTIVE
    assert (await service.pause(OWNER, ad.id)).status == "PAUSED"


@pytest.mark.asyncio
async def test_delete_is_soft_and_best_effort(service, ad_repo, remote):
    ad = await service.create(OWNER, _request())
    remote.ads.delete_ad.side_effect = FacebookAPIError("falhou")

    deleted = await service.delete(OWNER, ad.id)

    assert deleted.status == "DELETED"
    assert ad.id in ad_repo.items


@pytest.mark.asyncio
async def test_duplicate_copies_fields_with_new_name(service, remote):
    original = await service.create(
        OWNER,
        _request(
            status=EntityStatus.ACTIVE,
            conversion_domain="example.com",
            tracking_specs=[{"action.type": ["offsite_conversion"]}],
        ),
    )
    remote.ads.create_ad.return_value = {"id": "238000010"}
    remote.ads.get_ad.return_value = {**CONFIRMED_AD, "id": "238000010", "name": "Anúncio (Copy)"}

    copy = await service.duplicate(OWNER, original.id)

    sent = remote.ads.create_ad.await_args.args[1]
    assert sent.name == "Anúncio (Copy)"
    assert sent.status is EntityStatus.PAUSED
    assert sent.adset_id == original.adset_id
    assert sent.creative_id == original.creative_id
    assert sent.conversion_domain == "example.com"
    assert sent.tracking_specs == original.tracking_specs
    assert copy.id != original.id
    assert copy.remote_ad_id == "238000010"
    assert copy.name == "Anúncio (Copy)"
    assert copy.status == "PAUSED"


@pytest.mark.asyncio
async def test_get_by_id_refreshes_volatile_fields(service, remote):
    ad = await service.create(OWNER, _request())
    remote.ads.get_ad.return_value = {
        "id": "238000003",
        "status": "ACTIVE",
        "effective_status": "WITH_ISSUES",
        "issues_info": [{"error_code": 1}],
    }

    found = await service.get_by_id(OWNER, ad.id)

    assert found.status == "ACTIVE"
    assert found.effective_status == "WITH_ISSUES"
    assert found.issues == [{"error_code": 1}]

    remote.ads.get_ad.side_effect = FacebookAPIError("fora")
    assert (await service.get_by_id(OWNER, ad.id)).status == "ACTIVE"


@pytest.mark.asyncio
async def test_list_filters_by_adset(service, remote):
    await service.create(OWNER, _request())
    remote.ads.create_ad.return_value = {"id": "238000011"}
    remote.ads.get_ad.return_value = {**CONFIRMED_AD, "id": "238000011", "adset_id": "120999"}
    await service.create(OWNER, _request(adset_id="120999"))

    page = await service.list(OWNER, AdFilters(adset_id="120999"))

    assert page.total == 1
    assert page.items[0].remote_ad_id == "238000011"
    assert len(await service.list_by_adset(OWNER, "120200")) == 1


@pytest.mark.asyncio
async def test_insights_zeroed_on_failure(service, remote):
    ad = await service.create(OWNER, _request())
    remote.ads.get_ad_insights.side_effect = FacebookAPIError("erro")

    result = await service.insights(OWNER, ad.id)

    assert result["data"] == []
    assert result["metrics"]["impressions"] == 0


@pytest.mark.asyncio
async def test_preview_uses_default_format(service, remote):
    ad = await service.create(OWNER, _request())
    remote.ads.get_ad_preview.return_value = {"data": [{"body": "<iframe>"}]}

    preview = await service.get_preview(OWNER, ad.id)

    assert preview["data"][0]["body"] == "<iframe>"
    remote.ads.get_ad_preview.assert_awaited_once_with("238000003", "DESKTOP_FEED_STANDARD")
