from decimal import Decimal
from urllib.parse import parse_qs

import httpx
import pytest

from shared.core.exceptions import ValidationException
from projects.ads_manager.client.base import (
    TIMEOUT_ERROR_CODE,
    FacebookAPIError,
    FacebookGraphClient,
    TokenExpiredError,
    account_path,
    generate_app_secret_proof,
)
from projects.ads_manager.client.marketing import MarketingClient
from projects.ads_manager.schemas.base import CampaignObjective, EntityStatus
from projects.ads_manager.schemas.campaigns import CreateCampaignRequest


def _graph(handler, **kwargs) -> FacebookGraphClient:
    return FacebookGraphClient(
        "token-abc",
        api_version="v23.0",
        app_secret=kwargs.pop("app_secret", ""),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_create_campaign_sends_form_encoded_body():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["query"] = dict(request.url.params)
        captured["content_type"] = request.headers.get("content-type")
        captured["form"] = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        return httpx.Response(200, json={"id": "23850000000001"})

    request = CreateCampaignRequest(
        name="Campanha",
        objective=CampaignObjective.OUTCOME_TRAFFIC,
        status=EntityStatus.ACTIVE,
        daily_budget=Decimal("12.34"),
    )

    async with MarketingClient(_graph(handler)) as remote:
        response = await remote.campaigns.create_campaign("98765", request)

    assert response == {"id": "23850000000001"}
    assert captured["method"] == "POST"
    assert captured["path"] == "/v23.0/act_98765/campaigns"
    assert captured["query"]["access_token"] == "token-abc"
    assert "appsecret_proof" not in captured["query"]
    assert captured["content_type"].startswith("application/x-www-form-urlencoded")
    assert captured["form"]["daily_budget"] == "1234"
    assert captured["form"]["status"] == "ACTIVE"
    assert "bid_amount" not in captured["form"]


@pytest.mark.asyncio
async def test_app_secret_proof_added_when_secret_configured():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(dict(request.url.params))
        return httpx.Response(200, json={"id": "1"})

    async with _graph(handler, app_secret="s3cr3t") as graph:
        await graph.get("me")

    assert captured["appsecret_proof"] == generate_app_secret_proof("token-abc", "s3cr3t")


@pytest.mark.asyncio
async def test_error_190_raises_token_expired():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"error": {"message": "Session has expired", "code": 190, "fbtrace_id": "AbC"}},
        )

    async with _graph(handler) as graph:
        with pytest.raises(TokenExpiredError) as exc:
            await graph.get("me")

    assert exc.value.code == 190
    assert exc.value.fbtrace_id == "AbC"
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_error_payload_with_200_status_still_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": {"message": "Invalid parameter", "code": 100}})

    async with _graph(handler) as graph:
        with pytest.raises(FacebookAPIError) as exc:
            await graph.post("123", data={"name": "x"})

    assert exc.value.code == 100
    assert not isinstance(exc.value, TokenExpiredError)


@pytest.mark.asyncio
async def test_timeout_is_reported_without_retry():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    async with _graph(handler, timeout=0.5) as graph:
        with pytest.raises(FacebookAPIError) as exc:
            await graph.get("me")

    assert exc.value.code == TIMEOUT_ERROR_CODE
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_non_json_body_decodes_to_empty_dict():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="true")

    def html_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html></html>")

    async with _graph(handler) as graph:
        assert await graph.delete("123") == {"data": True}
    async with _graph(html_handler) as graph:
        assert await graph.delete("123") == {}


@pytest.mark.asyncio
async def test_get_all_follows_cursors():
    def handler(request: httpx.Request) -> httpx.Response:
        after = request.url.params.get("after")
        if after is None:
            return httpx.Response(
                200,
                json={
                    "data": [{"id": "1"}],
                    "paging": {"cursors": {"after": "c1"}, "next": "https://next"},
                },
            )
        return httpx.Response(200, json={"data": [{"id": "2"}], "paging": {"cursors": {}}})

    async with _graph(handler) as graph:
        results = await graph.get_all("act_1/campaigns", {"fields": "id"})

    assert [r["id"] for r in results] == ["1", "2"]


@pytest.mark.asyncio
async def test_validate_access_token_returns_false_on_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "bad token", "code": 190}})

    async with MarketingClient(_graph(handler)) as remote:
        assert await remote.validate_access_token() is False


def test_account_path_adds_prefix_once():
    assert account_path("123") == "act_123"
    assert account_path("act_123") == "act_123"


@pytest.mark.asyncio
async def test_get_adsets_filters_by_remote_campaign():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["filtering"] = request.url.params.get("filtering")
        return httpx.Response(200, json={"data": [{"id": "9"}], "paging": {}})

    async with MarketingClient(_graph(handler)) as remote:
        adsets = await remote.adsets.get_adsets("555", campaign_id="777")

    assert adsets == [{"id": "9"}]
    assert captured["path"] == "/v23.0/act_555/adsets"
    assert '"value": ["777"]' in captured["filtering"]


@pytest.mark.asyncio
async def test_account_and_targeting_reads():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/search"):
            assert request.url.params["class"] == "interests"
            return httpx.Response(200, json={"data": [{"id": "6003", "name": "Cooking"}]})
        return httpx.Response(200, json={"id": "act_555", "currency": "BRL"})

    async with MarketingClient(_graph(handler)) as remote:
        account = await remote.get_ad_account("555")
        interests = await remote.search_targeting("interests")
        with pytest.raises(ValidationException):
            await remote.search_targeting("planets")

    assert account["currency"] == "BRL"
    assert interests == [{"id": "6003", "name": "Cooking"}]
