from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from libwatch.adapters.http_resilience import ResilientClient
from libwatch.adapters.steam import SteamClient, should_cache_payload
from libwatch.adapters.steam.client import APP_NEWS_PATH, OWNED_GAMES_PATH, PLAYER_SUMMARIES_PATH
from libwatch.config import ResilienceConfig, RetryPolicy, SteamConfig
from libwatch.config.steam import STEAM_BASE_URL
from libwatch.domain.errors import UpstreamError

if TYPE_CHECKING:
    from collections.abc import Callable


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> SteamClient:
    resilience = ResilienceConfig(
        name="steam-test", base_url=STEAM_BASE_URL, retry=RetryPolicy(total=0)
    )

    def factory(config: ResilienceConfig) -> ResilientClient:
        return ResilientClient(config.without_cache(), transport=httpx.MockTransport(handler))

    return SteamClient(
        config=SteamConfig(api_key="secret", resilience=resilience), client_factory=factory
    )


def test_fetch_owned_items_sends_expected_query() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"response": {"game_count": 1, "games": [{"appid": 570, "name": "Dota 2"}]}},
        )

    records = _client(handler).fetch_owned_items("7656")

    assert [record.item_id for record in records] == ["570"]
    request = seen[0]
    assert request.url.path == f"/{OWNED_GAMES_PATH}"
    assert request.url.params["key"] == "secret"
    assert request.url.params["steamid"] == "7656"
    assert request.url.params["include_appinfo"] == "true"
    assert request.url.params["include_played_free_games"] == "true"


def test_fetch_profile() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"/{PLAYER_SUMMARIES_PATH}"
        assert request.url.params["steamids"] == "u"
        return httpx.Response(
            200, json={"response": {"players": [{"steamid": "u", "personaname": "Gabe"}]}}
        )

    profile = _client(handler).fetch_profile("u")

    assert profile is not None
    assert profile.display_name == "Gabe"


def test_fetch_news_requests_announcement_feeds() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"/{APP_NEWS_PATH}"
        assert request.url.params["appid"] == "570"
        assert request.url.params["count"] == "3"
        assert "steam_community_announcements" in request.url.params["feeds"]
        return httpx.Response(
            200,
            json={"appnews": {"appid": 570, "newsitems": [{"gid": 1, "date": 1_714_564_800}]}},
        )

    entries = _client(handler).fetch_news("570", count=3)

    assert [entry.news_id for entry in entries] == ["1"]


@pytest.mark.parametrize("status", [401, 403, 500, 503])
def test_http_errors_become_upstream_errors(status: int) -> None:
    client = _client(lambda _request: httpx.Response(status, json={}))

    with pytest.raises(UpstreamError) as excinfo:
        client.fetch_owned_items("u")

    assert excinfo.value.status_code == status


def test_network_failure_becomes_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(UpstreamError, match="failed"):
        _client(handler).fetch_owned_items("u")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"unexpected": {}}),
        httpx.Response(200, json={"response": {"games": "nope"}}),
    ],
)
def test_unusable_payloads_become_upstream_errors(response: httpx.Response) -> None:
    with pytest.raises(UpstreamError):
        _client(lambda _request: response).fetch_owned_items("u")


def test_private_profile_has_no_items() -> None:
    client = _client(lambda _request: httpx.Response(200, json={"response": {}}))

    assert client.fetch_owned_items("u") == []


def test_only_news_payloads_are_cached() -> None:
    assert should_cache_payload({"appnews": {}})
    assert not should_cache_payload({"response": {}})
    assert not should_cache_payload(["appnews"])
