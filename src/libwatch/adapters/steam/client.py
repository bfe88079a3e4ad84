"""HTTP client for the Steam Web API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ValidationError

from libwatch.adapters.http_resilience import ResilientClient
from libwatch.config import SteamConfig, get_steam_config
from libwatch.domain.errors import UpstreamError

from .schema import NewsResponse, OwnedGamesResponse, PlayerSummariesResponse
from .translator import parse_news, parse_owned_items, parse_profile

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from libwatch.config import ResilienceConfig
    from libwatch.domain.model import NewsEntry
    from libwatch.domain.ports import CatalogClient, OwnedItemRecord, Profile

log = getLogger(__name__)

OWNED_GAMES_PATH = "IPlayerService/GetOwnedGames/v0001/"
PLAYER_SUMMARIES_PATH = "ISteamUser/GetPlayerSummaries/v0002/"
APP_NEWS_PATH = "ISteamNews/GetNewsForApp/v0002/"
NEWS_FEEDS = "steam_community_announcements,steam_updates"


def should_cache_payload(payload: object) -> bool:
    """Only news is cached; libraries and profiles must always be fresh."""
    return isinstance(payload, dict) and "appnews" in payload


def _default_config() -> SteamConfig:
    return get_steam_config(cache_predicate=should_cache_payload)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class SteamClient:
    """Synchronous facade over the async resilient client, one event loop per call."""

    config: SteamConfig = field(default_factory=_default_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    news_language: str = "english"
    news_max_length: int = 300

    def fetch_owned_items(self, external_id: str) -> Sequence[OwnedItemRecord]:
        return asyncio.run(self._fetch_owned_items_async(external_id))

    def fetch_profile(self, external_id: str) -> Profile | None:
        return asyncio.run(self._fetch_profile_async(external_id))

    def fetch_news(self, item_id: str, *, count: int = 5) -> Sequence[NewsEntry]:
        return asyncio.run(self._fetch_news_async(item_id, count=count))

    async def _fetch_owned_items_async(self, external_id: str) -> list[OwnedItemRecord]:
        params = httpx.QueryParams(
            {
                "key": self.config.api_key,
                "steamid": external_id,
                "format": "json",
                "include_appinfo": "true",
                "include_played_free_games": "true",
                "skip_unvetted_apps": "false",
                "include_free_sub": "true",
            }
        )
        payload = await self._get(OWNED_GAMES_PATH, params)
        response = _validate(OwnedGamesResponse, payload, what="owned games")
        return parse_owned_items(response, external_id=external_id)

    async def _fetch_profile_async(self, external_id: str) -> Profile | None:
        params = httpx.QueryParams(
            {"key": self.config.api_key, "steamids": external_id, "format": "json"}
        )
        payload = await self._get(PLAYER_SUMMARIES_PATH, params)
        response = _validate(PlayerSummariesResponse, payload, what="player summaries")
        return parse_profile(response, external_id=external_id)

    async def _fetch_news_async(self, item_id: str, *, count: int) -> list[NewsEntry]:
        params = httpx.QueryParams(
            {
                "appid": item_id,
                "count": count,
                "maxlength": self.news_max_length,
                "format": "json",
                "language": self.news_language,
                "feeds": NEWS_FEEDS,
            }
        )
        payload = await self._get(APP_NEWS_PATH, params)
        response = _validate(NewsResponse, payload, what="app news")
        return parse_news(response)

    async def _get(self, path: str, params: httpx.QueryParams) -> dict[str, object]:
        async with self.client_factory(self.config.resilience) as client:
            try:
                response = await client.get(path, params=params)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                raise UpstreamError(
                    f"Steam answered {status} for {path}", status_code=status
                ) from exc
            except httpx.HTTPError as exc:
                raise UpstreamError(f"Steam request to {path} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(f"Steam returned a non-JSON payload for {path}") from exc
        if not isinstance(payload, dict):
            raise UpstreamError(f"Unexpected Steam payload for {path}")
        return payload


def _validate[TModel: BaseModel](model: type[TModel], payload: object, *, what: str) -> TModel:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        log.error("Invalid Steam %s payload: %s", what, exc)
        raise UpstreamError(f"Invalid Steam {what} payload") from exc


if TYPE_CHECKING:
    _client_check: CatalogClient = SteamClient()
