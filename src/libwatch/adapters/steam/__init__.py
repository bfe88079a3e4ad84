"""Public interface for the Steam adapter."""

from __future__ import annotations

from .client import SteamClient, should_cache_payload
from .schema import NewsResponse, OwnedGamesResponse, PlayerSummariesResponse
from .translator import parse_news, parse_owned_items, parse_profile

__all__ = [
    "NewsResponse",
    "OwnedGamesResponse",
    "PlayerSummariesResponse",
    "SteamClient",
    "parse_news",
    "parse_owned_items",
    "parse_profile",
    "should_cache_payload",
]
