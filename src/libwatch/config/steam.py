"""Steam Web API settings."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook

STEAM_BASE_URL = "https://api.steampowered.com/"
STEAM_TIMEOUT_SECONDS = 15.0
# Steam allows roughly 100k calls a day per key; bursts above a few per second get 429s.
STEAM_CALLS_PER_SECOND = 4
NEWS_CACHE_TTL_SECONDS = 15 * 60.0


@dataclass(frozen=True)
class SteamConfig:
    api_key: str
    resilience: ResilienceConfig


def get_steam_config(
    *,
    resilience: ResilienceConfig | None = None,
    cache_predicate: ShouldCacheHook | None = None,
    cache_path: str | None = None,
) -> SteamConfig:
    """Load the API key from ``STEAM_API_KEY``.

    ``cache_path`` switches the news cache to a SQLite file; without it responses are
    cached in memory for the lifetime of the client.
    """

    values = require_env_vars(("STEAM_API_KEY",))
    timeout = env_float("LIBWATCH_STEAM_TIMEOUT", STEAM_TIMEOUT_SECONDS, minimum=1.0)
    cache = CacheConfig(
        backend="sqlite" if cache_path else "memory",
        sqlite_path=cache_path,
        default_ttl_seconds=NEWS_CACHE_TTL_SECONDS,
        should_cache=cache_predicate,
    )
    return SteamConfig(
        api_key=values["STEAM_API_KEY"],
        resilience=resilience
        or ResilienceConfig(
            name="steam",
            base_url=STEAM_BASE_URL,
            timeout_seconds=timeout,
            ratelimit=RateLimit(max_calls=STEAM_CALLS_PER_SECOND, per_seconds=1.0),
            cache=cache,
        ),
    )
