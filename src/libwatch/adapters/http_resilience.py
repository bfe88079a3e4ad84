"""Async HTTP client used by the Steam and push adapters.

Requests go through, outermost first:

1. an optional ``aiolimiter`` token bucket;
2. hishel's cache, when configured;
3. the ``httpx-retries`` transport;
4. the network, or the transport handed in by tests.
"""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from libwatch.config import get_storage_config

if TYPE_CHECKING:
    from types import TracebackType

    from libwatch.config import CacheConfig, ResilienceConfig, RetryPolicy
    from libwatch.config.http_resilience import ShouldCacheHook

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        backoff_jitter=policy.backoff_jitter,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


class ResilientClient:
    """Short-lived async client; open one per batch of calls with ``async with``."""

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )
        self._client = _open_client(config, transport)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        url: str,
        *,
        params: httpx.QueryParams | dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self._send("GET", url, params=params, headers=headers)

    async def post(
        self,
        url: str,
        *,
        json: object = None,  # noqa: A002
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self._send("POST", url, json=json, headers=headers)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:  # noqa: ANN401
        if self._limiter is not None:
            await self._limiter.acquire()
        response = await self._client.request(method, url, **kwargs)
        log.debug(
            "%s %s %s -> %s",
            self.config.name,
            method,
            response.request.url.path,
            response.status_code,
        )
        return response


def _open_client(
    config: ResilienceConfig, transport: httpx.AsyncBaseTransport | None
) -> httpx.AsyncClient:
    retry = build_retry(config.retry)
    options: dict[str, Any] = {
        "timeout": config.timeout_seconds,
        "transport": (
            RetryTransport(retry=retry)
            if transport is None
            else RetryTransport(transport=transport, retry=retry)
        ),
    }
    if config.base_url is not None:
        options["base_url"] = config.base_url
    if config.default_headers:
        options["headers"] = dict(config.default_headers)
    if config.response_hooks:
        options["event_hooks"] = {"response": list(config.response_hooks)}

    if config.cache is None or not config.cache.enabled:
        return httpx.AsyncClient(**options)
    storage, policy = _cache_components(config.cache)
    return AsyncCacheClient(**options, storage=storage, policy=policy)


class _JsonPayloadFilter(BaseFilter[HishelCacheResponse]):
    """Stores a response only when its decoded JSON body satisfies ``predicate``."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return False
        try:
            document = json.loads(body)
        except (UnicodeDecodeError, ValueError):
            return False
        return bool(self._predicate(document))


def _cache_components(config: CacheConfig) -> tuple[AsyncSqliteStorage, FilterPolicy | None]:
    match config.backend:
        case "memory":
            database_path = ":memory:"
        case "sqlite":
            database_path = config.sqlite_path or str(get_storage_config().http_cache_path())
        case other:
            raise ValueError(f"Unsupported cache backend: {other}")

    storage = AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.default_ttl_seconds,
        refresh_ttl_on_access=config.refresh_ttl_on_access,
    )
    if config.should_cache is None:
        return storage, None
    return storage, FilterPolicy(response_filters=[_JsonPayloadFilter(config.should_cache)])


__all__ = ["ResilientClient", "build_retry"]
