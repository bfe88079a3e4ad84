"""Notification transports.

``HttpPushTransport`` posts Expo-style push messages (``to``/``title``/``body``/``data``)
to the configured endpoint. ``LoggingTransport`` only logs and is used when no endpoint is
configured. Both honour the transport contract: report failure, never raise.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from libwatch.adapters.http_resilience import ResilientClient
from libwatch.config import ResilienceConfig

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from libwatch.config import PushConfig
    from libwatch.domain.ports import NotificationTransport

log = getLogger(__name__)


@dataclass(slots=True)
class LoggingTransport:
    delivered: int = 0

    def deliver(
        self,
        token: str,
        title: str,
        body: str,
        payload: Mapping[str, object],
    ) -> bool:
        log.info("Notification to %s: %s | %s %s", _mask(token), title, body, dict(payload))
        self.delivered += 1
        return True


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpPushTransport:
    endpoint: str
    access_token: str | None = None
    resilience: ResilienceConfig = field(
        default_factory=lambda: ResilienceConfig(name="push", timeout_seconds=10.0)
    )
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def deliver(
        self,
        token: str,
        title: str,
        body: str,
        payload: Mapping[str, object],
    ) -> bool:
        message = {"to": token, "title": title, "body": body, "data": dict(payload)}
        try:
            return asyncio.run(self._post(message))
        except httpx.HTTPError as exc:
            log.warning("Push delivery to %s failed: %s", _mask(token), exc)
            return False

    async def _post(self, message: Mapping[str, object]) -> bool:
        headers = {"Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        async with self.client_factory(self.resilience) as client:
            response = await client.post(self.endpoint, json=message, headers=headers)
        if response.is_success:
            return _accepted(response)
        log.warning(
            "Push endpoint answered %s for %s", response.status_code, _mask(str(message["to"]))
        )
        return False


def _accepted(response: httpx.Response) -> bool:
    """Expo answers 200 with ``{"data": {"status": "error", ...}}`` for rejected tickets."""

    try:
        document = response.json()
    except ValueError:
        return True
    if isinstance(document, dict):
        ticket = document.get("data")  # pyright: ignore[reportUnknownMemberType]
        if isinstance(ticket, dict) and ticket.get("status") == "error":  # pyright: ignore[reportUnknownMemberType]
            log.warning("Push ticket rejected: %s", ticket.get("message"))  # pyright: ignore[reportUnknownMemberType]
            return False
    return True


def _mask(token: str) -> str:
    return token if len(token) <= 8 else f"{token[:4]}…{token[-4:]}"


def build_transport(config: PushConfig) -> NotificationTransport:
    if config.endpoint is None:
        return LoggingTransport()
    return HttpPushTransport(
        endpoint=config.endpoint,
        access_token=config.access_token,
        resilience=config.resilience or ResilienceConfig(name="push"),
    )


__all__ = ["HttpPushTransport", "LoggingTransport", "build_transport"]
