from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

from libwatch.adapters.http_resilience import ResilientClient
from libwatch.adapters.push import HttpPushTransport, LoggingTransport, build_transport
from libwatch.config import PushConfig, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Callable

PAYLOAD = {"type": "newGame", "appId": "570"}


def _transport(
    handler: Callable[[httpx.Request], httpx.Response], *, access_token: str | None = None
) -> HttpPushTransport:
    def factory(config: ResilienceConfig) -> ResilientClient:
        return ResilientClient(config, transport=httpx.MockTransport(handler))

    return HttpPushTransport(
        endpoint="https://push.example.test/send",
        access_token=access_token,
        resilience=ResilienceConfig(name="push-test", retry=RetryPolicy(total=0)),
        client_factory=factory,
    )


def test_message_shape_and_auth_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {"status": "ok", "id": "ticket"}})

    delivered = _transport(handler, access_token="t0k").deliver(
        "ExponentPushToken[abc]", "New item detected!", "Dota 2", PAYLOAD
    )

    assert delivered
    request = seen[0]
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Bearer t0k"
    assert json.loads(request.content) == {
        "to": "ExponentPushToken[abc]",
        "title": "New item detected!",
        "body": "Dota 2",
        "data": PAYLOAD,
    }


def test_without_access_token_no_auth_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    assert _transport(handler).deliver("token", "t", "b", {})
    assert "Authorization" not in seen[0].headers


def test_rejected_ticket_is_a_failure() -> None:
    transport = _transport(
        lambda _request: httpx.Response(
            200, json={"data": {"status": "error", "message": "DeviceNotRegistered"}}
        )
    )

    assert not transport.deliver("token", "t", "b", PAYLOAD)


@pytest.mark.parametrize("status", [400, 500])
def test_error_status_is_a_failure(status: int) -> None:
    assert not _transport(lambda _request: httpx.Response(status)).deliver("token", "t", "b", {})


def test_network_error_is_reported_not_raised() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    assert not _transport(handler).deliver("token", "t", "b", {})


def test_logging_transport_always_accepts(caplog: pytest.LogCaptureFixture) -> None:
    transport = LoggingTransport()

    with caplog.at_level("INFO", logger="libwatch.adapters.push"):
        assert transport.deliver("ExponentPushToken[abcdef]", "Title", "Body", PAYLOAD)

    assert transport.delivered == 1
    assert "Title" in caplog.text
    assert "ExponentPushToken[abcdef]" not in caplog.text


def test_build_transport_picks_implementation() -> None:
    assert isinstance(build_transport(PushConfig()), LoggingTransport)

    transport = build_transport(PushConfig(endpoint="https://push.example.test", access_token="x"))

    assert isinstance(transport, HttpPushTransport)
    assert transport.access_token == "x"
