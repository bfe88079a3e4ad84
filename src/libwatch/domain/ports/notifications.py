"""Port for delivering push notifications."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@runtime_checkable
class NotificationTransport(Protocol):
    """Delivers one notification. Returns ``False`` on any failure instead of raising."""

    def deliver(
        self,
        token: str,
        title: str,
        body: str,
        payload: Mapping[str, object],
    ) -> bool: ...
