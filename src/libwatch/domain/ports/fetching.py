"""Ports for fetching data from the upstream catalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from libwatch.domain.model import NewsEntry


@dataclass(slots=True, frozen=True)
class OwnedItemRecord:
    """One entitlement as reported by the upstream catalog."""

    item_id: str
    name: str
    logo_fragment: str | None = None
    playtime_minutes: int | None = None


@dataclass(slots=True, frozen=True)
class Profile:
    display_name: str
    avatar_url: str | None = None


@runtime_checkable
class CatalogClient(Protocol):
    """Upstream catalog access. Every method raises ``UpstreamError`` on failure."""

    def fetch_owned_items(self, external_id: str) -> Sequence[OwnedItemRecord]: ...

    def fetch_profile(self, external_id: str) -> Profile | None: ...

    def fetch_news(self, item_id: str, *, count: int = 5) -> Sequence[NewsEntry]: ...


__all__ = ["CatalogClient", "OwnedItemRecord", "Profile"]
