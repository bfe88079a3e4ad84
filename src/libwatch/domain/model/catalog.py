"""Catalog items shared between users through their follower sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003


@dataclass(eq=False, kw_only=True)
class CatalogItem:
    """Upstream item that at least one user followed at some point.

    ``followers`` is a read snapshot; membership changes go through the repository's
    atomic add/remove operations.
    """

    item_id: str
    name: str
    logo_url: str | None = None
    last_news_at: datetime | None = None
    last_update_at: datetime | None = None
    created_at: datetime | None = None
    followers: frozenset[str] = field(default_factory=frozenset[str])


@dataclass(slots=True, frozen=True)
class NewsEntry:
    """One news post published for a catalog item."""

    news_id: str
    title: str
    url: str | None
    published_at: datetime
    feed_label: str | None = None
