"""Additive delta between a stored snapshot and a freshly fetched entitlement list."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from libwatch.domain.model import ItemAction, SyncedItem

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from libwatch.domain.ports.fetching import OwnedItemRecord

    from .policy import ReconcilePolicy


@dataclass(slots=True, frozen=True)
class NewItem:
    item_id: str
    name: str
    logo_url: str | None = None


@dataclass(slots=True, frozen=True)
class UpdatedItem:
    item_id: str
    name: str
    action: ItemAction


@dataclass(slots=True)
class LibraryDelta:
    """Outcome of diffing one user's library. Never contains removals."""

    snapshot: list[SyncedItem] = field(default_factory=list["SyncedItem"])
    new_items: list[NewItem] = field(default_factory=list["NewItem"])
    backfilled: list[UpdatedItem] = field(default_factory=list["UpdatedItem"])

    @property
    def has_changes(self) -> bool:
        return bool(self.new_items or self.backfilled)


def compute_delta(
    stored: Iterable[SyncedItem],
    fetched: Iterable[OwnedItemRecord],
    *,
    now: datetime,
    policy: ReconcilePolicy,
) -> LibraryDelta:
    """Diff ``fetched`` against ``stored``.

    Stored entries keep their order and are never dropped, even when the upstream list no
    longer reports them. New ids are appended in fetch order. Within one fetch the first
    occurrence of an id decides whether it is new; the last occurrence wins for enrichment.
    """

    existing: dict[str, SyncedItem] = {}
    for item in stored:
        existing.setdefault(item.item_id, item)

    outgoing = dict(existing)
    new_by_id: dict[str, NewItem] = {}
    backfilled: dict[str, UpdatedItem] = {}

    for record in fetched:
        item_id = record.item_id
        logo_url = policy.logo_url(item_id, record.logo_fragment)

        if item_id in new_by_id:
            enriched = replace(
                outgoing[item_id],
                name=record.name,
                logo_url=logo_url or outgoing[item_id].logo_url,
            )
            outgoing[item_id] = enriched
            new_by_id[item_id] = NewItem(item_id, enriched.name, enriched.logo_url)
            continue

        if item_id not in existing:
            outgoing[item_id] = SyncedItem(
                item_id=item_id,
                name=record.name,
                logo_url=logo_url,
                added_at=now,
            )
            new_by_id[item_id] = NewItem(item_id, record.name, logo_url)
            continue

        current = outgoing[item_id]
        if current.logo_url is None and logo_url is not None:
            outgoing[item_id] = replace(current, logo_url=logo_url)
            backfilled.setdefault(
                item_id, UpdatedItem(item_id, record.name, ItemAction.UPDATED)
            )

    return LibraryDelta(
        snapshot=list(outgoing.values()),
        new_items=list(new_by_id.values()),
        backfilled=list(backfilled.values()),
    )
