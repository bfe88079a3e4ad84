"""User aggregate: library snapshot, follow list and pending queue."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003


@dataclass(slots=True, frozen=True)
class OwnedItem:
    """An entitlement observed at least once for the user."""

    item_id: str
    first_seen_at: datetime


@dataclass(slots=True, frozen=True)
class SyncedItem:
    """Enriched snapshot entry used as the diff baseline."""

    item_id: str
    name: str
    logo_url: str | None = None
    added_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class FollowedItem:
    item_id: str
    name: str
    logo_url: str | None = None
    last_news_seen_at: datetime | None = None
    last_update_seen_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class PendingItem:
    """Newly detected item waiting to be drained by the user-facing flow."""

    item_id: str
    name: str
    logo_url: str | None
    detected_at: datetime


@dataclass(slots=True)
class NotificationSettings:
    enabled: bool = False
    push_token: str | None = None
    auto_follow_new_items: bool = False

    @property
    def can_receive(self) -> bool:
        """Both the enabled flag and a delivery token are required."""
        return self.enabled and bool(self.push_token)


@dataclass(eq=False, kw_only=True)
class User:
    """A tracked account of the upstream catalog, keyed by its external id."""

    external_id: str
    display_name: str
    avatar_url: str | None = None
    notifications: NotificationSettings = field(default_factory=NotificationSettings)

    last_checked_at: datetime | None = None
    created_at: datetime | None = None

    owned_items: list[OwnedItem] = field(default_factory=list["OwnedItem"], repr=False)
    synced_items: list[SyncedItem] = field(default_factory=list["SyncedItem"], repr=False)
    pending_items: list[PendingItem] = field(default_factory=list["PendingItem"], repr=False)

    # Mutated only through libwatch.domain.follows so the catalog side stays in sync.
    _followed_items: list[FollowedItem] = field(
        default_factory=list["FollowedItem"], repr=False
    )

    @property
    def followed_items(self) -> tuple[FollowedItem, ...]:
        return tuple(self._followed_items)

    def is_following(self, item_id: str) -> bool:
        return any(item.item_id == item_id for item in self._followed_items)

    def owned_ids(self) -> set[str]:
        return {item.item_id for item in self.owned_items}

    def record_owned(self, item_id: str, *, seen_at: datetime) -> bool:
        """Append ``item_id`` to the owned list unless already present."""

        if any(item.item_id == item_id for item in self.owned_items):
            return False
        self.owned_items.append(OwnedItem(item_id=item_id, first_seen_at=seen_at))
        return True

    def _attach_followed(self, item: FollowedItem) -> None:
        self._followed_items.append(item)

    def _detach_followed(self, item_id: str) -> FollowedItem | None:
        for index, item in enumerate(self._followed_items):
            if item.item_id == item_id:
                return self._followed_items.pop(index)
        return None
