"""Domain model for the library reconciliation engine."""

from __future__ import annotations

from .catalog import CatalogItem, NewsEntry
from .enums import AnnouncementKind, FollowOutcome, ItemAction, ThrottleDecision
from .user import (
    FollowedItem,
    NotificationSettings,
    OwnedItem,
    PendingItem,
    SyncedItem,
    User,
)

__all__ = [
    "AnnouncementKind",
    "CatalogItem",
    "FollowOutcome",
    "FollowedItem",
    "ItemAction",
    "NewsEntry",
    "NotificationSettings",
    "OwnedItem",
    "PendingItem",
    "SyncedItem",
    "ThrottleDecision",
    "User",
]
