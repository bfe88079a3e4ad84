"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ItemAction(StrEnum):
    """Tag attached to snapshot records touched during a cycle without being new."""

    ADDED = "added"  # auto-followed
    UPDATED = "updated"  # logo backfilled


class ThrottleDecision(StrEnum):
    PROCEED = "proceed"
    SKIP = "skip"


class AnnouncementKind(StrEnum):
    NEW_ITEM = "new_item"
    ITEM_NEWS = "item_news"


class FollowOutcome(StrEnum):
    FOLLOWED = "followed"
    ALREADY_FOLLOWING = "already_following"
    UNFOLLOWED = "unfollowed"
    NOT_FOLLOWING = "not_following"
    USER_NOT_FOUND = "user_not_found"
