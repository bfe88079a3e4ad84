"""The user ↔ catalog-item follow relationship.

``User.followed_items`` and ``CatalogItem.followers`` are two views of one relationship.
Every mutation goes through :func:`follow` / :func:`unfollow` so both sides are written
in the same unit of work. Stores that cannot make those writes atomic are brought back in
line by :func:`repair_follow_links`, which treats the user side as authoritative.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from libwatch.domain.model import CatalogItem, FollowedItem, FollowOutcome

if TYPE_CHECKING:
    from datetime import datetime

    from libwatch.domain.context import EngineContext
    from libwatch.domain.model import User
    from libwatch.domain.ports import LibraryRepositories

log = getLogger(__name__)


def follow(
    repositories: LibraryRepositories,
    user: User,
    *,
    item_id: str,
    name: str,
    logo_url: str | None,
    now: datetime,
    watermark: datetime | None,
) -> bool:
    """Link ``user`` and ``item_id``; create the catalog item on first follow.

    ``watermark`` seeds both "last seen" markers of the follow entry: ``None`` treats
    everything published from now on as unseen. Returns ``False`` when the user already
    followed the item (the follower side is still re-asserted).
    """

    catalog = repositories.catalog_items
    if catalog.get(item_id) is None:
        catalog.add(CatalogItem(item_id=item_id, name=name, logo_url=logo_url, created_at=now))
        log.info("Catalog item %s (%s) created on first follow", item_id, name)
    catalog.add_follower(item_id, user.external_id)

    if user.is_following(item_id):
        return False
    user._attach_followed(  # pyright: ignore[reportPrivateUsage] # noqa: SLF001
        FollowedItem(
            item_id=item_id,
            name=name,
            logo_url=logo_url,
            last_news_seen_at=watermark,
            last_update_seen_at=watermark,
        )
    )
    return True


def unfollow(repositories: LibraryRepositories, user: User, *, item_id: str) -> bool:
    """Unlink ``user`` and ``item_id``. The catalog item itself is kept for history."""

    removed = user._detach_followed(item_id)  # pyright: ignore[reportPrivateUsage] # noqa: SLF001
    repositories.catalog_items.remove_follower(item_id, user.external_id)
    item = repositories.catalog_items.get(item_id)
    if item is not None and not item.followers:
        log.info("Catalog item %s has no followers left", item_id)
    return removed is not None


def follow_item(
    context: EngineContext,
    user_id: str,
    *,
    item_id: str,
    name: str,
    logo_url: str | None = None,
) -> FollowOutcome:
    """Explicit follow: watermarks start at "now" so no backlog is announced."""

    with context.locks.hold(user_id), context.unit_of_work_factory() as uow:
        repositories = uow.repositories
        user = repositories.users.get(user_id)
        if user is None:
            return FollowOutcome.USER_NOT_FOUND
        now = context.now()
        created = follow(
            repositories,
            user,
            item_id=item_id,
            name=name,
            logo_url=logo_url,
            now=now,
            watermark=now,
        )
        repositories.users.add(user)
        uow.commit()
    return FollowOutcome.FOLLOWED if created else FollowOutcome.ALREADY_FOLLOWING


def unfollow_item(context: EngineContext, user_id: str, *, item_id: str) -> FollowOutcome:
    with context.locks.hold(user_id), context.unit_of_work_factory() as uow:
        repositories = uow.repositories
        user = repositories.users.get(user_id)
        if user is None:
            return FollowOutcome.USER_NOT_FOUND
        removed = unfollow(repositories, user, item_id=item_id)
        repositories.users.add(user)
        uow.commit()
    return FollowOutcome.UNFOLLOWED if removed else FollowOutcome.NOT_FOLLOWING


@dataclass(slots=True)
class RepairReport:
    users_checked: int = 0
    followers_added: int = 0
    followers_removed: int = 0


def repair_follow_links(context: EngineContext) -> RepairReport:
    """Re-establish ``followed_items`` ⇔ ``followers`` from the user side."""

    report = RepairReport()
    with context.unit_of_work_factory() as uow:
        users = uow.repositories.users.list_all()
        catalog = uow.repositories.catalog_items
        users_by_id = {user.external_id: user for user in users}
        now = context.now()

        for user in users:
            report.users_checked += 1
            for followed in user.followed_items:
                if catalog.get(followed.item_id) is None:
                    catalog.add(
                        CatalogItem(
                            item_id=followed.item_id,
                            name=followed.name,
                            logo_url=followed.logo_url,
                            created_at=now,
                        )
                    )
                if catalog.add_follower(followed.item_id, user.external_id):
                    report.followers_added += 1

        for item in catalog.list_followed():
            for follower_id in sorted(item.followers):
                owner = users_by_id.get(follower_id)
                if owner is not None and owner.is_following(item.item_id):
                    continue
                if catalog.remove_follower(item.item_id, follower_id):
                    report.followers_removed += 1

        uow.commit()

    log.info(
        "Follow repair finished: users=%s, added=%s, removed=%s",
        report.users_checked,
        report.followers_added,
        report.followers_removed,
    )
    return report


__all__ = [
    "RepairReport",
    "follow",
    "follow_item",
    "repair_follow_links",
    "unfollow",
    "unfollow_item",
]
