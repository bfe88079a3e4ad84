"""Best-effort notification fan-out."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from libwatch.domain.errors import StorageError
from libwatch.domain.model import AnnouncementKind

if TYPE_CHECKING:
    from collections.abc import Mapping

    from libwatch.domain.context import EngineContext
    from libwatch.domain.model import CatalogItem, NewsEntry, User
    from libwatch.domain.ports import NotificationTransport

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Announcement:
    kind: AnnouncementKind
    title: str
    body: str
    payload: Mapping[str, object] = field(default_factory=dict[str, object])


def new_item_announcement(item_id: str, name: str) -> Announcement:
    return Announcement(
        kind=AnnouncementKind.NEW_ITEM,
        title="New item detected!",
        body=f"{name} was added to your library.",
        payload={"type": "newGame", "appId": item_id, "name": name},
    )


def item_news_announcement(item: CatalogItem, entry: NewsEntry) -> Announcement:
    return Announcement(
        kind=AnnouncementKind.ITEM_NEWS,
        title=f"News: {item.name}",
        body=entry.title or "New announcement available",
        payload={
            "type": "gameNews",
            "appId": item.item_id,
            "name": item.name,
            "newsId": entry.news_id,
            "url": entry.url,
        },
    )


def deliver_to(
    transport: NotificationTransport, user: User, announcement: Announcement
) -> bool | None:
    """Send ``announcement`` to ``user``.

    Returns ``None`` when the user cannot receive notifications, otherwise whether the
    transport accepted the message. Transport exceptions are logged and count as failures.
    """

    settings = user.notifications
    if not settings.can_receive or settings.push_token is None:
        log.debug("Notifications disabled for user %s", user.external_id)
        return None
    try:
        return bool(
            transport.deliver(
                settings.push_token,
                announcement.title,
                announcement.body,
                announcement.payload,
            )
        )
    except Exception:  # noqa: BLE001
        log.exception("Notification transport raised for user %s", user.external_id)
        return False


def notify_followers(
    item_id: str,
    announcement: Announcement,
    *,
    context: EngineContext,
) -> int:
    """Deliver ``announcement`` to every follower of ``item_id``; return the success count.

    No retries. One follower failing never stops the fan-out. An unknown item yields 0.
    """

    transport = context.transport
    if transport is None:
        log.warning("No notification transport configured; skipping fan-out for %s", item_id)
        return 0

    with context.unit_of_work_factory() as uow:
        repositories = uow.repositories
        item = repositories.catalog_items.get(item_id)
        if item is None or not item.followers:
            log.info("No followers for catalog item %s", item_id)
            return 0

        delivered = 0
        attempted = 0
        for follower_id in sorted(item.followers):
            try:
                user = repositories.users.get(follower_id)
            except StorageError:
                log.exception("Could not load follower %s of %s", follower_id, item_id)
                continue
            if user is None:
                log.debug("Follower %s of %s no longer exists", follower_id, item_id)
                continue
            outcome = deliver_to(transport, user, announcement)
            if outcome is None:
                continue
            attempted += 1
            if outcome:
                delivered += 1

    log.info(
        "Sent %s/%s notifications for %s (%s)", delivered, attempted, item.name, item_id
    )
    return delivered


def notify_user(
    user: User,
    announcement: Announcement,
    *,
    transport: NotificationTransport | None,
) -> bool:
    if transport is None:
        return False
    return bool(deliver_to(transport, user, announcement))


__all__ = [
    "Announcement",
    "deliver_to",
    "item_news_announcement",
    "new_item_announcement",
    "notify_followers",
    "notify_user",
]
