"""News ingestion for followed catalog items."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from libwatch.domain.errors import ReconcileError, StorageError, UpstreamError
from libwatch.domain.notifications import item_news_announcement, notify_followers

if TYPE_CHECKING:
    from libwatch.domain.context import EngineContext
    from libwatch.domain.model import NewsEntry

log = getLogger(__name__)

DEFAULT_NEWS_COUNT = 5


@dataclass(slots=True)
class NewsCheckResult:
    item_id: str
    fresh: list[NewsEntry] = field(default_factory=list["NewsEntry"])
    baseline: bool = False
    notified: int = 0
    error: ReconcileError | None = None


def check_item_news(
    item_id: str,
    *,
    context: EngineContext,
    count: int = DEFAULT_NEWS_COUNT,
) -> NewsCheckResult:
    """Announce news published since the item's ``last_news_at``.

    The first check of an item only records the newest publication time.
    """

    result = NewsCheckResult(item_id=item_id)
    try:
        with context.unit_of_work_factory() as uow:
            item = uow.repositories.catalog_items.get(item_id)
        if item is None:
            result.error = ReconcileError.not_found("catalog item", item_id)
            return result

        entries = sorted(
            context.catalog.fetch_news(item_id, count=count), key=lambda e: e.published_at
        )
        if not entries:
            return result

        if item.last_news_at is None:
            result.baseline = True
        else:
            watermark = item.last_news_at
            result.fresh = [entry for entry in entries if entry.published_at > watermark]
            for entry in result.fresh:
                result.notified += notify_followers(
                    item_id, item_news_announcement(item, entry), context=context
                )

        newest = entries[-1].published_at
        if item.last_news_at is None or newest > item.last_news_at:
            with context.unit_of_work_factory() as uow:
                current = uow.repositories.catalog_items.get(item_id)
                if current is not None:
                    current.last_news_at = newest
                    uow.repositories.catalog_items.add(current)
                    uow.commit()
    except (UpstreamError, StorageError) as exc:
        log.exception("News check failed for %s", item_id)
        result.error = ReconcileError.from_exception(exc)
        return result

    if result.fresh:
        log.info(
            "%s news entries for %s, %s notifications sent",
            len(result.fresh),
            item_id,
            result.notified,
        )
    return result


def check_followed_news(
    *, context: EngineContext, count: int = DEFAULT_NEWS_COUNT
) -> list[NewsCheckResult]:
    with context.unit_of_work_factory() as uow:
        item_ids = [item.item_id for item in uow.repositories.catalog_items.list_followed()]
    log.info("Checking news for %s followed items", len(item_ids))
    return [check_item_news(item_id, context=context, count=count) for item_id in item_ids]


__all__ = ["DEFAULT_NEWS_COUNT", "NewsCheckResult", "check_followed_news", "check_item_news"]
