"""Application entry points with the default adapters wired in.

Every function accepts an explicit ``context`` so tests and embedding services can supply
their own ports; without one, the Steam client, the SQLAlchemy store and the configured
push transport are used.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from libwatch.adapters.push import build_transport
from libwatch.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLibraryUnitOfWork,
    is_started,
    startup,
)
from libwatch.adapters.steam import SteamClient, should_cache_payload
from libwatch.config import get_push_config, get_steam_config, get_storage_config, get_sync_config
from libwatch.domain import follows, news, pending, registration
from libwatch.domain import notifications as fanout
from libwatch.domain.context import EngineContext
from libwatch.domain.reconciliation import ReconcilePolicy, UserLocks
from libwatch.domain.reconciliation import engine as reconcile_engine
from libwatch.domain.reconciliation import scheduler as batch_scheduler

if TYPE_CHECKING:
    from collections.abc import Sequence

    from libwatch.domain.model import FollowOutcome, NewsEntry, NotificationSettings
    from libwatch.domain.notifications import Announcement
    from libwatch.domain.ports import (
        CatalogClient,
        NotificationTransport,
        OwnedItemRecord,
        Profile,
        UnitOfWorkFactory,
    )

log = getLogger(__name__)

# One registry per process so every entry point serialises on the same user locks.
_LOCKS = UserLocks()


@dataclass(slots=True)
class DeferredSteamClient:
    """Builds the Steam client on first use so commands that never fetch need no API key."""

    _client: SteamClient | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _resolve(self) -> SteamClient:
        with self._lock:
            if self._client is None:
                cache_path = str(get_storage_config().http_cache_path())
                self._client = SteamClient(
                    config=get_steam_config(
                        cache_predicate=should_cache_payload, cache_path=cache_path
                    )
                )
            return self._client

    def fetch_owned_items(self, external_id: str) -> Sequence[OwnedItemRecord]:
        return self._resolve().fetch_owned_items(external_id)

    def fetch_profile(self, external_id: str) -> Profile | None:
        return self._resolve().fetch_profile(external_id)

    def fetch_news(self, item_id: str, *, count: int = 5) -> Sequence[NewsEntry]:
        return self._resolve().fetch_news(item_id, count=count)


def _ensure_started() -> None:
    if not is_started():
        log.debug("Initialising the SQLAlchemy adapter")
        startup()


def build_context(
    *,
    catalog: CatalogClient | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    transport: NotificationTransport | None = None,
    policy: ReconcilePolicy | None = None,
) -> EngineContext:
    if unit_of_work_factory is None:
        _ensure_started()
        unit_of_work_factory = SqlAlchemyLibraryUnitOfWork
    return EngineContext(
        catalog=catalog or DeferredSteamClient(),
        unit_of_work_factory=unit_of_work_factory,
        transport=transport or build_transport(get_push_config()),
        policy=policy or ReconcilePolicy(cooldown=get_sync_config().cooldown),
        locks=_LOCKS,
    )


def reconcile_user(
    user_id: str,
    *,
    force: bool = False,
    context: EngineContext | None = None,
) -> reconcile_engine.ReconciliationResult:
    return reconcile_engine.reconcile_user(user_id, context=context or build_context(), force=force)


def reconcile_group(
    group_index: int,
    total_groups: int | None = None,
    *,
    max_workers: int | None = None,
    cancel_event: threading.Event | None = None,
    deadline: float | None = None,
    context: EngineContext | None = None,
) -> batch_scheduler.GroupStats:
    """Reconcile one group; unset sizes fall back to ``LIBWATCH_TOTAL_GROUPS``/``_MAX_WORKERS``."""

    sync = get_sync_config()
    return batch_scheduler.reconcile_group(
        group_index,
        total_groups if total_groups is not None else sync.total_groups,
        context=context or build_context(),
        max_workers=max_workers if max_workers is not None else sync.max_workers,
        cancel_event=cancel_event,
        deadline=deadline,
    )


def drain_pending(user_id: str, *, context: EngineContext | None = None) -> pending.DrainResult:
    return pending.drain_pending(user_id, context=context or build_context())


def notify_followers(
    item_id: str,
    announcement: Announcement,
    *,
    context: EngineContext | None = None,
) -> int:
    return fanout.notify_followers(item_id, announcement, context=context or build_context())


def register_user(
    external_id: str,
    *,
    force_sync: bool = False,
    context: EngineContext | None = None,
) -> registration.RegistrationResult:
    return registration.register_user(
        external_id, context=context or build_context(), force_sync=force_sync
    )


def import_owned_items(
    user_id: str, *, context: EngineContext | None = None
) -> registration.ImportResult:
    return registration.import_owned_items(user_id, context=context or build_context())


def update_notification_settings(
    user_id: str,
    *,
    enabled: bool | None = None,
    push_token: str | None = None,
    auto_follow_new_items: bool | None = None,
    context: EngineContext | None = None,
) -> NotificationSettings | None:
    return registration.update_notification_settings(
        user_id,
        context=context or build_context(),
        enabled=enabled,
        push_token=push_token,
        auto_follow_new_items=auto_follow_new_items,
    )


def follow_item(
    user_id: str,
    item_id: str,
    *,
    name: str,
    logo_url: str | None = None,
    context: EngineContext | None = None,
) -> FollowOutcome:
    return follows.follow_item(
        context or build_context(), user_id, item_id=item_id, name=name, logo_url=logo_url
    )


def unfollow_item(
    user_id: str, item_id: str, *, context: EngineContext | None = None
) -> FollowOutcome:
    return follows.unfollow_item(context or build_context(), user_id, item_id=item_id)


def repair_follow_links(*, context: EngineContext | None = None) -> follows.RepairReport:
    return follows.repair_follow_links(context or build_context())


def check_item_news(
    item_id: str, *, count: int = news.DEFAULT_NEWS_COUNT, context: EngineContext | None = None
) -> news.NewsCheckResult:
    return news.check_item_news(item_id, context=context or build_context(), count=count)


def check_followed_news(
    *, count: int = news.DEFAULT_NEWS_COUNT, context: EngineContext | None = None
) -> list[news.NewsCheckResult]:
    return news.check_followed_news(context=context or build_context(), count=count)
