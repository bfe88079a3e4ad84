"""Single-user reconciliation cycle: fetch, diff, apply, persist."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from libwatch.domain.errors import ErrorKind, ReconcileError, StorageError, UpstreamError
from libwatch.domain.follows import follow
from libwatch.domain.model import ItemAction, ThrottleDecision
from libwatch.domain.notifications import new_item_announcement, notify_user
from libwatch.domain.pending import stage_pending
from libwatch.domain.ports import OwnedItemRecord

from .diff import NewItem, UpdatedItem, compute_delta

if TYPE_CHECKING:
    from datetime import datetime

    from libwatch.domain.context import EngineContext
    from libwatch.domain.model import User
    from libwatch.domain.ports import LibraryRepositories

    from .diff import LibraryDelta

log = getLogger(__name__)


@dataclass(slots=True)
class ReconciliationResult:
    user_id: str
    new_items: list[NewItem] = field(default_factory=list["NewItem"])
    updated_items: list[UpdatedItem] = field(default_factory=list["UpdatedItem"])
    error: ReconcileError | None = None
    skipped: bool = False
    checked_at: datetime | None = None
    notified: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def reconcile_user(
    user_id: str,
    *,
    context: EngineContext,
    force: bool = False,
) -> ReconciliationResult:
    """Run one reconciliation cycle for ``user_id``.

    Failures are reported on the result, never raised: unknown user, upstream failure and
    storage failure each set ``error``. ``force`` bypasses the throttle gate.
    """

    result = ReconciliationResult(user_id=user_id)
    try:
        with context.locks.hold(user_id):
            user = _reconcile_locked(user_id, context=context, force=force, result=result)
    except StorageError as exc:
        log.exception("Persisting reconciliation failed for user %s", user_id)
        result.error = ReconcileError.from_exception(exc)
        result.new_items = []
        result.updated_items = []
        result.checked_at = None
        return result

    if user is not None and result.new_items and context.policy.notify_new_items:
        for item in result.new_items:
            if notify_user(
                user,
                new_item_announcement(item.item_id, item.name),
                transport=context.transport,
            ):
                result.notified += 1
    return result


def _reconcile_locked(
    user_id: str,
    *,
    context: EngineContext,
    force: bool,
    result: ReconciliationResult,
) -> User | None:
    with context.unit_of_work_factory() as uow:
        repositories = uow.repositories
        user = repositories.users.get(user_id)
        if user is None:
            result.error = ReconcileError.not_found("user", user_id)
            return None

        now = context.now()
        decision = context.gate.decide(user.last_checked_at, now=now)
        if not force and decision is ThrottleDecision.SKIP:
            log.debug(
                "Skipping user %s, next check at %s",
                user_id,
                context.gate.next_check_at(user.last_checked_at),
            )
            result.skipped = True
            return None

        try:
            fetched = context.catalog.fetch_owned_items(user_id)
        except UpstreamError as exc:
            log.warning("Fetching owned items failed for user %s: %s", user_id, exc)
            result.error = ReconcileError.from_exception(exc)
            return None
        if not isinstance(fetched, Sequence) or isinstance(fetched, (str, bytes)):
            log.error("Invalid owned-items response for user %s: %r", user_id, type(fetched))
            result.error = ReconcileError(
                kind=ErrorKind.UPSTREAM, message="owned items response is not a list"
            )
            return None
        malformed = next((r for r in fetched if not isinstance(r, OwnedItemRecord)), None)
        if malformed is not None:
            log.error("Invalid owned-items entry for user %s: %r", user_id, type(malformed))
            result.error = ReconcileError(
                kind=ErrorKind.UPSTREAM, message="owned items response holds a non-item entry"
            )
            return None

        delta = compute_delta(user.synced_items, fetched, now=now, policy=context.policy)
        result.new_items = list(delta.new_items)
        result.updated_items = _apply_delta(repositories, user, delta, context=context, now=now)

        user.last_checked_at = now
        repositories.users.add(user)
        uow.commit()

    result.checked_at = now
    if delta.has_changes or result.updated_items:
        log.info(
            "Reconciled user %s: %s new, %s updated",
            user_id,
            len(result.new_items),
            len(result.updated_items),
        )
    return user


def _apply_delta(
    repositories: LibraryRepositories,
    user: User,
    delta: LibraryDelta,
    *,
    context: EngineContext,
    now: datetime,
) -> list[UpdatedItem]:
    user.synced_items = list(delta.snapshot)
    for item in delta.new_items:
        user.record_owned(item.item_id, seen_at=now)

    updated = list(delta.backfilled)
    if user.notifications.auto_follow_new_items:
        for item in delta.new_items:
            created = follow(
                repositories,
                user,
                item_id=item.item_id,
                name=item.name,
                logo_url=item.logo_url,
                now=now,
                watermark=None,
            )
            if created:
                updated.append(UpdatedItem(item.item_id, item.name, ItemAction.ADDED))

    if context.policy.stage_pending:
        stage_pending(user, delta.new_items, detected_at=now)
    return updated


__all__ = ["ReconciliationResult", "reconcile_user"]
