"""Pending-confirmation queue of newly detected items."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from libwatch.domain.errors import ReconcileError, StorageError
from libwatch.domain.model import PendingItem

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from libwatch.domain.context import EngineContext
    from libwatch.domain.model import User
    from libwatch.domain.reconciliation.diff import NewItem

log = getLogger(__name__)


def stage_pending(user: User, items: Iterable[NewItem], *, detected_at: datetime) -> int:
    """Append ``items`` to the user's pending queue. No deduplication."""

    staged = [
        PendingItem(
            item_id=item.item_id,
            name=item.name,
            logo_url=item.logo_url,
            detected_at=detected_at,
        )
        for item in items
    ]
    user.pending_items.extend(staged)
    if staged:
        log.info("%s items staged as pending for user %s", len(staged), user.external_id)
    return len(staged)


@dataclass(slots=True)
class DrainResult:
    user_id: str
    items: list[PendingItem] = field(default_factory=list["PendingItem"])
    error: ReconcileError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def drain_pending(user_id: str, *, context: EngineContext) -> DrainResult:
    """Return and clear the whole pending queue of ``user_id`` in one unit of work."""

    result = DrainResult(user_id=user_id)
    try:
        with context.locks.hold(user_id), context.unit_of_work_factory() as uow:
            user = uow.repositories.users.get(user_id)
            if user is None:
                result.error = ReconcileError.not_found("user", user_id)
                return result
            if not user.pending_items:
                return result
            drained = list(user.pending_items)
            user.pending_items.clear()
            uow.repositories.users.add(user)
            uow.commit()
    except StorageError as exc:
        log.exception("Draining pending items failed for user %s", user_id)
        result.error = ReconcileError.from_exception(exc)
        return result

    result.items = drained
    log.info("%s pending items drained for user %s", len(drained), user_id)
    return result


__all__ = ["DrainResult", "drain_pending", "stage_pending"]
