"""Batch scheduler: split the population into groups and reconcile one group."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .engine import reconcile_user

if TYPE_CHECKING:
    from collections.abc import Sequence

    from libwatch.domain.context import EngineContext

    from .engine import ReconciliationResult

log = getLogger(__name__)


def partition[T](population: Sequence[T], group_index: int, total_groups: int) -> Sequence[T]:
    """Return the contiguous slice of ``population`` belonging to ``group_index``.

    The first ``len(population) % total_groups`` groups hold ``ceil(P / G)`` members and the
    rest hold ``floor(P / G)``, so sizes differ by at most one and every member lands in
    exactly one group.
    """

    if total_groups < 1:
        raise ValueError(f"total_groups must be at least 1, got {total_groups}")
    if not 0 <= group_index < total_groups:
        raise ValueError(f"group_index must be in [0, {total_groups}), got {group_index}")

    base, remainder = divmod(len(population), total_groups)
    start = group_index * base + min(group_index, remainder)
    size = base + (1 if group_index < remainder else 0)
    return population[start : start + size]


@dataclass(slots=True)
class GroupStats:
    group_index: int
    total_groups: int
    total_users: int = 0
    users_in_group: int = 0
    users_processed: int = 0
    users_skipped: int = 0
    users_with_new_items: int = 0
    total_new_items: int = 0
    errors: int = 0
    cancelled: bool = False
    not_started: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, result: ReconciliationResult) -> None:
        with self._lock:
            self.users_processed += 1
            if result.skipped:
                self.users_skipped += 1
                return
            if result.error is not None:
                self.errors += 1
                return
            if result.new_items:
                self.users_with_new_items += 1
                self.total_new_items += len(result.new_items)

    def record_failure(self) -> None:
        with self._lock:
            self.users_processed += 1
            self.errors += 1

    def record_not_started(self) -> None:
        with self._lock:
            self.not_started += 1
            self.cancelled = True

    def as_dict(self) -> dict[str, object]:
        return {
            "group_index": self.group_index,
            "total_groups": self.total_groups,
            "total_users": self.total_users,
            "users_in_group": self.users_in_group,
            "users_processed": self.users_processed,
            "users_skipped": self.users_skipped,
            "users_with_new_items": self.users_with_new_items,
            "total_new_items": self.total_new_items,
            "errors": self.errors,
            "cancelled": self.cancelled,
            "not_started": self.not_started,
        }


def reconcile_group(
    group_index: int,
    total_groups: int,
    *,
    context: EngineContext,
    max_workers: int = 1,
    cancel_event: threading.Event | None = None,
    deadline: float | None = None,
) -> GroupStats:
    """Reconcile every user of one group.

    Enumerating the population is the only fatal step; each user's failure is tallied.
    ``deadline`` is a ``time.monotonic()`` value. Once it passes, or ``cancel_event`` is
    set, no further user is started; in-flight users finish and persist.
    """

    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")

    stats = GroupStats(group_index=group_index, total_groups=total_groups)
    with context.unit_of_work_factory() as uow:
        user_ids = [user.external_id for user in uow.repositories.users.list_all()]
    stats.total_users = len(user_ids)

    members = partition(user_ids, group_index, total_groups)
    stats.users_in_group = len(members)
    log.info(
        "Reconciling group %s/%s: %s of %s users",
        group_index + 1,
        total_groups,
        stats.users_in_group,
        stats.total_users,
    )
    if not members:
        return stats

    def should_stop() -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and time.monotonic() >= deadline

    def run_one(user_id: str) -> None:
        if should_stop():
            stats.record_not_started()
            return
        try:
            result = reconcile_user(user_id, context=context)
        except Exception:  # noqa: BLE001
            log.exception("Reconciliation crashed for user %s", user_id)
            stats.record_failure()
            return
        if result.error is not None:
            log.warning("Reconciliation failed for user %s: %s", user_id, result.error.message)
        stats.record(result)

    if max_workers == 1:
        for user_id in members:
            run_one(user_id)
    else:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="reconcile") as pool:
            list(pool.map(run_one, members))

    log.info("Group %s/%s finished: %s", group_index + 1, total_groups, stats.as_dict())
    return stats


__all__ = ["GroupStats", "partition", "reconcile_group"]
