"""Reconciliation core: throttle gate, diff, single-user cycle and batch scheduler."""

from __future__ import annotations

from .diff import LibraryDelta, NewItem, UpdatedItem, compute_delta
from .engine import ReconciliationResult, reconcile_user
from .locks import UserLocks
from .policy import DEFAULT_COOLDOWN, ReconcilePolicy
from .scheduler import GroupStats, partition, reconcile_group
from .throttle import ThrottleGate

__all__ = [
    "DEFAULT_COOLDOWN",
    "GroupStats",
    "LibraryDelta",
    "NewItem",
    "ReconcilePolicy",
    "ReconciliationResult",
    "ThrottleGate",
    "UpdatedItem",
    "UserLocks",
    "compute_delta",
    "partition",
    "reconcile_group",
    "reconcile_user",
]
