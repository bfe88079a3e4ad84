"""Collaborators shared by the engine operations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from libwatch.domain.reconciliation.locks import UserLocks
from libwatch.domain.reconciliation.policy import ReconcilePolicy
from libwatch.domain.reconciliation.throttle import ThrottleGate

if TYPE_CHECKING:
    from libwatch.domain.ports import CatalogClient, NotificationTransport, UnitOfWorkFactory

type Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class EngineContext:
    """Ports and policy wired together for one process.

    ``locks`` must be shared by every caller touching the same users, so one context is
    normally built per process and reused.
    """

    catalog: CatalogClient
    unit_of_work_factory: UnitOfWorkFactory
    transport: NotificationTransport | None = None
    policy: ReconcilePolicy = field(default_factory=ReconcilePolicy)
    locks: UserLocks = field(default_factory=UserLocks)
    clock: Clock = utcnow

    @property
    def gate(self) -> ThrottleGate:
        return ThrottleGate(cooldown=self.policy.cooldown)

    def now(self) -> datetime:
        return self.clock()
