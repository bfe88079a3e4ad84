"""Per-user cooldown between two reconciliation attempts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from libwatch.domain.model import ThrottleDecision

from .policy import DEFAULT_COOLDOWN

if TYPE_CHECKING:
    from datetime import datetime, timedelta


@dataclass(slots=True, frozen=True)
class ThrottleGate:
    cooldown: timedelta = DEFAULT_COOLDOWN

    def decide(self, last_checked_at: datetime | None, *, now: datetime) -> ThrottleDecision:
        """Skip users checked less than one cooldown ago; never-checked users proceed."""

        if last_checked_at is None:
            return ThrottleDecision.PROCEED
        if now - last_checked_at < self.cooldown:
            return ThrottleDecision.SKIP
        return ThrottleDecision.PROCEED

    def next_check_at(self, last_checked_at: datetime | None) -> datetime | None:
        return None if last_checked_at is None else last_checked_at + self.cooldown
