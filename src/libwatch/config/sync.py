"""Scheduling knobs for reconciliation passes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import env_float, env_int

DEFAULT_COOLDOWN_HOURS = 6.0
DEFAULT_TOTAL_GROUPS = 6
DEFAULT_MAX_WORKERS = 1


@dataclass(frozen=True, slots=True)
class SyncConfig:
    cooldown_hours: float = DEFAULT_COOLDOWN_HOURS
    total_groups: int = DEFAULT_TOTAL_GROUPS
    max_workers: int = DEFAULT_MAX_WORKERS

    @property
    def cooldown(self) -> timedelta:
        return timedelta(hours=self.cooldown_hours)


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        cooldown_hours=env_float("LIBWATCH_COOLDOWN_HOURS", DEFAULT_COOLDOWN_HOURS, minimum=0.0),
        total_groups=env_int("LIBWATCH_TOTAL_GROUPS", DEFAULT_TOTAL_GROUPS, minimum=1),
        max_workers=env_int("LIBWATCH_MAX_WORKERS", DEFAULT_MAX_WORKERS, minimum=1),
    )
