"""Push notification delivery settings."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env
from .http_resilience import RateLimit, ResilienceConfig

PUSH_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class PushConfig:
    """``endpoint`` unset means notifications are only logged."""

    endpoint: str | None = None
    access_token: str | None = None
    resilience: ResilienceConfig | None = None

    @property
    def enabled(self) -> bool:
        return self.endpoint is not None


def get_push_config() -> PushConfig:
    endpoint = optional_env("LIBWATCH_PUSH_ENDPOINT")
    if endpoint is None:
        return PushConfig()
    return PushConfig(
        endpoint=endpoint,
        access_token=optional_env("LIBWATCH_PUSH_ACCESS_TOKEN"),
        resilience=ResilienceConfig(
            name="push",
            timeout_seconds=PUSH_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        ),
    )
