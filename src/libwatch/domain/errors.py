"""Error taxonomy shared by the reconciliation core and its adapters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class UpstreamError(RuntimeError):
    """Raised when the upstream catalog could not be reached or returned an unusable shape."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StorageError(RuntimeError):
    """Raised when reading or writing persisted state failed."""


class ErrorKind(StrEnum):
    """Distinguishes give-up failures from retryable ones for callers."""

    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"
    STORAGE = "storage"

    @property
    def retryable(self) -> bool:
        return self is not ErrorKind.NOT_FOUND


@dataclass(slots=True, frozen=True)
class ReconcileError:
    """Structured failure carried by results instead of raising past the engine boundary."""

    kind: ErrorKind
    message: str

    @classmethod
    def not_found(cls, what: str, identifier: str) -> ReconcileError:
        return cls(kind=ErrorKind.NOT_FOUND, message=f"{what} not found: {identifier}")

    @classmethod
    def from_exception(cls, exc: UpstreamError | StorageError) -> ReconcileError:
        kind = ErrorKind.UPSTREAM if isinstance(exc, UpstreamError) else ErrorKind.STORAGE
        return cls(kind=kind, message=str(exc) or type(exc).__name__)

    def as_payload(self) -> dict[str, object]:
        return {"kind": self.kind.value, "message": self.message, "retryable": self.kind.retryable}
