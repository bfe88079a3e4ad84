from __future__ import annotations

from libwatch.domain.errors import ErrorKind, ReconcileError, StorageError, UpstreamError


def test_from_exception_maps_kind() -> None:
    upstream = ReconcileError.from_exception(UpstreamError("Steam answered 503", status_code=503))
    storage = ReconcileError.from_exception(StorageError())

    assert upstream.kind is ErrorKind.UPSTREAM
    assert upstream.message == "Steam answered 503"
    assert storage.kind is ErrorKind.STORAGE
    assert storage.message == "StorageError"


def test_payload_marks_retryable_failures() -> None:
    assert ReconcileError.not_found("user", "u").as_payload() == {
        "kind": "not_found",
        "message": "user not found: u",
        "retryable": False,
    }
    assert ReconcileError(ErrorKind.STORAGE, "locked").as_payload()["retryable"] is True
