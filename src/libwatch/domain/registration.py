"""User registration, forced library import and notification settings."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from libwatch.domain.errors import ReconcileError, StorageError, UpstreamError
from libwatch.domain.model import User
from libwatch.domain.reconciliation.diff import compute_delta

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from libwatch.domain.context import EngineContext
    from libwatch.domain.model import NotificationSettings
    from libwatch.domain.ports import OwnedItemRecord

log = getLogger(__name__)


@dataclass(slots=True)
class RegistrationResult:
    user_id: str
    created: bool = False
    owned_added: int = 0
    error: ReconcileError | None = None


@dataclass(slots=True)
class ImportResult:
    user_id: str
    before: int = 0
    after: int = 0
    added: int = 0
    error: ReconcileError | None = None


def _append_missing(user: User, records: Iterable[OwnedItemRecord], *, now: datetime) -> int:
    return sum(1 for record in records if user.record_owned(record.item_id, seen_at=now))


def register_user(
    external_id: str,
    *,
    context: EngineContext,
    force_sync: bool = False,
) -> RegistrationResult:
    """Create ``external_id`` or refresh its profile.

    A new user starts with both library collections seeded from the current upstream list
    and ``last_checked_at`` set, so the first reconciliation reports nothing as new.
    """

    result = RegistrationResult(user_id=external_id)
    try:
        profile = context.catalog.fetch_profile(external_id)
        if profile is None:
            result.error = ReconcileError.not_found("profile", external_id)
            return result

        with context.locks.hold(external_id), context.unit_of_work_factory() as uow:
            users = uow.repositories.users
            user = users.get(external_id)
            now = context.now()
            if user is None:
                records = context.catalog.fetch_owned_items(external_id)
                user = User(
                    external_id=external_id,
                    display_name=profile.display_name,
                    avatar_url=profile.avatar_url,
                    created_at=now,
                    last_checked_at=now,
                )
                seeded = compute_delta((), records, now=now, policy=context.policy)
                user.synced_items = list(seeded.snapshot)
                result.owned_added = _append_missing(user, records, now=now)
                result.created = True
            else:
                user.display_name = profile.display_name
                user.avatar_url = profile.avatar_url
                if force_sync:
                    records = context.catalog.fetch_owned_items(external_id)
                    result.owned_added = _append_missing(user, records, now=now)
            users.add(user)
            uow.commit()
    except (UpstreamError, StorageError) as exc:
        log.exception("Registration failed for %s", external_id)
        result.error = ReconcileError.from_exception(exc)
        result.created = False
        result.owned_added = 0
        return result

    log.info(
        "%s user %s (%s owned items added)",
        "Registered" if result.created else "Refreshed",
        external_id,
        result.owned_added,
    )
    return result


def import_owned_items(user_id: str, *, context: EngineContext) -> ImportResult:
    """Append every upstream item missing from ``owned_items``. Never removes anything."""

    result = ImportResult(user_id=user_id)
    try:
        with context.locks.hold(user_id), context.unit_of_work_factory() as uow:
            user = uow.repositories.users.get(user_id)
            if user is None:
                result.error = ReconcileError.not_found("user", user_id)
                return result
            result.before = len(user.owned_items)
            records = context.catalog.fetch_owned_items(user_id)
            log.debug("%s items fetched for import of user %s", len(records), user_id)
            result.added = _append_missing(user, records, now=context.now())
            result.after = len(user.owned_items)
            uow.repositories.users.add(user)
            uow.commit()
    except (UpstreamError, StorageError) as exc:
        log.exception("Library import failed for user %s", user_id)
        result.error = ReconcileError.from_exception(exc)
        result.after = result.before
        result.added = 0
    return result


def update_notification_settings(
    user_id: str,
    *,
    context: EngineContext,
    enabled: bool | None = None,
    push_token: str | None = None,
    auto_follow_new_items: bool | None = None,
) -> NotificationSettings | None:
    """Change only the supplied settings; return the stored result or ``None`` if unknown."""

    with context.locks.hold(user_id), context.unit_of_work_factory() as uow:
        user = uow.repositories.users.get(user_id)
        if user is None:
            return None
        settings = user.notifications
        if enabled is not None:
            settings.enabled = enabled
        if push_token is not None:
            settings.push_token = push_token
        if auto_follow_new_items is not None:
            settings.auto_follow_new_items = auto_follow_new_items
        uow.repositories.users.add(user)
        uow.commit()
    return settings


__all__ = [
    "ImportResult",
    "RegistrationResult",
    "import_owned_items",
    "register_user",
    "update_notification_settings",
]
