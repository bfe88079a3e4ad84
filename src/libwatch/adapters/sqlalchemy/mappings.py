"""SQLAlchemy Core tables for users, catalog items and follower links."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

from libwatch.domain.model import FollowedItem, OwnedItem, PendingItem, SyncedItem

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.engine import Engine


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class RecordListType[TRecord](TypeDecorator[list[TRecord]]):
    """Stores a list of frozen record dataclasses as a JSON document.

    Serialisation goes through a pydantic ``TypeAdapter`` so datetimes round-trip as
    ISO 8601 strings and unknown keys from older documents are ignored.
    """

    impl = JSON
    cache_ok = True

    def __init__(self, record_type: type[TRecord]) -> None:
        super().__init__()
        self.record_type = record_type
        self._adapter: TypeAdapter[list[TRecord]] = TypeAdapter(list[record_type])

    def process_bind_param(
        self, value: Sequence[TRecord] | None, dialect: Dialect
    ) -> list[Any]:
        _ = dialect
        return self._adapter.dump_python(list(value or ()), mode="json")

    def process_result_value(self, value: Any, dialect: Dialect) -> list[TRecord]:  # noqa: ANN401
        _ = dialect
        if value is None:
            return []
        return self._adapter.validate_python(value)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

user_account_table = Table(
    "user_account",
    metadata,
    Column("external_id", String(64), primary_key=True),
    Column("display_name", String(255), nullable=False),
    Column("avatar_url", String(1024)),
    Column("notifications_enabled", Boolean, nullable=False, default=False),
    Column("push_token", String(512)),
    Column("auto_follow_new_items", Boolean, nullable=False, default=False),
    Column("last_checked_at", UTCDateTime()),
    Column("created_at", UTCDateTime()),
    Column("owned_items", RecordListType(OwnedItem), nullable=False),
    Column("synced_items", RecordListType(SyncedItem), nullable=False),
    Column("followed_items", RecordListType(FollowedItem), nullable=False),
    Column("pending_items", RecordListType(PendingItem), nullable=False),
)

catalog_item_table = Table(
    "catalog_item",
    metadata,
    Column("item_id", String(64), primary_key=True),
    Column("name", String(512), nullable=False),
    Column("logo_url", String(1024)),
    Column("last_news_at", UTCDateTime()),
    Column("last_update_at", UTCDateTime()),
    Column("created_at", UTCDateTime()),
)

# user_id has no foreign key: stale links are cleaned up by the follow repair sweep.
catalog_follower_table = Table(
    "catalog_follower",
    metadata,
    Column(
        "item_id",
        String(64),
        ForeignKey("catalog_item.item_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("user_id", String(64), primary_key=True),
    Index("ix_catalog_follower_user_id", "user_id"),
)


def create_all_tables(engine: Engine) -> None:
    """Create the schema without Alembic (scratch databases only)."""

    metadata.create_all(engine)


__all__ = [
    "RecordListType",
    "UTCDateTime",
    "catalog_follower_table",
    "catalog_item_table",
    "create_all_tables",
    "metadata",
    "user_account_table",
]
