"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, cast

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from libwatch.adapters.sqlalchemy.mappings import (
    catalog_follower_table,
    catalog_item_table,
    user_account_table,
)
from libwatch.domain.errors import StorageError
from libwatch.domain.model import CatalogItem, NotificationSettings, User

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import CursorResult, Executable, Result, Table
    from sqlalchemy.orm import Session


class _SqlAlchemyRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _execute(self, statement: Executable) -> Result[tuple[object, ...]]:
        try:
            return self.session.execute(statement)
        except SQLAlchemyError as exc:
            raise StorageError(f"{type(self).__name__}: {exc}") from exc

    def _upsert(self, table: Table, key: str, values: Mapping[str, object]) -> None:
        changes = {name: value for name, value in values.items() if name != key}
        updated = cast(
            "CursorResult[tuple[object, ...]]",
            self._execute(update(table).where(table.c[key] == values[key]).values(changes)),
        )
        if updated.rowcount == 0:
            self._execute(insert(table).values(dict(values)))


class SqlAlchemyUserRepository(_SqlAlchemyRepository):
    def get(self, external_id: str) -> User | None:
        stmt = select(user_account_table).where(user_account_table.c.external_id == external_id)
        row = self._execute(stmt).mappings().first()
        return None if row is None else _user_from_row(row)

    def list_all(self) -> list[User]:
        stmt = select(user_account_table).order_by(
            user_account_table.c.created_at, user_account_table.c.external_id
        )
        return [_user_from_row(row) for row in self._execute(stmt).mappings()]

    def add(self, entity: User) -> None:
        settings = entity.notifications
        self._upsert(
            user_account_table,
            "external_id",
            {
                "external_id": entity.external_id,
                "display_name": entity.display_name,
                "avatar_url": entity.avatar_url,
                "notifications_enabled": settings.enabled,
                "push_token": settings.push_token,
                "auto_follow_new_items": settings.auto_follow_new_items,
                "last_checked_at": entity.last_checked_at,
                "created_at": entity.created_at,
                "owned_items": entity.owned_items,
                "synced_items": entity.synced_items,
                "followed_items": list(entity.followed_items),
                "pending_items": entity.pending_items,
            },
        )


class SqlAlchemyCatalogItemRepository(_SqlAlchemyRepository):
    def get(self, item_id: str) -> CatalogItem | None:
        stmt = select(catalog_item_table).where(catalog_item_table.c.item_id == item_id)
        row = self._execute(stmt).mappings().first()
        if row is None:
            return None
        followers = self._execute(
            select(catalog_follower_table.c.user_id).where(
                catalog_follower_table.c.item_id == item_id
            )
        ).scalars()
        return _item_from_row(row, frozenset(cast("list[str]", list(followers))))

    def add(self, entity: CatalogItem) -> None:
        """Upsert the item row; follower links are managed separately."""

        self._upsert(
            catalog_item_table,
            "item_id",
            {
                "item_id": entity.item_id,
                "name": entity.name,
                "logo_url": entity.logo_url,
                "last_news_at": entity.last_news_at,
                "last_update_at": entity.last_update_at,
                "created_at": entity.created_at,
            },
        )

    def add_follower(self, item_id: str, user_id: str) -> bool:
        stmt = (
            insert(catalog_follower_table)
            .prefix_with("OR IGNORE", dialect="sqlite")
            .values(item_id=item_id, user_id=user_id)
        )
        result = cast("CursorResult[tuple[object, ...]]", self._execute(stmt))
        return result.rowcount > 0

    def remove_follower(self, item_id: str, user_id: str) -> bool:
        stmt = delete(catalog_follower_table).where(
            catalog_follower_table.c.item_id == item_id,
            catalog_follower_table.c.user_id == user_id,
        )
        result = cast("CursorResult[tuple[object, ...]]", self._execute(stmt))
        return result.rowcount > 0

    def list_followed(self) -> list[CatalogItem]:
        followers: defaultdict[str, set[str]] = defaultdict(set)
        for item_id, user_id in self._execute(
            select(catalog_follower_table.c.item_id, catalog_follower_table.c.user_id)
        ):
            followers[cast("str", item_id)].add(cast("str", user_id))
        if not followers:
            return []

        stmt = (
            select(catalog_item_table)
            .where(catalog_item_table.c.item_id.in_(list(followers)))
            .order_by(catalog_item_table.c.item_id)
        )
        return [
            _item_from_row(row, frozenset(followers[row["item_id"]]))
            for row in self._execute(stmt).mappings()
        ]


def _user_from_row(row: Mapping[str, object]) -> User:
    return User(
        external_id=cast("str", row["external_id"]),
        display_name=cast("str", row["display_name"]),
        avatar_url=cast("str | None", row["avatar_url"]),
        notifications=NotificationSettings(
            enabled=bool(row["notifications_enabled"]),
            push_token=cast("str | None", row["push_token"]),
            auto_follow_new_items=bool(row["auto_follow_new_items"]),
        ),
        last_checked_at=cast("datetime | None", row["last_checked_at"]),
        created_at=cast("datetime | None", row["created_at"]),
        owned_items=list(cast("list[OwnedItem]", row["owned_items"])),
        synced_items=list(cast("list[SyncedItem]", row["synced_items"])),
        pending_items=list(cast("list[PendingItem]", row["pending_items"])),
        _followed_items=list(cast("list[FollowedItem]", row["followed_items"])),
    )


def _item_from_row(row: Mapping[str, object], followers: frozenset[str]) -> CatalogItem:
    return CatalogItem(
        item_id=cast("str", row["item_id"]),
        name=cast("str", row["name"]),
        logo_url=cast("str | None", row["logo_url"]),
        last_news_at=cast("datetime | None", row["last_news_at"]),
        last_update_at=cast("datetime | None", row["last_update_at"]),
        created_at=cast("datetime | None", row["created_at"]),
        followers=followers,
    )


if TYPE_CHECKING:
    from datetime import datetime

    from libwatch.domain.model import FollowedItem, OwnedItem, PendingItem, SyncedItem
    from libwatch.domain.ports.persistence import CatalogItemRepository, UserRepository

    _session_stub = cast("Session", object())
    _user_repo_check: UserRepository = SqlAlchemyUserRepository(_session_stub)
    _catalog_repo_check: CatalogItemRepository = SqlAlchemyCatalogItemRepository(_session_stub)
