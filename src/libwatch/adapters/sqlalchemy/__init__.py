"""SQLAlchemy adapter package for libwatch."""

from __future__ import annotations

from .mappings import (
    catalog_follower_table,
    catalog_item_table,
    create_all_tables,
    metadata,
    user_account_table,
)
from .repositories import SqlAlchemyCatalogItemRepository, SqlAlchemyUserRepository
from .unit_of_work import (
    SqlAlchemyLibraryUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCatalogItemRepository",
    "SqlAlchemyLibraryUnitOfWork",
    "SqlAlchemyUserRepository",
    "StartupError",
    "catalog_follower_table",
    "catalog_item_table",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
    "user_account_table",
]
