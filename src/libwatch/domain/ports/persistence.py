"""Ports for persisting domain aggregates.

Implementations raise ``StorageError`` when the underlying store fails. They guarantee
per-document atomicity only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from libwatch.domain.model import CatalogItem, User


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None:
        """Insert or replace the stored document for ``entity``."""
        ...


@runtime_checkable
class UserRepository(Repository["User"], Protocol):
    """Persistence contract for users."""

    def get(self, external_id: str) -> User | None: ...

    def list_all(self) -> Sequence[User]:
        """Return the whole population in a stable order (registration order)."""
        ...


@runtime_checkable
class CatalogItemRepository(Repository["CatalogItem"], Protocol):
    """Persistence contract for catalog items and their follower sets."""

    def get(self, item_id: str) -> CatalogItem | None: ...

    def add_follower(self, item_id: str, user_id: str) -> bool:
        """Atomically add ``user_id`` unless present. Return whether it was added."""
        ...

    def remove_follower(self, item_id: str, user_id: str) -> bool:
        """Atomically remove ``user_id`` if present. Return whether it was removed."""
        ...

    def list_followed(self) -> Sequence[CatalogItem]:
        """Return every item with at least one follower."""
        ...
