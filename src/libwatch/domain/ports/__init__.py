"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import CatalogClient, OwnedItemRecord, Profile
from .notifications import NotificationTransport
from .persistence import CatalogItemRepository, Repository, UserRepository
from .unit_of_work import (
    LibraryRepositories,
    LibraryUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "CatalogClient",
    "CatalogItemRepository",
    "LibraryRepositories",
    "LibraryUnitOfWork",
    "NotificationTransport",
    "OwnedItemRecord",
    "Profile",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "UserRepository",
]
