"""Reusable fakes and builders for reconciliation tests."""

from __future__ import annotations

import threading
from collections import defaultdict
from copy import deepcopy
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Literal

from libwatch.domain.context import EngineContext
from libwatch.domain.errors import StorageError
from libwatch.domain.model import (
    CatalogItem,
    NewsEntry,
    NotificationSettings,
    OwnedItem,
    SyncedItem,
    User,
)
from libwatch.domain.ports import LibraryRepositories, OwnedItemRecord, Profile
from libwatch.domain.reconciliation import ReconcilePolicy

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from types import TracebackType

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class FrozenClock:
    def __init__(self, now: datetime = BASE_TIME) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def make_record(item_id: str, name: str | None = None, *, logo: str | None = None) -> OwnedItemRecord:
    return OwnedItemRecord(item_id=item_id, name=name or f"Item {item_id}", logo_fragment=logo)


def make_user(
    external_id: str = "user-1",
    *,
    items: Iterable[str] = (),
    last_checked_at: datetime | None = None,
    created_at: datetime | None = BASE_TIME,
    notifications: NotificationSettings | None = None,
) -> User:
    item_ids = list(items)
    return User(
        external_id=external_id,
        display_name=f"Player {external_id}",
        notifications=notifications or NotificationSettings(),
        last_checked_at=last_checked_at,
        created_at=created_at,
        owned_items=[OwnedItem(item_id=item_id, first_seen_at=BASE_TIME) for item_id in item_ids],
        synced_items=[
            SyncedItem(item_id=item_id, name=f"Item {item_id}", added_at=BASE_TIME)
            for item_id in item_ids
        ],
    )


def receiving(token: str, *, auto_follow: bool = False) -> NotificationSettings:
    return NotificationSettings(enabled=True, push_token=token, auto_follow_new_items=auto_follow)


def make_news(news_id: str, published_at: datetime, title: str | None = None) -> NewsEntry:
    return NewsEntry(
        news_id=news_id,
        title=title or f"News {news_id}",
        url=f"https://example.test/news/{news_id}",
        published_at=published_at,
    )


class InMemoryStore:
    """Committed state shared by every ``FakeUnitOfWork`` built from it.

    Reads hand out copies, so mutations only become visible after ``commit``.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users: dict[str, User] = {}
        self.items: dict[str, CatalogItem] = {}
        self.followers: defaultdict[str, set[str]] = defaultdict(set)
        self.commits = 0
        self.fail_on_commit = False
        self.fail_on_get: set[str] = set()

    def seed_user(self, user: User) -> User:
        with self.lock:
            self.users[user.external_id] = deepcopy(user)
        return user

    def seed_item(self, item: CatalogItem, *followers: str) -> CatalogItem:
        with self.lock:
            self.items[item.item_id] = replace(item, followers=frozenset())
            self.followers[item.item_id].update(followers)
        return item

    def user(self, external_id: str) -> User:
        with self.lock:
            return deepcopy(self.users[external_id])

    def item(self, item_id: str) -> CatalogItem:
        with self.lock:
            return replace(
                self.items[item_id], followers=frozenset(self.followers.get(item_id, ()))
            )

    def unit_of_work(self) -> FakeUnitOfWork:
        return FakeUnitOfWork(self)


class InMemoryUserRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self.staged: dict[str, User] = {}

    def get(self, external_id: str) -> User | None:
        if external_id in self._store.fail_on_get:
            raise StorageError(f"cannot read user {external_id}")
        if external_id in self.staged:
            return self.staged[external_id]
        with self._store.lock:
            user = self._store.users.get(external_id)
            return deepcopy(user) if user is not None else None

    def list_all(self) -> list[User]:
        with self._store.lock:
            return [deepcopy(user) for user in self._store.users.values()]

    def add(self, entity: User) -> None:
        self.staged[entity.external_id] = entity


class InMemoryCatalogItemRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self.staged: dict[str, CatalogItem] = {}
        self.follower_ops: list[tuple[Literal["add", "remove"], str, str]] = []

    def _followers(self, item_id: str) -> set[str]:
        with self._store.lock:
            current = set(self._store.followers.get(item_id, ()))
        for op, op_item, user_id in self.follower_ops:
            if op_item != item_id:
                continue
            if op == "add":
                current.add(user_id)
            else:
                current.discard(user_id)
        return current

    def get(self, item_id: str) -> CatalogItem | None:
        item = self.staged.get(item_id)
        if item is None:
            with self._store.lock:
                item = self._store.items.get(item_id)
        if item is None:
            return None
        return replace(item, followers=frozenset(self._followers(item_id)))

    def add(self, entity: CatalogItem) -> None:
        self.staged[entity.item_id] = replace(entity, followers=frozenset())

    def add_follower(self, item_id: str, user_id: str) -> bool:
        if user_id in self._followers(item_id):
            return False
        self.follower_ops.append(("add", item_id, user_id))
        return True

    def remove_follower(self, item_id: str, user_id: str) -> bool:
        if user_id not in self._followers(item_id):
            return False
        self.follower_ops.append(("remove", item_id, user_id))
        return True

    def list_followed(self) -> list[CatalogItem]:
        with self._store.lock:
            item_ids = sorted(set(self._store.items) | set(self.staged))
        items = [self.get(item_id) for item_id in item_ids]
        return [item for item in items if item is not None and item.followers]


class FakeUnitOfWork:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.committed = False
        self.rolled_back = False
        self._repositories: LibraryRepositories | None = None

    def __enter__(self) -> FakeUnitOfWork:
        self._repositories = LibraryRepositories(
            users=InMemoryUserRepository(self.store),
            catalog_items=InMemoryCatalogItemRepository(self.store),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if not self.committed:
            self.rollback()
        return False

    @property
    def repositories(self) -> LibraryRepositories:
        assert self._repositories is not None
        return self._repositories

    def commit(self) -> None:
        if self.store.fail_on_commit:
            raise StorageError("commit failed")
        users = self.repositories.users
        catalog = self.repositories.catalog_items
        assert isinstance(users, InMemoryUserRepository)
        assert isinstance(catalog, InMemoryCatalogItemRepository)
        with self.store.lock:
            for external_id, user in users.staged.items():
                self.store.users[external_id] = deepcopy(user)
            self.store.items.update(catalog.staged)
            for op, item_id, user_id in catalog.follower_ops:
                if op == "add":
                    self.store.followers[item_id].add(user_id)
                else:
                    self.store.followers[item_id].discard(user_id)
            self.store.commits += 1
        users.staged.clear()
        catalog.staged.clear()
        catalog.follower_ops.clear()
        self.committed = True

    def rollback(self) -> None:
        self.rolled_back = True


class FakeCatalogClient:
    """Scripted upstream catalog. ``failures`` maps ids to the exception to raise."""

    def __init__(
        self,
        libraries: Mapping[str, object] | None = None,
        *,
        profiles: Mapping[str, Profile] | None = None,
        news: Mapping[str, Sequence[NewsEntry]] | None = None,
        failures: Mapping[str, Exception] | None = None,
    ) -> None:
        self.libraries: dict[str, object] = dict(libraries or {})
        self.profiles = dict(profiles or {})
        self.news = dict(news or {})
        self.failures = dict(failures or {})
        self.calls: list[tuple[str, str]] = []

    def fetch_owned_items(self, external_id: str) -> Sequence[OwnedItemRecord]:
        self.calls.append(("owned", external_id))
        if external_id in self.failures:
            raise self.failures[external_id]
        return self.libraries.get(external_id, [])  # type: ignore[return-value]

    def fetch_profile(self, external_id: str) -> Profile | None:
        self.calls.append(("profile", external_id))
        if external_id in self.failures:
            raise self.failures[external_id]
        return self.profiles.get(external_id)

    def fetch_news(self, item_id: str, *, count: int = 5) -> Sequence[NewsEntry]:
        self.calls.append(("news", item_id))
        if item_id in self.failures:
            raise self.failures[item_id]
        return list(self.news.get(item_id, ()))[:count]


class RecordingTransport:
    def __init__(
        self,
        *,
        failing_tokens: Iterable[str] = (),
        raising_tokens: Iterable[str] = (),
    ) -> None:
        self.failing_tokens = set(failing_tokens)
        self.raising_tokens = set(raising_tokens)
        self.sent: list[dict[str, object]] = []

    def deliver(
        self,
        token: str,
        title: str,
        body: str,
        payload: Mapping[str, object],
    ) -> bool:
        self.sent.append({"token": token, "title": title, "body": body, "payload": dict(payload)})
        if token in self.raising_tokens:
            raise RuntimeError("transport exploded")
        return token not in self.failing_tokens


def make_context(
    store: InMemoryStore,
    catalog: FakeCatalogClient | None = None,
    *,
    transport: RecordingTransport | None = None,
    policy: ReconcilePolicy | None = None,
    clock: FrozenClock | None = None,
) -> EngineContext:
    return EngineContext(
        catalog=catalog or FakeCatalogClient(),
        unit_of_work_factory=store.unit_of_work,
        transport=transport,
        policy=policy or ReconcilePolicy(),
        clock=clock or FrozenClock(),
    )


if TYPE_CHECKING:
    from libwatch.domain.ports import (
        CatalogClient,
        CatalogItemRepository,
        LibraryUnitOfWork,
        NotificationTransport,
        UserRepository,
    )

    _store_check = InMemoryStore()
    _user_repo_check: UserRepository = InMemoryUserRepository(_store_check)
    _catalog_repo_check: CatalogItemRepository = InMemoryCatalogItemRepository(_store_check)
    _uow_check: LibraryUnitOfWork = FakeUnitOfWork(_store_check)
    _client_check: CatalogClient = FakeCatalogClient()
    _transport_check: NotificationTransport = RecordingTransport()
