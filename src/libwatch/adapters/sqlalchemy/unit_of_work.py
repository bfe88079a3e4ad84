"""Engine lifecycle and the unit of work handed to reconciliation workers.

The engine is process-wide: ``startup`` installs it once and every
``SqlAlchemyLibraryUnitOfWork`` opens its own session on it. Group runs create
units of work from several worker threads, so SQLite connections are opened
without the same-thread check.
"""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from libwatch.adapters.sqlalchemy.migrations import upgrade_head
from libwatch.adapters.sqlalchemy.repositories import (
    SqlAlchemyCatalogItemRepository,
    SqlAlchemyUserRepository,
)
from libwatch.config import get_database_config
from libwatch.domain.errors import StorageError
from libwatch.domain.ports.unit_of_work import LibraryRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the persistence adapter is used in the wrong lifecycle state."""


_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None
_state_lock = threading.Lock()


def _create_engine(uri: str, *, echo: bool) -> Engine:
    url = make_url(uri)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, echo=echo)
    connect_args = {"check_same_thread": False}
    if url.database in {None, "", ":memory:"}:
        # one shared connection, otherwise every worker thread sees its own empty database
        return create_engine(url, echo=echo, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, echo=echo, connect_args=connect_args)


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Install the engine and migrate the schema to head.

    ``engine`` wins over ``database_uri``, which wins over ``DATABASE_URI`` and the
    default database under the data directory.
    """
    global _engine, _sessions  # noqa: PLW0603

    with _state_lock:
        if _engine is not None and not force:
            raise StartupError("persistence already started; pass force=True to replace it")
        if engine is None:
            config = get_database_config()
            engine = _create_engine(database_uri or config.uri, echo=config.echo)
        upgrade_head(engine=engine)
        _engine = engine
        _sessions = sessionmaker(bind=engine, expire_on_commit=False)
    log.debug("Persistence started on %s", engine.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _engine


def is_started() -> bool:
    return _engine is not None


def shutdown() -> None:
    global _engine, _sessions  # noqa: PLW0603

    with _state_lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        _sessions = None


class SqlAlchemyLibraryUnitOfWork:
    """One session per ``with`` block. Leaving the block discards anything not committed."""

    def __init__(self) -> None:
        if _sessions is None:
            raise StartupError(
                "persistence not started; call "
                "libwatch.adapters.sqlalchemy.unit_of_work.startup() first"
            )
        self._factory = _sessions
        self._session: Session | None = None
        self._repositories: LibraryRepositories | None = None

    def __enter__(self) -> SqlAlchemyLibraryUnitOfWork:
        if self._session is not None:
            raise StartupError("unit of work is already open")
        self._session = self._factory()
        self._repositories = LibraryRepositories(
            users=SqlAlchemyUserRepository(self._session),
            catalog_items=SqlAlchemyCatalogItemRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self._session
        self._session = None
        self._repositories = None
        if session is not None:
            session.rollback()
            session.close()
        return False

    @property
    def repositories(self) -> LibraryRepositories:
        if self._repositories is None:
            raise StartupError("unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        if self._session is None:
            raise StartupError("unit of work is not open")
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageError(f"commit failed: {exc}") from exc

    def rollback(self) -> None:
        if self._session is not None:
            self._session.rollback()


if TYPE_CHECKING:
    from libwatch.domain.ports import LibraryUnitOfWork

    _uow_check: LibraryUnitOfWork = SqlAlchemyLibraryUnitOfWork()
