"""Alembic environment for libwatch.

``upgrade_head(engine=...)`` passes an open connection through
``config.attributes["connection"]``; without one, the URL comes from the ini
option or the libwatch database settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import create_engine, pool

from libwatch.adapters.sqlalchemy.mappings import metadata
from libwatch.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

_OPTIONS = {"target_metadata": metadata, "render_as_batch": True, "compare_type": True}


def _url() -> str:
    return context.config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def main() -> None:
    if context.is_offline_mode():
        context.configure(url=_url(), literal_binds=True, **_OPTIONS)
        with context.begin_transaction():
            context.run_migrations()
        return

    shared = context.config.attributes.get("connection")
    if shared is not None:
        _migrate(shared)
        return

    engine = create_engine(_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()


main()
