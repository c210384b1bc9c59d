"""Database engine setup for SQLite with WAL mode.

SQLite backs the persistent cache tier: WAL mode so concurrent readers
never block on a writer, one row per owner replaced wholesale on save.

SQLAlchemy Core (not ORM) is used because the store only ever reads and
replaces whole rows; sessions and identity maps buy nothing here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from hivemoji.infrastructure.database.schema import metadata


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode enabled."""
    # Snapshot stores run queries from worker threads; pooled connections move between them.
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def init_database(db_path: Path) -> Engine:
    """Initialize the cache database at *db_path*.

    Creates the parent directory and all tables from :data:`schema.metadata`.
    Idempotent: safe to call on an existing database.

    Returns the engine ready for use.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    return engine
