"""SQLite database engine and schema for the persistent cache tier via SQLAlchemy Core."""

from hivemoji.infrastructure.database.engine import create_db_engine, init_database
from hivemoji.infrastructure.database.schema import metadata, registry_snapshots

__all__ = [
    "create_db_engine",
    "init_database",
    "metadata",
    "registry_snapshots",
]
