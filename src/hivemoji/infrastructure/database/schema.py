"""SQLAlchemy Core table definitions for the hivemoji cache database.

One row per owner. ``entries`` holds the JSON list of ``[name, definition]``
pairs; ``ts`` is the epoch-millis build time of that snapshot.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, Table, Text

metadata = MetaData()

registry_snapshots = Table(
    "registry_snapshots",
    metadata,
    Column("owner", Text, primary_key=True),
    Column("ts", Integer, nullable=False),
    Column("entries", Text, nullable=False),  # JSON array of [name, definition]
)
