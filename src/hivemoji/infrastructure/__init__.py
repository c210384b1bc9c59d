"""Infrastructure layer: SQLite snapshot storage and the Hive node client.

This layer depends on stdlib, third-party libs (SQLAlchemy, httpx), and the
domain models it persists or produces. It must never import from services,
commands, or output.
"""
