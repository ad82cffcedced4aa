"""Database initialisation helper.

``init_db(conn)`` is idempotent and safe to call on an existing database.
"""

from __future__ import annotations

import sqlite3

from highscores.config import settings


def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes.

    Every DDL statement in ``schema.sql`` uses ``IF NOT EXISTS`` so calling
    this repeatedly on the same database is safe.
    """
    conn.executescript(settings.schema_path.read_text(encoding="utf-8"))
