"""Database layer package.

Public re-exports so callers can write::

    from highscores.db import get_connection, init_db
"""

from highscores.db.connection import get_connection
from highscores.db.migrations import init_db

__all__ = ["get_connection", "init_db"]
