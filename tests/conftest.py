"""Shared fixtures for the test suite."""

from __future__ import annotations

import sqlite3
from typing import Generator

import pytest

from highscores.db.connection import get_connection
from highscores.db.migrations import init_db


@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with the schema initialised."""
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def workspace(tmp_path, monkeypatch):
    """Point the workspace (DB + exports) at a temp directory."""
    monkeypatch.setattr("highscores.config.settings.workspace_dir", tmp_path)
    return tmp_path
