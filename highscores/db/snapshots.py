"""CRUD operations for the ``snapshots`` and ``records`` tables."""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from time import time
from typing import Iterable, Optional

from highscores.scraper.models import Record


@dataclass
class Snapshot:
    id: str
    table_id: int
    record_count: int
    taken_at: int


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_snapshot(row: sqlite3.Row) -> Snapshot:
    return Snapshot(
        id=row["id"],
        table_id=row["table_id"],
        record_count=row["record_count"],
        taken_at=row["taken_at"],
    )


def _row_to_record(row: sqlite3.Row) -> Record:
    return Record(
        rank=row["rank"],
        name=row["name"],
        level=row["level"],
        xp=row["xp"],
        page=row["page"],
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_snapshot(
    conn: sqlite3.Connection,
    records: Iterable[Record],
    table_id: int = 0,
    snapshot_id: Optional[str] = None,
) -> Snapshot:
    """Insert a snapshot row and all of its records in one transaction.

    Args:
        conn: Open DB connection (schema initialised).
        records: The records to store.
        table_id: Highscores table the records came from.
        snapshot_id: Explicit id override (auto-generated when omitted).

    Returns:
        The stored :class:`Snapshot`.
    """
    sid = snapshot_id or str(uuid.uuid4())
    rows = [(sid, r.rank, r.name, r.level, r.xp, r.page) for r in records]
    now = int(time())

    with conn:
        conn.execute(
            "INSERT INTO snapshots (id, table_id, record_count, taken_at) VALUES (?, ?, ?, ?)",
            (sid, table_id, len(rows), now),
        )
        conn.executemany(
            """
            INSERT INTO records (snapshot_id, rank, name, level, xp, page)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            rows,
        )

    return get_snapshot(conn, sid)  # type: ignore[return-value]


def get_snapshot(conn: sqlite3.Connection, snapshot_id: str) -> Optional[Snapshot]:
    """Fetch a single snapshot by id.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM snapshots WHERE id = ?", (snapshot_id,)
    ).fetchone()
    return _row_to_snapshot(row) if row else None


def list_snapshots(conn: sqlite3.Connection) -> list[Snapshot]:
    """Return every snapshot, newest first."""
    rows = conn.execute(
        "SELECT * FROM snapshots ORDER BY taken_at DESC, rowid DESC"
    ).fetchall()
    return [_row_to_snapshot(r) for r in rows]


def get_records(
    conn: sqlite3.Connection,
    snapshot_id: str,
    limit: Optional[int] = None,
) -> list[Record]:
    """Return the records of a snapshot ordered by rank."""
    sql = "SELECT * FROM records WHERE snapshot_id = ? ORDER BY rank, page"
    params: tuple = (snapshot_id,)
    if limit is not None:
        sql += " LIMIT ?"
        params = (snapshot_id, limit)
    return [_row_to_record(r) for r in conn.execute(sql, params).fetchall()]


def delete_snapshot(conn: sqlite3.Connection, snapshot_id: str) -> None:
    """Delete a snapshot (and its records via CASCADE).

    Raises:
        ValueError: If ``snapshot_id`` does not exist.
    """
    if get_snapshot(conn, snapshot_id) is None:
        raise ValueError(f"Snapshot not found: {snapshot_id!r}")
    with conn:
        conn.execute("DELETE FROM snapshots WHERE id = ?", (snapshot_id,))
