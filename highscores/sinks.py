"""Sinks that receive the finished aggregate of a run.

A sink is anything with ``accept(aggregate) -> str``: it stores the sealed
:class:`~highscores.pipeline.aggregator.Highscores` and returns an identifier
for what it wrote, or raises :class:`~highscores.errors.SinkError`.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from highscores.config import settings
from highscores.db import get_connection, init_db
from highscores.db.snapshots import create_snapshot
from highscores.errors import SinkError
from highscores.pipeline.aggregator import Highscores

logger = logging.getLogger(__name__)


class Sink(Protocol):
    def accept(self, aggregate: Highscores) -> str: ...


class SqliteSink:
    """Stores each run as one ``snapshots`` row plus its ``records``.

    Args:
        conn: Open connection to use.  When omitted a connection to
            *db_path* (default ``settings.db_path``) is opened per call.
        db_path: Database file override.
        table_id: Highscores table recorded on the snapshot.
    """

    def __init__(
        self,
        conn: Optional[sqlite3.Connection] = None,
        db_path: Optional[Path] = None,
        table_id: Optional[int] = None,
    ) -> None:
        self._conn = conn
        self._db_path = db_path
        self.table_id = settings.table if table_id is None else table_id

    def accept(self, aggregate: Highscores) -> str:
        records = aggregate.snapshot()
        conn = self._conn
        try:
            if conn is None:
                conn = get_connection(self._db_path)
            init_db(conn)
            snapshot = create_snapshot(conn, records, table_id=self.table_id)
        except (sqlite3.Error, OSError) as exc:
            raise SinkError(f"SQLite write failed: {exc}") from exc
        finally:
            if self._conn is None and conn is not None:
                conn.close()

        logger.info("Stored snapshot %s (%d records)", snapshot.id, snapshot.record_count)
        return snapshot.id


class JsonlSink:
    """Writes one JSON object per record to ``highscores-<UTC stamp>.jsonl``."""

    def __init__(self, out_dir: Optional[Path] = None, filename_prefix: str = "highscores") -> None:
        self.out_dir = Path(out_dir) if out_dir is not None else settings.export_dir
        self.filename_prefix = filename_prefix

    def accept(self, aggregate: Highscores) -> str:
        records = aggregate.sorted_by_rank()
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        path = self.out_dir / f"{self.filename_prefix}-{stamp}.jsonl"
        try:
            self.out_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                for rec in records:
                    f.write(json.dumps(rec.to_dict(), ensure_ascii=False) + "\n")
        except OSError as exc:
            raise SinkError(f"Could not write {path}: {exc}") from exc

        logger.info("Wrote %d records to %s", len(records), path)
        return str(path)


def make_sink(output_format: Optional[str] = None) -> Sink:
    """Return the sink for *output_format* (``sqlite`` or ``jsonl``).

    Raises:
        ValueError: For an unknown format.
    """
    fmt = (output_format or settings.output_format).lower()
    if fmt == "sqlite":
        return SqliteSink()
    if fmt == "jsonl":
        return JsonlSink()
    raise ValueError(f"Unknown output format {fmt!r}. Use: sqlite | jsonl")
