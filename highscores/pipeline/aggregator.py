"""Shared, lock-guarded collection of records for one run."""

from __future__ import annotations

import threading
from typing import Iterable

from highscores.scraper.models import Record


class Highscores:
    """Records gathered from every page of a run.

    Any number of worker threads may call :meth:`append` concurrently.  Once
    the coordinator calls :meth:`seal` the collection is frozen: further
    appends raise and :meth:`snapshot` becomes available.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[Record] = []
        self._sealed = False

    def append(self, records: Iterable[Record]) -> int:
        """Merge one page's *records*, preserving their relative order.

        Returns:
            The number of records added.

        Raises:
            RuntimeError: If the aggregate has already been sealed.
        """
        batch = list(records)
        with self._lock:
            if self._sealed:
                raise RuntimeError("Highscores is sealed; the run has completed")
            self._records.extend(batch)
        return len(batch)

    def seal(self) -> None:
        with self._lock:
            self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def snapshot(self) -> tuple[Record, ...]:
        """Return every record, in insertion order.

        Raises:
            RuntimeError: If called before the run has completed.
        """
        with self._lock:
            if not self._sealed:
                raise RuntimeError("snapshot() is only available after the run completes")
            return tuple(self._records)

    def sorted_by_rank(self) -> list[Record]:
        """Snapshot ordered by ``(rank, page)``."""
        return sorted(self.snapshot(), key=lambda r: (r.rank, r.page or 0))

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
