"""Pipeline coordinator: fans pages out over a bounded worker pool.

A run moves through ``IDLE → RUNNING → DRAINING → COMPLETE`` exactly once:

    RUNNING   one invocation per page is submitted (fetch → extract → parse
              → append), never more than ``max_concurrency`` in flight
    DRAINING  every submitted invocation is awaited, success or failure
    COMPLETE  the aggregate is sealed and handed to the sink

A failing page is logged and recorded in the run report; it never cancels
its siblings.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

import httpx

from highscores.config import settings
from highscores.errors import HighscoresError, SinkError
from highscores.pipeline.aggregator import Highscores
from highscores.scraper.extractor import extract_table_body
from highscores.scraper.fetcher import build_client, fetch_page_with_retry
from highscores.scraper.parser import FieldParsePolicy, parse_table_body

if TYPE_CHECKING:
    from highscores.sinks import Sink

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    COMPLETE = "complete"


class PageStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class PageOutcome:
    page: int
    status: PageStatus
    records: int = 0
    rows_skipped: int = 0
    field_parse_skips: int = 0
    field_errors: int = 0
    error: Optional[str] = None


@dataclass
class RunReport:
    """Summary of a completed run."""

    outcomes: list[PageOutcome] = field(default_factory=list)
    records: int = 0
    elapsed: float = 0.0
    sink_result: Optional[str] = None
    sink_error: Optional[str] = None

    def _count(self, status: PageStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def pages_succeeded(self) -> int:
        return self._count(PageStatus.OK)

    @property
    def pages_failed(self) -> int:
        return self._count(PageStatus.FAILED)

    @property
    def pages_cancelled(self) -> int:
        return self._count(PageStatus.CANCELLED)

    @property
    def rows_skipped(self) -> int:
        return sum(o.rows_skipped for o in self.outcomes)

    @property
    def field_parse_skips(self) -> int:
        """Rows dropped because a numeric or name field failed to decode."""
        return sum(o.field_parse_skips for o in self.outcomes)

    @property
    def field_errors(self) -> int:
        return sum(o.field_errors for o in self.outcomes)

    @property
    def failed_pages(self) -> list[int]:
        return [o.page for o in self.outcomes if o.status is PageStatus.FAILED]


class PipelineCoordinator:
    """Runs the scrape pipeline over a page range.

    Args:
        sink: Receives the sealed aggregate once per run.  ``None`` skips
            the hand-off (the aggregate stays available on
            :attr:`aggregate`).
        max_concurrency: Worker cap, clamped to at least 1.  Defaults to
            ``settings.max_concurrency``.
        client: Shared ``httpx.Client``.  When omitted one is created for the
            run and closed afterwards.
        field_policy: Row handling for undecodable fields.
        header_rows: Leading rows dropped from every page.
        max_retries: Retry budget per page for retryable fetch errors.
        retry_backoff: Initial backoff in seconds between retries.
        base_url: Override of ``settings.base_url``.
        table: Override of ``settings.table``.
    """

    def __init__(
        self,
        sink: Optional[Sink] = None,
        *,
        max_concurrency: Optional[int] = None,
        client: Optional[httpx.Client] = None,
        field_policy: Optional[FieldParsePolicy] = None,
        header_rows: Optional[int] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        base_url: Optional[str] = None,
        table: Optional[int] = None,
    ) -> None:
        self.sink = sink
        self.max_concurrency = max(
            1, settings.max_concurrency if max_concurrency is None else max_concurrency
        )
        self.field_policy = field_policy or FieldParsePolicy(settings.field_parse_policy)
        self.header_rows = settings.header_rows_to_skip if header_rows is None else header_rows
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.retry_backoff = settings.retry_backoff if retry_backoff is None else retry_backoff
        self.base_url = base_url
        self.table = table

        self.aggregate = Highscores()
        self.report: Optional[RunReport] = None
        self._client = client
        self._cancel = threading.Event()
        self._state = RunState.IDLE

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def state(self) -> RunState:
        return self._state

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Stop spawning pages and abandon pending retries.

        In-flight fetches run until they finish or hit the request timeout.
        """
        if not self._cancel.is_set():
            logger.warning("Cancellation requested; no further pages will be started")
        self._cancel.set()

    # ------------------------------------------------------------------
    # Per-page pipeline
    # ------------------------------------------------------------------
    def process_page(self, page: int, client: httpx.Client) -> PageOutcome:
        """Fetch, extract, parse and aggregate one page.

        Never raises: every failure is folded into the returned outcome.
        """
        if self._cancel.is_set():
            return PageOutcome(page=page, status=PageStatus.CANCELLED)

        try:
            raw = fetch_page_with_retry(
                page,
                client,
                max_retries=self.max_retries,
                backoff=self.retry_backoff,
                cancel_event=self._cancel,
                base_url=self.base_url,
                table=self.table,
            )
            fragment = extract_table_body(raw.content)
            parsed = parse_table_body(
                fragment,
                page=page,
                header_rows=self.header_rows,
                field_policy=self.field_policy,
            )
        except HighscoresError as exc:
            logger.warning("Page %d failed: %s", page, exc)
            return PageOutcome(page=page, status=PageStatus.FAILED, error=str(exc))
        except Exception as exc:
            logger.exception("Page %d failed unexpectedly", page)
            return PageOutcome(page=page, status=PageStatus.FAILED, error=repr(exc))

        added = self.aggregate.append(parsed.records)
        logger.debug("Page %d: %d record(s), %d row(s) skipped", page, added, parsed.rows_skipped)
        return PageOutcome(
            page=page,
            status=PageStatus.OK,
            records=added,
            rows_skipped=parsed.rows_skipped,
            field_parse_skips=parsed.field_parse_skips,
            field_errors=sum(1 for e in parsed.errors if e.field is not None),
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------
    def run(self, start: Optional[int] = None, end: Optional[int] = None) -> RunReport:
        """Scrape pages ``start..end`` (inclusive) and hand off the result.

        Returns:
            The :class:`RunReport`.  It is also kept on :attr:`report`.

        Raises:
            RuntimeError: If this coordinator has already run.
            ValueError: If the page range is empty or starts below 1.
            SinkError: If the sink rejects the finished aggregate.
        """
        first = settings.page_start if start is None else start
        last = settings.page_end if end is None else end
        if self._state is not RunState.IDLE:
            raise RuntimeError(f"Coordinator already used (state={self._state.value})")
        if first < 1 or last < first:
            raise ValueError(f"Invalid page range {first}..{last}")

        self._state = RunState.RUNNING
        logger.info(
            "Scraping pages %d..%d with up to %d worker(s)", first, last, self.max_concurrency
        )
        started = time.perf_counter()
        outcomes: dict[int, PageOutcome] = {}
        slots = threading.BoundedSemaphore(self.max_concurrency)
        client = self._client or build_client()

        try:
            with ThreadPoolExecutor(
                max_workers=self.max_concurrency, thread_name_prefix="highscores"
            ) as pool:
                future_to_page = {}
                for page in range(first, last + 1):
                    slots.acquire()
                    if self._cancel.is_set():
                        slots.release()
                        outcomes[page] = PageOutcome(page=page, status=PageStatus.CANCELLED)
                        continue
                    future = pool.submit(self.process_page, page, client)
                    future.add_done_callback(lambda _f: slots.release())
                    future_to_page[future] = page

                self._state = RunState.DRAINING
                for future in as_completed(future_to_page):
                    outcome = future.result()
                    outcomes[outcome.page] = outcome
        finally:
            if self._client is None:
                client.close()

        self.aggregate.seal()
        self._state = RunState.COMPLETE

        report = RunReport(
            outcomes=[outcomes[p] for p in sorted(outcomes)],
            records=len(self.aggregate),
            elapsed=time.perf_counter() - started,
        )
        self.report = report
        logger.info(
            "Run complete in %.2fs: %d page(s) ok, %d failed, %d cancelled; "
            "%d record(s), %d row(s) skipped (%d for bad fields)",
            report.elapsed,
            report.pages_succeeded,
            report.pages_failed,
            report.pages_cancelled,
            report.records,
            report.rows_skipped,
            report.field_parse_skips,
        )

        if self.sink is not None:
            try:
                report.sink_result = self.sink.accept(self.aggregate)
            except SinkError as exc:
                report.sink_error = str(exc)
                logger.error("Sink rejected the aggregate: %s", exc)
                raise
            logger.info("Aggregate handed off: %s", report.sink_result)

        return report
