"""HTTP fetcher for highscores pages, with an optional retry policy."""

from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_when_event_set,
    wait_exponential,
    wait_random,
)

from highscores.config import settings
from highscores.errors import FetchError, FetchErrorKind
from highscores.scraper.models import RawPage

logger = logging.getLogger(__name__)


def build_client(timeout: Optional[float] = None) -> httpx.Client:
    """Return an ``httpx.Client`` configured from ``settings``.

    The client is safe to share between worker threads; callers own it and
    must close it (use it as a context manager).
    """
    return httpx.Client(
        headers={"User-Agent": settings.user_agent},
        timeout=settings.request_timeout if timeout is None else timeout,
        follow_redirects=True,
    )


def build_page_url(
    page: int,
    base_url: Optional[str] = None,
    table: Optional[int] = None,
) -> str:
    """Substitute *page* into the ``<base>?table=<t>&page=<n>`` template."""
    base = base_url or settings.base_url
    tbl = settings.table if table is None else table
    return f"{base}?table={tbl}&page={page}"


def _get(client: httpx.Client, page: int, url: str) -> RawPage:
    try:
        with client.stream("GET", url) as response:
            if not response.is_success:
                raise FetchError(
                    FetchErrorKind.STATUS_CODE, page, status_code=response.status_code
                )
            content = response.read()
            status_code = response.status_code
    except httpx.TimeoutException as exc:
        raise FetchError(FetchErrorKind.TIMEOUT, page, str(exc) or "timed out") from exc
    except httpx.HTTPError as exc:
        raise FetchError(FetchErrorKind.TRANSPORT, page, str(exc) or type(exc).__name__) from exc

    return RawPage(page=page, url=url, content=content, status_code=status_code)


def fetch_page(
    page: int,
    client: Optional[httpx.Client] = None,
    *,
    base_url: Optional[str] = None,
    table: Optional[int] = None,
) -> RawPage:
    """Fetch one highscores page and return its body.

    When *client* is omitted a short-lived client is opened for this request
    only.

    Raises:
        FetchError: ``TRANSPORT`` for connection-level failures, ``TIMEOUT``
            when the request timeout expires, ``STATUS_CODE`` for any
            non-2xx response.
    """
    url = build_page_url(page, base_url=base_url, table=table)
    if client is not None:
        return _get(client, page, url)
    with build_client() as own_client:
        return _get(own_client, page, url)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, FetchError) and exc.retryable


def fetch_page_with_retry(
    page: int,
    client: Optional[httpx.Client] = None,
    *,
    max_retries: Optional[int] = None,
    backoff: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    base_url: Optional[str] = None,
    table: Optional[int] = None,
) -> RawPage:
    """:func:`fetch_page` wrapped in a bounded retry with jittered backoff.

    Only retryable failures (transport, timeout, 429, 5xx) are retried.  A
    set *cancel_event* stops further attempts.  The last error is re-raised.
    """
    retries = settings.max_retries if max_retries is None else max_retries
    initial = settings.retry_backoff if backoff is None else backoff

    stop = stop_after_attempt(max(retries, 0) + 1)
    if cancel_event is not None:
        stop = stop | stop_when_event_set(cancel_event)

    retryer = Retrying(
        stop=stop,
        wait=wait_exponential(multiplier=initial, max=30) + wait_random(0, initial),
        retry=retry_if_exception(_is_retryable),
        before_sleep=lambda state: logger.debug(
            "Retrying page %d after attempt %d: %s",
            page,
            state.attempt_number,
            state.outcome.exception() if state.outcome else None,
        ),
        reraise=True,
    )
    for attempt in retryer:
        with attempt:
            return fetch_page(page, client, base_url=base_url, table=table)
    raise AssertionError("unreachable")  # pragma: no cover
