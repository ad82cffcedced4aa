"""Tests for the page fetcher.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made.
- Retry tests pass ``backoff=0`` so tenacity never actually sleeps.
"""

from __future__ import annotations

import threading
import warnings

import httpx
import pytest
import respx

from highscores.errors import FetchError, FetchErrorKind
from highscores.scraper.fetcher import build_page_url, fetch_page, fetch_page_with_retry
from highscores.scraper.models import RawPage

from tests.helpers import BASE_URL, make_page, make_row

_PAGE = make_page([make_row("1", "Zezima", "99", "200,000,000")])


class TestBuildPageUrl:
    def test_template(self) -> None:
        assert build_page_url(3, base_url=BASE_URL, table=0) == f"{BASE_URL}?table=0&page=3"

    def test_table_override(self) -> None:
        assert build_page_url(1, base_url=BASE_URL, table=5).endswith("?table=5&page=1")


class TestFetchPage:
    def test_success_returns_raw_page(self) -> None:
        with respx.mock:
            route = respx.get(BASE_URL, params={"table": "0", "page": "2"}).mock(
                return_value=httpx.Response(200, content=_PAGE)
            )
            with httpx.Client() as client:
                raw = fetch_page(2, client, base_url=BASE_URL, table=0)

        assert route.called
        assert isinstance(raw, RawPage)
        assert raw.page == 2
        assert raw.status_code == 200
        assert raw.content == _PAGE

    def test_without_client_opens_its_own(self) -> None:
        with respx.mock:
            respx.get(BASE_URL).mock(return_value=httpx.Response(200, content=_PAGE))
            raw = fetch_page(1, base_url=BASE_URL, table=0)
        assert raw.content == _PAGE

    @pytest.mark.parametrize("status", [404, 500, 503])
    def test_non_success_status(self, status: int) -> None:
        with respx.mock:
            respx.get(BASE_URL).mock(return_value=httpx.Response(status, text="nope"))
            with httpx.Client() as client, pytest.raises(FetchError) as info:
                fetch_page(1, client, base_url=BASE_URL)

        assert info.value.kind is FetchErrorKind.STATUS_CODE
        assert info.value.status_code == status
        assert info.value.page == 1

    def test_transport_error(self) -> None:
        with respx.mock:
            respx.get(BASE_URL).mock(side_effect=httpx.ConnectError("refused"))
            with httpx.Client() as client, pytest.raises(FetchError) as info:
                fetch_page(1, client, base_url=BASE_URL)
        assert info.value.kind is FetchErrorKind.TRANSPORT

    def test_timeout(self) -> None:
        with respx.mock:
            respx.get(BASE_URL).mock(side_effect=httpx.ReadTimeout("slow"))
            with httpx.Client() as client, pytest.raises(FetchError) as info:
                fetch_page(1, client, base_url=BASE_URL)
        assert info.value.kind is FetchErrorKind.TIMEOUT


class TestRetryable:
    @pytest.mark.parametrize(
        ("kind", "status", "expected"),
        [
            (FetchErrorKind.TRANSPORT, None, True),
            (FetchErrorKind.TIMEOUT, None, True),
            (FetchErrorKind.STATUS_CODE, 429, True),
            (FetchErrorKind.STATUS_CODE, 502, True),
            (FetchErrorKind.STATUS_CODE, 404, False),
        ],
    )
    def test_classification(self, kind: FetchErrorKind, status, expected: bool) -> None:
        assert FetchError(kind, 1, status_code=status).retryable is expected


class TestFetchWithRetry:
    def test_recovers_after_transient_failure(self) -> None:
        with respx.mock:
            route = respx.get(BASE_URL).mock(
                side_effect=[
                    httpx.Response(503),
                    httpx.Response(200, content=_PAGE),
                ]
            )
            with httpx.Client() as client:
                raw = fetch_page_with_retry(
                    1, client, max_retries=2, backoff=0, base_url=BASE_URL
                )

        assert raw.content == _PAGE
        assert route.call_count == 2

    def test_gives_up_after_budget(self) -> None:
        with respx.mock:
            route = respx.get(BASE_URL).mock(return_value=httpx.Response(500))
            with httpx.Client() as client, pytest.raises(FetchError) as info:
                fetch_page_with_retry(1, client, max_retries=2, backoff=0, base_url=BASE_URL)

        assert info.value.status_code == 500
        assert route.call_count == 3

    def test_backoff_policy_raises_no_deprecation(self) -> None:
        with respx.mock, warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            respx.get(BASE_URL).mock(
                side_effect=[httpx.Response(502), httpx.Response(200, content=_PAGE)]
            )
            with httpx.Client() as client:
                raw = fetch_page_with_retry(
                    1, client, max_retries=1, backoff=0, base_url=BASE_URL
                )
        assert raw.status_code == 200
        assert not [
            w
            for w in caught
            if issubclass(w.category, DeprecationWarning)
            and ("tenacity" in w.filename or w.filename.endswith("fetcher.py"))
        ]

    def test_client_errors_not_retried(self) -> None:
        with respx.mock:
            route = respx.get(BASE_URL).mock(return_value=httpx.Response(404))
            with httpx.Client() as client, pytest.raises(FetchError):
                fetch_page_with_retry(1, client, max_retries=5, backoff=0, base_url=BASE_URL)
        assert route.call_count == 1

    def test_cancel_event_stops_retries(self) -> None:
        cancel = threading.Event()
        cancel.set()
        with respx.mock:
            route = respx.get(BASE_URL).mock(side_effect=httpx.ConnectError("down"))
            with httpx.Client() as client, pytest.raises(FetchError):
                fetch_page_with_retry(
                    1, client, max_retries=5, backoff=0, cancel_event=cancel, base_url=BASE_URL
                )
        assert route.call_count == 1
