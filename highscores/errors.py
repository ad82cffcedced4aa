"""Exception hierarchy for the scrape pipeline.

Per-page failures (:class:`FetchError`, :class:`ExtractError`,
:class:`ParseError`) are contained by the coordinator; :class:`SinkError` is
the only one that reaches the caller of a run.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FetchErrorKind(str, Enum):
    TRANSPORT = "transport"
    STATUS_CODE = "status_code"
    TIMEOUT = "timeout"


class ExtractErrorKind(str, Enum):
    NO_TABLE_BODY = "no_table_body"


class ParseErrorKind(str, Enum):
    MALFORMED = "malformed"
    SHORT_ROW = "short_row"
    FIELD_PARSE = "field_parse"


class HighscoresError(Exception):
    """Base class for every error raised by this package."""


class FetchError(HighscoresError):
    """A page could not be downloaded."""

    def __init__(
        self,
        kind: FetchErrorKind,
        page: int,
        message: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.page = page
        self.status_code = status_code
        detail = message or (f"HTTP {status_code}" if status_code else kind.value)
        super().__init__(f"page {page}: {kind.value}: {detail}")

    @property
    def retryable(self) -> bool:
        """Transport errors, timeouts, 429 and 5xx are worth another attempt."""
        if self.kind is not FetchErrorKind.STATUS_CODE:
            return True
        return self.status_code == 429 or (self.status_code or 0) >= 500


class ExtractError(HighscoresError):
    def __init__(self, kind: ExtractErrorKind, message: str = "") -> None:
        self.kind = kind
        super().__init__(message or kind.value)


class ParseError(HighscoresError):
    """Structural or per-row parse failure.

    ``row`` is the zero-based row index within the fragment (header rows
    included) and ``field`` names the offending column for ``FIELD_PARSE``.
    """

    def __init__(
        self,
        kind: ParseErrorKind,
        message: str = "",
        row: Optional[int] = None,
        field: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.row = row
        self.field = field
        super().__init__(message or kind.value)


class SinkError(HighscoresError):
    """The finished aggregate could not be handed off."""
