"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from highscores.errors import ParseError


@dataclass
class RawPage:
    """The raw HTTP response body for a single highscores page."""

    page: int
    url: str
    content: bytes
    status_code: int


@dataclass(frozen=True)
class Record:
    """One validated leaderboard entry.

    ``page`` tags the record with the page it was scraped from so consumers
    can restore page order after concurrent aggregation.
    """

    rank: int
    name: str
    level: int
    xp: int
    page: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ParsedPage:
    """Records decoded from one fragment plus the rows that failed."""

    records: list[Record] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)
    rows_skipped: int = 0
    # Subset of rows_skipped dropped because a field failed to decode.
    field_parse_skips: int = 0
