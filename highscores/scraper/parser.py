"""Row parsing: turns a cleaned table fragment into :class:`Record` objects.

The fragment is parsed as XML (``tbody > tr > td``).  Cell 1 carries the
player name inside an ``<a>``; cells 0, 2 and 3 carry plain numeric text.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from enum import Enum
from typing import Optional

from highscores.errors import ParseError, ParseErrorKind
from highscores.scraper.models import ParsedPage, Record

logger = logging.getLogger(__name__)

CELLS_PER_ROW = 4

_DIGITS = re.compile(r"[0-9]+")


class FieldParsePolicy(str, Enum):
    """What to do with a row whose fields fail to decode.

    ``SKIP`` drops the row.  ``ZERO`` keeps it with ``0`` / ``""`` in place
    of the bad fields.  The error is reported either way.
    """

    SKIP = "skip"
    ZERO = "zero"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _chardata(cell: ET.Element) -> str:
    """Character data directly inside *cell*, excluding nested element text."""
    parts = [cell.text or ""]
    parts.extend(child.tail or "" for child in cell)
    return "".join(parts).strip()


def _anchor_text(cell: ET.Element) -> Optional[str]:
    anchor = cell.find("a")
    if anchor is None:
        return None
    return "".join(anchor.itertext()).strip() or None


def _parse_int(text: str, row: int, field: str, errors: list[ParseError]) -> int:
    if _DIGITS.fullmatch(text):
        return int(text)
    errors.append(
        ParseError(
            ParseErrorKind.FIELD_PARSE,
            f"row {row}: {field}={text!r} is not a non-negative integer",
            row=row,
            field=field,
        )
    )
    return 0


def _parse_row(
    tr: ET.Element, row: int, page: Optional[int]
) -> tuple[Record, list[ParseError]]:
    cells = tr.findall("td")
    if len(cells) < CELLS_PER_ROW:
        raise ParseError(
            ParseErrorKind.SHORT_ROW,
            f"row {row}: expected {CELLS_PER_ROW} cells, got {len(cells)}",
            row=row,
        )

    errors: list[ParseError] = []
    rank = _parse_int(_chardata(cells[0]), row, "rank", errors)
    name = _anchor_text(cells[1])
    if name is None:
        errors.append(
            ParseError(ParseErrorKind.FIELD_PARSE, f"row {row}: no player name", row=row, field="name")
        )
    level = _parse_int(_chardata(cells[2]), row, "level", errors)
    xp = _parse_int(_chardata(cells[3]), row, "xp", errors)

    record = Record(rank=rank, name=name or "", level=level, xp=xp, page=page)
    return record, errors


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_table_body(
    fragment: bytes,
    *,
    page: Optional[int] = None,
    header_rows: int = 1,
    field_policy: FieldParsePolicy = FieldParsePolicy.SKIP,
) -> ParsedPage:
    """Decode every data row of *fragment*.

    The first *header_rows* rows are dropped unconditionally; the source
    always opens its table body with an empty decoration row.

    Args:
        fragment: Output of :func:`~highscores.scraper.extractor.extract_table_body`.
        page: Page number stamped onto each record.
        header_rows: Leading rows to discard.
        field_policy: Handling of rows with undecodable fields.

    Returns:
        A :class:`ParsedPage` with records in row order.  Short rows and field
        failures are listed in ``errors`` and never abort the page.

    Raises:
        ParseError: ``MALFORMED`` if the fragment is not a well-formed
            ``tbody`` element.
    """
    try:
        root = ET.fromstring(fragment)
    except ET.ParseError as exc:
        raise ParseError(ParseErrorKind.MALFORMED, f"malformed table body: {exc}") from exc
    if root.tag != "tbody":
        raise ParseError(ParseErrorKind.MALFORMED, f"expected <tbody>, got <{root.tag}>")

    result = ParsedPage()
    for index, tr in enumerate(root.findall("tr")):
        if index < header_rows:
            continue
        try:
            record, errors = _parse_row(tr, index, page)
        except ParseError as exc:
            logger.debug("Page %s: %s", page, exc)
            result.errors.append(exc)
            result.rows_skipped += 1
            continue

        if errors:
            for err in errors:
                logger.debug("Page %s: %s", page, err)
            result.errors.extend(errors)
            if field_policy is FieldParsePolicy.SKIP:
                result.rows_skipped += 1
                result.field_parse_skips += 1
                continue

        result.records.append(record)

    return result
