"""Table-body extraction: isolates and cleans the ``<tbody>`` of a page."""

from __future__ import annotations

import re

from highscores.errors import ExtractError, ExtractErrorKind

OPEN_MARKER = b"<tbody>"
CLOSE_MARKER = b"</tbody>"

NBSP = "\u00a0"

# Applied in this order.  The source markup carries unescaped double quotes,
# hard newlines, non-breaking spaces and comma thousands-separators, none of
# which survive structured parsing.
SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ('"', "'"),
    ("\n", ""),
    (NBSP, " "),
    (",", ""),
)


# Bytes that are not valid UTF-8 come back from ``surrogateescape`` as lone
# surrogates U+DC80..U+DCFF; each maps onto the Latin-1 character it encodes.
_ESCAPED_BYTE = re.compile("[\udc80-\udcff]")


def _decode(data: bytes) -> str:
    text = data.decode("utf-8", errors="surrogateescape")
    return _ESCAPED_BYTE.sub(lambda m: chr(ord(m.group()) - 0xDC00), text)


def normalize_fragment(fragment: bytes) -> bytes:
    """Apply :data:`SUBSTITUTIONS` to *fragment* and return UTF-8 bytes.

    The fragment is decoded per byte sequence: valid UTF-8 is kept, and any
    stray byte is read as Latin-1.  A non-breaking space is therefore replaced
    as a character in either encoding, and mixed pages keep their UTF-8 names.
    """
    text = _decode(fragment)
    for old, new in SUBSTITUTIONS:
        text = text.replace(old, new)
    return text.encode("utf-8")


def extract_table_body(content: bytes) -> bytes:
    """Return the cleaned ``<tbody>…</tbody>`` region of *content*.

    The slice runs from the first open marker through the first close marker
    that follows it, both inclusive.

    Raises:
        ExtractError: ``NO_TABLE_BODY`` if either marker is missing or the
            close marker does not follow the open marker.
    """
    start = content.find(OPEN_MARKER)
    if start == -1:
        raise ExtractError(ExtractErrorKind.NO_TABLE_BODY, "no <tbody> in page")

    close = content.find(CLOSE_MARKER, start + len(OPEN_MARKER))
    if close == -1:
        raise ExtractError(ExtractErrorKind.NO_TABLE_BODY, "no </tbody> after <tbody>")

    end = close + len(CLOSE_MARKER)
    return normalize_fragment(content[start:end])
