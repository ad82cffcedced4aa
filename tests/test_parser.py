"""Tests for row parsing."""

from __future__ import annotations

import pytest

from highscores.errors import ParseError, ParseErrorKind
from highscores.scraper.extractor import extract_table_body
from highscores.scraper.models import Record
from highscores.scraper.parser import FieldParsePolicy, parse_table_body

from tests.helpers import make_page, make_row

_SCENARIO = (
    b"<tbody><tr><td></td></tr><tr><td>1</td><td><a>Zezima</a></td>"
    b"<td>99</td><td>200000000</td></tr></tbody>"
)


class TestValidRows:
    def test_single_row(self) -> None:
        parsed = parse_table_body(_SCENARIO)
        assert parsed.records == [Record(rank=1, name="Zezima", level=99, xp=200000000)]
        assert parsed.errors == []

    def test_page_tag_applied(self) -> None:
        parsed = parse_table_body(_SCENARIO, page=7)
        assert parsed.records[0].page == 7

    def test_rows_in_order_after_extraction(self) -> None:
        page = make_page(
            [
                make_row("1", "Lynx Titan", "2,277", "4,600,000,000"),
                make_row("2", "Zezima", "2,277", "4,599,000,000"),
            ]
        )
        parsed = parse_table_body(extract_table_body(page), page=1)
        assert [r.name for r in parsed.records] == ["Lynx Titan", "Zezima"]
        assert parsed.records[0] == Record(
            rank=1, name="Lynx Titan", level=2277, xp=4600000000, page=1
        )

    def test_name_taken_from_anchor_not_chardata(self) -> None:
        fragment = (
            b"<tbody><tr/><tr><td>3</td><td>ignored<a>Woox</a></td>"
            b"<td>50</td><td>100</td></tr></tbody>"
        )
        assert parse_table_body(fragment).records[0].name == "Woox"


class TestHeaderRow:
    def test_header_never_returned(self) -> None:
        fragment = (
            b"<tbody><tr><td>1</td><td><a>Header</a></td><td>1</td><td>1</td></tr>"
            b"<tr><td>2</td><td><a>Real</a></td><td>2</td><td>2</td></tr></tbody>"
        )
        names = [r.name for r in parse_table_body(fragment).records]
        assert names == ["Real"]

    def test_header_rows_configurable(self) -> None:
        fragment = b"<tbody><tr><td>1</td><td><a>A</a></td><td>1</td><td>1</td></tr></tbody>"
        assert len(parse_table_body(fragment, header_rows=0).records) == 1

    def test_only_header_yields_nothing(self) -> None:
        parsed = parse_table_body(b"<tbody><tr><td></td></tr></tbody>")
        assert parsed.records == []
        assert parsed.rows_skipped == 0


class TestMalformed:
    @pytest.mark.parametrize(
        "fragment",
        [
            b"<tbody><tr><td>1</tr></tbody>",
            b"<tbody><tr><td>&nbsp;</td></tr></tbody>",
            b"<table><tr></tr></table>",
            b"",
        ],
    )
    def test_raises_malformed(self, fragment: bytes) -> None:
        with pytest.raises(ParseError) as info:
            parse_table_body(fragment)
        assert info.value.kind is ParseErrorKind.MALFORMED


class TestRowErrors:
    def test_short_row_skipped(self) -> None:
        fragment = (
            b"<tbody><tr/><tr><td>1</td><td><a>A</a></td></tr>"
            b"<tr><td>2</td><td><a>B</a></td><td>3</td><td>4</td></tr></tbody>"
        )
        parsed = parse_table_body(fragment)
        assert [r.name for r in parsed.records] == ["B"]
        assert parsed.rows_skipped == 1
        assert parsed.errors[0].kind is ParseErrorKind.SHORT_ROW
        assert parsed.errors[0].row == 1

    def test_bad_number_skipped_by_default(self) -> None:
        fragment = (
            b"<tbody><tr/><tr><td>x</td><td><a>A</a></td><td>1</td><td>1</td></tr>"
            b"<tr><td>2</td><td><a>B</a></td><td>3</td><td>4</td></tr></tbody>"
        )
        parsed = parse_table_body(fragment)
        assert [r.name for r in parsed.records] == ["B"]
        assert parsed.rows_skipped == 1
        err = parsed.errors[0]
        assert err.kind is ParseErrorKind.FIELD_PARSE
        assert err.field == "rank"

    def test_zero_policy_keeps_row(self) -> None:
        fragment = b"<tbody><tr/><tr><td>5</td><td><a>A</a></td><td>?</td><td>10</td></tr></tbody>"
        parsed = parse_table_body(fragment, field_policy=FieldParsePolicy.ZERO)
        assert parsed.records == [Record(rank=5, name="A", level=0, xp=10)]
        assert parsed.rows_skipped == 0
        assert [e.field for e in parsed.errors] == ["level"]

    def test_missing_anchor_is_field_error(self) -> None:
        fragment = b"<tbody><tr/><tr><td>5</td><td>A</td><td>1</td><td>10</td></tr></tbody>"
        parsed = parse_table_body(fragment)
        assert parsed.records == []
        assert parsed.errors[0].field == "name"

    @pytest.mark.parametrize("cell", ["1_000", "\u0669\u0669", "-5", "+5", "1.0", ""])
    def test_non_decimal_numbers_rejected(self, cell: str) -> None:
        fragment = (
            "<tbody><tr/><tr><td>1</td><td><a>A</a></td>"
            f"<td>{cell}</td><td>10</td></tr></tbody>"
        ).encode("utf-8")
        parsed = parse_table_body(fragment)
        assert parsed.records == []
        assert [(e.kind, e.field) for e in parsed.errors] == [
            (ParseErrorKind.FIELD_PARSE, "level")
        ]

    def test_field_parse_skips_counts_rows_not_errors(self) -> None:
        fragment = (
            b"<tbody><tr/>"
            b"<tr><td>x</td><td><a>A</a></td><td>y</td><td>z</td></tr>"
            b"<tr><td>2</td><td><a>B</a></td></tr>"
            b"<tr><td>3</td><td><a>C</a></td><td>4</td><td>5</td></tr></tbody>"
        )
        parsed = parse_table_body(fragment)
        assert [r.name for r in parsed.records] == ["C"]
        assert len(parsed.errors) == 4
        assert parsed.rows_skipped == 2
        assert parsed.field_parse_skips == 1

    def test_zero_policy_skips_nothing(self) -> None:
        fragment = b"<tbody><tr/><tr><td>x</td><td><a>A</a></td><td>y</td><td>1</td></tr></tbody>"
        parsed = parse_table_body(fragment, field_policy=FieldParsePolicy.ZERO)
        assert parsed.field_parse_skips == 0
        assert len(parsed.records) == 1
