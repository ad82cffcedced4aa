"""Scraper package: page fetch, table extraction & row parsing."""

from highscores.scraper.extractor import extract_table_body
from highscores.scraper.fetcher import fetch_page, fetch_page_with_retry
from highscores.scraper.models import ParsedPage, RawPage, Record
from highscores.scraper.parser import FieldParsePolicy, parse_table_body

__all__ = [
    "fetch_page",
    "fetch_page_with_retry",
    "extract_table_body",
    "parse_table_body",
    "FieldParsePolicy",
    "RawPage",
    "ParsedPage",
    "Record",
]
