"""Centralised settings for the highscores scraper.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

DEFAULT_BASE_URL = "https://secure.runescape.com/m=hiscore_oldschool/overall.ws"


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("HIGHSCORES_WORKSPACE", Path.home() / ".highscores_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "highscores.db"

    @property
    def export_dir(self) -> Path:
        """Directory that JSONL exports are written into."""
        return self.workspace_dir / "exports"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    output_format: str = field(
        default_factory=lambda: os.environ.get("OUTPUT_FORMAT", "sqlite")
    )

    # ------------------------------------------------------------------
    # Source
    # ------------------------------------------------------------------
    base_url: str = field(
        default_factory=lambda: os.environ.get("HIGHSCORES_BASE_URL", DEFAULT_BASE_URL)
    )
    table: int = field(
        default_factory=lambda: int(os.environ.get("HIGHSCORES_TABLE", "0"))
    )
    page_start: int = field(
        default_factory=lambda: int(os.environ.get("PAGE_START", "1"))
    )
    page_end: int = field(
        default_factory=lambda: int(os.environ.get("PAGE_END", "1000"))
    )

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    max_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONCURRENCY", "16"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    max_retries: int = field(
        default_factory=lambda: int(os.environ.get("MAX_RETRIES", "2"))
    )
    retry_backoff: float = field(
        default_factory=lambda: float(os.environ.get("RETRY_BACKOFF", "0.5"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "HIGHSCORES_USER_AGENT", "Mozilla/5.0 (compatible; HighscoresBot/1.0)"
        )
    )

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------
    header_rows_to_skip: int = field(
        default_factory=lambda: int(os.environ.get("HEADER_ROWS_TO_SKIP", "1"))
    )
    field_parse_policy: str = field(
        default_factory=lambda: os.environ.get("FIELD_PARSE_POLICY", "skip")
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )


# Module-level singleton, import this everywhere:
#   from highscores.config import settings
settings = Settings()
