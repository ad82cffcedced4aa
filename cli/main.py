"""Highscores CLI: entry-point for scrape runs and snapshot inspection.

Usage:
    python cli/main.py --help

Commands:
    scrape    → run the concurrent scraper over a page range
    db        → initialise / inspect the snapshot database
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from highscores.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any working
# directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import signal
from typing import Optional

import typer

from cli.commands.db import db_app
from highscores.config import settings
from highscores.errors import SinkError
from highscores.logger import setup_logging

app = typer.Typer(
    name="highscores",
    help="Old School RuneScape highscores scraper.",
    no_args_is_help=True,
)
app.add_typer(db_app, name="db")


@app.command("scrape")
def scrape(
    start: int = typer.Option(settings.page_start, help="First page to scrape."),
    end: int = typer.Option(settings.page_end, help="Last page to scrape (inclusive)."),
    concurrency: int = typer.Option(settings.max_concurrency, help="Maximum pages in flight."),
    timeout: float = typer.Option(settings.request_timeout, help="Per-request timeout in seconds."),
    retries: int = typer.Option(settings.max_retries, help="Retries per page for transient errors."),
    table: int = typer.Option(settings.table, help="Highscores table id (0 = overall)."),
    output: str = typer.Option(settings.output_format, help="Output sink: sqlite | jsonl."),
    field_policy: str = typer.Option(
        settings.field_parse_policy, help="Rows with bad numbers: skip | zero."
    ),
    log_level: Optional[str] = typer.Option(None, help="Log level override."),
) -> None:
    """Scrape a page range and hand the result to the configured sink."""
    from highscores.pipeline import PipelineCoordinator
    from highscores.scraper.fetcher import build_client
    from highscores.scraper.parser import FieldParsePolicy
    from highscores.sinks import make_sink

    setup_logging(log_level)

    try:
        sink = make_sink(output)
        policy = FieldParsePolicy(field_policy.lower())
    except ValueError as exc:
        typer.echo(f"[scrape] {exc}")
        raise typer.Exit(code=2)

    typer.echo(f"[scrape] Pages {start}..{end}  concurrency={concurrency}  output={output}")
    with build_client(timeout=timeout) as client:
        coordinator = PipelineCoordinator(
            sink,
            max_concurrency=concurrency,
            client=client,
            field_policy=policy,
            max_retries=retries,
            table=table,
        )
        previous = signal.signal(signal.SIGINT, lambda *_: coordinator.cancel())
        try:
            report = coordinator.run(start, end)
        except SinkError as exc:
            typer.echo(f"[scrape] ✗ Sink failed: {exc}")
            raise typer.Exit(code=1)
        except ValueError as exc:
            typer.echo(f"[scrape] {exc}")
            raise typer.Exit(code=2)
        finally:
            signal.signal(signal.SIGINT, previous)

    typer.echo(f"[scrape] It took {report.elapsed:.2f}s to retrieve {end - start + 1} page(s)")
    typer.echo(
        f"[scrape] Pages  : {report.pages_succeeded} ok, {report.pages_failed} failed, "
        f"{report.pages_cancelled} cancelled"
    )
    typer.echo(
        f"[scrape] Records: {report.records}  (rows skipped: {report.rows_skipped}, "
        f"bad fields: {report.field_parse_skips})"
    )
    if report.failed_pages:
        typer.echo(f"[scrape] Failed : {', '.join(str(p) for p in report.failed_pages)}")
    typer.echo(f"[scrape] Stored : {report.sink_result}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
