"""Database commands for inspecting and pruning stored highscores snapshots."""

from __future__ import annotations

from datetime import datetime

import typer

from highscores.config import settings
from highscores.db import get_connection, init_db
from highscores.db.snapshots import delete_snapshot, get_records, get_snapshot, list_snapshots

db_app = typer.Typer(help="Database operations.", no_args_is_help=True)


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


@db_app.command("snapshots")
def db_snapshots() -> None:
    """List stored snapshots, newest first."""
    conn = get_connection()
    init_db(conn)
    try:
        snapshots = list_snapshots(conn)
    finally:
        conn.close()

    if not snapshots:
        typer.echo("[db snapshots] No snapshots found.")
        return
    for s in snapshots:
        taken = datetime.fromtimestamp(s.taken_at).strftime("%Y-%m-%d %H:%M:%S")
        typer.echo(f"  {s.id}  table={s.table_id}  records={s.record_count}  taken={taken}")


@db_app.command("show")
def db_show(
    snapshot_id: str = typer.Argument(..., help="Snapshot id."),
    limit: int = typer.Option(25, help="Number of records to print."),
) -> None:
    """Print the top records of a snapshot by rank."""
    conn = get_connection()
    init_db(conn)
    try:
        snapshot = get_snapshot(conn, snapshot_id)
        if snapshot is None:
            typer.echo(f"[db show] Snapshot not found: {snapshot_id!r}")
            raise typer.Exit(code=1)
        records = get_records(conn, snapshot_id, limit=limit)
    finally:
        conn.close()

    typer.echo(f"[db show] {snapshot.id}  ({snapshot.record_count} records)")
    for r in records:
        typer.echo(f"  {r.rank:>8}  {r.name:<12}  lvl {r.level:>4}  xp {r.xp:>12,}")


@db_app.command("delete")
def db_delete(
    snapshot_id: str = typer.Argument(..., help="Snapshot id."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete a snapshot and all of its records."""
    if not yes:
        typer.confirm(f"Delete snapshot {snapshot_id}?", abort=True)
    conn = get_connection()
    init_db(conn)
    try:
        delete_snapshot(conn, snapshot_id)
    except ValueError as exc:
        typer.echo(f"[db delete] {exc}")
        raise typer.Exit(code=1)
    finally:
        conn.close()
    typer.echo(f"[db delete] Deleted {snapshot_id}")
