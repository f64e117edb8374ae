"""Command-line interface for the look tracker."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from .config import TrackerSettings
from .paths import get_db_path, get_session_log_path
from .server_runner import run_server

app = typer.Typer(help="Look-time tracking for product scenes.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def simulate(
    scenario_path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="JSON scene and observer path to play."
    ),
    log_path: Optional[Path] = typer.Option(
        None,
        "--log",
        path_type=Path,
        help="Session log to load and write back.",
    ),
    look_distance: float = typer.Option(
        10.0,
        "--look-distance",
        min=0.0,
        help="Maximum ray distance in scene units.",
    ),
    min_look_time: float = typer.Option(
        0.05,
        "--min-look-time",
        min=0.0,
        help="Totals below this many seconds are not written.",
    ),
    tick_hz: float = typer.Option(
        60.0,
        "--tick-rate",
        min=1.0,
        help="Ticks per second for frames that do not set their own dt.",
    ),
) -> None:
    """Play a scripted scene through a tracking session."""
    from .simulation import load_scenario, run_scenario

    try:
        scenario = load_scenario(scenario_path)
    except (ValidationError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(str(exc), param_hint="SCENARIO_PATH") from exc
    settings = TrackerSettings.from_values(
        look_distance=look_distance, min_look_time=min_look_time, tick_hz=tick_hz
    )
    totals = run_scenario(scenario, log_path or get_session_log_path(), settings)
    if not totals:
        typer.echo("Nothing was looked at.")
        return
    for key, seconds in sorted(totals.items(), key=lambda item: item[1], reverse=True):
        typer.echo(f"{key:<30} {seconds:8.2f}s")


@app.command()
def ingest(
    player: str = typer.Option(..., "--player", help="Player the sessions belong to."),
    log_path: Optional[Path] = typer.Option(
        None, "--log", path_type=Path, help="Session log to import."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the look-time SQLite database."
    ),
) -> None:
    """Import the sessions of a session log into the database."""
    from .db import database_connection
    from .ingest import ingest_session_log

    source = log_path or get_session_log_path()
    if not source.exists():
        typer.echo(f"No session log at {source}.")
        raise typer.Exit(code=1)
    with database_connection(db_path or get_db_path()) as conn:
        result = ingest_session_log(conn, source, player)
    typer.echo(
        f"Imported {result.sessions} sessions ({result.records} records); "
        f"skipped {result.skipped_sessions}."
    )


@app.command()
def seed(
    data_dir: Path = typer.Argument(
        ..., exists=True, file_okay=False, help="Directory holding the seed JSON files."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the look-time SQLite database."
    ),
) -> None:
    """Load seed data into an empty database."""
    from .db import database_connection
    from .ingest import import_seed_data

    with database_connection(db_path or get_db_path()) as conn:
        imported = import_seed_data(conn, data_dir)
    typer.echo(f"Imported {imported} rows.")


@app.command()
def summary(
    player: Optional[str] = typer.Option(
        None, "--player", help="Only summarize this player's sessions."
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the look-time SQLite database.",
    ),
) -> None:
    """Print total look time per category and object."""
    from .reporting import SummaryPrinter

    summary_printer = SummaryPrinter(db_path=db_path or get_db_path())
    summary_printer.print_summary(player)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        3000, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the look-time SQLite database."
    ),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the API docs in your default browser.",
    ),
) -> None:
    """Serve the look-time API."""
    run_server(
        host=host,
        port=port,
        db_path=db_path or get_db_path(),
        open_browser=open_browser,
    )
