"""Command-line interface for hourly usage reports."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from .config import ReportSettings
from .errors import ConfigurationError, HourlyUsageError
from .paths import resolve_db_path

app = typer.Typer(help="Hour-of-day foreground usage reports.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _load_settings(time_zone: Optional[str], top_apps: Optional[int] = None) -> ReportSettings:
    settings = ReportSettings.from_options(time_zone=time_zone, top_apps=top_apps)
    try:
        settings.build_calendar()
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="--tz") from exc
    return settings


@app.command()
def report(
    date_value: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) to report. Defaults to today in the report time zone.",
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the usage SQLite database. Defaults to $HOURLY_USAGE_DB "
        "or the user data directory.",
    ),
    time_zone: Optional[str] = typer.Option(
        None,
        "--tz",
        help="IANA time zone for hour buckets. Defaults to $HOURLY_USAGE_TZ or local time.",
    ),
    top: Optional[int] = typer.Option(
        None,
        "--top",
        min=1,
        help="Only print the N most used applications.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """Print the hourly usage breakdown for a single day."""
    from .reporting import ReportPrinter
    from .service import UsageQueryService
    from .sources import DatabaseUsageSource

    try:
        target = datetime.strptime(date_value, "%Y-%m-%d").date() if date_value else None
    except ValueError as exc:
        raise typer.BadParameter("Expected YYYY-MM-DD", param_hint="--date") from exc

    settings = _load_settings(time_zone, top)
    calendar = settings.build_calendar()
    if target is None:
        target = calendar.today()
    source = DatabaseUsageSource(resolve_db_path(db_path))
    service = UsageQueryService.for_database(source, calendar)
    try:
        reports = service.query_day(target)
    except HourlyUsageError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(json.dumps([item.to_dict() for item in reports], indent=2))
        return
    ReportPrinter(limit=settings.top_apps).print_report(
        f"{target.isoformat()} ({settings.time_zone_label})", reports
    )


@app.command()
def ingest(
    dump_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON dump with events, daily_totals and labels.",
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the usage SQLite database. Defaults to $HOURLY_USAGE_DB "
        "or the user data directory.",
    ),
) -> None:
    """Import a device usage dump into the local store."""
    from .db import database_connection
    from .ingest import import_dump, load_dump

    try:
        dump = load_dump(dump_path)
    except ValidationError as exc:
        typer.echo(f"Invalid dump: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    with database_connection(resolve_db_path(db_path)) as conn:
        summary = import_dump(conn, dump)
    typer.echo(
        f"Imported {summary.events} events, {summary.daily_totals} daily totals, "
        f"{summary.labels} labels."
    )


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the usage SQLite database."
    ),
    time_zone: Optional[str] = typer.Option(
        None, "--tz", help="IANA time zone for hour buckets."
    ),
) -> None:
    """Serve usage reports over HTTP."""
    import uvicorn

    from .webapp import create_app

    application = create_app(db_path=db_path, settings=_load_settings(time_zone))
    typer.echo(f"Serving usage reports on http://{host}:{port}/api/usage")
    uvicorn.run(application, host=host, port=port, log_level="info")
