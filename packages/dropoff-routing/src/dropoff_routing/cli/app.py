from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from pydantic import ValidationError
from rich import print
from rich.markup import escape
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from ..config import RouterSettings
from ..errors import RoutingError
from ..layout import CONFIG_HEADER, RECORD_WIDTH, STAGING_HEADER
from ..logging_setup import configure_logging
from ..models import EditEvent, RouteOutcome
from ..notify import ConsoleNotifier
from ..routing.dispatcher import EditDispatcher
from ..routing.engine import RoutingEngine, ensure_headers, get_or_create_table
from ..storage.sqlite import SqliteTableStore

app = typer.Typer(add_completion=False, pretty_exceptions_show_locals=False)

_state: dict[str, Path | None] = {"config": None}


@app.callback()
def main(
    config: str | None = typer.Option(None, help="JSON settings file"),
    log_level: str | None = typer.Option(None, help="Overrides LOG_LEVEL"),
):
    """Route drop-off rows into destination tables."""
    configure_logging(log_level)
    _state["config"] = Path(config) if config else None


def _settings() -> RouterSettings:
    try:
        return RouterSettings.load(_state["config"])
    except (OSError, ValueError, ValidationError) as exc:
        _fail(RoutingError(f"invalid settings file {_state['config']}: {exc}"))


def _open(db: str) -> SqliteTableStore:
    try:
        Path(db).parent.mkdir(parents=True, exist_ok=True)
        return SqliteTableStore(db)
    except (OSError, SQLAlchemyError) as exc:
        _fail(RoutingError(f"cannot open {db}: {exc}"))


def _engine(db: str) -> RoutingEngine:
    settings = _settings()
    return RoutingEngine(_open(db), settings, notifier=ConsoleNotifier())


def _fail(exc: Exception) -> NoReturn:
    print(f"[red]error:[/red] {escape(str(exc))}")
    raise typer.Exit(code=1)


def _print_outcome(outcome: RouteOutcome) -> None:
    if outcome.routed:
        print(
            f"row {outcome.row}: [green]{outcome.status}[/green] -> "
            f"{outcome.destination} row {outcome.target_row}"
        )
    else:
        print(f"row {outcome.row}: [yellow]{outcome.status}[/yellow]")


@app.command()
def init(db: str = typer.Option(..., help="SQLite database path")):
    """Create the staging and config tables with their headers."""
    settings = _settings()
    try:
        store = _open(db)
        for name, header in (
            (settings.staging_table, STAGING_HEADER),
            (settings.config_table, CONFIG_HEADER),
        ):
            ensure_headers(store, get_or_create_table(store, name), header)
    except RoutingError as exc:
        _fail(exc)
    print(f"[bold]Initialised[/bold] {db}")


@app.command()
def rule(
    db: str = typer.Option(..., help="SQLite database path"),
    code: str = typer.Option("", help="Customer code to match"),
    dest: str = typer.Option("", help="Destination table name"),
    default: bool = typer.Option(False, "--default", help="Mark as the default target"),
):
    """Append a routing rule to the config table."""
    settings = _settings()
    try:
        store = _open(db)
        table = get_or_create_table(store, settings.config_table)
        ensure_headers(store, table, CONFIG_HEADER)
        store.append_row(table, [code, dest, "TRUE" if default else "FALSE"])
    except RoutingError as exc:
        _fail(exc)
    print(f"[bold]Rule[/bold] {code or '*'} -> {dest or '(default)'}")


@app.command()
def stage(
    values: list[str] = typer.Argument(..., help="PART LOC CUSTM PRICE DATE DESCR"),
    db: str = typer.Option(..., help="SQLite database path"),
):
    """Append a row to the staging table and route it."""
    if len(values) != RECORD_WIDTH:
        raise typer.BadParameter(f"expected {RECORD_WIDTH} values, got {len(values)}")
    engine = _engine(db)
    staging = engine.settings.staging_table
    try:
        table = get_or_create_table(engine.store, staging)
        ensure_headers(engine.store, table, STAGING_HEADER)
        engine.store.append_row(table, values)
        row = engine.store.last_row(table)
    except RoutingError as exc:
        _fail(exc)
    dispatcher = EditDispatcher(engine)
    for outcome in dispatcher.handle_edit(
        EditEvent(table=table, row=row, column=1, num_columns=RECORD_WIDTH)
    ):
        _print_outcome(outcome)


@app.command()
def route(
    db: str = typer.Option(..., help="SQLite database path"),
    row: int = typer.Option(..., min=2, help="Staging row number"),
):
    """Route a single staging row."""
    engine = _engine(db)
    try:
        outcome = engine.route_row(row)
    except RoutingError as exc:
        _fail(exc)
    _print_outcome(outcome)


@app.command()
def rescan(
    db: str = typer.Option(..., help="SQLite database path"),
    from_row: int = typer.Option(2, min=2, help="First staging row to consider"),
):
    """Route every staging row that is complete and not yet routed."""
    engine = _engine(db)
    try:
        outcomes = EditDispatcher(engine).rescan(start_row=from_row)
    except RoutingError as exc:
        _fail(exc)
    routed = sum(1 for o in outcomes if o.routed)
    for outcome in outcomes:
        if outcome.routed:
            _print_outcome(outcome)
    print(f"[bold]Rescan[/bold] routed {routed} of {len(outcomes)} rows")


@app.command()
def show(
    db: str = typer.Option(..., help="SQLite database path"),
    table: str = typer.Option(..., help="Table name"),
    width: int = typer.Option(RECORD_WIDTH, min=1, help="Columns to display"),
):
    """Print a table."""
    store = _open(db)
    if store.get_table(table) is None:
        _fail(RoutingError(f"unknown table: {table!r}"))
    out = Table(title=table)
    out.add_column("#", justify="right")
    header = store.read_row(table, 1, 1, width)
    for i, name in enumerate(header, start=1):
        out.add_column(str(i) if name is None else str(name))
    for row in range(2, store.last_row(table) + 1):
        cells = store.read_row(table, row, 1, width)
        out.add_row(str(row), *["" if v is None else str(v) for v in cells])
    print(out)


@app.command()
def log(db: str = typer.Option(..., help="SQLite database path")):
    """Print the routing ledger."""
    engine = _engine(db)
    out = Table(title=engine.ledger.table)
    for name in ("ROW", "DEST", "WHEN", "KEY"):
        out.add_column(name)
    try:
        entries = engine.ledger.entries()
    except RoutingError as exc:
        _fail(exc)
    for entry in entries:
        out.add_row(
            "" if entry.row is None else str(entry.row),
            entry.dest,
            "" if entry.when is None else entry.when.isoformat(),
            entry.key,
        )
    print(out)
