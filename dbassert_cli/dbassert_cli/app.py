"""dbassert CLI application -- Typer-based interface to snapshots and diffs.

``snapshot`` captures a table or a query result to JSON, ``diff`` lists the
changes between two captured snapshots, and ``show`` renders a snapshot.
Human-readable output goes to *stderr* via Rich; JSON goes to *stdout* or
to a file so that pipelines can compose cleanly.

Exit codes: 0 on success, 1 when ``diff --fail-on-changes`` finds changes,
2 on usage errors (bad options, unreadable snapshot files, mismatched
primary keys), 3 when the database cannot be read.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from dbassert.config import Settings, load_settings
from dbassert.diff import compute_changes
from dbassert.exceptions import DbAssertError, SerializationError
from dbassert.lettercase import LetterCases
from dbassert.logging_config import configure_logging
from dbassert.models import Snapshot
from dbassert.reader import QuerySource, TableSource, open_reader
from dbassert.serialization import deserialize_snapshot, serialize_changes, serialize_snapshot
from dbassert.telemetry import ProfileCollector
from dbassert_cli.display import display_changes, display_snapshot

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="dbassert",
    help="dbassert - capture database snapshots and list the changes between them",
    no_args_is_help=True,
)
console = Console(stderr=True)

# Populated by the Typer callback.
_settings: Settings | None = None


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log level (CRITICAL, ERROR, WARNING, INFO, DEBUG).",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs/--text-logs",
        help="Emit log records as single-line JSON.",
    ),
) -> None:
    """Global options applied to every command."""
    global _settings  # noqa: PLW0603
    overrides: dict[str, object] = {"structured_logging": json_logs}
    if log_level is not None:
        overrides["log_level"] = log_level
    try:
        _settings = load_settings(**overrides)
    except ValidationError as exc:
        console.print(f"[red]Invalid settings: {escape(str(exc))}[/red]")
        raise typer.Exit(code=2) from exc
    configure_logging(_settings)
    ProfileCollector.get_instance().enabled = _settings.profiling_enabled
    console.width = min(console.width, _settings.render_max_width)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_settings() -> Settings:
    return _settings if _settings is not None else load_settings()


def _load_snapshot(path: Path) -> Snapshot:
    """Read and decode a snapshot file, exiting with code 2 on failure."""
    try:
        return deserialize_snapshot(path.read_text(encoding="utf-8"))
    except (OSError, SerializationError) as exc:
        console.print(f"[red]Cannot read snapshot {escape(str(path))}: {escape(str(exc))}[/red]")
        raise typer.Exit(code=2) from exc


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def snapshot(
    url: str = typer.Option(..., "--url", help="SQLAlchemy URL, or duckdb:///path for DuckDB."),
    table: str | None = typer.Option(None, "--table", help="Table to capture."),
    query: str | None = typer.Option(None, "--query", help="SQL query whose result is captured."),
    pk: list[str] | None = typer.Option(None, "--pk", help="Primary-key column (repeatable)."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the JSON here instead of stdout."),
) -> None:
    """Capture a table or a query result as a JSON snapshot."""
    if (table is None) == (query is None):
        console.print("[red]Give exactly one of --table or --query.[/red]")
        raise typer.Exit(code=2)

    letter_cases = LetterCases.from_settings(_get_settings())
    try:
        with open_reader(url, letter_cases=letter_cases) as reader:
            if table is not None:
                captured = reader.read_table(TableSource(name=table, pk_names=pk or None))
            else:
                captured = reader.read_query(QuerySource(sql=query, pk_names=pk or []))
    except DbAssertError as exc:
        console.print(f"[red]Snapshot failed: {escape(str(exc))}[/red]")
        raise typer.Exit(code=3) from exc

    text = serialize_snapshot(captured)
    if output is None:
        typer.echo(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    console.print(f"[green]Wrote {len(captured.rows)} row(s) to {escape(str(output))}[/green]")


@app.command(name="diff")
def diff_command(
    before: Path = typer.Argument(..., exists=True, dir_okay=False, help="Snapshot at the start point."),
    after: Path = typer.Argument(..., exists=True, dir_okay=False, help="Snapshot at the end point."),
    pk: list[str] | None = typer.Option(None, "--pk", help="Primary-key column overriding the snapshots' own."),
    json_mode: bool = typer.Option(False, "--json", help="Write the changes as JSON to stdout."),
    details: bool = typer.Option(False, "--details", help="Show the rows of every change."),
    fail_on_changes: bool = typer.Option(False, "--fail-on-changes", help="Exit with code 1 when changes exist."),
) -> None:
    """List the changes between two snapshot files."""
    start = _load_snapshot(before)
    end = _load_snapshot(after)
    try:
        changes = compute_changes(start, end, pk or None)
    except DbAssertError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=2) from exc

    if json_mode:
        typer.echo(serialize_changes(changes))
    else:
        display_changes(console, changes, details=details)

    if fail_on_changes and changes:
        raise typer.Exit(code=1)


@app.command()
def show(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Snapshot file to render."),
) -> None:
    """Render a snapshot file as a table."""
    display_snapshot(console, _load_snapshot(path))
