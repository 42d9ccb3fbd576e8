"""Rich output for the dbassert CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that JSON written to *stdout* is never polluted with
human-readable decoration.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from dbassert.models import Change, ChangeType, DataType, Snapshot
from dbassert.output import change_table, changes_table, snapshot_table

_CHANGE_COLOURS: dict[ChangeType, str] = {
    ChangeType.CREATION: "green",
    ChangeType.MODIFICATION: "yellow",
    ChangeType.DELETION: "red",
}


def _coloured_type(change_type: ChangeType, text: str) -> str:
    colour = _CHANGE_COLOURS.get(change_type, "white")
    return f"[{colour}]{text}[/{colour}]"


def display_snapshot(console: Console, snapshot: Snapshot) -> None:
    """Render a snapshot header and its rows.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    snapshot:
        The snapshot to display.
    """
    source = "Table" if snapshot.data_type is DataType.TABLE else "Query"
    header_lines = [
        f"[bold]{source}:[/bold]       {escape(snapshot.name)}",
        f"[bold]Columns:[/bold]     {len(snapshot.columns)}",
        f"[bold]Rows:[/bold]        {len(snapshot.rows)}",
        f"[bold]Primary key:[/bold] {escape(', '.join(snapshot.pk_names)) or '(none)'}",
    ]
    console.print(Panel("\n".join(header_lines), title="Snapshot", border_style="blue"))

    if not snapshot.rows:
        console.print("[dim]No rows in this snapshot.[/dim]")
        return
    console.print(snapshot_table(snapshot))


def display_changes(console: Console, changes: Sequence[Change], *, details: bool = False) -> None:
    """Render a summary of *changes*, then one table per change when *details* is set."""
    counts = Counter(change.change_type for change in changes)
    summary = "   ".join(
        _coloured_type(change_type, f"{change_type.value.lower()}s: {counts.get(change_type, 0)}")
        for change_type in ChangeType
    )
    console.print(Panel(summary, title=f"{len(changes)} change(s)", border_style="blue"))

    if not changes:
        console.print("[green]No changes.[/green]")
        return

    console.print(changes_table(changes))
    if details:
        for index, change in enumerate(changes):
            console.print(change_table(change, title=f"[Change at index {index}]"))
