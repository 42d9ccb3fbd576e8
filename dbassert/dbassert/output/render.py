"""Plain-text tables of snapshots and changes.

The ``*_table`` builders return :class:`rich.table.Table` objects that the
CLI prints to a live console; the ``render_*`` functions print them to a
colourless in-memory console and return the text, for assertion messages
and logs.

Value representations: ``null`` for ``None``, ``...`` for binary values,
ISO format for dates and times, ``str()`` otherwise.  Primary-key columns
are marked with ``*``.
"""

from __future__ import annotations

from collections.abc import Iterable
from io import StringIO

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from dbassert.models.change import Change
from dbassert.models.snapshot import DataType, Row, Snapshot
from dbassert.values import format_value, value_type_representation

DEFAULT_WIDTH = 200


def _source_label(data_type: DataType, name: str) -> str:
    if data_type is DataType.TABLE:
        return f"{name} table"
    return f"'{name}' request"


def _column_header(name: str, value_type: str, is_pk: bool, modified: bool = False) -> str:
    lines = ["*" if is_pk else " ", name, f"({value_type})"]
    if modified:
        lines.append("modified")
    return "\n".join(lines)


def _pk_text(values: Iterable[object]) -> str:
    return "/".join(format_value(v) for v in values)


# ---------------------------------------------------------------------------
# Table builders
# ---------------------------------------------------------------------------


def snapshot_table(snapshot: Snapshot) -> Table:
    """Build a table with one line per row of *snapshot*."""
    title = Text(f"[{_source_label(snapshot.data_type, snapshot.name)}]")
    table = Table(title=title, box=box.ASCII, show_lines=False)
    table.add_column("\n\nIndex", justify="right")
    table.add_column("\nPRIMARY\nKEY")

    pk_case = snapshot.primary_key_letter_case
    for position, column in enumerate(snapshot.columns):
        value_type = snapshot.column(position).value_type
        is_pk = pk_case.index_of(snapshot.pk_names, column.name) >= 0
        table.add_column(Text(_column_header(column.name, value_type.value, is_pk)))

    for index, row in enumerate(snapshot.rows):
        table.add_row(str(index), Text(_pk_text(row.pk_values)), *(Text(format_value(v)) for v in row.values))
    return table


def _row_cells(change: Change, row: Row | None) -> list[Text]:
    if row is None:
        return [Text("") for _ in change.columns]
    cells = []
    for name in change.columns:
        index = row.index_of(name)
        cells.append(Text(format_value(row.values[index]) if index >= 0 else ""))
    return cells


def change_table(change: Change, title: str | None = None) -> Table:
    """Build a two-line table with the row at the start point and at the end point."""
    label = _source_label(change.data_type, change.data_name)
    table = Table(title=Text(title or f"[{change.change_type.value} on {label}]"), box=box.ASCII)
    table.add_column("")
    table.add_column("\n\nTYPE")
    table.add_column("\n\nDATA")
    table.add_column("\nPRIMARY\nKEY")

    modified = set(change.modified_column_indices)
    pk_case = change.primary_key_letter_case
    row = change.present_row
    for index, name in enumerate(change.columns):
        value = row.values[index] if index < len(row.values) else None
        value_type = value_type_representation(value)
        is_pk = pk_case.index_of(change.pk_names, name) >= 0
        table.add_column(Text(_column_header(name, value_type, is_pk, index in modified)))

    header = [Text(change.change_type.value), Text(label), Text(_pk_text(change.pk_values))]
    table.add_row("At start point", *header, *_row_cells(change, change.row_at_start_point))
    table.add_row("At end point", *header, *_row_cells(change, change.row_at_end_point))
    return table


def changes_table(changes: Iterable[Change], title: str = "[Changes]") -> Table:
    """Build a summary table with one line per change."""
    table = Table(title=Text(title), box=box.ASCII)
    table.add_column("Index", justify="right")
    table.add_column("Type")
    table.add_column("Data")
    table.add_column("Primary key")
    table.add_column("Modified columns")

    for index, change in enumerate(changes):
        table.add_row(
            str(index),
            change.change_type.value,
            Text(_source_label(change.data_type, change.data_name)),
            Text(_pk_text(change.pk_values)),
            Text(", ".join(change.modified_column_names)),
        )
    return table


# ---------------------------------------------------------------------------
# Text rendering
# ---------------------------------------------------------------------------


def _to_text(table: Table, width: int) -> str:
    buffer = StringIO()
    console = Console(file=buffer, no_color=True, width=width, force_terminal=False, highlight=False)
    console.print(table)
    return buffer.getvalue()


def render_snapshot(snapshot: Snapshot, *, width: int = DEFAULT_WIDTH) -> str:
    return _to_text(snapshot_table(snapshot), width)


def render_change(change: Change, *, width: int = DEFAULT_WIDTH) -> str:
    return _to_text(change_table(change), width)


def render_changes(changes: Iterable[Change], *, width: int = DEFAULT_WIDTH) -> str:
    return _to_text(changes_table(changes), width)
