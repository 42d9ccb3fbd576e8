"""Text rendering of snapshots and changes."""

from dbassert.output.render import (
    change_table,
    changes_table,
    render_change,
    render_changes,
    render_snapshot,
    snapshot_table,
)

__all__ = [
    "change_table",
    "changes_table",
    "render_change",
    "render_changes",
    "render_snapshot",
    "snapshot_table",
]
