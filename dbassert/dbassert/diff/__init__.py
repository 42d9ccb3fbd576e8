"""Snapshot diff engine."""

from dbassert.diff.row_diff import compute_changes, diff, diff_snapshot_lists

__all__ = ["compute_changes", "diff", "diff_snapshot_lists"]
