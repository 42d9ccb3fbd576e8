"""Fluent assertions on snapshots and changes.

Entry point::

    from dbassert.assertions import assert_that

    assert_that(changes).has_number_of_changes(1) \\
        .change().is_modification().has_modified_columns("NAME")
"""

from __future__ import annotations

from collections.abc import Sequence

from dbassert.assertions.change_assert import ChangeAssert, ChangesAssert
from dbassert.assertions.change_point_assert import ChangeColumnAssert, ChangeRowAssert
from dbassert.assertions.snapshot_assert import ColumnAssert, RowAssert, SnapshotAssert
from dbassert.changes import Changes
from dbassert.models.change import Change
from dbassert.models.snapshot import Snapshot


def assert_that(
    actual: Changes | Sequence[Change] | Change | Snapshot,
) -> ChangesAssert | ChangeAssert | SnapshotAssert:
    """Start an assertion chain on *actual*.

    Raises
    ------
    TypeError
        If *actual* is not changes, a change or a snapshot.
    """
    if isinstance(actual, Snapshot):
        return SnapshotAssert(actual)
    if isinstance(actual, Changes):
        return ChangesAssert(actual.changes, description=actual.description, letter_cases=actual.letter_cases)
    if isinstance(actual, Change):
        return ChangesAssert([actual]).change(0)
    if isinstance(actual, Sequence) and all(isinstance(item, Change) for item in actual):
        return ChangesAssert(actual)
    raise TypeError(f"Cannot assert on {type(actual).__name__}")


__all__ = [
    "ChangeAssert",
    "ChangeColumnAssert",
    "ChangeRowAssert",
    "ChangesAssert",
    "ColumnAssert",
    "RowAssert",
    "SnapshotAssert",
    "assert_that",
]
