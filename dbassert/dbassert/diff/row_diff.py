"""Row-level diff engine: classify the changes between two snapshots.

Rows are matched by primary key.  A key present only in the end snapshot
is a CREATION, a key present only in the start snapshot is a DELETION, and
a key present in both whose row values differ is a MODIFICATION.
Unchanged rows produce nothing.

Output order is deterministic: keys of the *before* snapshot in its row
order (first occurrence of each key), then keys only found in the *after*
snapshot in its row order.

Key values are compared with :func:`dbassert.values.comparison_key`, so
``Decimal("1.0")`` and ``1`` address the same row while ``"a"`` and ``"A"``
do not.  Identifier letter-case rules only apply to column and key *names*.

When neither snapshot declares a primary key, rows are matched by full-row
equality as a multiset: unmatched before-rows become deletions and
unmatched after-rows become creations.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Hashable, Sequence
from typing import Any, cast

from dbassert.exceptions import PrimaryKeyMismatchError, SnapshotError
from dbassert.lettercase import LetterCase, LetterCases
from dbassert.models.change import Change, ChangeType
from dbassert.models.snapshot import Row, Snapshot
from dbassert.telemetry.profiling import profile_operation
from dbassert.values import key_tuple, values_equal

logger = logging.getLogger(__name__)


@profile_operation("diff.compute_changes")
def compute_changes(
    before: Snapshot,
    after: Snapshot,
    primary_key_columns: Sequence[str] | None = None,
    *,
    letter_cases: LetterCases | None = None,
) -> list[Change]:
    """Compute the ordered list of changes between two snapshots.

    Parameters
    ----------
    before:
        Snapshot taken at the start point.
    after:
        Snapshot of the same data source taken at the end point.
    primary_key_columns:
        Explicit primary-key column names.  Overrides the ``pk_names`` the
        snapshots declare.
    letter_cases:
        Letter cases used to match key and column names.  Defaults to those
        of *before*.

    Returns
    -------
    list[Change]
        Creations, modifications and deletions in enumeration order.

    Raises
    ------
    PrimaryKeyMismatchError
        If the two snapshots declare different primary keys.
    SnapshotError
        If an explicit primary-key column is missing from a snapshot.
    """
    cases = letter_cases or before.letter_cases

    if primary_key_columns is not None:
        pk_names = tuple(primary_key_columns)
        before = before.with_pk_names(*pk_names)
        after = after.with_pk_names(*pk_names)
    else:
        _check_same_pk_names(before, after, cases.primary_key)
        pk_names = before.pk_names

    if pk_names:
        changes = _diff_by_key(before, after, pk_names, cases)
    else:
        changes = _diff_without_key(before, after, cases)

    logger.debug(
        "Computed %d change(s) for %r (%d -> %d rows)",
        len(changes),
        before.name,
        len(before.rows),
        len(after.rows),
        extra={"data_name": before.name},
    )
    return changes


def diff(
    before: Snapshot,
    after: Snapshot,
    primary_key_columns: Sequence[str] | None = None,
) -> list[Change]:
    """Facade over :func:`compute_changes` with the snapshots' own letter cases."""
    return compute_changes(before, after, primary_key_columns)


def diff_snapshot_lists(
    befores: Sequence[Snapshot],
    afters: Sequence[Snapshot],
    *,
    letter_cases: LetterCases | None = None,
) -> list[Change]:
    """Diff paired lists of snapshots (one pair per table) and concatenate the changes.

    Raises
    ------
    SnapshotError
        If the lists differ in length or a pair refers to different tables.
    """
    if len(befores) != len(afters):
        raise SnapshotError(f"Cannot pair {len(befores)} start snapshot(s) with {len(afters)} end snapshot(s)")

    changes: list[Change] = []
    for before, after in zip(befores, afters, strict=True):
        cases = letter_cases or before.letter_cases
        if not cases.table.is_equal(before.name, after.name):
            raise SnapshotError(f"Cannot diff {before.name!r} against {after.name!r}")
        changes.extend(compute_changes(before, after, letter_cases=letter_cases))
    return changes


# ---------------------------------------------------------------------------
# Keyed diff
# ---------------------------------------------------------------------------


def _check_same_pk_names(before: Snapshot, after: Snapshot, pk_case: LetterCase) -> None:
    same = len(before.pk_names) == len(after.pk_names) and all(
        pk_case.is_equal(a, b) for a, b in zip(before.pk_names, after.pk_names, strict=True)
    )
    if not same:
        raise PrimaryKeyMismatchError(
            f"Primary keys differ for {before.name!r}: {list(before.pk_names)} at start point, "
            f"{list(after.pk_names)} at end point"
        )


def _index_rows(snapshot: Snapshot, pk_names: tuple[str, ...], pk_case: LetterCase) -> dict[tuple[Hashable, ...], Row]:
    indices = [pk_case.index_of(snapshot.column_names, name) for name in pk_names]
    lookup: dict[tuple[Hashable, ...], Row] = {}
    for row in snapshot.rows:
        key = key_tuple([row.values[index] for index in indices])
        if key in lookup:
            logger.debug(
                "Duplicate primary key %r in %r; keeping the last row",
                row.pk_values,
                snapshot.name,
                extra={"data_name": snapshot.name},
            )
        # Re-assigning an existing key keeps its insertion position.
        lookup[key] = row
    return lookup


def _rows_differ(start: Row, end: Row, column_case: LetterCase) -> bool:
    for name, value in zip(end.columns, end.values, strict=True):
        index = column_case.index_of(start.columns, name)
        if index >= 0 and not values_equal(start.values[index], value):
            return True
    return False


def _diff_by_key(
    before: Snapshot,
    after: Snapshot,
    pk_names: tuple[str, ...],
    cases: LetterCases,
) -> list[Change]:
    before_rows = _index_rows(before, pk_names, cases.primary_key)
    after_rows = _index_rows(after, pk_names, cases.primary_key)

    changes: list[Change] = []
    for key, start in before_rows.items():
        end = after_rows.get(key)
        if end is None:
            changes.append(_make_change(ChangeType.DELETION, before, pk_names, start, None, cases))
        elif _rows_differ(start, end, cases.column):
            changes.append(_make_change(ChangeType.MODIFICATION, before, pk_names, start, end, cases))

    for key, end in after_rows.items():
        if key not in before_rows:
            changes.append(_make_change(ChangeType.CREATION, before, pk_names, None, end, cases))
    return changes


# ---------------------------------------------------------------------------
# Keyless diff
# ---------------------------------------------------------------------------


def _full_row_keys(before: Snapshot, after: Snapshot, column_case: LetterCase) -> tuple[list[Any], list[Any]]:
    """Return full-row keys for both snapshots, aligned on the before column order.

    When the column sets differ no row can be equal, so the after keys are
    made unique.
    """
    before_keys = [key_tuple(row.values) for row in before.rows]

    names = before.column_names
    mapping = [column_case.index_of(after.column_names, name) for name in names]
    if len(after.column_names) != len(names) or any(index < 0 for index in mapping):
        return before_keys, [("UNMATCHABLE", position) for position in range(len(after.rows))]

    after_keys = [key_tuple([row.values[index] for index in mapping]) for row in after.rows]
    return before_keys, after_keys


def _diff_without_key(before: Snapshot, after: Snapshot, cases: LetterCases) -> list[Change]:
    before_keys, after_keys = _full_row_keys(before, after, cases.column)

    pending: dict[Any, deque[int]] = {}
    for position, key in enumerate(after_keys):
        pending.setdefault(key, deque()).append(position)

    matched: set[int] = set()
    changes: list[Change] = []
    for row, key in zip(before.rows, before_keys, strict=True):
        candidates = pending.get(key)
        if candidates:
            matched.add(candidates.popleft())
        else:
            changes.append(_make_change(ChangeType.DELETION, before, (), row, None, cases))

    for position, row in enumerate(after.rows):
        if position not in matched:
            changes.append(_make_change(ChangeType.CREATION, before, (), None, row, cases))
    return changes


def _make_change(
    change_type: ChangeType,
    source: Snapshot,
    pk_names: tuple[str, ...],
    start: Row | None,
    end: Row | None,
    cases: LetterCases,
) -> Change:
    present = cast(Row, end if end is not None else start)
    return Change(
        change_type=change_type,
        data_type=source.data_type,
        data_name=source.name,
        pk_names=pk_names,
        pk_values=present.pk_values,
        row_at_start_point=start,
        row_at_end_point=end,
        table_letter_case=cases.table,
        column_letter_case=cases.column,
        primary_key_letter_case=cases.primary_key,
    )
