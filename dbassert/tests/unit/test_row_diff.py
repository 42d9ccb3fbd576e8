"""Unit tests for the row-level diff engine."""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from dbassert.diff import compute_changes, diff, diff_snapshot_lists
from dbassert.exceptions import PrimaryKeyMismatchError, SnapshotError
from dbassert.lettercase import CaseComparison, CaseConversion, LetterCases, get_letter_case
from dbassert.models import ChangeType, DataType, Snapshot
from dbassert.telemetry import ProfileCollector


def _table(rows, pk=("ID",), columns=("ID", "VALUE"), name="t", **kwargs) -> Snapshot:
    return Snapshot.from_records(name, list(columns), rows, pk_names=list(pk), **kwargs)


def _summary(changes):
    return [(c.change_type, c.pk_values) for c in changes]


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassification:
    def test_modification_deletion_creation(self, members_before, members_after):
        changes = compute_changes(members_before, members_after)

        assert _summary(changes) == [
            (ChangeType.MODIFICATION, (1,)),
            (ChangeType.DELETION, (2,)),
            (ChangeType.CREATION, (3,)),
        ]

    def test_rows_are_attached(self, members_before, members_after):
        modification, deletion, creation = compute_changes(members_before, members_after)

        assert modification.row_at_start_point.value("FIRSTNAME") == "Paul David"
        assert modification.row_at_end_point.value("FIRSTNAME") == "Bono"
        assert modification.modified_column_names == ("FIRSTNAME",)
        assert deletion.row_at_end_point is None
        assert deletion.row_at_start_point.value("NAME") == "Evans"
        assert creation.row_at_start_point is None
        assert creation.row_at_end_point.value("NAME") == "Clayton"

    def test_change_metadata(self, members_before, members_after):
        change = compute_changes(members_before, members_after)[0]
        assert change.data_name == "members"
        assert change.data_type is DataType.TABLE
        assert change.pk_names == ("ID",)

    def test_identical_snapshots_produce_nothing(self, members_before):
        assert compute_changes(members_before, members_before) == []

    def test_both_empty(self):
        assert compute_changes(_table([]), _table([])) == []

    def test_all_created(self):
        changes = compute_changes(_table([]), _table([(1, "a"), (2, "b")]))
        assert _summary(changes) == [(ChangeType.CREATION, (1,)), (ChangeType.CREATION, (2,))]

    def test_all_deleted(self):
        changes = compute_changes(_table([(1, "a"), (2, "b")]), _table([]))
        assert _summary(changes) == [(ChangeType.DELETION, (1,)), (ChangeType.DELETION, (2,))]

    def test_disjoint_keys(self):
        before = _table([(1, "a"), (2, "b")])
        after = _table([(3, "c"), (4, "d"), (5, "e")])

        changes = compute_changes(before, after)

        kinds = [c.change_type for c in changes]
        assert kinds == [ChangeType.DELETION] * 2 + [ChangeType.CREATION] * 3

    def test_creations_follow_after_row_order(self):
        changes = compute_changes(_table([]), _table([(9, "x"), (3, "y"), (5, "z")]))
        assert [c.pk_values for c in changes] == [(9,), (3,), (5,)]

    def test_modifications_follow_before_row_order(self):
        before = _table([(2, "a"), (1, "b")])
        after = _table([(1, "B"), (2, "A")])
        assert [c.pk_values for c in compute_changes(before, after)] == [(2,), (1,)]

    def test_deterministic(self, members_before, members_after):
        first = compute_changes(members_before, members_after)
        second = compute_changes(members_before, members_after)
        assert first == second


# ---------------------------------------------------------------------------
# Key and value matching
# ---------------------------------------------------------------------------


class TestMatching:
    def test_composite_key(self):
        columns = ("A", "B", "VALUE")
        before = _table([(1, "x", 10), (1, "y", 20)], pk=("A", "B"), columns=columns)
        after = _table([(1, "y", 21), (1, "x", 10)], pk=("A", "B"), columns=columns)

        changes = compute_changes(before, after)

        assert _summary(changes) == [(ChangeType.MODIFICATION, (1, "y"))]

    def test_numeric_keys_match_by_magnitude(self):
        before = _table([(Decimal("1.0"), "a")])
        after = _table([(1, "a")])
        assert compute_changes(before, after) == []

    def test_text_keys_are_case_sensitive(self):
        before = _table([("a", 1)])
        after = _table([("A", 1)])
        kinds = [c.change_type for c in compute_changes(before, after)]
        assert kinds == [ChangeType.DELETION, ChangeType.CREATION]

    def test_value_types_matter(self):
        before = _table([(1, 1)])
        after = _table([(1, True)])
        assert _summary(compute_changes(before, after)) == [(ChangeType.MODIFICATION, (1,))]

    def test_null_to_value_is_modification(self):
        before = _table([(1, None)])
        after = _table([(1, "x")])
        assert compute_changes(before, after)[0].change_type is ChangeType.MODIFICATION

    def test_null_keys_share_one_identity(self):
        before = _table([(None, "a")])
        after = _table([(None, "b")])
        assert _summary(compute_changes(before, after)) == [(ChangeType.MODIFICATION, (None,))]

    def test_key_names_matched_under_letter_case(self):
        before = _table([(1, "a")], pk=("id",))
        after = _table([(1, "b")], pk=("ID",))
        assert len(compute_changes(before, after)) == 1

    def test_columns_matched_by_name(self):
        before = _table([(1, "a")], columns=("ID", "VALUE"))
        after = _table([("a", 1)], columns=("value", "id"))
        assert compute_changes(before, after) == []

    def test_only_shared_columns_are_compared(self):
        before = Snapshot.from_records("t", ["Id", "Name"], [(1, "Hewson"), (2, "Evans")], pk_names=["Id"])
        after = Snapshot.from_records(
            "t", ["ID", "NAME", "AGE"], [(1, "Bono", 64), (2, "Evans", 63)], pk_names=["ID"]
        )

        changes = compute_changes(before, after)

        assert _summary(changes) == [(ChangeType.MODIFICATION, (1,))]
        assert changes[0].modified_column_names == ("NAME",)


# ---------------------------------------------------------------------------
# Primary keys
# ---------------------------------------------------------------------------


class TestPrimaryKeys:
    def test_mismatch_raises(self):
        before = _table([(1, "a")], pk=("ID",))
        after = _table([(1, "a")], pk=("VALUE",))
        with pytest.raises(PrimaryKeyMismatchError, match="Primary keys differ"):
            compute_changes(before, after)

    def test_mismatch_under_strict_comparison(self):
        strict = get_letter_case(CaseConversion.NO, CaseComparison.STRICT)
        cases = LetterCases(table=strict, column=strict, primary_key=strict)
        before = _table([(1, "a")], pk=("ID",), columns=("ID", "id"), letter_cases=cases)
        after = _table([(1, "a")], pk=("id",), columns=("ID", "id"), letter_cases=cases)
        with pytest.raises(PrimaryKeyMismatchError):
            compute_changes(before, after)

    def test_explicit_key_overrides(self):
        before = _table([(1, "a"), (2, "b")], pk=())
        after = _table([(1, "z"), (3, "b")], pk=())

        changes = compute_changes(before, after, ["VALUE"])

        assert _summary(changes) == [
            (ChangeType.DELETION, ("a",)),
            (ChangeType.MODIFICATION, ("b",)),
            (ChangeType.CREATION, ("z",)),
        ]

    def test_explicit_key_must_exist(self):
        with pytest.raises(SnapshotError, match="Primary key column"):
            compute_changes(_table([(1, "a")]), _table([(1, "a")]), ["MISSING"])

    def test_diff_facade(self, members_before, members_after):
        assert diff(members_before, members_after) == compute_changes(members_before, members_after)
        assert len(diff(members_before, members_after, ["ID"])) == 3


# ---------------------------------------------------------------------------
# Duplicate keys
# ---------------------------------------------------------------------------


class TestDuplicateKeys:
    def test_last_row_wins(self):
        before = _table([(1, "first"), (1, "second")])
        after = _table([(1, "second")])
        assert compute_changes(before, after) == []

    def test_last_row_wins_in_after(self):
        before = _table([(1, "a")])
        after = _table([(1, "b"), (1, "a")])
        assert compute_changes(before, after) == []

    def test_duplicate_keeps_first_position(self):
        before = _table([(1, "a"), (2, "b"), (1, "c")])
        after = _table([])
        assert [c.pk_values for c in compute_changes(before, after)] == [(1,), (2,)]

    def test_duplicate_is_logged(self, caplog):
        before = _table([(1, "a"), (1, "b")])
        with caplog.at_level(logging.DEBUG, logger="dbassert.diff.row_diff"):
            compute_changes(before, before)
        assert any("Duplicate primary key" in r.getMessage() for r in caplog.records)


# ---------------------------------------------------------------------------
# Snapshots without a primary key
# ---------------------------------------------------------------------------


class TestWithoutPrimaryKey:
    def test_full_row_matching(self):
        before = _table([(1, "a"), (2, "b")], pk=())
        after = _table([(2, "b"), (3, "c")], pk=())

        changes = compute_changes(before, after)

        assert [c.change_type for c in changes] == [ChangeType.DELETION, ChangeType.CREATION]
        assert changes[0].row_at_start_point.values == (1, "a")
        assert changes[1].row_at_end_point.values == (3, "c")
        assert changes[0].pk_values == ()

    def test_multiset_semantics(self):
        before = _table([(1, "a"), (1, "a")], pk=())
        after = _table([(1, "a")], pk=())
        assert [c.change_type for c in compute_changes(before, after)] == [ChangeType.DELETION]

    def test_changed_row_is_delete_plus_create(self):
        before = _table([(1, "a")], pk=())
        after = _table([(1, "b")], pk=())
        assert [c.change_type for c in compute_changes(before, after)] == [ChangeType.DELETION, ChangeType.CREATION]

    def test_different_columns_match_nothing(self):
        before = _table([(1, "a")], pk=())
        after = _table([(1, "a")], pk=(), columns=("ID", "OTHER"))
        assert len(compute_changes(before, after)) == 2


# ---------------------------------------------------------------------------
# Snapshot lists and profiling
# ---------------------------------------------------------------------------


class TestDiffSnapshotLists:
    def test_concatenates_per_table(self, members_before, members_after):
        other_before = _table([(1, "a")], name="other")
        other_after = _table([], name="other")

        changes = diff_snapshot_lists([members_before, other_before], [members_after, other_after])

        assert len(changes) == 4
        assert changes[-1].data_name == "other"
        assert changes[-1].change_type is ChangeType.DELETION

    def test_length_mismatch(self, members_before):
        with pytest.raises(SnapshotError, match="Cannot pair"):
            diff_snapshot_lists([members_before], [])

    def test_table_mismatch(self, members_before):
        with pytest.raises(SnapshotError, match="Cannot diff"):
            diff_snapshot_lists([members_before], [_table([], name="other")])

    def test_table_names_matched_under_letter_case(self):
        before = _table([(1, "a")], name="ORDERS")
        after = _table([(1, "b")], name="orders")
        assert len(diff_snapshot_lists([before], [after])) == 1


class TestProfiling:
    def test_compute_changes_is_profiled(self, members_before, members_after):
        compute_changes(members_before, members_after)
        stats = ProfileCollector.get_instance().get_stats("diff.compute_changes")
        assert stats is not None
        assert stats["count"] == 1

    def test_disabled_collector_records_nothing(self, members_before, members_after):
        ProfileCollector.get_instance().enabled = False
        compute_changes(members_before, members_after)
        assert ProfileCollector.get_instance().get_stats("diff.compute_changes") is None
