"""Assertions on a list of changes and on a single change."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, NoReturn

from dbassert.assertions.base import AbstractAssert
from dbassert.assertions.change_point_assert import ChangeColumnAssert, ChangeRowAssert
from dbassert.assertions.mixins import ToChange
from dbassert.lettercase import DEFAULT_LETTER_CASES, LetterCases
from dbassert.models.change import Change, ChangeType
from dbassert.models.snapshot import DataType
from dbassert.output.render import render_change
from dbassert.values import format_value, values_equal


def _pks_text(values: Sequence[Any]) -> str:
    return "[" + ", ".join(format_value(v) for v in values) + "]"


class ChangesAssert(AbstractAssert):
    """Assertions on an ordered list of changes, with navigation to each change.

    ``change()`` without an index walks the changes one after the other;
    the typed and per-table variants keep their own cursor.
    """

    def __init__(
        self,
        changes: Sequence[Change],
        *,
        description: str = "Changes",
        origin: ChangesAssert | None = None,
        letter_cases: LetterCases | None = None,
    ) -> None:
        super().__init__(description)
        self._changes = list(changes)
        self._origin = origin
        if letter_cases is None:
            letter_cases = self._changes[0].letter_cases if self._changes else DEFAULT_LETTER_CASES
        self._letter_cases = letter_cases
        self._cursors: dict[Any, int] = {}
        self._change_asserts: dict[int, ChangeAssert] = {}
        self._sub_asserts: dict[Any, ChangesAssert] = {}

    @property
    def changes(self) -> list[Change]:
        return list(self._changes)

    # -- Number of changes ---------------------------------------------------

    def has_number_of_changes(self, expected: int) -> ChangesAssert:
        self._check_count(len(self._changes), expected, "==", "the number of changes")
        return self

    def has_number_of_changes_greater_than(self, expected: int) -> ChangesAssert:
        self._check_count(len(self._changes), expected, ">", "the number of changes")
        return self

    def has_number_of_changes_less_than(self, expected: int) -> ChangesAssert:
        self._check_count(len(self._changes), expected, "<", "the number of changes")
        return self

    def has_number_of_changes_greater_than_or_equal_to(self, expected: int) -> ChangesAssert:
        self._check_count(len(self._changes), expected, ">=", "the number of changes")
        return self

    def has_number_of_changes_less_than_or_equal_to(self, expected: int) -> ChangesAssert:
        self._check_count(len(self._changes), expected, "<=", "the number of changes")
        return self

    # -- Filtered sub-assertions ---------------------------------------------

    def _sub(self, key: Any, predicate: Any, suffix: str) -> ChangesAssert:
        sub = self._sub_asserts.get(key)
        if sub is None:
            sub = ChangesAssert(
                [c for c in self._changes if predicate(c)],
                description=f"{self._description} ({suffix})",
                origin=self,
                letter_cases=self._letter_cases,
            )
            self._sub_asserts[key] = sub
        return sub

    def of_type(self, change_type: ChangeType | str) -> ChangesAssert:
        change_type = ChangeType(change_type)
        return self._sub(
            ("type", change_type),
            lambda c: c.change_type is change_type,
            f"only {change_type.value.lower()} changes",
        )

    def of_creation(self) -> ChangesAssert:
        return self.of_type(ChangeType.CREATION)

    def of_modification(self) -> ChangesAssert:
        return self.of_type(ChangeType.MODIFICATION)

    def of_deletion(self) -> ChangesAssert:
        return self.of_type(ChangeType.DELETION)

    def on_table(self, name: str) -> ChangesAssert:
        """Changes on table *name*, matched under the table letter case."""
        table_case = self._letter_cases.table
        return self._sub(
            ("table", table_case.convert(name)),
            lambda c: c.data_type is DataType.TABLE and table_case.is_equal(c.data_name, name),
            f"changes on {name} table",
        )

    def return_to_changes(self) -> ChangesAssert:
        """Return to the unfiltered changes this assertion was derived from."""
        return self._origin if self._origin is not None else self

    # -- Navigation ----------------------------------------------------------

    def _change_assert(self, position: int) -> ChangeAssert:
        instance = self._change_asserts.get(position)
        if instance is None:
            instance = ChangeAssert(self._changes[position], origin=self, index=position)
            self._change_asserts[position] = instance
        return instance

    def _navigate(self, key: Any, positions: list[int], index: int | None) -> ChangeAssert:
        cursor = self._next_position(self._cursors, key, len(positions), index)
        return self._change_assert(positions[cursor])

    def change(self, index: int | None = None) -> ChangeAssert:
        """The change at *index*, or the next change when *index* is omitted."""
        return self._navigate(None, list(range(len(self._changes))), index)

    def _change_of_type(self, change_type: ChangeType, index: int | None) -> ChangeAssert:
        positions = [i for i, c in enumerate(self._changes) if c.change_type is change_type]
        return self._navigate(("type", change_type), positions, index)

    def change_of_creation(self, index: int | None = None) -> ChangeAssert:
        return self._change_of_type(ChangeType.CREATION, index)

    def change_of_modification(self, index: int | None = None) -> ChangeAssert:
        return self._change_of_type(ChangeType.MODIFICATION, index)

    def change_of_deletion(self, index: int | None = None) -> ChangeAssert:
        return self._change_of_type(ChangeType.DELETION, index)

    def change_on_table(self, name: str, index: int | None = None) -> ChangeAssert:
        table_case = self._letter_cases.table
        positions = [
            i
            for i, c in enumerate(self._changes)
            if c.data_type is DataType.TABLE and table_case.is_equal(c.data_name, name)
        ]
        return self._navigate(("table", table_case.convert(name)), positions, index)

    def change_on_table_with_pks(self, name: str, *pk_values: Any) -> ChangeAssert:
        """The change on table *name* whose primary-key values equal *pk_values*."""
        table_case = self._letter_cases.table
        for position, change in enumerate(self._changes):
            if (
                change.data_type is DataType.TABLE
                and table_case.is_equal(change.data_name, name)
                and len(change.pk_values) == len(pk_values)
                and all(values_equal(a, b) for a, b in zip(change.pk_values, pk_values, strict=True))
            ):
                return self._change_assert(position)
        self._fail(f"No change found for table {name} and primary keys {_pks_text(pk_values)}")


class ChangeAssert(AbstractAssert, ToChange):
    """Assertions on one change, with navigation to its rows and columns."""

    def __init__(self, change: Change, *, origin: ChangesAssert, index: int) -> None:
        data = "table" if change.data_type is DataType.TABLE else "request"
        super().__init__(
            f"Change at index {index} (on {data} : {change.data_name} and with primary key : "
            f"{_pks_text(change.pk_values)}) of {origin.description}"
        )
        self._change = change
        self._origin = origin
        self._cursors: dict[Any, int] = {}
        self._rows: dict[str, ChangeRowAssert] = {}
        self._columns: dict[int, ChangeColumnAssert] = {}

    @property
    def change_under_test(self) -> Change:
        return self._change

    def _changes_origin(self) -> ChangesAssert:
        return self._origin

    def return_to_changes(self) -> ChangesAssert:
        return self._origin

    def _fail_with_change(self, message: str) -> NoReturn:
        self._fail(f"{message}\n{render_change(self._change)}")

    # -- Type and data source ------------------------------------------------

    def is_of_type(self, change_type: ChangeType | str) -> ChangeAssert:
        change_type = ChangeType(change_type)
        if self._change.change_type is not change_type:
            self._fail_with_change(
                f"Expecting:\n  to be of type\n    <{change_type.value}>\n"
                f"  but was of type\n    <{self._change.change_type.value}>"
            )
        return self

    def is_creation(self) -> ChangeAssert:
        return self.is_of_type(ChangeType.CREATION)

    def is_modification(self) -> ChangeAssert:
        return self.is_of_type(ChangeType.MODIFICATION)

    def is_deletion(self) -> ChangeAssert:
        return self.is_of_type(ChangeType.DELETION)

    def is_on_data_type(self, data_type: DataType | str) -> ChangeAssert:
        data_type = DataType(data_type)
        if self._change.data_type is not data_type:
            self._fail(
                f"Expecting to be on data type\n  <{data_type.value}>\n"
                f"but was on data type\n  <{self._change.data_type.value}>"
            )
        return self

    def is_on_table(self, name: str | None = None) -> ChangeAssert:
        """The change is on a table, named *name* under the table letter case when given."""
        self.is_on_data_type(DataType.TABLE)
        if name is not None and not self._change.table_letter_case.is_equal(self._change.data_name, name):
            self._fail(
                f"Expecting to be on the table:\n  <{name}>\nbut was on the table:\n  <{self._change.data_name}>"
            )
        return self

    def is_on_request(self) -> ChangeAssert:
        return self.is_on_data_type(DataType.REQUEST)

    # -- Primary key ---------------------------------------------------------

    def has_pks_names(self, *names: str) -> ChangeAssert:
        actual = self._change.pk_names
        pk_case = self._change.primary_key_letter_case
        if len(actual) != len(names) or not all(pk_case.is_equal(a, b) for a, b in zip(actual, names, strict=True)):
            self._fail(
                f"Expecting :\n  {list(names)}\nto be the name of the columns of the primary keys but was:\n"
                f"  {list(actual)}"
            )
        return self

    def has_pks_values(self, *values: Any) -> ChangeAssert:
        actual = self._change.pk_values
        if len(actual) != len(values) or not all(values_equal(a, b) for a, b in zip(actual, values, strict=True)):
            self._fail(
                f"Expecting :\n  {_pks_text(values)}\nto be the values of the columns of the primary keys but was:\n"
                f"  {_pks_text(actual)}"
            )
        return self

    # -- Modified columns ----------------------------------------------------

    def _check_modified_count(self, expected: int, comparison: str) -> None:
        actual = len(self._change.modified_column_indices)
        self._check_count(actual, expected, comparison, "the number of modified columns")

    def has_number_of_modified_columns(self, expected: int) -> ChangeAssert:
        self._check_modified_count(expected, "==")
        return self

    def has_number_of_modified_columns_greater_than(self, expected: int) -> ChangeAssert:
        self._check_modified_count(expected, ">")
        return self

    def has_number_of_modified_columns_less_than(self, expected: int) -> ChangeAssert:
        self._check_modified_count(expected, "<")
        return self

    def has_number_of_modified_columns_greater_than_or_equal_to(self, expected: int) -> ChangeAssert:
        self._check_modified_count(expected, ">=")
        return self

    def has_number_of_modified_columns_less_than_or_equal_to(self, expected: int) -> ChangeAssert:
        self._check_modified_count(expected, "<=")
        return self

    def has_modified_columns(self, *columns: str | int) -> ChangeAssert:
        """The modified columns are exactly *columns*, given by name or by position."""
        actual = sorted(self._change.modified_column_indices)
        change_columns = self._change.columns
        expected: list[int] = []
        for column in columns:
            if isinstance(column, int):
                expected.append(column)
                continue
            index = self._change.column_letter_case.index_of(change_columns, column)
            if index < 0:
                self._fail(f"Column <{column}> does not exist\nin <{list(change_columns)}>")
            expected.append(index)
        if sorted(expected) != actual:
            names = [change_columns[i] if 0 <= i < len(change_columns) else i for i in sorted(expected)]
            self._fail_with_change(
                f"Expecting :\n  {names}\n"
                f"as modified columns but the modified columns were:\n  {list(self._change.modified_column_names)}"
            )
        return self

    # -- Navigation ----------------------------------------------------------

    def _row_assert(self, key: str) -> ChangeRowAssert:
        instance = self._rows.get(key)
        if instance is None:
            row = self._change.row_at_start_point if key == "start" else self._change.row_at_end_point
            label = "Row at start point" if key == "start" else "Row at end point"
            instance = ChangeRowAssert(row, origin=self, description=f"{label} of {self.description}")
            self._rows[key] = instance
        return instance

    def row_at_start_point(self) -> ChangeRowAssert:
        return self._row_assert("start")

    def row_at_end_point(self) -> ChangeRowAssert:
        return self._row_assert("end")

    def _column_assert(self, index: int) -> ChangeColumnAssert:
        instance = self._columns.get(index)
        if instance is None:
            name = self._change.columns[index]
            start, end = self._change.column_values(index)
            instance = ChangeColumnAssert(
                name,
                start,
                end,
                modified=index in self._change.modified_column_indices,
                origin=self,
                description=f"Column at index {index} (column name : {name}) of {self.description}",
            )
            self._columns[index] = instance
        return instance

    def _resolve_column(self, column: str | int, candidates: list[int]) -> int:
        if isinstance(column, int):
            if column not in candidates:
                self._fail(f"Index {column} out of the limits of the columns {candidates}")
            return column
        index = self._change.column_letter_case.index_of(self._change.columns, column)
        if index < 0 or index not in candidates:
            self._fail(f"Column <{column}> does not exist\namong <{[self._change.columns[i] for i in candidates]}>")
        return index

    def column(self, column: str | int | None = None) -> ChangeColumnAssert:
        """A column by name or position, or the next column when omitted."""
        candidates = list(range(len(self._change.columns)))
        if column is None:
            cursor = self._next_position(self._cursors, "all", len(candidates), None)
            return self._column_assert(candidates[cursor])
        index = self._resolve_column(column, candidates)
        self._cursors["all"] = index
        return self._column_assert(index)

    def column_among_the_modified_ones(self, column: str | int | None = None) -> ChangeColumnAssert:
        """A modified column; an integer is a position among the modified columns."""
        modified = list(self._change.modified_column_indices)
        if column is None or isinstance(column, int):
            cursor = self._next_position(self._cursors, "modified", len(modified), column)
            return self._column_assert(modified[cursor])
        index = self._resolve_column(column, modified)
        self._cursors["modified"] = modified.index(index)
        return self._column_assert(index)
