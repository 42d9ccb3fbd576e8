"""Assertions on the content of a snapshot, its rows and its columns."""

from __future__ import annotations

from collections import Counter
from typing import Any

from dbassert.assertions.base import AbstractAssert
from dbassert.assertions.mixins import ToColumn, ToRow
from dbassert.exceptions import SnapshotError
from dbassert.models.snapshot import ColumnSlice, DataType, Row, Snapshot
from dbassert.values import comparison_key, format_value


class SnapshotAssert(AbstractAssert):
    """Assertions on a table or query snapshot, with navigation to rows and columns."""

    def __init__(self, snapshot: Snapshot) -> None:
        if snapshot.data_type is DataType.TABLE:
            description = f"{snapshot.name} table"
        else:
            description = f"'{snapshot.name}' request"
        super().__init__(description)
        self._snapshot = snapshot
        self._cursors: dict[str, int] = {}
        self._rows: dict[int, RowAssert] = {}
        self._columns: dict[int, ColumnAssert] = {}

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def has_number_of_rows(self, expected: int) -> SnapshotAssert:
        self._check_count(len(self._snapshot.rows), expected, "==", "the number of rows")
        return self

    def has_number_of_rows_greater_than(self, expected: int) -> SnapshotAssert:
        self._check_count(len(self._snapshot.rows), expected, ">", "the number of rows")
        return self

    def has_number_of_rows_less_than(self, expected: int) -> SnapshotAssert:
        self._check_count(len(self._snapshot.rows), expected, "<", "the number of rows")
        return self

    def has_number_of_columns(self, expected: int) -> SnapshotAssert:
        self._check_count(len(self._snapshot.columns), expected, "==", "the number of columns")
        return self

    def is_empty(self) -> SnapshotAssert:
        return self.has_number_of_rows(0)

    # -- Navigation ----------------------------------------------------------

    def row(self, index: int | None = None) -> RowAssert:
        """The row at *index*, or the next row when omitted."""
        position = self._next_position(self._cursors, "row", len(self._snapshot.rows), index)
        instance = self._rows.get(position)
        if instance is None:
            instance = RowAssert(
                self._snapshot.rows[position],
                origin=self,
                description=f"Row at index {position} of {self.description}",
            )
            self._rows[position] = instance
        return instance

    def column(self, column: str | int | None = None) -> ColumnAssert:
        """A column by name or position, or the next column when omitted."""
        if column is None or isinstance(column, int):
            position = self._next_position(self._cursors, "column", len(self._snapshot.columns), column)
        else:
            try:
                position = self._snapshot.column_index(column)
            except SnapshotError:
                self._fail(f"Column <{column}> does not exist\nin <{list(self._snapshot.column_names)}>")
            self._cursors["column"] = position
        instance = self._columns.get(position)
        if instance is None:
            column_slice = self._snapshot.column(position)
            instance = ColumnAssert(
                column_slice,
                origin=self,
                description=f"Column at index {position} (column name : {column_slice.name}) of {self.description}",
            )
            self._columns[position] = instance
        return instance


class RowAssert(AbstractAssert, ToRow, ToColumn):
    """Assertions on one row of a snapshot."""

    def __init__(self, row: Row, *, origin: SnapshotAssert, description: str) -> None:
        super().__init__(description)
        self._row = row
        self._origin = origin

    def _snapshot_origin(self) -> SnapshotAssert:
        return self._origin

    def return_to_snapshot(self) -> SnapshotAssert:
        return self._origin

    def has_values(self, *values: Any) -> RowAssert:
        self._check_values(self._row.values, values, "the row")
        return self

    def has_number_of_columns(self, expected: int) -> RowAssert:
        self._check_count(len(self._row.values), expected, "==", "the number of columns")
        return self


class ColumnAssert(AbstractAssert, ToRow, ToColumn):
    """Assertions on the values of one column across the rows of a snapshot."""

    def __init__(self, column: ColumnSlice, *, origin: SnapshotAssert, description: str) -> None:
        super().__init__(description)
        self._column = column
        self._origin = origin

    def _snapshot_origin(self) -> SnapshotAssert:
        return self._origin

    def return_to_snapshot(self) -> SnapshotAssert:
        return self._origin

    def has_column_name(self, name: str) -> ColumnAssert:
        column_case = self._origin.snapshot.column_letter_case
        if not column_case.is_equal(self._column.name, name):
            self._fail(f"Expecting :\n  \"{name}\"\nto be the name of the column but was:\n  \"{self._column.name}\"")
        return self

    def has_number_of_rows(self, expected: int) -> ColumnAssert:
        self._check_count(len(self._column.values), expected, "==", "the number of rows")
        return self

    def has_values(self, *values: Any) -> ColumnAssert:
        """The column holds exactly *values*, in row order."""
        self._check_values(self._column.values, values, "the column")
        return self

    def contains_values(self, *values: Any) -> ColumnAssert:
        """The column holds exactly *values*, in any order."""
        self.has_number_of_rows(len(values))
        missing = Counter(comparison_key(v) for v in values) - Counter(comparison_key(v) for v in self._column.values)
        if missing:
            self._fail(
                f"Expecting:\n  <{[format_value(v) for v in self._column.values]}>\n"
                f"to contain values:\n  <{[format_value(v) for v in values]}>"
            )
        return self
