"""Snapshot models: the point-in-time content of a table or query result.

A :class:`Snapshot` is captured once and never mutated.  Its rows carry the
column names and primary-key names of the snapshot so that a :class:`Row`
can be inspected on its own (for example as the start or end point of a
change) without a back-reference to the snapshot it came from.

Identifier lookups (column names, primary-key names) go through the
snapshot's letter cases; value comparisons go through
:func:`dbassert.values.values_equal`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, InstanceOf, model_validator

from dbassert.exceptions import SnapshotError
from dbassert.lettercase import (
    COLUMN_DEFAULT,
    DEFAULT_LETTER_CASES,
    PRIMARY_KEY_DEFAULT,
    TABLE_DEFAULT,
    LetterCase,
    LetterCases,
)
from dbassert.values import ValueType, value_type_of, values_equal

logger = logging.getLogger(__name__)


class DataType(str, Enum):
    """Kind of data source a snapshot or a change was taken from."""

    TABLE = "TABLE"
    REQUEST = "REQUEST"


class ColumnDescriptor(BaseModel):
    """Name and declared type of one column of a snapshot."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Column name as reported by the data source.")
    data_type: str | None = Field(
        default=None,
        description="Declared SQL type, or None when the source does not report one.",
    )
    nullable: bool = Field(default=True, description="Whether the column accepts NULL.")


class Row(BaseModel):
    """One row of a snapshot: an ordered list of values keyed by column name."""

    model_config = ConfigDict(frozen=True)

    columns: tuple[str, ...] = Field(..., description="Column names, in snapshot order.")
    values: tuple[Any, ...] = Field(..., description="One value per column, in column order.")
    pk_names: tuple[str, ...] = Field(
        default=(),
        description="Primary-key column names, in declared order.",
    )
    column_letter_case: InstanceOf[LetterCase] = COLUMN_DEFAULT
    primary_key_letter_case: InstanceOf[LetterCase] = PRIMARY_KEY_DEFAULT

    @model_validator(mode="after")
    def _check_shape(self) -> Row:
        if len(self.columns) != len(self.values):
            raise SnapshotError(f"Row has {len(self.values)} value(s) for {len(self.columns)} column(s)")
        for pk_name in self.pk_names:
            if self.primary_key_letter_case.index_of(self.columns, pk_name) < 0:
                raise SnapshotError(f"Primary key column {pk_name!r} is not among the columns {list(self.columns)}")
        return self

    @property
    def pk_indices(self) -> tuple[int, ...]:
        """Positions of the primary-key columns, in declared pk order."""
        return tuple(self.primary_key_letter_case.index_of(self.columns, name) for name in self.pk_names)

    @property
    def pk_values(self) -> tuple[Any, ...]:
        """Projection of the row onto its primary-key columns."""
        return tuple(self.values[index] for index in self.pk_indices)

    def index_of(self, column_name: str) -> int:
        """Position of *column_name* under the column letter case, or -1."""
        return self.column_letter_case.index_of(self.columns, column_name)

    def value(self, column: str | int) -> Any:
        """Return the value of a column given by name or position.

        Raises
        ------
        SnapshotError
            If the column does not exist in this row.
        """
        if isinstance(column, int):
            if not 0 <= column < len(self.values):
                raise SnapshotError(f"Column index {column} out of range (0 to {len(self.values) - 1})")
            return self.values[column]
        index = self.index_of(column)
        if index < 0:
            raise SnapshotError(f"Column {column!r} does not exist (columns: {list(self.columns)})")
        return self.values[index]

    def has_values(self, other: Row) -> bool:
        """Return ``True`` if *other* holds the same values for the same column names."""
        if len(other.columns) != len(self.columns):
            return False
        for name, value in zip(self.columns, self.values, strict=True):
            index = other.index_of(name)
            if index < 0 or not values_equal(value, other.values[index]):
                return False
        return True

    def has_pk_values(self, values: Sequence[Any]) -> bool:
        """Return ``True`` if the primary-key projection equals *values*."""
        pk_values = self.pk_values
        if len(pk_values) != len(values):
            return False
        return all(values_equal(a, b) for a, b in zip(pk_values, values, strict=True))

    def as_dict(self) -> dict[str, Any]:
        return dict(zip(self.columns, self.values, strict=True))


class ColumnSlice(BaseModel):
    """The values of one column across all rows of a snapshot."""

    model_config = ConfigDict(frozen=True)

    name: str
    values: tuple[Any, ...] = ()

    @property
    def value_type(self) -> ValueType:
        """Type of the first non-null value, ``NOT_IDENTIFIED`` when all are null."""
        for value in self.values:
            if value is not None:
                return value_type_of(value)
        return ValueType.NOT_IDENTIFIED


class Snapshot(BaseModel):
    """Immutable capture of a table or query result at one point in time.

    Every row carries exactly one value per column descriptor, in column
    order, and every primary-key name resolves to a column under the
    primary-key letter case.  Violations raise :class:`SnapshotError` at
    construction.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Table name, or SQL text for a query.")
    data_type: DataType = Field(default=DataType.TABLE, description="Kind of data source.")
    columns: tuple[ColumnDescriptor, ...] = Field(..., description="Column descriptors, in order.")
    rows: tuple[Row, ...] = Field(default=(), description="Rows, in the order the source returned them.")
    pk_names: tuple[str, ...] = Field(default=(), description="Primary-key column names, in declared order.")
    table_letter_case: InstanceOf[LetterCase] = TABLE_DEFAULT
    column_letter_case: InstanceOf[LetterCase] = COLUMN_DEFAULT
    primary_key_letter_case: InstanceOf[LetterCase] = PRIMARY_KEY_DEFAULT

    @model_validator(mode="after")
    def _check_consistency(self) -> Snapshot:
        names = self.column_names
        for pk_name in self.pk_names:
            if self.primary_key_letter_case.index_of(names, pk_name) < 0:
                raise SnapshotError(
                    f"Primary key column {pk_name!r} of {self.name!r} is not among the columns {list(names)}"
                )
        for position, row in enumerate(self.rows):
            if row.columns != names:
                raise SnapshotError(
                    f"Row {position} of {self.name!r} has columns {list(row.columns)}, expected {list(names)}"
                )
            if row.pk_names != self.pk_names:
                raise SnapshotError(
                    f"Row {position} of {self.name!r} declares primary key {list(row.pk_names)}, "
                    f"expected {list(self.pk_names)}"
                )
        return self

    # -- builders -----------------------------------------------------------

    @classmethod
    def from_records(
        cls,
        name: str,
        columns: Sequence[str | ColumnDescriptor],
        records: Sequence[Sequence[Any] | Mapping[str, Any]],
        *,
        pk_names: Sequence[str] = (),
        data_type: DataType = DataType.TABLE,
        letter_cases: LetterCases | None = None,
    ) -> Snapshot:
        """Build a snapshot from plain Python records.

        Parameters
        ----------
        name:
            Table name or query text.
        columns:
            Column names or :class:`ColumnDescriptor` instances.
        records:
            One sequence of values per row, in column order, or one mapping
            per row keyed by column name (missing keys become ``None``).
        pk_names:
            Primary-key column names.
        letter_cases:
            Letter cases for the snapshot; defaults to the library defaults.
        """
        cases = letter_cases or DEFAULT_LETTER_CASES
        descriptors = tuple(c if isinstance(c, ColumnDescriptor) else ColumnDescriptor(name=c) for c in columns)
        names = tuple(d.name for d in descriptors)

        rows = []
        for record in records:
            if isinstance(record, Mapping):
                values = tuple(_mapping_value(record, column, cases.column) for column in names)
            else:
                values = tuple(record)
            rows.append(
                Row(
                    columns=names,
                    values=values,
                    pk_names=tuple(pk_names),
                    column_letter_case=cases.column,
                    primary_key_letter_case=cases.primary_key,
                )
            )

        return cls(
            name=name,
            data_type=data_type,
            columns=descriptors,
            rows=tuple(rows),
            pk_names=tuple(pk_names),
            table_letter_case=cases.table,
            column_letter_case=cases.column,
            primary_key_letter_case=cases.primary_key,
        )

    def with_pk_names(self, *pk_names: str) -> Snapshot:
        """Return a copy of this snapshot declaring *pk_names* as its primary key."""
        rows = tuple(row.model_copy(update={"pk_names": tuple(pk_names)}) for row in self.rows)
        return type(self)(
            name=self.name,
            data_type=self.data_type,
            columns=self.columns,
            rows=rows,
            pk_names=tuple(pk_names),
            table_letter_case=self.table_letter_case,
            column_letter_case=self.column_letter_case,
            primary_key_letter_case=self.primary_key_letter_case,
        )

    # -- accessors ----------------------------------------------------------

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    @property
    def letter_cases(self) -> LetterCases:
        return LetterCases(
            table=self.table_letter_case,
            column=self.column_letter_case,
            primary_key=self.primary_key_letter_case,
        )

    def row(self, index: int) -> Row:
        if not 0 <= index < len(self.rows):
            raise SnapshotError(f"Row index {index} out of range for {self.name!r} ({len(self.rows)} row(s))")
        return self.rows[index]

    def column_index(self, column: str | int) -> int:
        """Resolve a column name or position to a position.

        Raises
        ------
        SnapshotError
            If the column does not exist.
        """
        if isinstance(column, int):
            if not 0 <= column < len(self.columns):
                raise SnapshotError(f"Column index {column} out of range for {self.name!r}")
            return column
        index = self.column_letter_case.index_of(self.column_names, column)
        if index < 0:
            raise SnapshotError(f"Column {column!r} does not exist in {self.name!r}")
        return index

    def column(self, column: str | int) -> ColumnSlice:
        index = self.column_index(column)
        return ColumnSlice(
            name=self.columns[index].name,
            values=tuple(row.values[index] for row in self.rows),
        )

    def row_from_pk_values(self, *pk_values: Any) -> Row | None:
        """Return the first row whose primary-key values equal *pk_values*."""
        for row in self.rows:
            if row.has_pk_values(pk_values):
                return row
        return None


def _mapping_value(record: Mapping[str, Any], column: str, letter_case: LetterCase) -> Any:
    if column in record:
        return record[column]
    for key, value in record.items():
        if letter_case.is_equal(key, column):
            return value
    return None
