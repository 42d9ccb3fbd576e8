"""Change model: one row-level difference between two snapshots."""

from __future__ import annotations

from enum import Enum
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, InstanceOf, model_validator

from dbassert.exceptions import SnapshotError
from dbassert.lettercase import (
    COLUMN_DEFAULT,
    PRIMARY_KEY_DEFAULT,
    TABLE_DEFAULT,
    LetterCase,
    LetterCases,
)
from dbassert.models.snapshot import DataType, Row
from dbassert.values import values_equal


class ChangeType(str, Enum):
    """Classification of a row-level change."""

    CREATION = "CREATION"
    MODIFICATION = "MODIFICATION"
    DELETION = "DELETION"


class Change(BaseModel):
    """A single created, modified or deleted row.

    A creation has no row at the start point, a deletion has no row at the
    end point, and a modification has both.
    """

    model_config = ConfigDict(frozen=True)

    change_type: ChangeType = Field(..., description="Kind of change.")
    data_type: DataType = Field(default=DataType.TABLE, description="Kind of data source.")
    data_name: str = Field(..., description="Table name or query text the change was observed on.")
    pk_names: tuple[str, ...] = Field(default=(), description="Primary-key column names.")
    pk_values: tuple[Any, ...] = Field(default=(), description="Primary-key values of the changed row.")
    row_at_start_point: Row | None = Field(default=None, description="Row before the change.")
    row_at_end_point: Row | None = Field(default=None, description="Row after the change.")
    table_letter_case: InstanceOf[LetterCase] = TABLE_DEFAULT
    column_letter_case: InstanceOf[LetterCase] = COLUMN_DEFAULT
    primary_key_letter_case: InstanceOf[LetterCase] = PRIMARY_KEY_DEFAULT

    @model_validator(mode="after")
    def _check_rows(self) -> Change:
        start, end = self.row_at_start_point, self.row_at_end_point
        if self.change_type is ChangeType.CREATION and (start is not None or end is None):
            raise SnapshotError("A creation has a row at the end point only")
        if self.change_type is ChangeType.DELETION and (start is None or end is not None):
            raise SnapshotError("A deletion has a row at the start point only")
        if self.change_type is ChangeType.MODIFICATION and (start is None or end is None):
            raise SnapshotError("A modification has a row at both points")
        return self

    @property
    def letter_cases(self) -> LetterCases:
        return LetterCases(
            table=self.table_letter_case,
            column=self.column_letter_case,
            primary_key=self.primary_key_letter_case,
        )

    @property
    def present_row(self) -> Row:
        """The end-point row, or the start-point row for a deletion."""
        # The validator guarantees at least one row.
        return cast(Row, self.row_at_end_point if self.row_at_end_point is not None else self.row_at_start_point)

    @property
    def columns(self) -> tuple[str, ...]:
        """Column names of the present row."""
        return self.present_row.columns

    @property
    def modified_column_indices(self) -> tuple[int, ...]:
        """Positions in :attr:`columns` of the columns whose value changed.

        Creations and deletions modify every column.  Modifications compare
        the columns present in both rows, matched by name under the column
        letter case.
        """
        if self.change_type is not ChangeType.MODIFICATION:
            return tuple(range(len(self.columns)))

        start = cast(Row, self.row_at_start_point)
        end = cast(Row, self.row_at_end_point)
        indices = []
        for index, (name, value) in enumerate(zip(end.columns, end.values, strict=True)):
            start_index = self.column_letter_case.index_of(start.columns, name)
            if start_index >= 0 and not values_equal(start.values[start_index], value):
                indices.append(index)
        return tuple(indices)

    @property
    def modified_column_names(self) -> tuple[str, ...]:
        columns = self.columns
        return tuple(columns[index] for index in self.modified_column_indices)

    def column_index(self, column: str | int) -> int:
        """Resolve a column name or position of :attr:`columns`.

        Raises
        ------
        SnapshotError
            If the column does not exist.
        """
        columns = self.columns
        if isinstance(column, int):
            if not 0 <= column < len(columns):
                raise SnapshotError(f"Column index {column} out of range (0 to {len(columns) - 1})")
            return column
        index = self.column_letter_case.index_of(columns, column)
        if index < 0:
            raise SnapshotError(f"Column {column!r} does not exist (columns: {list(columns)})")
        return index

    def column_values(self, column: str | int) -> tuple[Any, Any]:
        """Return the ``(start, end)`` values of a column; ``None`` for a missing row or column."""
        name = self.columns[self.column_index(column)]
        return _value_or_none(self.row_at_start_point, name), _value_or_none(self.row_at_end_point, name)


def _value_or_none(row: Row | None, name: str) -> Any:
    if row is None:
        return None
    index = row.index_of(name)
    return row.values[index] if index >= 0 else None
