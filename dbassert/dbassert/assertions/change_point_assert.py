"""Assertions on the row and the column values of a change at its start and end points."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from dbassert.assertions.base import AbstractAssert
from dbassert.assertions.mixins import ToChange, ToColumnFromChange, ToRowFromChange
from dbassert.models.snapshot import Row
from dbassert.values import format_value, values_equal

if TYPE_CHECKING:
    from dbassert.assertions.change_assert import ChangeAssert, ChangesAssert

_MISSING = object()


class _FromChange(AbstractAssert, ToChange, ToRowFromChange, ToColumnFromChange):
    def __init__(self, *, origin: ChangeAssert, description: str) -> None:
        super().__init__(description)
        self._origin = origin

    def _change_origin(self) -> ChangeAssert:
        return self._origin

    def _changes_origin(self) -> ChangesAssert:
        return self._origin.return_to_changes()

    def return_to_change(self) -> ChangeAssert:
        return self._origin


class ChangeRowAssert(_FromChange):
    """Assertions on the row of a change at its start or end point.

    The row is ``None`` at the start point of a creation and at the end
    point of a deletion.
    """

    def __init__(self, row: Row | None, *, origin: ChangeAssert, description: str) -> None:
        super().__init__(origin=origin, description=description)
        self._row = row

    def _existing_row(self) -> Row:
        if self._row is None:
            self._fail("Expecting exist but do not exist")
        return self._row

    def exists(self) -> ChangeRowAssert:
        self._existing_row()
        return self

    def does_not_exist(self) -> ChangeRowAssert:
        if self._row is not None:
            self._fail("Expecting not exist but exist")
        return self

    def has_values(self, *values: Any) -> ChangeRowAssert:
        """The row exists and holds exactly *values*, in column order."""
        self._check_values(self._existing_row().values, values, "the row")
        return self

    def has_number_of_columns(self, expected: int) -> ChangeRowAssert:
        self._check_count(len(self._existing_row().values), expected, "==", "the number of columns")
        return self


class ChangeColumnAssert(_FromChange):
    """Assertions on one column of a change: its name and its start and end values."""

    def __init__(
        self,
        name: str,
        value_at_start_point: Any,
        value_at_end_point: Any,
        *,
        modified: bool,
        origin: ChangeAssert,
        description: str,
    ) -> None:
        super().__init__(origin=origin, description=description)
        self._name = name
        self._start = value_at_start_point
        self._end = value_at_end_point
        self._modified = modified

    @property
    def value_at_start_point(self) -> Any:
        return self._start

    @property
    def value_at_end_point(self) -> Any:
        return self._end

    def is_modified(self) -> ChangeColumnAssert:
        if not self._modified:
            self._fail(
                f"Expecting :\n  <{format_value(self._start)}>\nis modified but is still:\n"
                f"  <{format_value(self._end)}>"
            )
        return self

    def is_not_modified(self) -> ChangeColumnAssert:
        if self._modified:
            self._fail(
                f"Expecting :\n  <{format_value(self._start)}>\nis not modified but is :\n"
                f"  <{format_value(self._end)}>"
            )
        return self

    def has_column_name(self, name: str) -> ChangeColumnAssert:
        column_case = self._origin.change_under_test.column_letter_case
        if not column_case.is_equal(self._name, name):
            self._fail(f"Expecting :\n  \"{name}\"\nto be the name of the column but was:\n  \"{self._name}\"")
        return self

    def has_values(self, value_at_start_point: Any, value_at_end_point: Any = _MISSING) -> ChangeColumnAssert:
        """The column holds the given values at the start and end points.

        With a single argument both points must hold that value.
        """
        if value_at_end_point is _MISSING:
            value_at_end_point = value_at_start_point
        if not values_equal(self._start, value_at_start_point):
            self._fail(
                f"Expecting that start point:\n  <{format_value(self._start)}>\n"
                f"to be equal to: \n  <{format_value(value_at_start_point)}>"
            )
        if not values_equal(self._end, value_at_end_point):
            self._fail(
                f"Expecting that end point:\n  <{format_value(self._end)}>\n"
                f"to be equal to: \n  <{format_value(value_at_end_point)}>"
            )
        return self
