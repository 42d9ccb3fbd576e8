"""Navigation capabilities shared by the assertion classes.

Each mixin forwards navigation to the assertion the current one was
reached from, so that a chain such as::

    assert_that(changes).change().is_modification() \\
        .column("NAME").is_modified() \\
        .change().is_creation()

keeps moving the cursors of the originating assertion.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dbassert.assertions.change_assert import ChangeAssert, ChangesAssert
    from dbassert.assertions.change_point_assert import ChangeColumnAssert, ChangeRowAssert
    from dbassert.assertions.snapshot_assert import ColumnAssert, RowAssert, SnapshotAssert


class ToChange:
    """Navigate to a change of the originating changes."""

    def _changes_origin(self) -> ChangesAssert:
        raise NotImplementedError

    def change(self, index: int | None = None) -> ChangeAssert:
        return self._changes_origin().change(index)

    def change_of_creation(self, index: int | None = None) -> ChangeAssert:
        return self._changes_origin().change_of_creation(index)

    def change_of_modification(self, index: int | None = None) -> ChangeAssert:
        return self._changes_origin().change_of_modification(index)

    def change_of_deletion(self, index: int | None = None) -> ChangeAssert:
        return self._changes_origin().change_of_deletion(index)

    def change_on_table(self, name: str, index: int | None = None) -> ChangeAssert:
        return self._changes_origin().change_on_table(name, index)

    def change_on_table_with_pks(self, name: str, *pk_values: Any) -> ChangeAssert:
        return self._changes_origin().change_on_table_with_pks(name, *pk_values)


class ToRowFromChange:
    """Navigate to the rows at the start and end point of the originating change."""

    def _change_origin(self) -> ChangeAssert:
        raise NotImplementedError

    def row_at_start_point(self) -> ChangeRowAssert:
        return self._change_origin().row_at_start_point()

    def row_at_end_point(self) -> ChangeRowAssert:
        return self._change_origin().row_at_end_point()


class ToColumnFromChange:
    """Navigate to a column of the originating change."""

    def _change_origin(self) -> ChangeAssert:
        raise NotImplementedError

    def column(self, column: str | int | None = None) -> ChangeColumnAssert:
        return self._change_origin().column(column)

    def column_among_the_modified_ones(self, column: str | int | None = None) -> ChangeColumnAssert:
        return self._change_origin().column_among_the_modified_ones(column)


class ToRow:
    """Navigate to a row of the originating snapshot."""

    def _snapshot_origin(self) -> SnapshotAssert:
        raise NotImplementedError

    def row(self, index: int | None = None) -> RowAssert:
        return self._snapshot_origin().row(index)


class ToColumn:
    """Navigate to a column of the originating snapshot."""

    def _snapshot_origin(self) -> SnapshotAssert:
        raise NotImplementedError

    def column(self, column: str | int | None = None) -> ColumnAssert:
        return self._snapshot_origin().column(column)
