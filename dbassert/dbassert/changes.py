"""Change tracker: capture a start point and an end point, then list the changes.

Typical use in a test::

    reader = SqlAlchemyReader(engine)
    changes = Changes(reader, tables=["orders", "customers"])
    changes.set_start_point_now()
    run_the_code_under_test()
    changes.set_end_point_now()

    assert_that(changes).has_number_of_changes(2)

With neither ``tables`` nor ``query`` every table listed by the reader at
the start point is tracked.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

from dbassert.diff.row_diff import compute_changes, diff_snapshot_lists
from dbassert.exceptions import ChangesStateError
from dbassert.lettercase import DEFAULT_LETTER_CASES, LetterCases
from dbassert.models.change import Change, ChangeType
from dbassert.models.snapshot import DataType, Snapshot
from dbassert.reader.base import QuerySource, SnapshotReader, TableSource

logger = logging.getLogger(__name__)


class Changes:
    """The changes observed on tables or a query between two points in time.

    Parameters
    ----------
    reader:
        Reader used to capture the snapshots.
    tables:
        Tables to track, by name or :class:`TableSource`.
    query:
        Query to track instead of tables.
    """

    def __init__(
        self,
        reader: SnapshotReader | None = None,
        *,
        tables: Sequence[TableSource | str] | None = None,
        query: QuerySource | str | None = None,
    ) -> None:
        if tables is not None and query is not None:
            raise ChangesStateError("Track either tables or a query, not both")
        self._reader = reader
        self._tables = [TableSource(name=t) if isinstance(t, str) else t for t in tables] if tables else None
        self._query = QuerySource(sql=query) if isinstance(query, str) else query
        self._start: list[Snapshot] | None = None
        self._end: list[Snapshot] | None = None
        self._changes: list[Change] | None = None
        self._letter_cases = reader.letter_cases if reader is not None else DEFAULT_LETTER_CASES
        self._description: str | None = None

    # -- Builders ------------------------------------------------------------

    @classmethod
    def from_snapshots(
        cls,
        before: Snapshot,
        after: Snapshot,
        primary_key_columns: Sequence[str] | None = None,
    ) -> Changes:
        """Build a tracker over two already captured snapshots of one data source."""
        tracker = cls()
        tracker._letter_cases = before.letter_cases
        tracker._start = [before]
        tracker._end = [after]
        tracker._changes = compute_changes(before, after, primary_key_columns)
        return tracker

    @classmethod
    def of_changes(cls, changes: Sequence[Change], description: str | None = None) -> Changes:
        """Wrap an already computed list of changes."""
        tracker = cls()
        tracker._changes = list(changes)
        tracker._description = description
        if tracker._changes:
            tracker._letter_cases = tracker._changes[0].letter_cases
        return tracker

    # -- Capture -------------------------------------------------------------

    def _capture(self) -> list[Snapshot]:
        if self._reader is None:
            raise ChangesStateError("This tracker has no reader to capture snapshots with")
        if self._query is not None:
            return [self._reader.read_query(self._query)]
        if self._tables is None:
            self._tables = [TableSource(name=name) for name in self._reader.list_tables()]
            logger.debug("Tracking all %d table(s)", len(self._tables))
        return [self._reader.read_table(source) for source in self._tables]

    def set_start_point_now(self) -> Changes:
        """Capture the start-point snapshots."""
        self._start = self._capture()
        self._end = None
        self._changes = None
        return self

    def set_end_point_now(self) -> Changes:
        """Capture the end-point snapshots.

        Raises
        ------
        ChangesStateError
            If no start point was set.
        """
        if self._start is None:
            raise ChangesStateError("Start point must be set before the end point")
        self._end = self._capture()
        self._changes = None
        return self

    # -- Results -------------------------------------------------------------

    @property
    def changes(self) -> list[Change]:
        """The ordered list of changes, computed once.

        Raises
        ------
        ChangesStateError
            If the end point is missing.
        """
        if self._changes is None:
            if self._start is None or self._end is None:
                raise ChangesStateError("Start point and end point must be set before reading the changes")
            self._changes = diff_snapshot_lists(self._start, self._end, letter_cases=self._letter_cases)
        return self._changes

    @property
    def letter_cases(self) -> LetterCases:
        return self._letter_cases

    @property
    def start_point(self) -> list[Snapshot] | None:
        return self._start

    @property
    def end_point(self) -> list[Snapshot] | None:
        return self._end

    @property
    def description(self) -> str:
        if self._description is not None:
            return self._description
        if self._query is not None:
            return f"Changes on '{self._query.sql}' request"
        snapshots = self._start or []
        if snapshots and all(s.data_type is DataType.REQUEST for s in snapshots):
            return f"Changes on '{snapshots[0].name}' request"
        names = [s.name for s in snapshots] or [t.name for t in self._tables or []]
        if names:
            return "Changes on tables " + ", ".join(f"'{name}'" for name in names)
        return "Changes"

    # -- Filters -------------------------------------------------------------

    def _filtered(self, changes: list[Change], suffix: str) -> Changes:
        filtered = Changes.of_changes(changes, f"{self.description} ({suffix})")
        filtered._letter_cases = self._letter_cases
        return filtered

    def of_table(self, name: str) -> Changes:
        """Changes on table *name*, matched under the table letter case."""
        table_case = self._letter_cases.table
        return self._filtered(
            [c for c in self.changes if c.data_type is DataType.TABLE and table_case.is_equal(c.data_name, name)],
            f"on table '{name}'",
        )

    def of_type(self, change_type: ChangeType | str) -> Changes:
        change_type = ChangeType(change_type)
        return self._filtered(
            [c for c in self.changes if c.change_type is change_type],
            f"only {change_type.value.lower()} changes",
        )

    def creations(self) -> Changes:
        return self.of_type(ChangeType.CREATION)

    def modifications(self) -> Changes:
        return self.of_type(ChangeType.MODIFICATION)

    def deletions(self) -> Changes:
        return self.of_type(ChangeType.DELETION)

    # -- Sequence protocol ---------------------------------------------------

    def __len__(self) -> int:
        return len(self.changes)

    def __iter__(self) -> Iterator[Change]:
        return iter(self.changes)

    def __getitem__(self, index: int) -> Change:
        return self.changes[index]

    def __repr__(self) -> str:
        state = "computed" if self._changes is not None else "pending"
        return f"Changes({self.description!r}, {state})"
