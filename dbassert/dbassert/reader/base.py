"""Abstract snapshot reader and the descriptions of what to read.

A reader turns a :class:`TableSource` or a :class:`QuerySource` into a
:class:`~dbassert.models.Snapshot`.  The shared logic lives here: table
lookup under the table letter case, column selection under the column
letter case, primary-key resolution, and conversion of identifiers that
come from database metadata.  Backends only implement the four
``_``-prefixed hooks that talk to the database.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field

from dbassert.exceptions import SnapshotReadError
from dbassert.lettercase import DEFAULT_LETTER_CASES, LetterCases
from dbassert.models.snapshot import ColumnDescriptor, DataType, Row, Snapshot
from dbassert.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


class TableSource(BaseModel):
    """A table to capture, optionally restricted to some of its columns."""

    name: str = Field(..., min_length=1, description="Table name, matched under the table letter case.")
    columns_to_check: list[str] | None = Field(
        default=None,
        description="Only capture these columns (all columns when None).",
    )
    columns_to_exclude: list[str] | None = Field(
        default=None,
        description="Never capture these columns.",
    )
    columns_to_order: list[str] | None = Field(
        default=None,
        description="Order rows by these columns instead of the primary key.",
    )
    pk_names: list[str] | None = Field(
        default=None,
        description="Primary-key columns; read from the table metadata when None.",
    )


class QuerySource(BaseModel):
    """A SQL query whose result set is captured."""

    sql: str = Field(..., min_length=1, description="SQL text of the query.")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Bound query parameters.")
    pk_names: list[str] = Field(default_factory=list, description="Columns identifying a row of the result.")


class SnapshotReader(abc.ABC):
    """Capture snapshots of tables and query results.

    Parameters
    ----------
    letter_cases:
        Letter cases applied to identifiers read from metadata and to
        the names given in sources.  Defaults to the library defaults.
    """

    def __init__(self, letter_cases: LetterCases | None = None) -> None:
        self.letter_cases = letter_cases or DEFAULT_LETTER_CASES

    # -- Backend hooks -------------------------------------------------------

    @abc.abstractmethod
    def list_tables(self) -> list[str]:
        """Return the names of the tables visible to this reader, as stored."""

    @abc.abstractmethod
    def _table_columns(self, table_name: str) -> list[ColumnDescriptor]:
        """Return the columns of *table_name* with their stored names."""

    @abc.abstractmethod
    def _table_primary_key(self, table_name: str) -> list[str]:
        """Return the stored primary-key column names of *table_name*."""

    @abc.abstractmethod
    def _fetch_table(self, table_name: str, columns: Sequence[str], order_by: Sequence[str]) -> list[tuple[Any, ...]]:
        """Select *columns* of *table_name*, ordered by *order_by*."""

    @abc.abstractmethod
    def _fetch_query(self, sql: str, parameters: dict[str, Any]) -> tuple[list[str], list[tuple[Any, ...]]]:
        """Run *sql* and return ``(column_names, rows)``."""

    # -- Public API ----------------------------------------------------------

    @profile_operation("reader.read_table")
    def read_table(self, source: TableSource | str) -> Snapshot:
        """Capture the current content of a table.

        Raises
        ------
        SnapshotReadError
            If the table or one of the named columns does not exist, or the
            database reports an error.
        """
        if isinstance(source, str):
            source = TableSource(name=source)
        cases = self.letter_cases

        stored_table = self._resolve_table(source.name)
        stored_columns = self._table_columns(stored_table)
        stored_names = [column.name for column in stored_columns]
        selected = self._select_columns(stored_table, stored_names, source)

        if source.pk_names is not None:
            pk_stored = [self._resolve_column(stored_table, selected, name) for name in source.pk_names]
        else:
            pk_stored = [
                name for name in self._table_primary_key(stored_table) if cases.column.index_of(selected, name) >= 0
            ]

        if source.columns_to_order:
            order_by = [self._resolve_column(stored_table, stored_names, name) for name in source.columns_to_order]
        else:
            order_by = pk_stored

        records = self._fetch_table(stored_table, selected, order_by)
        by_name = {column.name: column for column in stored_columns}
        descriptors = tuple(
            ColumnDescriptor(
                name=cases.column.convert(name),
                data_type=by_name[name].data_type,
                nullable=by_name[name].nullable,
            )
            for name in selected
        )
        snapshot = self._build_snapshot(
            name=cases.table.convert(stored_table),
            data_type=DataType.TABLE,
            columns=descriptors,
            pk_names=tuple(cases.primary_key.convert(name) for name in pk_stored),
            records=records,
        )
        logger.debug("Read %d row(s) from table %r", len(records), stored_table, extra={"data_name": stored_table})
        return snapshot

    @profile_operation("reader.read_query")
    def read_query(self, source: QuerySource | str) -> Snapshot:
        """Capture the result set of a SQL query.

        Raises
        ------
        SnapshotReadError
            If a primary-key column is not in the result or the query fails.
        """
        if isinstance(source, str):
            source = QuerySource(sql=source)
        cases = self.letter_cases

        names, records = self._fetch_query(source.sql, source.parameters)
        for pk_name in source.pk_names:
            if cases.primary_key.index_of(names, pk_name) < 0:
                raise SnapshotReadError(f"Primary key column {pk_name!r} is not in the query result {names}")

        snapshot = self._build_snapshot(
            name=source.sql,
            data_type=DataType.REQUEST,
            columns=tuple(ColumnDescriptor(name=cases.column.convert(name)) for name in names),
            pk_names=tuple(cases.primary_key.convert(name) for name in source.pk_names),
            records=records,
        )
        logger.debug("Read %d row(s) from query", len(records))
        return snapshot

    # -- Helpers -------------------------------------------------------------

    def _resolve_table(self, name: str) -> str:
        tables = self.list_tables()
        index = self.letter_cases.table.index_of(tables, name)
        if index < 0:
            raise SnapshotReadError(f"Table {name!r} does not exist")
        return tables[index]

    def _resolve_column(self, table: str, names: Sequence[str], name: str) -> str:
        index = self.letter_cases.column.index_of(names, name)
        if index < 0:
            raise SnapshotReadError(f"Column {name!r} does not exist in table {table!r}")
        return names[index]

    def _select_columns(self, table: str, stored_names: list[str], source: TableSource) -> list[str]:
        selected = list(stored_names)
        if source.columns_to_check is not None:
            wanted = {self._resolve_column(table, stored_names, name) for name in source.columns_to_check}
            selected = [name for name in selected if name in wanted]
        if source.columns_to_exclude:
            excluded = {self._resolve_column(table, stored_names, name) for name in source.columns_to_exclude}
            selected = [name for name in selected if name not in excluded]
        return selected

    def _build_snapshot(
        self,
        *,
        name: str,
        data_type: DataType,
        columns: tuple[ColumnDescriptor, ...],
        pk_names: tuple[str, ...],
        records: list[tuple[Any, ...]],
    ) -> Snapshot:
        cases = self.letter_cases
        names = tuple(column.name for column in columns)
        rows = tuple(
            Row(
                columns=names,
                values=tuple(record),
                pk_names=pk_names,
                column_letter_case=cases.column,
                primary_key_letter_case=cases.primary_key,
            )
            for record in records
        )
        return Snapshot(
            name=name,
            data_type=data_type,
            columns=columns,
            rows=rows,
            pk_names=pk_names,
            table_letter_case=cases.table,
            column_letter_case=cases.column,
            primary_key_letter_case=cases.primary_key,
        )

    # -- Resource management -------------------------------------------------

    def close(self) -> None:
        """Release backend resources.  The default implementation does nothing."""

    def __enter__(self) -> SnapshotReader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()
