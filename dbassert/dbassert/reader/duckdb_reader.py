"""Snapshot reader for embedded DuckDB databases.

Metadata comes from ``information_schema`` and ``duckdb_constraints()``.
Table reads are built as :mod:`sqlglot` expressions and rendered in the
DuckDB dialect, so stored identifiers are always quoted correctly.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import duckdb
from sqlglot import exp

from dbassert.exceptions import SnapshotReadError
from dbassert.lettercase import LetterCases
from dbassert.models.snapshot import ColumnDescriptor
from dbassert.reader.base import SnapshotReader

logger = logging.getLogger(__name__)

_LIST_TABLES_SQL = """
SELECT table_name
FROM information_schema.tables
WHERE table_schema = ?
ORDER BY table_name
"""

_COLUMNS_SQL = """
SELECT column_name, data_type, is_nullable
FROM information_schema.columns
WHERE table_schema = ? AND table_name = ?
ORDER BY ordinal_position
"""

_PRIMARY_KEY_SQL = """
SELECT constraint_column_names
FROM duckdb_constraints()
WHERE schema_name = ? AND table_name = ? AND constraint_type = 'PRIMARY KEY'
"""


def build_table_select(table_name: str, columns: Sequence[str], order_by: Sequence[str], schema: str) -> str:
    """Render ``SELECT <columns> FROM <schema>.<table> ORDER BY ...`` for DuckDB."""
    query = exp.select(*(exp.column(name, quoted=True) for name in columns)).from_(
        exp.table_(table_name, db=schema, quoted=True)
    )
    if order_by:
        query = query.order_by(*(exp.column(name, quoted=True) for name in order_by))
    return query.sql(dialect="duckdb")


class DuckDBReader(SnapshotReader):
    """Read snapshots from a DuckDB connection.

    Parameters
    ----------
    connection:
        An open connection, or a path to a database file (``":memory:"``
        for an in-memory database).  A connection opened from a path is
        closed by :meth:`close`.
    schema:
        Schema holding the tables.  Defaults to ``main``.
    letter_cases:
        Letter cases for identifiers.
    """

    def __init__(
        self,
        connection: duckdb.DuckDBPyConnection | str | Path,
        *,
        schema: str = "main",
        letter_cases: LetterCases | None = None,
    ) -> None:
        super().__init__(letter_cases)
        self._owns_connection = not isinstance(connection, duckdb.DuckDBPyConnection)
        if self._owns_connection:
            logger.info("Opening DuckDB database at %s", connection)
            try:
                self._connection = duckdb.connect(str(connection))
            except duckdb.Error as exc:
                raise SnapshotReadError(f"Cannot open DuckDB database {str(connection)!r}: {exc}") from exc
        else:
            self._connection = connection
        self._schema = schema

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        return self._connection

    def _execute(self, sql: str, parameters: Any = None) -> duckdb.DuckDBPyConnection:
        try:
            if parameters:
                return self._connection.execute(sql, parameters)
            return self._connection.execute(sql)
        except duckdb.Error as exc:
            raise SnapshotReadError(f"DuckDB query failed: {exc}") from exc

    def list_tables(self) -> list[str]:
        return [row[0] for row in self._execute(_LIST_TABLES_SQL, [self._schema]).fetchall()]

    def _table_columns(self, table_name: str) -> list[ColumnDescriptor]:
        rows = self._execute(_COLUMNS_SQL, [self._schema, table_name]).fetchall()
        return [
            ColumnDescriptor(name=name, data_type=data_type, nullable=str(is_nullable).upper() == "YES")
            for name, data_type, is_nullable in rows
        ]

    def _table_primary_key(self, table_name: str) -> list[str]:
        row = self._execute(_PRIMARY_KEY_SQL, [self._schema, table_name]).fetchone()
        if row is None:
            return []
        return list(row[0])

    def _fetch_table(self, table_name: str, columns: Sequence[str], order_by: Sequence[str]) -> list[tuple[Any, ...]]:
        sql = build_table_select(table_name, columns, order_by, self._schema)
        logger.debug("Reading table %r: %s", table_name, sql)
        return [tuple(row) for row in self._execute(sql).fetchall()]

    def _fetch_query(self, sql: str, parameters: dict[str, Any]) -> tuple[list[str], list[tuple[Any, ...]]]:
        cursor = self._execute(sql, parameters)
        names = [description[0] for description in cursor.description or []]
        return names, [tuple(row) for row in cursor.fetchall()]

    def close(self) -> None:
        if self._owns_connection:
            try:
                self._connection.close()
            except duckdb.Error:
                logger.debug("Ignoring error while closing DuckDB connection")
