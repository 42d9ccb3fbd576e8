"""Snapshot reader for any database reachable through a SQLAlchemy engine."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from dbassert.exceptions import SnapshotReadError
from dbassert.lettercase import LetterCases
from dbassert.models.snapshot import ColumnDescriptor
from dbassert.reader.base import SnapshotReader

logger = logging.getLogger(__name__)


def _create_engine(url: str) -> Engine:
    try:
        return sa.create_engine(url)
    except (SQLAlchemyError, ImportError) as exc:
        # Unknown dialect or missing driver.
        raise SnapshotReadError(f"Cannot open database {url!r}: {exc}") from exc


class SqlAlchemyReader(SnapshotReader):
    """Read snapshots through SQLAlchemy inspection and Core ``select()``.

    Parameters
    ----------
    engine:
        The engine to read from, or a database URL.  An engine created
        from a URL is disposed by :meth:`close`.
    schema:
        Schema to inspect; the connection default when ``None``.
    letter_cases:
        Letter cases for identifiers.
    """

    def __init__(
        self,
        engine: Engine | str,
        *,
        schema: str | None = None,
        letter_cases: LetterCases | None = None,
    ) -> None:
        super().__init__(letter_cases)
        self._owns_engine = isinstance(engine, str)
        self._engine = _create_engine(engine) if isinstance(engine, str) else engine
        self._schema = schema

    @property
    def engine(self) -> Engine:
        return self._engine

    def list_tables(self) -> list[str]:
        try:
            inspector = sa.inspect(self._engine)
            return list(inspector.get_table_names(schema=self._schema)) + list(
                inspector.get_view_names(schema=self._schema)
            )
        except SQLAlchemyError as exc:
            raise SnapshotReadError(f"Failed to list tables: {exc}") from exc

    def _table_columns(self, table_name: str) -> list[ColumnDescriptor]:
        try:
            columns = sa.inspect(self._engine).get_columns(table_name, schema=self._schema)
        except SQLAlchemyError as exc:
            raise SnapshotReadError(f"Failed to read the columns of {table_name!r}: {exc}") from exc
        return [
            ColumnDescriptor(
                name=column["name"],
                data_type=str(column["type"]),
                nullable=bool(column.get("nullable", True)),
            )
            for column in columns
        ]

    def _table_primary_key(self, table_name: str) -> list[str]:
        try:
            constraint = sa.inspect(self._engine).get_pk_constraint(table_name, schema=self._schema)
        except SQLAlchemyError as exc:
            raise SnapshotReadError(f"Failed to read the primary key of {table_name!r}: {exc}") from exc
        return list(constraint.get("constrained_columns") or [])

    def _fetch_table(self, table_name: str, columns: Sequence[str], order_by: Sequence[str]) -> list[tuple[Any, ...]]:
        referenced = dict.fromkeys([*columns, *order_by])
        table = sa.table(table_name, *(sa.column(name) for name in referenced), schema=self._schema)
        stmt = sa.select(*(table.c[name] for name in columns))
        if order_by:
            stmt = stmt.order_by(*(table.c[name] for name in order_by))
        try:
            with self._engine.connect() as conn:
                return [tuple(row) for row in conn.execute(stmt)]
        except SQLAlchemyError as exc:
            raise SnapshotReadError(f"Failed to read table {table_name!r}: {exc}") from exc

    def _fetch_query(self, sql: str, parameters: dict[str, Any]) -> tuple[list[str], list[tuple[Any, ...]]]:
        try:
            with self._engine.connect() as conn:
                result = conn.execute(sa.text(sql), parameters)
                names = list(result.keys())
                return names, [tuple(row) for row in result]
        except SQLAlchemyError as exc:
            raise SnapshotReadError(f"Query failed: {exc}") from exc

    def close(self) -> None:
        if self._owns_engine:
            logger.debug("Disposing engine %s", self._engine.url)
            self._engine.dispose()
