"""Snapshot readers: capture tables and query results from a database."""

from dbassert.reader.base import QuerySource, SnapshotReader, TableSource
from dbassert.reader.duckdb_reader import DuckDBReader
from dbassert.reader.factory import open_reader
from dbassert.reader.sqlalchemy_reader import SqlAlchemyReader

__all__ = [
    "DuckDBReader",
    "QuerySource",
    "SnapshotReader",
    "SqlAlchemyReader",
    "TableSource",
    "open_reader",
]
