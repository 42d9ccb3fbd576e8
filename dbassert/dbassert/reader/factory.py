"""Pick a snapshot reader for a database URL."""

from __future__ import annotations

from dbassert.lettercase import LetterCases
from dbassert.reader.base import SnapshotReader
from dbassert.reader.duckdb_reader import DuckDBReader
from dbassert.reader.sqlalchemy_reader import SqlAlchemyReader

_DUCKDB_PREFIX = "duckdb:///"


def open_reader(url: str, *, letter_cases: LetterCases | None = None) -> SnapshotReader:
    """Return a reader for *url*.

    ``duckdb:///path/to/file.duckdb`` (or ``duckdb:///:memory:``) opens a
    :class:`DuckDBReader`; any other URL is handed to SQLAlchemy.
    """
    if url.startswith(_DUCKDB_PREFIX):
        return DuckDBReader(url[len(_DUCKDB_PREFIX) :] or ":memory:", letter_cases=letter_cases)
    return SqlAlchemyReader(url, letter_cases=letter_cases)
