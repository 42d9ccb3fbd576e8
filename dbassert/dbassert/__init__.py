"""dbassert: assertions on database content and on the changes between two points in time."""

from dbassert.assertions import assert_that
from dbassert.changes import Changes
from dbassert.diff import compute_changes, diff_snapshot_lists
from dbassert.exceptions import DbAssertError, DbAssertionError
from dbassert.lettercase import IdentifierKind, LetterCases, get_letter_case, identifiers_equal, normalize
from dbassert.models import Change, ChangeType, ColumnDescriptor, DataType, Row, Snapshot
from dbassert.reader import DuckDBReader, QuerySource, SqlAlchemyReader, TableSource

__all__ = [
    "Change",
    "ChangeType",
    "Changes",
    "ColumnDescriptor",
    "DataType",
    "DbAssertError",
    "DbAssertionError",
    "DuckDBReader",
    "IdentifierKind",
    "LetterCases",
    "QuerySource",
    "Row",
    "Snapshot",
    "SqlAlchemyReader",
    "TableSource",
    "assert_that",
    "compute_changes",
    "diff_snapshot_lists",
    "get_letter_case",
    "identifiers_equal",
    "normalize",
]
