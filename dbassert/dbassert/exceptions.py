"""Exception hierarchy for dbassert.

Usage errors (bad arguments, inconsistent snapshots, calls made in the
wrong order) derive from :class:`DbAssertError` and are raised as soon as
they are detected.  Failed assertions raise :class:`DbAssertionError`,
which is an :class:`AssertionError` so that test runners report them as
ordinary failures rather than errors.
"""

from __future__ import annotations


class DbAssertError(Exception):
    """Base exception for all dbassert usage errors."""


class LetterCaseError(DbAssertError):
    """A letter-case policy was missing or could not be resolved."""


class SnapshotError(DbAssertError):
    """A snapshot, row or change was built from inconsistent data."""


class PrimaryKeyMismatchError(DbAssertError):
    """The two snapshots of a diff do not declare the same primary key."""


class SnapshotReadError(DbAssertError):
    """Reading a snapshot from a data source failed."""


class ChangesStateError(DbAssertError):
    """A change tracker was used before its start or end point was set."""


class SerializationError(DbAssertError):
    """A serialized snapshot could not be decoded."""


class DbAssertionError(AssertionError):
    """An assertion on a snapshot or on a set of changes failed."""
