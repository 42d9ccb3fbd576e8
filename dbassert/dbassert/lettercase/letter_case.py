"""Letter-case policies for table, column and primary-key identifiers.

Databases disagree on how unquoted identifiers are folded: Oracle reports
``ORDERS``, PostgreSQL reports ``orders``, and user code may spell it
``Orders``.  A :class:`LetterCase` pairs one :class:`CaseConversion` with one
:class:`CaseComparison` so that identifiers coming from different metadata
sources can be recognised as the same object.

Instances are obtained through :func:`get_letter_case`, a process-wide
memoized factory: structurally equal pairs always resolve to the same
shared object.  The registry is populated on first use and never evicted;
its key space is the cross-product of two small closed enumerations.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

from dbassert.exceptions import LetterCaseError
from dbassert.lettercase.policies import CaseComparison, CaseConversion

if TYPE_CHECKING:
    from dbassert.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LetterCase:
    """Immutable (conversion, comparison) pair.

    Build instances with :func:`get_letter_case` rather than calling the
    constructor so that equal configurations share one object.
    """

    conversion: CaseConversion
    comparison: CaseComparison

    def convert(self, name: str | None) -> str | None:
        return self.conversion.convert(name)

    def compare(self, first: str | None, second: str | None) -> int:
        return self.comparison.compare(first, second)

    def is_equal(self, first: str | None, second: str | None) -> bool:
        return self.comparison.is_equal(first, second)

    def index_of(self, names: Sequence[str], name: str) -> int:
        """Return the position of *name* in *names* under this comparison, or -1."""
        for index, candidate in enumerate(names):
            if self.comparison.is_equal(candidate, name):
                return index
        return -1

    def __repr__(self) -> str:
        return f"LetterCase({self.conversion.value}, {self.comparison.value})"


# ---------------------------------------------------------------------------
# Memoized factory
# ---------------------------------------------------------------------------

_lock = threading.Lock()
_registry: dict[tuple[CaseConversion, CaseComparison], LetterCase] = {}


def _coerce_conversion(value: CaseConversion | str | None) -> CaseConversion:
    if value is None:
        raise LetterCaseError("The case conversion must not be None")
    if isinstance(value, CaseConversion):
        return value
    try:
        return CaseConversion[str(value).strip().upper()]
    except KeyError:
        raise LetterCaseError(f"Unknown case conversion: {value!r}") from None


def _coerce_comparison(value: CaseComparison | str | None) -> CaseComparison:
    if value is None:
        raise LetterCaseError("The case comparison must not be None")
    if isinstance(value, CaseComparison):
        return value
    try:
        return CaseComparison[str(value).strip().upper()]
    except KeyError:
        raise LetterCaseError(f"Unknown case comparison: {value!r}") from None


def get_letter_case(
    conversion: CaseConversion | str | None,
    comparison: CaseComparison | str | None,
) -> LetterCase:
    """Return the shared :class:`LetterCase` for a (conversion, comparison) pair.

    Thread-safe.  Concurrent first-time lookups of the same pair converge
    on a single instance.  Policy names (``"upper"``, ``"IGNORE"``) are
    accepted in place of enum members.

    Raises
    ------
    LetterCaseError
        If either policy is ``None`` or not a known policy name.
    """
    key = (_coerce_conversion(conversion), _coerce_comparison(comparison))
    instance = _registry.get(key)
    if instance is not None:
        return instance

    with _lock:
        # Double-checked locking
        instance = _registry.get(key)
        if instance is None:
            instance = LetterCase(*key)
            _registry[key] = instance
            logger.debug("Registered letter case %r", instance)
        return instance


TABLE_DEFAULT: LetterCase = get_letter_case(CaseConversion.NO, CaseComparison.IGNORE)
COLUMN_DEFAULT: LetterCase = get_letter_case(CaseConversion.UPPER, CaseComparison.IGNORE)
PRIMARY_KEY_DEFAULT: LetterCase = get_letter_case(CaseConversion.UPPER, CaseComparison.IGNORE)


# ---------------------------------------------------------------------------
# Per-kind bundle
# ---------------------------------------------------------------------------


class IdentifierKind(str, Enum):
    """The kind of identifier being normalised or compared."""

    TABLE = "TABLE"
    COLUMN = "COLUMN"
    PRIMARY_KEY = "PRIMARY_KEY"


@dataclass(frozen=True, slots=True)
class LetterCases:
    """One letter case per identifier kind, each independently overridable."""

    table: LetterCase = TABLE_DEFAULT
    column: LetterCase = COLUMN_DEFAULT
    primary_key: LetterCase = PRIMARY_KEY_DEFAULT

    @classmethod
    def default(cls) -> LetterCases:
        return DEFAULT_LETTER_CASES

    @classmethod
    def from_settings(cls, settings: Settings) -> LetterCases:
        """Build the bundle from the ``*_case_conversion``/``*_case_comparison`` settings."""
        return cls(
            table=get_letter_case(settings.table_case_conversion, settings.table_case_comparison),
            column=get_letter_case(settings.column_case_conversion, settings.column_case_comparison),
            primary_key=get_letter_case(
                settings.primary_key_case_conversion,
                settings.primary_key_case_comparison,
            ),
        )

    def override(
        self,
        *,
        table: LetterCase | None = None,
        column: LetterCase | None = None,
        primary_key: LetterCase | None = None,
    ) -> LetterCases:
        """Return a copy with the given letter cases replaced."""
        return replace(
            self,
            table=table or self.table,
            column=column or self.column,
            primary_key=primary_key or self.primary_key,
        )

    def for_kind(self, kind: IdentifierKind | str) -> LetterCase:
        kind = IdentifierKind(kind)
        if kind is IdentifierKind.TABLE:
            return self.table
        if kind is IdentifierKind.COLUMN:
            return self.column
        return self.primary_key

    def normalize(self, kind: IdentifierKind | str, raw: str | None) -> str | None:
        """Apply the conversion policy of *kind* to *raw*."""
        return self.for_kind(kind).convert(raw)

    def identifiers_equal(self, kind: IdentifierKind | str, first: str | None, second: str | None) -> bool:
        """Compare two identifiers of *kind* under its comparison policy."""
        return self.for_kind(kind).is_equal(first, second)


DEFAULT_LETTER_CASES = LetterCases()


def normalize(kind: IdentifierKind | str, raw: str | None) -> str | None:
    """Normalise *raw* with the default letter case for *kind*."""
    return DEFAULT_LETTER_CASES.normalize(kind, raw)


def identifiers_equal(kind: IdentifierKind | str, first: str | None, second: str | None) -> bool:
    """Return ``True`` if two identifiers of *kind* match under the default letter case."""
    return DEFAULT_LETTER_CASES.identifiers_equal(kind, first, second)
