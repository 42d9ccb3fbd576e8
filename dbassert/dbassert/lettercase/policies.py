"""Case-conversion and case-comparison policies for identifiers.

Both policy sets are closed enumerations: each member carries its own
pure conversion or comparison function.  The two axes are independent so
that any conversion can be paired with any comparison inside a
:class:`~dbassert.lettercase.letter_case.LetterCase`.
"""

from __future__ import annotations

from enum import Enum


def _ordinal_compare(first: str, second: str) -> int:
    if first == second:
        return 0
    return -1 if first < second else 1


class CaseConversion(str, Enum):
    """How an identifier is rewritten before it is stored or displayed."""

    NO = "NO"
    LOWER = "LOWER"
    UPPER = "UPPER"

    @property
    def conversion_name(self) -> str:
        """Human-readable description, e.g. ``"UPPER - Conversion to upper case"``."""
        return _CONVERSION_NAMES[self]

    def convert(self, name: str | None) -> str | None:
        """Return *name* rewritten under this conversion.  ``None`` stays ``None``."""
        if name is None:
            return None
        if self is CaseConversion.LOWER:
            return name.lower()
        if self is CaseConversion.UPPER:
            return name.upper()
        return name


class CaseComparison(str, Enum):
    """How two identifiers are compared.

    ``None`` sorts strictly before any string and two ``None`` values are
    equal, whatever the policy.
    """

    IGNORE = "IGNORE"
    STRICT = "STRICT"

    @property
    def comparison_name(self) -> str:
        """Human-readable description, e.g. ``"IGNORE - Ignore the case"``."""
        return _COMPARISON_NAMES[self]

    def compare(self, first: str | None, second: str | None) -> int:
        """Return -1, 0 or 1 as *first* sorts before, equal to or after *second*."""
        if first is None or second is None:
            return int(first is not None) - int(second is not None)
        if self is CaseComparison.IGNORE:
            return _ordinal_compare(first.casefold(), second.casefold())
        return _ordinal_compare(first, second)

    def is_equal(self, first: str | None, second: str | None) -> bool:
        """Return ``True`` if *first* and *second* denote the same identifier."""
        return self.compare(first, second) == 0


_CONVERSION_NAMES: dict[CaseConversion, str] = {
    CaseConversion.NO: "NO - No conversion",
    CaseConversion.LOWER: "LOWER - Conversion to lower case",
    CaseConversion.UPPER: "UPPER - Conversion to upper case",
}

_COMPARISON_NAMES: dict[CaseComparison, str] = {
    CaseComparison.IGNORE: "IGNORE - Ignore the case",
    CaseComparison.STRICT: "STRICT - Strictly compare the case",
}
