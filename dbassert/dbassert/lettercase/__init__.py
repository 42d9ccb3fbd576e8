"""Letter-case-aware identifier matching.

Quick start::

    from dbassert.lettercase import IdentifierKind, identifiers_equal, normalize

    normalize(IdentifierKind.COLUMN, "Name")                 # "NAME"
    identifiers_equal(IdentifierKind.TABLE, "ORDERS", "orders")  # True
"""

from dbassert.lettercase.dialects import letter_case_for_dialect, letter_cases_for_dialect
from dbassert.lettercase.letter_case import (
    COLUMN_DEFAULT,
    DEFAULT_LETTER_CASES,
    PRIMARY_KEY_DEFAULT,
    TABLE_DEFAULT,
    IdentifierKind,
    LetterCase,
    LetterCases,
    get_letter_case,
    identifiers_equal,
    normalize,
)
from dbassert.lettercase.policies import CaseComparison, CaseConversion

__all__ = [
    "COLUMN_DEFAULT",
    "CaseComparison",
    "CaseConversion",
    "DEFAULT_LETTER_CASES",
    "IdentifierKind",
    "LetterCase",
    "LetterCases",
    "PRIMARY_KEY_DEFAULT",
    "TABLE_DEFAULT",
    "get_letter_case",
    "identifiers_equal",
    "letter_case_for_dialect",
    "letter_cases_for_dialect",
    "normalize",
]
