"""Letter-case presets derived from SQL dialect identifier folding.

SQLGlot records, for every dialect it supports, how the engine folds
unquoted identifiers (its *normalization strategy*).  This module maps
that strategy onto a :class:`LetterCase` so that snapshots read from an
Oracle or Snowflake database default to upper-case column names, while
PostgreSQL defaults to lower case.
"""

from __future__ import annotations

import logging

from sqlglot.dialects.dialect import Dialect

from dbassert.exceptions import LetterCaseError
from dbassert.lettercase.letter_case import LetterCase, LetterCases, get_letter_case
from dbassert.lettercase.policies import CaseComparison, CaseConversion

logger = logging.getLogger(__name__)

# Keyed by NormalizationStrategy member name so that newer strategies added
# by SQLGlot degrade to the case-insensitive default instead of failing.
_STRATEGY_LETTER_CASES: dict[str, tuple[CaseConversion, CaseComparison]] = {
    "LOWERCASE": (CaseConversion.LOWER, CaseComparison.IGNORE),
    "UPPERCASE": (CaseConversion.UPPER, CaseComparison.IGNORE),
    "CASE_SENSITIVE": (CaseConversion.NO, CaseComparison.STRICT),
    "CASE_INSENSITIVE": (CaseConversion.NO, CaseComparison.IGNORE),
    "CASE_INSENSITIVE_UPPERCASE": (CaseConversion.UPPER, CaseComparison.IGNORE),
}


def _normalization_strategy_name(dialect: str) -> str:
    try:
        resolved = Dialect.get_or_raise(dialect)
    except ValueError as exc:
        raise LetterCaseError(f"Unknown SQL dialect: {dialect!r}") from exc
    strategy = getattr(resolved, "NORMALIZATION_STRATEGY", None)
    return getattr(strategy, "name", str(strategy))


def letter_case_for_dialect(dialect: str) -> LetterCase:
    """Return the column/primary-key letter case matching *dialect*.

    Raises
    ------
    LetterCaseError
        If SQLGlot does not know the dialect.
    """
    strategy = _normalization_strategy_name(dialect)
    pair = _STRATEGY_LETTER_CASES.get(strategy)
    if pair is None:
        logger.warning("Unmapped normalization strategy %s for dialect %s", strategy, dialect)
        pair = (CaseConversion.NO, CaseComparison.IGNORE)
    return get_letter_case(*pair)


def letter_cases_for_dialect(dialect: str) -> LetterCases:
    """Return a full :class:`LetterCases` bundle for *dialect*.

    Column and primary-key names use the dialect's folding; table names are
    left as typed and compared with the same comparison policy.
    """
    letter_case = letter_case_for_dialect(dialect)
    return LetterCases(
        table=get_letter_case(CaseConversion.NO, letter_case.comparison),
        column=letter_case,
        primary_key=letter_case,
    )
