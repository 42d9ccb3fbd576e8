"""Unit tests for dbassert.lettercase.letter_case."""

from __future__ import annotations

import threading

import pytest

from dbassert.config import load_settings
from dbassert.exceptions import LetterCaseError
from dbassert.lettercase import (
    COLUMN_DEFAULT,
    DEFAULT_LETTER_CASES,
    PRIMARY_KEY_DEFAULT,
    TABLE_DEFAULT,
    CaseComparison,
    CaseConversion,
    IdentifierKind,
    LetterCases,
    get_letter_case,
    identifiers_equal,
    normalize,
)

# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestGetLetterCase:
    def test_same_pair_same_instance(self):
        first = get_letter_case(CaseConversion.LOWER, CaseComparison.STRICT)
        second = get_letter_case(CaseConversion.LOWER, CaseComparison.STRICT)
        assert first is second

    def test_different_pairs_differ(self):
        assert get_letter_case(CaseConversion.LOWER, CaseComparison.STRICT) is not get_letter_case(
            CaseConversion.LOWER, CaseComparison.IGNORE
        )

    def test_accepts_policy_names(self):
        assert get_letter_case("upper", "ignore") is COLUMN_DEFAULT

    def test_none_conversion_raises(self):
        with pytest.raises(LetterCaseError, match="conversion"):
            get_letter_case(None, CaseComparison.IGNORE)

    def test_none_comparison_raises(self):
        with pytest.raises(LetterCaseError, match="comparison"):
            get_letter_case(CaseConversion.NO, None)

    def test_unknown_name_raises(self):
        with pytest.raises(LetterCaseError, match="Unknown case conversion"):
            get_letter_case("title", CaseComparison.IGNORE)

    def test_concurrent_first_lookups_share_one_instance(self):
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(get_letter_case(CaseConversion.LOWER, CaseComparison.IGNORE))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(result) for result in results}) == 1


# ---------------------------------------------------------------------------
# LetterCase
# ---------------------------------------------------------------------------


class TestLetterCase:
    def test_defaults(self):
        assert TABLE_DEFAULT.conversion is CaseConversion.NO
        assert TABLE_DEFAULT.comparison is CaseComparison.IGNORE
        assert COLUMN_DEFAULT.conversion is CaseConversion.UPPER
        assert PRIMARY_KEY_DEFAULT.comparison is CaseComparison.IGNORE

    def test_convert_and_compare(self):
        letter_case = get_letter_case(CaseConversion.UPPER, CaseComparison.STRICT)
        assert letter_case.convert("name") == "NAME"
        assert not letter_case.is_equal("name", "NAME")
        assert letter_case.compare("NAME", "NAME") == 0

    def test_index_of(self):
        assert COLUMN_DEFAULT.index_of(["ID", "NAME"], "name") == 1
        assert COLUMN_DEFAULT.index_of(["ID", "NAME"], "missing") == -1

    def test_frozen(self):
        with pytest.raises(AttributeError):
            COLUMN_DEFAULT.conversion = CaseConversion.NO  # type: ignore[misc]

    def test_repr(self):
        assert repr(COLUMN_DEFAULT) == "LetterCase(UPPER, IGNORE)"


# ---------------------------------------------------------------------------
# LetterCases bundle and module-level facade
# ---------------------------------------------------------------------------


class TestLetterCases:
    def test_default_bundle(self):
        cases = LetterCases.default()
        assert cases is DEFAULT_LETTER_CASES
        assert cases.table is TABLE_DEFAULT
        assert cases.column is COLUMN_DEFAULT
        assert cases.primary_key is PRIMARY_KEY_DEFAULT

    def test_override_one_kind(self):
        strict = get_letter_case(CaseConversion.NO, CaseComparison.STRICT)
        cases = DEFAULT_LETTER_CASES.override(column=strict)
        assert cases.column is strict
        assert cases.table is TABLE_DEFAULT
        assert DEFAULT_LETTER_CASES.column is COLUMN_DEFAULT

    def test_for_kind_accepts_strings(self):
        assert DEFAULT_LETTER_CASES.for_kind("PRIMARY_KEY") is PRIMARY_KEY_DEFAULT

    def test_from_settings(self):
        settings = load_settings(column_case_conversion="lower", column_case_comparison="strict")
        cases = LetterCases.from_settings(settings)
        assert cases.column is get_letter_case(CaseConversion.LOWER, CaseComparison.STRICT)
        assert cases.table is TABLE_DEFAULT


class TestFacade:
    def test_normalize_column_upper(self):
        assert normalize(IdentifierKind.COLUMN, "Name") == "NAME"

    def test_normalize_table_unchanged(self):
        assert normalize(IdentifierKind.TABLE, "Orders") == "Orders"

    def test_normalize_none(self):
        assert normalize(IdentifierKind.PRIMARY_KEY, None) is None

    def test_identifiers_equal_ignores_case(self):
        assert identifiers_equal(IdentifierKind.TABLE, "ORDERS", "orders")
        assert not identifiers_equal(IdentifierKind.COLUMN, "ID", "IDS")

    def test_strict_bundle(self):
        strict = get_letter_case(CaseConversion.NO, CaseComparison.STRICT)
        cases = LetterCases(table=strict, column=strict, primary_key=strict)
        assert not cases.identifiers_equal(IdentifierKind.TABLE, "ORDERS", "orders")
        assert cases.normalize(IdentifierKind.COLUMN, "Name") == "Name"
