"""Shared machinery of the assertion classes: description, failure, counts."""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable
from typing import Any, NoReturn, TypeVar

from dbassert.exceptions import DbAssertionError
from dbassert.values import format_value, values_equal

logger = logging.getLogger(__name__)

A = TypeVar("A", bound="AbstractAssert")

# comparison -> (predicate, wording)
_COMPARISONS: dict[str, tuple[Callable[[Any, Any], bool], str]] = {
    "==": (operator.eq, "to be"),
    ">": (operator.gt, "to be greater than"),
    "<": (operator.lt, "to be less than"),
    ">=": (operator.ge, "to be greater than or equal to"),
    "<=": (operator.le, "to be less than or equal to"),
}


class AbstractAssert:
    """Base of every assertion: holds the description used in failure messages."""

    def __init__(self, description: str) -> None:
        self._description = description

    @property
    def description(self) -> str:
        return self._description

    def as_(self: A, description: str) -> A:
        """Replace the description shown between brackets in failure messages."""
        self._description = description
        return self

    def _fail(self, message: str) -> NoReturn:
        logger.debug("Assertion failed on %s", self._description)
        raise DbAssertionError(f"[{self._description}]\n{message}")

    def _check_count(self, actual: int, expected: int, comparison: str, what: str) -> None:
        predicate, wording = _COMPARISONS[comparison]
        if not predicate(actual, expected):
            self._fail(f"Expecting {what} {wording}:\n  <{expected}>\nbut was:\n  <{actual}>")

    def _check_values(self, actual: tuple[Any, ...], expected: tuple[Any, ...], what: str) -> None:
        if len(actual) != len(expected):
            self._fail(f"Expecting {what} to have {len(expected)} value(s) but it has {len(actual)}")
        for index, (value, wanted) in enumerate(zip(actual, expected, strict=True)):
            if not values_equal(value, wanted):
                self._fail(
                    f"Expecting that the value at index {index} of {what}:\n  <{format_value(value)}>\n"
                    f"to be:\n  <{format_value(wanted)}>"
                )

    def _next_position(self, cursors: dict[Any, int], key: Any, size: int, index: int | None) -> int:
        """Move the navigation cursor *key* to *index*, or one step forward when omitted."""
        if index is None:
            index = cursors.get(key, -1) + 1
        if not 0 <= index < size:
            self._fail(f"Index {index} out of the limits [0, {size}[")
        cursors[key] = index
        return index
