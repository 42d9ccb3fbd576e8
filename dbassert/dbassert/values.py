"""Value typing and value-level equality for snapshot data.

Values fetched from a database arrive as plain Python objects (``int``,
``Decimal``, ``bytes``, ``datetime`` ...).  Comparing them with ``==``
alone is not enough: ``True == 1`` holds in Python but a boolean column
never equals a numeric one, and a ``DATE`` value must match a
``TIMESTAMP`` at midnight of the same day.

:func:`comparison_key` maps every value onto a hashable, type-tagged
canonical form.  Two values are equal exactly when their keys are equal,
which lets the diff engine index rows by primary-key tuples in a plain
``dict`` while keeping value semantics:

* numbers compare by magnitude (``Decimal("1.50") == 1.5``),
* booleans only equal booleans,
* text compares exactly (identifier letter-case rules never apply),
* bytes compare byte-for-byte,
* a ``date`` equals a ``datetime`` at midnight of the same day,
* ``None`` equals ``None`` and nothing else.
"""

from __future__ import annotations

import math
import numbers
import uuid
from collections.abc import Hashable
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any


class ValueType(str, Enum):
    """Category of a value, derived from its Python type."""

    BYTES = "BYTES"
    BOOLEAN = "BOOLEAN"
    TEXT = "TEXT"
    DATE = "DATE"
    TIME = "TIME"
    DATE_TIME = "DATE_TIME"
    UUID = "UUID"
    NUMBER = "NUMBER"
    NOT_IDENTIFIED = "NOT_IDENTIFIED"


def value_type_of(value: Any) -> ValueType:
    """Return the :class:`ValueType` of *value*.  ``None`` is ``NOT_IDENTIFIED``."""
    if value is None:
        return ValueType.NOT_IDENTIFIED
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueType.BYTES
    # bool before NUMBER: bool is an int subclass.
    if isinstance(value, bool):
        return ValueType.BOOLEAN
    if isinstance(value, str):
        return ValueType.TEXT
    # datetime before DATE: datetime is a date subclass.
    if isinstance(value, datetime):
        return ValueType.DATE_TIME
    if isinstance(value, date):
        return ValueType.DATE
    if isinstance(value, time):
        return ValueType.TIME
    if isinstance(value, uuid.UUID):
        return ValueType.UUID
    if isinstance(value, (numbers.Real, Decimal)):
        return ValueType.NUMBER
    return ValueType.NOT_IDENTIFIED


def value_type_representation(value: Any) -> str:
    """Return the type label used in rendered tables, e.g. ``"NUMBER"``.

    Unidentified non-null values also carry their class name:
    ``"NOT_IDENTIFIED : list"``.
    """
    value_type = value_type_of(value)
    if value is None or value_type is not ValueType.NOT_IDENTIFIED:
        return value_type.value
    return f"{value_type.value} : {type(value).__name__}"


def _number_key(value: Any) -> Hashable:
    if isinstance(value, Decimal):
        if value.is_nan():
            return "NaN"
        return value
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        # Shortest repr, so 0.1 matches Decimal("0.1").
        return Decimal(repr(value))
    return value


def comparison_key(value: Any) -> Hashable:
    """Return the hashable, type-tagged canonical form of *value*."""
    value_type = value_type_of(value)

    if value is None:
        return ("NULL",)
    if value_type is ValueType.BYTES:
        return (ValueType.BYTES.value, bytes(value))
    if value_type is ValueType.DATE:
        return (ValueType.DATE_TIME.value, datetime.combine(value, time()))
    if value_type is ValueType.NUMBER:
        return (ValueType.NUMBER.value, _number_key(value))
    if value_type is not ValueType.NOT_IDENTIFIED:
        return (value_type.value, value)

    if isinstance(value, (list, tuple)):
        return ("ARRAY", tuple(comparison_key(item) for item in value))
    try:
        hash(value)
    except TypeError:
        return (ValueType.NOT_IDENTIFIED.value, type(value).__name__, repr(value))
    return (ValueType.NOT_IDENTIFIED.value, value)


def values_equal(first: Any, second: Any) -> bool:
    """Return ``True`` if two values are equal under their value types."""
    return comparison_key(first) == comparison_key(second)


def key_tuple(values: tuple[Any, ...] | list[Any]) -> tuple[Hashable, ...]:
    """Return the comparison keys of a tuple of values, element-wise."""
    return tuple(comparison_key(value) for value in values)


def format_value(value: Any) -> str:
    """Return the text shown for *value* in rendered tables and messages."""
    if value is None:
        return "null"
    value_type = value_type_of(value)
    if value_type is ValueType.BYTES:
        return "..."
    if value_type is ValueType.BOOLEAN:
        return "true" if value else "false"
    if value_type in (ValueType.DATE, ValueType.DATE_TIME, ValueType.TIME):
        return value.isoformat()
    return str(value)
