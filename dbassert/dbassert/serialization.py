"""Deterministic JSON serialization of snapshots and changes.

Snapshots round-trip through JSON without losing value types: every
non-null value is written as ``{"type": <ValueType>, "value": ...}`` so
that binary values, decimals, dates, times and UUIDs come back as the
same Python types.  Output uses sorted keys and 2-space indentation, so
identical snapshots always produce byte-identical JSON.

Values of unidentified types are written as their ``str()`` and read back
as text, except lists and tuples, which are encoded element by element
and read back as lists.
"""

from __future__ import annotations

import base64
import json
import uuid
from collections.abc import Iterable
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from dbassert.exceptions import LetterCaseError, SerializationError, SnapshotError
from dbassert.lettercase import LetterCase, LetterCases, get_letter_case
from dbassert.models.change import Change
from dbassert.models.snapshot import ColumnDescriptor, DataType, Row, Snapshot
from dbassert.values import ValueType, value_type_of

FORMAT_VERSION = 1


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


def encode_value(value: Any) -> Any:
    """Encode one value as a JSON-compatible, type-tagged structure."""
    if value is None:
        return None
    value_type = value_type_of(value)
    if value_type is ValueType.BYTES:
        return {"type": value_type.value, "value": base64.b64encode(bytes(value)).decode("ascii")}
    if value_type in (ValueType.BOOLEAN, ValueType.TEXT):
        return {"type": value_type.value, "value": value}
    if value_type in (ValueType.DATE, ValueType.TIME, ValueType.DATE_TIME):
        return {"type": value_type.value, "value": value.isoformat()}
    if value_type is ValueType.UUID:
        return {"type": value_type.value, "value": str(value)}
    if value_type is ValueType.NUMBER:
        if isinstance(value, int):
            kind = "int"
        elif isinstance(value, Decimal):
            kind = "decimal"
        else:
            kind = "float"
            value = float(value)
        return {"type": value_type.value, "number": kind, "value": repr(value) if kind == "float" else str(value)}
    if isinstance(value, (list, tuple)):
        return {"type": value_type.value, "items": [encode_value(item) for item in value]}
    return {"type": value_type.value, "value": str(value)}


def decode_value(encoded: Any) -> Any:
    """Decode a structure written by :func:`encode_value`.

    Raises
    ------
    SerializationError
        If the structure is malformed.
    """
    if encoded is None:
        return None
    if not isinstance(encoded, dict) or "type" not in encoded:
        raise SerializationError(f"Malformed value: {encoded!r}")
    try:
        value_type = ValueType(encoded["type"])
        if value_type is ValueType.NOT_IDENTIFIED and "items" in encoded:
            return [decode_value(item) for item in encoded["items"]]
        raw = encoded["value"]
        if value_type is ValueType.BYTES:
            return base64.b64decode(raw, validate=True)
        if value_type is ValueType.DATE:
            return date.fromisoformat(raw)
        if value_type is ValueType.TIME:
            return time.fromisoformat(raw)
        if value_type is ValueType.DATE_TIME:
            return datetime.fromisoformat(raw)
        if value_type is ValueType.UUID:
            return uuid.UUID(raw)
        if value_type is ValueType.NUMBER:
            kind = encoded.get("number", "decimal")
            if kind == "int":
                return int(raw)
            if kind == "float":
                return float(raw)
            return Decimal(raw)
        return raw
    except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
        raise SerializationError(f"Malformed value {encoded!r}: {exc}") from exc


# ---------------------------------------------------------------------------
# Snapshot documents
# ---------------------------------------------------------------------------


class _LetterCaseDocument(BaseModel):
    conversion: str
    comparison: str


class _SnapshotDocument(BaseModel):
    format_version: int = Field(default=FORMAT_VERSION)
    name: str
    data_type: DataType
    columns: list[ColumnDescriptor]
    pk_names: list[str] = Field(default_factory=list)
    rows: list[list[Any]] = Field(default_factory=list)
    letter_cases: dict[str, _LetterCaseDocument] = Field(default_factory=dict)


def _letter_case_document(letter_case: LetterCase) -> dict[str, str]:
    return {"conversion": letter_case.conversion.value, "comparison": letter_case.comparison.value}


def _letter_cases_document(cases: LetterCases) -> dict[str, dict[str, str]]:
    return {
        "table": _letter_case_document(cases.table),
        "column": _letter_case_document(cases.column),
        "primary_key": _letter_case_document(cases.primary_key),
    }


def _letter_cases_from_document(documents: dict[str, _LetterCaseDocument]) -> LetterCases:
    defaults = LetterCases.default()
    resolved = {}
    for kind in ("table", "column", "primary_key"):
        document = documents.get(kind)
        if document is not None:
            resolved[kind] = get_letter_case(document.conversion, document.comparison)
    return defaults.override(**resolved)


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    return {
        "format_version": FORMAT_VERSION,
        "name": snapshot.name,
        "data_type": snapshot.data_type.value,
        "columns": [column.model_dump(mode="json") for column in snapshot.columns],
        "pk_names": list(snapshot.pk_names),
        "rows": [[encode_value(value) for value in row.values] for row in snapshot.rows],
        "letter_cases": _letter_cases_document(snapshot.letter_cases),
    }


def serialize_snapshot(snapshot: Snapshot) -> str:
    """Serialize a snapshot to a deterministic JSON string."""
    return json.dumps(snapshot_to_dict(snapshot), indent=2, sort_keys=True, ensure_ascii=False)


def deserialize_snapshot(text: str) -> Snapshot:
    """Rebuild a snapshot from :func:`serialize_snapshot` output.

    Raises
    ------
    SerializationError
        If the text is not valid JSON, does not describe a snapshot, or
        describes an inconsistent one.
    """
    try:
        document = _SnapshotDocument.model_validate_json(text)
    except ValidationError as exc:
        raise SerializationError(f"Invalid snapshot document: {exc}") from exc
    if document.format_version != FORMAT_VERSION:
        raise SerializationError(f"Unsupported snapshot format version {document.format_version}")

    try:
        cases = _letter_cases_from_document(document.letter_cases)
        columns = tuple(document.columns)
        names = tuple(column.name for column in columns)
        pk_names = tuple(document.pk_names)
        rows = tuple(
            Row(
                columns=names,
                values=tuple(decode_value(value) for value in values),
                pk_names=pk_names,
                column_letter_case=cases.column,
                primary_key_letter_case=cases.primary_key,
            )
            for values in document.rows
        )
        return Snapshot(
            name=document.name,
            data_type=document.data_type,
            columns=columns,
            rows=rows,
            pk_names=pk_names,
            table_letter_case=cases.table,
            column_letter_case=cases.column,
            primary_key_letter_case=cases.primary_key,
        )
    except (LetterCaseError, SnapshotError) as exc:
        raise SerializationError(f"Invalid snapshot document: {exc}") from exc


# ---------------------------------------------------------------------------
# Changes
# ---------------------------------------------------------------------------


def _row_to_dict(row: Row | None) -> dict[str, Any] | None:
    if row is None:
        return None
    return {name: encode_value(value) for name, value in zip(row.columns, row.values, strict=True)}


def change_to_dict(change: Change) -> dict[str, Any]:
    return {
        "change_type": change.change_type.value,
        "data_type": change.data_type.value,
        "data_name": change.data_name,
        "pk_names": list(change.pk_names),
        "pk_values": [encode_value(value) for value in change.pk_values],
        "modified_columns": list(change.modified_column_names),
        "row_at_start_point": _row_to_dict(change.row_at_start_point),
        "row_at_end_point": _row_to_dict(change.row_at_end_point),
    }


def serialize_changes(changes: Iterable[Change]) -> str:
    """Serialize changes to deterministic JSON, in their original order."""
    return json.dumps([change_to_dict(change) for change in changes], indent=2, sort_keys=True, ensure_ascii=False)
