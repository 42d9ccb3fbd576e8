"""Unit tests for snapshot and change serialization."""

from __future__ import annotations

import json
import uuid
from datetime import date, datetime, time
from decimal import Decimal

import pytest

from dbassert.diff import compute_changes
from dbassert.exceptions import SerializationError
from dbassert.lettercase import CaseComparison, CaseConversion, LetterCases, get_letter_case
from dbassert.models import ColumnDescriptor, DataType, Snapshot
from dbassert.serialization import (
    FORMAT_VERSION,
    decode_value,
    deserialize_snapshot,
    encode_value,
    serialize_changes,
    serialize_snapshot,
    snapshot_to_dict,
)

# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


class TestValueEncoding:
    def test_null(self):
        assert encode_value(None) is None
        assert decode_value(None) is None

    def test_typed_values_keep_their_type(self):
        values = [
            b"\x00\xff",
            True,
            "text",
            date(2024, 2, 29),
            time(23, 59, 1),
            datetime(2024, 2, 29, 23, 59, 1, 5),
            uuid.UUID(int=42),
            7,
            Decimal("1.50"),
            0.1,
        ]
        for value in values:
            decoded = decode_value(encode_value(value))
            assert decoded == value
            assert type(decoded) is type(value)

    def test_number_kinds(self):
        assert encode_value(3) == {"type": "NUMBER", "number": "int", "value": "3"}
        assert encode_value(Decimal("2.50")) == {"type": "NUMBER", "number": "decimal", "value": "2.50"}
        assert encode_value(0.5)["number"] == "float"

    def test_bytes_are_base64(self):
        assert encode_value(b"hi") == {"type": "BYTES", "value": "aGk="}

    def test_lists(self):
        assert decode_value(encode_value([1, "a", None])) == [1, "a", None]

    def test_unidentified_becomes_text(self):
        assert decode_value(encode_value(_Opaque())) == "opaque"

    @pytest.mark.parametrize(
        "encoded",
        [
            "raw",
            {"value": 1},
            {"type": "WHAT", "value": 1},
            {"type": "DATE", "value": "not-a-date"},
            {"type": "NUMBER", "number": "decimal", "value": "x"},
            {"type": "BYTES", "value": "!!"},
        ],
    )
    def test_malformed(self, encoded):
        with pytest.raises(SerializationError):
            decode_value(encoded)


class _Opaque:
    def __str__(self) -> str:
        return "opaque"


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


class TestSnapshotSerialization:
    def test_round_trip(self, members_before):
        restored = deserialize_snapshot(serialize_snapshot(members_before))
        assert restored == members_before

    def test_round_trip_keeps_metadata(self):
        strict = get_letter_case(CaseConversion.NO, CaseComparison.STRICT)
        snapshot = Snapshot.from_records(
            "SELECT id FROM t",
            [ColumnDescriptor(name="id", data_type="INTEGER", nullable=False)],
            [(1,)],
            pk_names=["id"],
            data_type=DataType.REQUEST,
            letter_cases=LetterCases(table=strict, column=strict, primary_key=strict),
        )
        restored = deserialize_snapshot(serialize_snapshot(snapshot))
        assert restored.data_type is DataType.REQUEST
        assert restored.columns[0].nullable is False
        assert restored.column_letter_case is strict

    def test_output_is_deterministic(self, members_before):
        text = serialize_snapshot(members_before)
        assert text == serialize_snapshot(members_before)
        assert list(json.loads(text)) == sorted(json.loads(text))

    def test_document_shape(self, members_before):
        document = snapshot_to_dict(members_before)
        assert document["format_version"] == FORMAT_VERSION
        assert document["pk_names"] == ["ID"]
        assert document["rows"][0][0] == {"type": "NUMBER", "number": "int", "value": "1"}
        assert document["letter_cases"]["column"] == {"conversion": "UPPER", "comparison": "IGNORE"}

    def test_missing_letter_cases_use_defaults(self, members_before):
        document = snapshot_to_dict(members_before)
        del document["letter_cases"]
        restored = deserialize_snapshot(json.dumps(document))
        assert restored.letter_cases == LetterCases.default()

    def test_invalid_json(self):
        with pytest.raises(SerializationError, match="Invalid snapshot document"):
            deserialize_snapshot("{not json")

    def test_unsupported_version(self, members_before):
        document = snapshot_to_dict(members_before)
        document["format_version"] = 99
        with pytest.raises(SerializationError, match="Unsupported snapshot format version 99"):
            deserialize_snapshot(json.dumps(document))

    def test_inconsistent_rows(self, members_before):
        document = snapshot_to_dict(members_before)
        document["rows"][0].pop()
        with pytest.raises(SerializationError, match="Invalid snapshot document"):
            deserialize_snapshot(json.dumps(document))

    def test_unknown_letter_case(self, members_before):
        document = snapshot_to_dict(members_before)
        document["letter_cases"]["table"]["conversion"] = "TITLE"
        with pytest.raises(SerializationError):
            deserialize_snapshot(json.dumps(document))


# ---------------------------------------------------------------------------
# Changes
# ---------------------------------------------------------------------------


class TestChangeSerialization:
    def test_changes_document(self, members_before, members_after):
        document = json.loads(serialize_changes(compute_changes(members_before, members_after)))

        assert [c["change_type"] for c in document] == ["MODIFICATION", "DELETION", "CREATION"]
        modification = document[0]
        assert modification["data_name"] == "members"
        assert modification["modified_columns"] == ["FIRSTNAME"]
        assert modification["row_at_end_point"]["FIRSTNAME"] == {"type": "TEXT", "value": "Bono"}
        assert document[1]["row_at_end_point"] is None
        assert document[2]["row_at_start_point"] is None
        assert document[2]["pk_values"] == [{"type": "NUMBER", "number": "int", "value": "3"}]

    def test_empty(self):
        assert serialize_changes([]) == "[]"
