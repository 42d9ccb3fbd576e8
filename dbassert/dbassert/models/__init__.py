"""Domain models for dbassert."""

from dbassert.models.change import Change, ChangeType
from dbassert.models.snapshot import ColumnDescriptor, ColumnSlice, DataType, Row, Snapshot

__all__ = [
    "Change",
    "ChangeType",
    "ColumnDescriptor",
    "ColumnSlice",
    "DataType",
    "Row",
    "Snapshot",
]
