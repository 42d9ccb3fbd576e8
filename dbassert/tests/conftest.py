"""Shared fixtures for the dbassert test suite."""

from __future__ import annotations

from decimal import Decimal

import pytest

from dbassert.models import Snapshot
from dbassert.telemetry import ProfileCollector

MEMBER_COLUMNS = ["ID", "NAME", "FIRSTNAME", "SIZE"]


@pytest.fixture(autouse=True)
def _reset_profile_collector():
    ProfileCollector.reset()
    yield
    ProfileCollector.reset()


@pytest.fixture
def members_before() -> Snapshot:
    return Snapshot.from_records(
        "members",
        MEMBER_COLUMNS,
        [
            (1, "Hewson", "Paul David", Decimal("1.75")),
            (2, "Evans", "David Howell", Decimal("1.77")),
            (4, "Mullen", "Larry", Decimal("1.70")),
        ],
        pk_names=["ID"],
    )


@pytest.fixture
def members_after() -> Snapshot:
    """``members`` after: row 1 modified, row 2 deleted, row 3 created."""
    return Snapshot.from_records(
        "members",
        MEMBER_COLUMNS,
        [
            (1, "Hewson", "Bono", Decimal("1.75")),
            (4, "Mullen", "Larry", Decimal("1.70")),
            (3, "Clayton", "Adam", Decimal("1.78")),
        ],
        pk_names=["ID"],
    )
