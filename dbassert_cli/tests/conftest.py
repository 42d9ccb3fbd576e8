"""Shared fixtures for CLI tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
import sqlalchemy as sa

from dbassert.models import Snapshot
from dbassert.serialization import serialize_snapshot
from dbassert.telemetry import ProfileCollector
from dbassert_cli import app as cli_app


@pytest.fixture(autouse=True)
def _isolate_global_state():
    """Undo what the CLI callback configures on the ``dbassert`` logger and the profiler."""
    package_logger = logging.getLogger("dbassert")
    handlers, level, propagate = list(package_logger.handlers), package_logger.level, package_logger.propagate
    ProfileCollector.reset()
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate
    ProfileCollector.reset()


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    """A SQLite file database with a ``members`` table."""
    url = f"sqlite:///{tmp_path / 'members.sqlite'}"
    engine = sa.create_engine(url)
    with engine.begin() as conn:
        conn.execute(sa.text("CREATE TABLE members (id INTEGER PRIMARY KEY, name VARCHAR(50), firstname VARCHAR(50))"))
        conn.execute(sa.text("INSERT INTO members VALUES (1, 'Hewson', 'Paul David'), (2, 'Evans', 'David')"))
    engine.dispose()
    return url


@pytest.fixture
def run_sql():
    """Run one statement against a database URL and commit it."""

    def _run(url: str, sql: str) -> None:
        engine = sa.create_engine(url)
        with engine.begin() as conn:
            conn.execute(sa.text(sql))
        engine.dispose()

    return _run


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch):
    """Render Rich output at full width so table cells are not wrapped."""
    monkeypatch.setattr(cli_app.console, "width", 200)


@pytest.fixture
def members_files(tmp_path) -> tuple[Path, Path]:
    """Two snapshot files of ``members``: row 1 modified between them."""
    columns = ["ID", "NAME", "FIRSTNAME"]
    before = Snapshot.from_records(
        "members", columns, [(1, "Hewson", "Paul David"), (2, "Evans", "David")], pk_names=["ID"]
    )
    after = Snapshot.from_records("members", columns, [(1, "Hewson", "Bono"), (2, "Evans", "David")], pk_names=["ID"])
    before_path = tmp_path / "before.json"
    after_path = tmp_path / "after.json"
    before_path.write_text(serialize_snapshot(before), encoding="utf-8")
    after_path.write_text(serialize_snapshot(after), encoding="utf-8")
    return before_path, after_path
