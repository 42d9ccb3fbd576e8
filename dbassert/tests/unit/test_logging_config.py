"""Tests for the JSON log formatter and configure_logging."""

from __future__ import annotations

import io
import json
import logging
import sys

import pytest

from dbassert.config import load_settings
from dbassert.logging_config import JSONFormatter, configure_logging


def _record(msg: str = "message", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="dbassert.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_package_logger():
    package_logger = logging.getLogger("dbassert")
    handlers, level, propagate = list(package_logger.handlers), package_logger.level, package_logger.propagate
    yield package_logger
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate


# ---------------------------------------------------------------------------
# JSONFormatter
# ---------------------------------------------------------------------------


class TestJSONFormatter:
    def test_basic_format(self):
        data = json.loads(JSONFormatter().format(_record("computed")))
        assert data["level"] == "INFO"
        assert data["logger"] == "dbassert.test"
        assert data["message"] == "computed"
        assert "timestamp" in data

    def test_single_line(self):
        assert "\n" not in JSONFormatter().format(_record("line one\nline two"))

    def test_data_name_included(self):
        data = json.loads(JSONFormatter().format(_record(data_name="orders")))
        assert data["data_name"] == "orders"

    def test_data_name_absent(self):
        assert "data_name" not in json.loads(JSONFormatter().format(_record()))

    def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exc_info"]


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_text_output(self, restore_package_logger):
        stream = io.StringIO()
        configure_logging(load_settings(log_level="INFO"), stream=stream)
        logging.getLogger("dbassert.diff.row_diff").info("hello")
        assert "INFO" in stream.getvalue()
        assert "dbassert.diff.row_diff: hello" in stream.getvalue()

    def test_json_output(self, restore_package_logger):
        stream = io.StringIO()
        configure_logging(load_settings(log_level="INFO", structured_logging=True), stream=stream)
        logging.getLogger("dbassert.reader").info("read", extra={"data_name": "orders"})
        data = json.loads(stream.getvalue())
        assert data["message"] == "read"
        assert data["data_name"] == "orders"

    def test_level_filters(self, restore_package_logger):
        stream = io.StringIO()
        configure_logging(load_settings(log_level="WARNING"), stream=stream)
        logging.getLogger("dbassert").info("hidden")
        assert stream.getvalue() == ""

    def test_debug_forces_debug_level(self, restore_package_logger):
        package_logger = configure_logging(load_settings(debug=True), stream=io.StringIO())
        assert package_logger.level == logging.DEBUG

    def test_repeated_calls_replace_handler(self, restore_package_logger):
        settings = load_settings()
        configure_logging(settings, stream=io.StringIO())
        package_logger = configure_logging(settings, stream=io.StringIO())
        assert len(package_logger.handlers) == 1
        assert package_logger.propagate is False
