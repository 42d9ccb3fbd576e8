"""Logging setup for applications embedding dbassert.

The library itself only creates module loggers; nothing here runs at
import time.  Front ends (the ``dbassert`` CLI, a test suite's
``conftest.py``) call :func:`configure_logging` once.

With ``structured_logging`` enabled each record is emitted as a single
JSON line::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "DEBUG",
        "logger": "dbassert.diff.row_diff",
        "message": "Computed 3 change(s) for 'orders'",
        "exc_info": "Traceback ..."  // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dbassert.config import Settings

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_ROOT_LOGGER = "dbassert"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as a single JSON line."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        data_name = getattr(record, "data_name", None)
        if data_name is not None:
            payload["data_name"] = data_name

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings, *, stream: Any = None) -> logging.Logger:
    """Install a single handler on the ``dbassert`` logger.

    Repeated calls replace the handler rather than stacking new ones.

    Parameters
    ----------
    settings:
        Supplies ``log_level`` and ``structured_logging``.
    stream:
        Destination stream; defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    package_logger = logging.getLogger(_ROOT_LOGGER)
    package_logger.handlers.clear()

    handler = logging.StreamHandler(stream)
    if settings.structured_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if settings.debug else settings.log_level)
    package_logger.propagate = False
    return package_logger
