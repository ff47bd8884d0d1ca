"""
Structured JSON logging for the sensor API.

Every record becomes one JSON line with ``timestamp``, ``level``, ``logger``
and ``message``. Context passed through ``extra=`` is written as top-level
keys, so request logs can carry the query shape without string parsing::

    logger.info("Aggregation served", extra={"op": "mean", "rows": 12})

Records logged with exception info get an ``exc_info`` key holding the
formatted traceback.

CHANGELOG:
- 2026-10-19: Emit extra= context as JSON keys; accept level names
- 2026-10-19: Include formatted traceback for records with exc_info
- 2026-10-12: Initial creation

TODO:
- None
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord has; anything else on a record came from extra=.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_RESERVED_KEYS = ("timestamp", "level", "logger", "message", "exc_info")


class JSONFormatter(logging.Formatter):
    """Formats a record and its ``extra=`` context as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS and key not in _RESERVED_KEYS:
                entry[key] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: int | str = logging.INFO) -> None:
    """Route all logging through a single JSON stream handler on the root logger.

    Args:
        level: Root level as an int or a case-insensitive name such as
            ``"debug"``.
    """
    if isinstance(level, str):
        level = level.upper()

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)
