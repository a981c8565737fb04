"""Logging configuration for the ISC tools.

Provides two log formats:
- **dev** (default): human-readable, with timestamp/level/module.
- **json**: one JSON object per line, for log aggregation.

Usage (at the CLI entry point)::

    from idealstate.logging_config import setup_logging
    setup_logging()          # dev format
    setup_logging("json")    # JSON format

All modules obtain their logger via::

    import logging
    logger = logging.getLogger(__name__)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line.

    Fields: timestamp, level, logger, message, plus any *extra* keys
    attached to the record.
    """

    _BUILTIN_ATTRS = frozenset({
        "args", "created", "exc_info", "exc_text", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs", "message", "msg",
        "name", "pathname", "process", "processName", "relativeCreated",
        "stack_info", "thread", "threadName", "taskName",
    })

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self._BUILTIN_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


DEV_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEV_DATEFMT = "%H:%M:%S"


def _resolve_level(level: int | str | None, default: str) -> int:
    if level is None:
        level = os.environ.get("LOG_LEVEL", default)
    if isinstance(level, int):
        return level
    resolved = getattr(logging, str(level).upper(), None)
    if not isinstance(resolved, int):
        print(
            f"WARNING: Invalid LOG_LEVEL '{level}', falling back to INFO",
            file=sys.stderr,
        )
        return logging.INFO
    return resolved


def setup_logging(
    fmt: str | None = None,
    level: int | str | None = None,
) -> None:
    """Configure the root logger.

    Parameters
    ----------
    fmt:
        ``"json"`` for JSON lines or ``"dev"`` (default) for a human-readable
        format.  Falls back to the ``LOG_FORMAT`` environment variable.
    level:
        Logging level (name or int).  Falls back to ``LOG_LEVEL``, then
        ``INFO``.
    """
    fmt = fmt or os.environ.get("LOG_FORMAT", "dev")
    resolved = _resolve_level(level, "INFO")

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt=DEV_DATEFMT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(resolved)
