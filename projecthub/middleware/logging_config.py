"""
Logging setup for ProjectHub.

Development and tests get one colored line per record with the request and
board context appended (``user=... project=... 12ms``). Production gets one
JSON object per line for the log aggregator. ``LOG_LEVEL`` overrides the
default level (DEBUG outside production, INFO in production).

Context travels through ``extra=``:

    logger.info("Order persisted", extra={"user_id": uid, "project_count": 7})
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# extra= keys surfaced by both formatters, in display order
CONTEXT_FIELDS = (
    "request_id",
    "method",
    "path",
    "status",
    "user_id",
    "project_id",
    "project_count",
    "generation",
    "event_type",
    "remote_addr",
    "duration_ms",
)

_NOISY_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine", "asyncio")


def _context(record: logging.LogRecord) -> dict:
    return {
        key: getattr(record, key)
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line records for a terminal."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    SHORT_NAMES = {"user_id": "user", "project_id": "project", "request_id": "req"}

    def format(self, record: logging.LogRecord) -> str:
        ctx = _context(record)
        duration = ctx.pop("duration_ms", None)
        parts = [f"{self.SHORT_NAMES.get(k, k)}={v}" for k, v in ctx.items()
                 if k in ("user_id", "project_id", "project_count", "generation")]
        if duration is not None:
            parts.append(f"{duration:.0f}ms")

        color = self.LEVEL_COLORS.get(record.levelname, "")
        when = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}{when} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"
        if parts:
            line += "  [" + " ".join(parts) + "]"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install the root handler for ``app``'s environment.

    Safe to call once per created app: the root handlers are replaced, not
    appended to.
    """
    testing = app.config.get("TESTING", False)
    production = not app.config.get("DEBUG", False) and not testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if production else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if production else ConsoleFormatter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not testing:
        app.logger.info("Logging configured (level=%s, format=%s)",
                        level_name, "json" if production else "console")
