"""
Log formatting for Runboard.

Every record goes to one stderr handler on the root logger. Request records
written by ``timing.py`` carry the request line plus the acting user
(``user_id``, ``role``), and both formatters render them.

    LOG_FORMAT=json       one JSON object per line (default in production)
    LOG_FORMAT=readable   coloured single line (default in development/testing)
    LOG_LEVEL             DEBUG outside production, INFO in production
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

REQUEST_FIELDS = (
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
    "request_id",
    "user_id",
    "role",
)

QUIET_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine", "alembic")


class JSONFormatter(logging.Formatter):
    """One JSON object per record; request fields only when set."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for key in REQUEST_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger: message [user=<id> <role>] [<n>ms]``"""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:<8}"
        if self.color:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}{self.RESET}"

        line = f"{ts} {level} {record.name}: {record.getMessage()}"
        user_id = getattr(record, "user_id", None)
        if user_id is not None:
            line += f" [user={user_id} {getattr(record, 'role', None) or '?'}]"
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" [{duration:.0f}ms]"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install the root handler for ``app``.

    ``LOG_LEVEL`` and ``LOG_FORMAT`` are read from the app config, then the
    environment. Calling this again (tests build several apps) replaces the
    handler.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = (app.config.get("LOG_LEVEL") or os.getenv("LOG_LEVEL")
                  or ("INFO" if is_prod else "DEBUG")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = (app.config.get("LOG_FORMAT") or os.getenv("LOG_FORMAT")
           or ("json" if is_prod else "readable")).lower()
    if fmt == "json":
        formatter = JSONFormatter()
    else:
        formatter = ReadableFormatter(color=sys.stderr.isatty())

    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s", level_name, fmt)
