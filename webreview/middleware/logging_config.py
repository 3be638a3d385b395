"""
Logging setup for the review API.

Every record passes through RequestScopeFilter, which copies the current
request id and the caller's organization/user out of flask.g.  Services
therefore log plain messages and still get tenant-scoped output.

Records are rendered as one JSON object per line outside DEBUG/TESTING,
and as a short single line with a ``[org/user]`` suffix otherwise.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

# Who/where a record belongs to; filled from flask.g when the call site
# did not pass them explicitly
SCOPE_FIELDS = ("request_id", "organization_id", "user_id")

# Per-event attributes passed via ``extra=``
EXTRA_FIELDS = (
    "event_type",
    "project_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
)

_SCOPE_SOURCES = {
    "request_id": "request_id",
    "organization_id": "jwt_organization_id",
    "user_id": "jwt_user_id",
}

_QUIET_LOGGERS = ("werkzeug", "urllib3", "sqlalchemy.engine", "flask_limiter")


class RequestScopeFilter(logging.Filter):
    """Stamp request scope onto records emitted while a request is active."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            for field, attr in _SCOPE_SOURCES.items():
                if getattr(record, field, None) is None:
                    setattr(record, field, g.get(attr))
        return True


def _collect(record, fields):
    return {
        key: getattr(record, key)
        for key in fields
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_collect(record, SCOPE_FIELDS))
        entry.update(_collect(record, EXTRA_FIELDS))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{clock} {color}{record.levelname[:4]}{self.RESET} {record.name} {record.getMessage()}"

        org = getattr(record, "organization_id", None)
        if org:
            line += f" [{org}/{getattr(record, 'user_id', None) or '-'}]"
        event = getattr(record, "event_type", None)
        if event:
            line += f" <{event}>"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _resolve_level(app) -> int:
    configured = app.config.get("LOG_LEVEL")
    if configured:
        level = logging.getLevelName(str(configured).upper())
        return level if isinstance(level, int) else logging.INFO
    if app.config.get("TESTING"):
        return logging.WARNING
    return logging.DEBUG if app.config.get("DEBUG") else logging.INFO


def configure_logging(app):
    """Install one stderr handler on the root logger.

    The handler is replaced, not added, so building several apps in one
    process (the test suite does) never duplicates output.
    """
    level = _resolve_level(app)
    readable = app.config.get("DEBUG") or app.config.get("TESTING")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ReadableFormatter() if readable else JSONFormatter())
    handler.addFilter(RequestScopeFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    app.logger.setLevel(level)

    app.logger.debug("Logging at %s (%s)", logging.getLevelName(level),
                     "readable" if readable else "json")
