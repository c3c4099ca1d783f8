"""
Logging configuration.

Production writes one JSON object per line; development and tests use a
short colored line. Both carry the request id, and the JSON output adds
the caller and any submission fields passed with ``extra={...}``:

    logger.info("Created submission %s", no,
                extra={"submission_id": s.id, "submission_no": no})
"""

import json
import logging
import sys
from datetime import datetime, timezone

from flask import g, has_app_context

# Fields copied from ``extra={...}`` into the JSON document.
_EXTRA_FIELDS = (
    "request_id",
    "user_id",
    "role",
    "submission_id",
    "submission_no",
    "event_type",
    "method",
    "path",
    "status",
    "duration_ms",
)


class RequestContextFilter(logging.Filter):
    """Stamp every record with the current request id (``-`` outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = g.get("request_id", "-") if has_app_context() else "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON document per record for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Colored single-line formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "submission_no", None) or getattr(record, "submission_id", None)
        tag_str = f" <{tag}>" if tag else ""
        line = (
            f"{color}{ts} {record.levelname:<8}{self.RESET} "
            f"[{getattr(record, 'request_id', '-')}] {record.name}: {record.getMessage()}{tag_str}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """
    Install one stderr handler on the root logger.

    Format is JSON unless DEBUG or TESTING is on. LOG_LEVEL overrides the
    default level (INFO in production, DEBUG otherwise).
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = (app.config.get("LOG_LEVEL") or ("INFO" if is_prod else "DEBUG")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
    handler.addFilter(RequestContextFilter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("werkzeug", "sqlalchemy.engine", "alembic"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s", level_name, "json" if is_prod else "readable")
