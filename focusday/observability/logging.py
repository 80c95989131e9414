"""
Structured JSON logging with request and owner ID propagation.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from .context import RequestContext, generate_request_id, get_owner_id, get_request_id

# LogRecord attributes that are not "extra" fields
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Output format:
    {
        "timestamp": "2026-01-15T10:30:00.000Z",
        "level": "INFO",
        "logger": "focusday.focus.pomodoro",
        "message": "Phase complete",
        "request_id": "req-abc123",
        "owner_id": "user-1",
        ...
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            log_obj["request_id"] = request_id
        owner_id = get_owner_id()
        if owner_id:
            log_obj["owner_id"] = owner_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_obj[key] = value

        return json.dumps(log_obj, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable formatter for local development."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        request_id = get_request_id()
        rid_str = f"[{request_id[:12]}] " if request_id else ""
        line = f"{timestamp} [{record.levelname}] {record.name}: {rid_str}{record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format. If None, auto-detect (JSON when stderr is not a TTY).
        log_file: Also write JSON lines to this rotating file.
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())
    root_logger.addHandler(handler)

    if log_file:
        configure_log_rotation(log_file)


def configure_log_rotation(
    log_file: str,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Add a rotating JSON file handler to the root logger."""
    try:
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
    except OSError as e:
        logging.getLogger(__name__).error("Could not configure log rotation: %s", e)
        return
    file_handler.setFormatter(JSONFormatter())
    logging.getLogger().addHandler(file_handler)


class CorrelationIdMiddleware:
    """
    ASGI middleware that scopes every HTTP request in a RequestContext.

    Honours an incoming X-Request-ID header and binds the X-User-Id header
    as the owner for log records.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        owner_id = None
        for key, value in scope.get("headers", []):
            name = key.lower()
            if name == b"x-request-id":
                request_id = value.decode("utf-8", errors="replace")
            elif name == b"x-user-id":
                owner_id = value.decode("utf-8", errors="replace") or None

        with RequestContext(request_id=request_id or generate_request_id(), owner_id=owner_id):
            await self.app(scope, receive, send)
