"""Structured logging for the Decision Memory API.

- JSON log lines in production, a readable single-line format in development
- request context (request_id, user_id) carried in ContextVars
- ``get_logger(__name__)`` for every module
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)

# LogRecord attributes that are not user supplied ``extra`` fields
_STANDARD_ATTRS = frozenset(
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
        "taskName",
        "message",
        "service",
    }
)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return request_id_var.get()


def get_user_id() -> str | None:
    """Get the current (sanitized) user ID from context."""
    return user_id_var.get()


def set_request_context(request_id: str | None = None, user_id: str | None = None):
    """Set request context variables. ``None`` leaves a value untouched."""
    if request_id is not None:
        request_id_var.set(request_id)
    if user_id is not None:
        user_id_var.set(user_id)


def clear_request_context():
    """Clear all request context variables."""
    request_id_var.set(None)
    user_id_var.set(None)


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    {"timestamp": "...", "level": "INFO", "logger": "services.mutations",
     "message": "...", "service": "decision-memory-api",
     "request_id": "...", "user_id": "h:1a2b3c4d", "extra": {...}}
    """

    def __init__(self, service_name: str = "decision-memory-api"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id
        user_id = get_user_id()
        if user_id:
            log_data["user_id"] = user_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
            log_data["exception_type"] = (
                record.exc_info[0].__name__ if record.exc_info[0] else None
            )

        # Fields passed as logger.info("msg", extra={...})
        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """2026-01-29 12:34:56.789 | INFO     | services.mutations | [abc12345] message"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        level = record.levelname.ljust(8)

        request_id = get_request_id()
        prefix = f"[{request_id[:8]}] " if request_id else ""

        formatted = f"{timestamp} | {level} | {record.name} | {prefix}{record.getMessage()}"
        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"
        return formatted


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service_name: str = "decision-memory-api",
):
    """Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Force JSON output. ``None`` picks JSON unless DEBUG is set.
        service_name: Value of the ``service`` field in JSON output
    """
    if json_format is None:
        debug_mode = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")
        json_format = not debug_mode

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JSONFormatter(service_name=service_name))
    else:
        handler.setFormatter(HumanReadableFormatter())
    root_logger.addHandler(handler)

    for noisy in ("asyncio", "sqlalchemy.engine", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the module, configuring logging on first use."""
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        configure_logging()
    return logger
