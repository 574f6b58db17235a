"""Structured logging built on Loguru.

Formatter types:
- **console**: Human-readable, coloured, with request context inline (development)
- **json**: One JSON object per line (self-hosted, containers)
- **gcp**: Google Cloud Logging structured format

Logs emitted through the standard library (uvicorn, starlette, OpenTelemetry)
are routed into Loguru by ``InterceptHandler`` so every line shares a format.
Request-scoped fields such as ``correlation_id`` are bound by the middleware
with ``logger.contextualize`` and rendered by every formatter.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from typing import Any, Final, Protocol, TypeAlias, cast

import orjson
from loguru import logger

from src.core.config import get_settings


class _LoggingState:
    """Tracks whether logging has been configured in this process."""

    def __init__(self) -> None:
        self.configured = False


_state = _LoggingState()


class LogConfigProtocol(Protocol):
    """Protocol for log configuration objects."""

    @property
    def log_level(self) -> str:
        """Logging level."""
        ...

    @property
    def log_formatter_type(self) -> str | None:
        """Log formatter type."""
        ...


class SettingsProtocol(Protocol):
    """Protocol for settings objects that setup_logging can accept."""

    @property
    def debug(self) -> bool:
        """Debug mode flag."""
        ...

    @property
    def log_config(self) -> LogConfigProtocol:
        """Log configuration."""
        ...


CORRELATION_ID_DISPLAY_LENGTH: Final[int] = 8
MAX_FIELD_VALUE_LENGTH: Final[int] = 100

# Shown first, in this order, by the console formatter
PRIORITY_FIELDS: Final[tuple[str, ...]] = (
    "correlation_id",
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_host",
)

GCP_SEVERITY: Final[dict[str, str]] = {
    "TRACE": "DEBUG",
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "SUCCESS": "INFO",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
    "CRITICAL": "CRITICAL",
}


def _escape(value: object) -> str:
    """Escape braces so Loguru does not treat them as format fields."""
    return str(value).replace("{", "{{").replace("}", "}}")


def _format_priority_field(field: str, value: object) -> str:
    if field == "correlation_id":
        value = str(value)[:CORRELATION_ID_DISPLAY_LENGTH]
    elif field == "duration_ms":
        value = f"{value}ms"
    elif field == "status_code":
        colour = {"2": "green", "3": "yellow", "4": "red", "5": "red"}.get(
            str(value)[:1]
        )
        if colour:
            return f"<{colour}>{value}</{colour}>"
    return _escape(value)


def _format_extra_field(key: str, value: object) -> str:
    str_value = str(value)
    if len(str_value) > MAX_FIELD_VALUE_LENGTH:
        str_value = str_value[: MAX_FIELD_VALUE_LENGTH - 3] + "..."
    return f"{_escape(key)}={_escape(str_value)}"


def format_console_with_context(record: dict[str, Any]) -> str:
    """Format a record for the console with its context fields inline.

    Args:
        record: Loguru record to format.

    Returns:
        str: Loguru format string for the record.
    """
    extra = record.get("extra", {})
    parts = [
        f"<green>{record['time'].strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]}</green>",
        f"<level>{record['level'].name: <8}</level>",
        f"<cyan>{record['name']}:{record['function']}:{record['line']}</cyan>",
    ]

    context_parts = [
        f"<yellow>{_format_priority_field(field, extra[field])}</yellow>"
        for field in PRIORITY_FIELDS
        if extra.get(field) is not None
    ]
    context_parts.extend(
        f"<dim>{_format_extra_field(key, value)}</dim>"
        for key, value in extra.items()
        if key not in PRIORITY_FIELDS and not key.startswith("_") and value is not None
    )
    if context_parts:
        parts.append(" ".join(f"[{part}]" for part in context_parts))

    parts.append(_escape(record["message"]))
    if record.get("exception"):
        parts.append("\n{exception}")

    return " | ".join(parts) + "\n"


def _public_extra(record: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in record.get("extra", {}).items() if not k.startswith("_")}


def _exception_info(record: dict[str, Any]) -> dict[str, Any] | None:
    exc = record.get("exception")
    if not exc:
        return None
    return {
        "type": exc.type.__name__ if exc.type else None,
        "value": str(exc.value) if exc.value else None,
    }


def serialize_for_json(record: dict[str, Any]) -> str:
    """Format a record as a generic JSON line.

    Args:
        record: Loguru record to format.

    Returns:
        str: JSON-formatted log entry with newline.
    """
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }
    log_entry.update(_public_extra(record))

    if exception := _exception_info(record):
        log_entry["exception"] = exception

    return orjson.dumps(log_entry, default=str).decode() + "\n"


def serialize_for_gcp(record: dict[str, Any]) -> str:
    """Format a record for GCP Cloud Logging.

    See https://cloud.google.com/logging/docs/structured-logging

    Args:
        record: Loguru record to format.

    Returns:
        str: JSON-formatted log entry for GCP with newline.
    """
    settings = get_settings()
    extra = _public_extra(record)

    labels = {
        "function": record["function"],
        "module": record["module"],
        "line": str(record["line"]),
    }
    if request_id := extra.pop("request_id", None):
        labels["request_id"] = str(request_id)

    log_entry: dict[str, Any] = {
        "severity": GCP_SEVERITY.get(record["level"].name, "INFO"),
        "message": record["message"],
        "timestamp": record["time"].isoformat(),
        "serviceContext": {
            "service": settings.app_name,
            "version": settings.app_version,
        },
        "logging.googleapis.com/labels": labels,
    }
    if correlation_id := extra.pop("correlation_id", None):
        log_entry["logging.googleapis.com/trace"] = correlation_id
    if extra:
        log_entry["jsonPayload"] = extra

    if exception := _exception_info(record):
        log_entry["exception"] = exception
        log_entry["logging.googleapis.com/sourceLocation"] = {
            "file": record["file"].path,
            "line": str(record["line"]),
            "function": record["function"],
        }

    return orjson.dumps(log_entry, default=str).decode() + "\n"


FormatterFunc: TypeAlias = Callable[[dict[str, Any]], str]

LOG_FORMATTERS: dict[str, FormatterFunc | None] = {
    "console": None,
    "json": serialize_for_json,
    "gcp": serialize_for_gcp,
}


class InterceptHandler(logging.Handler):
    """Route standard library log records into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """Forward a log record to Loguru, preserving the caller location.

        Args:
            record: Standard library LogRecord to forward.
        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so Loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        extra: dict[str, Any] = {}
        if record.name == "uvicorn.access" and hasattr(record, "scope"):
            scope = record.scope
            extra["method"] = scope.get("method", "")
            extra["path"] = scope.get("path", "")
            extra["client_host"] = (scope.get("client") or ["unknown"])[0]

        logger.opt(depth=depth, exception=record.exc_info).bind(**extra).log(
            level, record.getMessage()
        )


def detect_environment() -> str:
    """Auto-detect the log formatter from the runtime environment.

    Returns:
        str: Detected formatter type.
    """
    if os.getenv("K_SERVICE"):  # Cloud Run
        return "gcp"
    if os.getenv("WEBSITE_INSTANCE_ID") or os.getenv("AWS_EXECUTION_ENV"):
        return "json"
    return "console"


def setup_logging(settings: SettingsProtocol) -> None:
    """Configure Loguru once per process.

    Args:
        settings: Application settings containing log configuration.
    """
    if _state.configured:
        return

    logger.remove()

    formatter_type = settings.log_config.log_formatter_type or detect_environment()
    formatter = LOG_FORMATTERS.get(formatter_type)

    if formatter is None:
        logger.add(
            sys.stdout,
            format=cast("Any", format_console_with_context),
            level=settings.log_config.log_level,
            enqueue=True,
            colorize=True,
            diagnose=settings.debug,
            backtrace=settings.debug,
        )
    else:
        structured = formatter

        def structured_sink(message: Any) -> None:  # noqa: ANN401 - loguru Message
            sys.stdout.write(structured(message.record))
            sys.stdout.flush()

        logger.add(
            structured_sink,
            level=settings.log_config.log_level,
            enqueue=True,
            diagnose=False,
            backtrace=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = [InterceptHandler()]
        uvicorn_logger.propagate = False

    logger.info(
        "Logging configured with {} formatter",
        formatter_type,
        log_level=settings.log_config.log_level,
    )
    _state.configured = True
