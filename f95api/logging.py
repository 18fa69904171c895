"""Logging setup using Loguru.

This module configures structured logging with:
- JSON output for production environments
- Context variables for run tracking (request_id, operation, thread_id)
- Optional rotating, compressed log file

Example:
    >>> from f95api.logging import logger, set_request_context
    >>> set_request_context(operation="fetch_thread", thread_id=42)
    >>> logger.info("Fetching thread")
"""

import json
import sys
import traceback
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from loguru import logger as loguru_logger

from f95api.config import settings

# =============================================================================
# Context Variables
# =============================================================================

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
operation_var: ContextVar[str | None] = ContextVar("operation", default=None)
thread_id_var: ContextVar[int | None] = ContextVar("thread_id", default=None)


# =============================================================================
# Custom JSON Serialization
# =============================================================================


def serialize(record: dict[str, Any]) -> str:
    """Serialize a log record to compact JSON.

    Includes the context variables when they are set, the fields bound with
    ``logger.bind()`` and the exception, if any.

    Args:
        record: Loguru log record dictionary

    Returns:
        JSON string
    """
    subset = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["module"],
        "function": record["function"],
        "line": record["line"],
    }

    if request_id := request_id_var.get():
        subset["request_id"] = request_id
    if operation := operation_var.get():
        subset["operation"] = operation
    if (thread_id := thread_id_var.get()) is not None:
        subset["thread_id"] = thread_id

    subset.update(record["extra"])

    if exc := record["exception"]:
        subset["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value),
            "traceback": traceback.format_exception(exc.type, exc.value, exc.traceback),
        }

    return json.dumps(subset, default=str)


def patching(record: dict[str, Any]) -> None:
    """Attach the serialized JSON to the record (modified in-place)."""
    record["extra"]["serialized"] = serialize(record)


def json_formatter(record: dict[str, Any]) -> str:
    return "{extra[serialized]}\n"


# =============================================================================
# Logger Configuration
# =============================================================================


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Path | None = None,
    colorize: bool = True,
) -> Any:
    """Configure Loguru sinks.

    Removes the default handler, adds a stderr sink (JSON or human-readable)
    and, optionally, a rotating file sink.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Output JSON format
        log_file: Optional file path for log output
        colorize: Enable colored output for human-readable logs

    Returns:
        Configured Loguru logger instance
    """
    loguru_logger.remove()

    # Applies to every module logging through ``from loguru import logger``
    loguru_logger.configure(patcher=patching)

    if json_logs:
        loguru_logger.add(sys.stderr, level=level, format=json_formatter)
    else:
        format_str = (
            "<green>{time:HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
        loguru_logger.add(sys.stderr, level=level, format=format_str, colorize=colorize)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        loguru_logger.add(
            log_file,
            level=level,
            format=json_formatter if json_logs else "{time} | {level} | {message}",
            rotation="50 MB",
            retention="14 days",
            compression="zip",
            enqueue=True,
        )

    return loguru_logger


logger = setup_logging(
    level=settings.log_level,
    json_logs=settings.log_json,
    log_file=settings.log_file,
    colorize=not settings.log_json,
)


# =============================================================================
# Context Helpers
# =============================================================================


def set_request_context(
    request_id: str | None = None,
    operation: str | None = None,
    thread_id: int | None = None,
) -> None:
    """Set context variables for the current async context.

    Args:
        request_id: Unique identifier of the run
        operation: Operation name (e.g., "search", "fetch_thread")
        thread_id: Thread being retrieved
    """
    if request_id is not None:
        request_id_var.set(request_id)
    if operation is not None:
        operation_var.set(operation)
    if thread_id is not None:
        thread_id_var.set(thread_id)


def clear_request_context() -> None:
    """Clear all context variables for the current async context."""
    request_id_var.set(None)
    operation_var.set(None)
    thread_id_var.set(None)


def get_request_context() -> dict[str, Any]:
    """Get current context variable values."""
    return {
        "request_id": request_id_var.get(),
        "operation": operation_var.get(),
        "thread_id": thread_id_var.get(),
    }


__all__ = [
    "logger",
    "request_id_var",
    "operation_var",
    "thread_id_var",
    "set_request_context",
    "clear_request_context",
    "get_request_context",
    "setup_logging",
    "serialize",
]
