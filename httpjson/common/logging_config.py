"""
Structured JSON logging with invocation IDs and operation timing.

Provides:
- JSON format for log aggregation
- Invocation correlation IDs (one per relation instance)
- Performance tracking for fetch, inference and scan
"""

import logging
import json
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional
from datetime import datetime, timezone

# Context variable for the current relation invocation
invocation_id_ctx: ContextVar[Optional[str]] = ContextVar(
    "invocation_id", default=None)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in JSON format with standardized fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        invocation_id = get_invocation_id()
        if invocation_id:
            log_data["invocation_id"] = invocation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Structured fields passed via extra={"extra_fields": {...}}
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class PerformanceTracker:
    """
    Context manager for tracking operation performance.

    Usage:
        with PerformanceTracker("fetch", logger, url=url):
            ...
    """

    def __init__(
        self,
        operation: str,
        logger: logging.Logger,
        log_level: int = logging.INFO,
        **extra_fields,
    ):
        self.operation = operation
        self.logger = logger
        self.log_level = log_level
        self.extra_fields = extra_fields
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(
            f"Starting operation: {self.operation}",
            extra={"extra_fields": {"operation": self.operation, **self.extra_fields}},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = round((time.perf_counter() - self.start_time) * 1000, 2)
        extra = {
            "operation": self.operation,
            "duration_ms": self.duration_ms,
            **self.extra_fields,
        }

        if exc_type:
            extra["error"] = str(exc_val)
            extra["error_type"] = exc_type.__name__
            self.logger.error(
                f"Operation failed: {self.operation}",
                extra={"extra_fields": extra},
            )
        else:
            self.logger.log(
                self.log_level,
                f"Operation completed: {self.operation}",
                extra={"extra_fields": extra},
            )
        return False


def setup_logging(log_level: str = "INFO", json_format: bool = True):
    """
    Configure application logging.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting if True, standard format if False
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, log_level.upper()))

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_invocation_id() -> Optional[str]:
    """Get current invocation ID from context."""
    return invocation_id_ctx.get()


@contextmanager
def invocation_scope(invocation_id: str) -> Iterator[str]:
    """Bind ``invocation_id`` to log records emitted inside the block."""
    token = invocation_id_ctx.set(invocation_id)
    try:
        yield invocation_id
    finally:
        invocation_id_ctx.reset(token)
