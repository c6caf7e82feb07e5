"""
Structured Logging
==================

JSON-structured logging for the document store bootstrap.

Provides:
- Structured JSON logs (parseable by log aggregators)
- Redaction of passwords and key material
- Contextual loggers for modules
- Latency timing for blocking calls such as client initialization

Usage:
    from docstore.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Document store initialized", extra={"database": "orders"})
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, List
from urllib.parse import urlsplit, urlunsplit

from pythonjsonlogger import jsonlogger

REDACTED = "***REDACTED***"
_SENSITIVE_MARKERS = ("password", "secret", "private_key", "api_key")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    Custom JSON formatter with additional fields.

    Adds:
    - timestamp in ISO format
    - environment name
    - redaction of sensitive values
    """

    def __init__(self, *args: Any, environment: str = "unknown", **kwargs: Any):
        self.environment = environment
        super().__init__(*args, **kwargs)

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        log_record["environment"] = getattr(record, "environment", self.environment)

        for key, value in list(log_record.items()):
            if value is not None and is_sensitive_key(key):
                log_record[key] = REDACTED


def is_sensitive_key(key: str) -> bool:
    """Whether a log field name looks like it holds a secret."""
    lowered = key.lower()
    return any(marker in lowered for marker in _SENSITIVE_MARKERS)


def redact_url(url: str) -> str:
    """
    URL with its ``user:password@`` part masked.

    ``mongodb://admin:pw@db:27017/?replicaSet=rs0`` becomes
    ``mongodb://***REDACTED***@db:27017/?replicaSet=rs0``. URLs without
    credentials are returned unchanged.
    """
    parts = urlsplit(url)
    if "@" not in parts.netloc:
        return url
    hosts = parts.netloc.rpartition("@")[2]
    return urlunsplit(parts._replace(netloc=f"{REDACTED}@{hosts}"))


def redact_urls(urls: Iterable[str]) -> List[str]:
    return [redact_url(url) for url in urls]


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
) -> None:
    """
    Configure structured JSON logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: Environment name for log context
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    formatter = CustomJsonFormatter(
        fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        environment=environment,
    )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # The driver logs every heartbeat at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        logging.Logger: Configured logger instance
    """
    return logging.getLogger(name)


@contextmanager
def log_latency(logger: logging.Logger, operation: str, **extra_context: Any):
    """
    Context manager for measuring and logging operation latency.

    Logs ``"{operation} completed"`` with ``status="ok"`` on success, or
    ``"{operation} failed"`` at WARNING with ``status="failed"`` and the
    error type when the block raises. The exception is re-raised.

    Usage:
        with log_latency(logger, "document_store_initialize", database="orders"):
            store.initialize()

    Args:
        logger: Logger instance
        operation: Operation name for logging
        **extra_context: Additional context to include in log
    """
    start = time.perf_counter()
    try:
        yield
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.warning(
            f"{operation} failed",
            extra={
                "operation": operation,
                "status": "failed",
                "error_type": type(e).__name__,
                "latency_ms": round(latency_ms, 2),
                **extra_context,
            },
        )
        raise

    latency_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"{operation} completed",
        extra={
            "operation": operation,
            "status": "ok",
            "latency_ms": round(latency_ms, 2),
            **extra_context,
        },
    )
