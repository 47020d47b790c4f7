"""
Structured Logging
==================

JSON-structured logging with correlation ID tracking.

Provides:
- Structured JSON logs (parseable by log aggregators)
- Correlation ID for request tracing
- Ticket/tenant context for clock transitions
- Performance timing utilities

Usage:
    from deskclock.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Clock paused", extra={"ticket_id": "TKT-000123"})
"""

import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Optional
from contextlib import contextmanager

from pythonjsonlogger import jsonlogger


# Fields lifted from LogRecord attributes into every JSON line when present.
_CONTEXT_FIELDS = ("correlation_id", "tenant_id", "ticket_id")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that adds a UTC timestamp, the service environment
    and any ticket/tenant/correlation context attached to the record.
    """

    def __init__(self, *args: Any, environment: str = "unknown", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                log_record[name] = getattr(record, name)

        log_record["environment"] = self.environment

        # Datetimes passed through `extra` are rendered as ISO strings
        for key, value in list(log_record.items()):
            if isinstance(value, datetime):
                log_record[key] = value.isoformat()


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
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            environment=environment,
        )
    )
    root_logger.addHandler(handler)

    # Silence noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("watchdog").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


def get_context_logger(
    name: str,
    correlation_id: Optional[str] = None,
    **context: Any,
) -> logging.Logger | logging.LoggerAdapter:
    """
    Get a logger that stamps every record with the given context.

    Args:
        name: Logger name
        correlation_id: Request correlation ID
        **context: Extra fields such as ticket_id or tenant_id

    Returns:
        The plain logger when no context is given, otherwise a LoggerAdapter
    """
    logger = get_logger(name)
    if correlation_id:
        context["correlation_id"] = correlation_id
    if context:
        return logging.LoggerAdapter(logger, context)
    return logger


@contextmanager
def log_latency(logger: logging.Logger, operation: str, **extra_context: Any):
    """
    Context manager for measuring and logging operation latency.

    Usage:
        with log_latency(logger, "compliance_report", tenant_id=tenant_id):
            report = await service.report(tenant_id)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{operation} completed",
            extra={
                "operation": operation,
                "latency_ms": round(latency_ms, 2),
                **extra_context,
            },
        )
