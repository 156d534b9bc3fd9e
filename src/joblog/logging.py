"""
joblog logging - structlog configuration for job lifecycle lines.

The log subscriber produces plain human-readable messages; structlog carries
them to the output with the usual processor chain (timestamp, level, service
metadata) so job lines sit next to the rest of the application's logs.

Examples:
    Development (colored console when attached to a tty):

    >>> from joblog.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", service="worker")
    >>> get_logger("joblog").info("Performed ReportJob (Job ID: 1) from Async(default) in 3.2ms")

    Production (JSON lines):

    >>> configure_logging(level="INFO", json_format=True, service="worker")

Guardrails:
    - Service name stored globally (set once at startup)
    - Auto-detects JSON vs console based on TTY

Tags:
    logging, structlog, observability, joblog
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Store service name for metadata
_SERVICE_NAME = "joblog"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename timestamp and level to their ECS field names."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "joblog",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_format:
        shared_processors.append(_elasticsearch_compatible)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


__all__ = ["configure_logging", "get_logger"]
