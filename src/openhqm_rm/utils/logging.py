"""
Structured logging configuration using structlog.

JSON output (production):
{
    "ts": "2026-01-01T12:00:00.123456Z",
    "level": "info",
    "service": "openhqm-rm",
    "event": "Simulation completed",
    ...additional context...
}
"""

import logging
import sys
from typing import Any

import structlog

SERVICE_NAME = "openhqm-rm"


def add_service_name(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Add service name to all log entries."""
    event_dict["service"] = SERVICE_NAME
    return event_dict


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog and standard library logging.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ...)
        log_format: "json" for machine-readable output, "text" for console output
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        add_service_name,
        structlog.processors.TimeStamper(fmt="iso", key="ts"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
