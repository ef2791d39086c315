"""Structured JSON logging.

Uses structlog for structured logging with JSON output.
Every log entry carries the bus name when one is bound.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from annobus.core.config import ObservabilityConfig
from annobus.core.enums import LogFormat


def _add_component(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: add component name."""
    event_dict.setdefault("component", "annobus")
    return event_dict


def setup_logging(config: ObservabilityConfig | None = None) -> None:
    """Configure structured logging from the observability settings.

    ``log_level`` is a stdlib level name; ``log_format`` picks JSON
    output for production or the console renderer for development.
    """
    config = config if config is not None else ObservabilityConfig()
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        _add_component,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if config.log_format == LogFormat.JSON:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )
    # basicConfig is a no-op once the host has configured the root logger
    logging.getLogger("annobus").setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)
