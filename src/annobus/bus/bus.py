"""Event bus factory.

Creates an ``EventBus`` configured from ``Settings``, and applies the
process-wide logging and metrics settings on request.
"""

from __future__ import annotations

from annobus.bus.event_bus import EventBus
from annobus.core.config import Settings
from annobus.core.enums import ExceptionPolicy
from annobus.core.interfaces import IExceptionHandler
from annobus.handlers.exceptions import (
    LoggingExceptionHandler,
    RecordingExceptionHandler,
)
from annobus.observability.logger import setup_logging
from annobus.observability.metrics import start_metrics_server


def configure_observability(settings: Settings) -> None:
    """Apply ``settings.observability`` to this process.

    Configures structlog and, when metrics are enabled and a
    ``metrics_port`` is set, starts the Prometheus exporter.  Both are
    process-wide; call this once at startup.
    """
    observability = settings.observability
    setup_logging(observability)
    if observability.metrics_enabled and observability.metrics_port is not None:
        start_metrics_server(observability.metrics_port, settings.bus_name)


def create_event_bus(
    settings: Settings | None = None,
    *,
    exception_handler: IExceptionHandler | None = None,
    setup_observability: bool = False,
) -> EventBus:
    """Create an event bus for the given settings.

    - ExceptionPolicy.LOG: failures are logged (default)
    - ExceptionPolicy.RECORD: failures are also kept on a
      ``RecordingExceptionHandler``, reachable as ``bus.exception_handler``

    Args:
        settings: Bus settings; defaults to ``Settings()`` (env vars apply).
        exception_handler: Overrides the policy-selected handler.
        setup_observability: Also run ``configure_observability(settings)``.
    """
    settings = settings if settings is not None else Settings()
    metrics_enabled = settings.observability.metrics_enabled

    if setup_observability:
        configure_observability(settings)

    if exception_handler is None:
        logging_handler = LoggingExceptionHandler(metrics_enabled=metrics_enabled)
        if settings.exception_policy == ExceptionPolicy.RECORD:
            exception_handler = RecordingExceptionHandler(logging_handler)
        else:
            exception_handler = logging_handler

    return EventBus(
        settings.bus_name,
        exception_handler=exception_handler,
        route_object_type=settings.dispatch.route_object_type,
        dead_events=settings.dispatch.dead_events,
        metrics_enabled=metrics_enabled,
    )
