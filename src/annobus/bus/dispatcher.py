"""Synchronous fan-out of posted events to matching handlers."""

from __future__ import annotations

import logging
from typing import Any

from annobus.bus.registry import SubscriptionRegistry
from annobus.domain.events import DeadEvent
from annobus.observability import metrics

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes each posted event to every handler in its dispatch closure.

    Stateless between calls: each ``post`` resolves handlers, invokes
    them, and, if none matched, reposts the event once as a
    ``DeadEvent``.  A ``DeadEvent`` nobody handles is dropped.

    Parameters
    ----------
    registry
        Source of handler sets.
    name
        Bus name used in metric labels.
    dead_events
        When ``False``, unmatched events are dropped without wrapping.
    metrics_enabled
        Emit Prometheus counters.
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        *,
        name: str = "default",
        dead_events: bool = True,
        metrics_enabled: bool = True,
    ) -> None:
        self._registry = registry
        self._name = name
        self._dead_events = dead_events
        self._metrics_enabled = metrics_enabled

    def post(self, event: Any) -> None:
        """Deliver *event* to every matching handler before returning.

        Handler exceptions never reach the caller; they go to each
        wrapper's exception handler.
        """
        event_type = type(event)
        type_name = event_type.__name__
        if self._metrics_enabled:
            metrics.record_post(self._name, type_name)

        handlers = self._registry.handlers_for(event_type)
        if handlers:
            for handler in handlers:
                handler.invoke(event)
            if self._metrics_enabled:
                metrics.record_invocations(self._name, type_name, len(handlers))
            return

        if isinstance(event, DeadEvent):
            logger.debug(
                "Dropping unhandled DeadEvent for %s",
                type(event.event).__name__,
            )
            return

        if self._metrics_enabled:
            metrics.record_dead_event(self._name, type_name)
        if not self._dead_events:
            logger.debug("No handlers for %s; dropped", type_name)
            return

        logger.debug("No handlers for %s; posting DeadEvent", type_name)
        self.post(DeadEvent(event))
