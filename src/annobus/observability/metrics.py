"""Prometheus metrics for dispatch.

Counters are process-wide and labelled by bus name so several buses
can share one registry.
"""

from __future__ import annotations

from prometheus_client import Counter, Info, start_http_server

BUS_INFO = Info("annobus", "Event bus information")

EVENTS_POSTED = Counter(
    "annobus_events_posted_total",
    "Events posted to a bus",
    ["bus", "event_type"],
)

HANDLER_INVOCATIONS = Counter(
    "annobus_handler_invocations_total",
    "Handler invocations attempted during dispatch",
    ["bus", "event_type"],
)

HANDLER_FAILURES = Counter(
    "annobus_handler_failures_total",
    "Handler invocations that raised",
    ["handler", "event_type"],
)

DEAD_EVENTS = Counter(
    "annobus_dead_events_total",
    "Events posted with no matching handler",
    ["bus", "event_type"],
)


def start_metrics_server(port: int = 9090, bus_name: str = "default") -> None:
    """Start Prometheus metrics HTTP server in a background thread."""
    BUS_INFO.info({
        "version": "0.1.0",
        "bus": bus_name,
    })
    start_http_server(port)


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------


def record_post(bus: str, event_type: str) -> None:
    EVENTS_POSTED.labels(bus=bus, event_type=event_type).inc()


def record_invocations(bus: str, event_type: str, count: int) -> None:
    HANDLER_INVOCATIONS.labels(bus=bus, event_type=event_type).inc(count)


def record_handler_failure(handler: str, event_type: str) -> None:
    HANDLER_FAILURES.labels(handler=handler, event_type=event_type).inc()


def record_dead_event(bus: str, event_type: str) -> None:
    DEAD_EVENTS.labels(bus=bus, event_type=event_type).inc()
