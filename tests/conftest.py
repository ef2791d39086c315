"""Shared fixtures for the annobus test suite."""

from __future__ import annotations

import pytest

from annobus.bus.event_bus import EventBus
from annobus.handlers.exceptions import RecordingExceptionHandler


# ---------------------------------------------------------------------------
# Exception handling
# ---------------------------------------------------------------------------

@pytest.fixture
def recorder() -> RecordingExceptionHandler:
    """Recording handler that still logs through the default handler."""
    return RecordingExceptionHandler()


# ---------------------------------------------------------------------------
# Buses
# ---------------------------------------------------------------------------

@pytest.fixture
def bus(recorder: RecordingExceptionHandler) -> EventBus:
    """Bus with default routing whose failures land on ``recorder``."""
    return EventBus("test", exception_handler=recorder, metrics_enabled=False)


@pytest.fixture
def object_bus(recorder: RecordingExceptionHandler) -> EventBus:
    """Bus that routes every event to ``object`` handlers too."""
    return EventBus(
        "test-object",
        exception_handler=recorder,
        route_object_type=True,
        metrics_enabled=False,
    )
