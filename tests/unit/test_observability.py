"""Tests for dispatch metrics and logging setup."""

from __future__ import annotations

import logging

import pytest
import structlog
from prometheus_client import REGISTRY

from annobus.bus import bus as bus_factory
from annobus.bus.bus import configure_observability, create_event_bus
from annobus.bus.event_bus import EventBus
from annobus.core.config import ObservabilityConfig, Settings
from annobus.core.enums import LogFormat
from annobus.domain.annotations import subscribe
from annobus.observability.logger import get_logger, setup_logging


class Catcher:
    @subscribe
    def on_text(self, event: str) -> None:
        pass


class Exploder:
    @subscribe
    def on_text(self, event: str) -> None:
        raise ValueError("boom")


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class TestMetrics:
    def test_post_and_invocations_counted(self):
        bus = EventBus("metrics-post")
        bus.register(Catcher())
        bus.register(Catcher())

        bus.post("a")
        bus.post("b")

        labels = {"bus": "metrics-post", "event_type": "str"}
        assert _sample("annobus_events_posted_total", **labels) == 2.0
        assert _sample("annobus_handler_invocations_total", **labels) == 4.0

    def test_dead_events_counted(self):
        bus = EventBus("metrics-dead")

        bus.post(3)

        assert _sample(
            "annobus_dead_events_total", bus="metrics-dead", event_type="int",
        ) == 1.0
        # The DeadEvent repost is itself a post
        assert _sample(
            "annobus_events_posted_total", bus="metrics-dead", event_type="DeadEvent",
        ) == 1.0

    def test_failures_counted_by_default_handler(self):
        before = _sample(
            "annobus_handler_failures_total",
            handler="Exploder.on_text", event_type="str",
        )
        bus = EventBus("metrics-fail")
        bus.register(Exploder())

        bus.post("x")

        after = _sample(
            "annobus_handler_failures_total",
            handler="Exploder.on_text", event_type="str",
        )
        assert after == before + 1

    def test_disabled_metrics_record_nothing(self):
        bus = EventBus("metrics-off", metrics_enabled=False)
        bus.register(Catcher())

        bus.post("a")

        assert _sample(
            "annobus_events_posted_total", bus="metrics-off", event_type="str",
        ) == 0.0


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    package = logging.getLogger("annobus")
    handlers, level = root.handlers[:], root.level
    package_level = package.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
    package.setLevel(package_level)


class TestSetupLogging:
    @pytest.mark.parametrize("fmt", ["json", "console"])
    def test_configures_structlog(self, fmt, restore_logging):
        setup_logging(ObservabilityConfig(log_level="DEBUG", log_format=fmt))

        assert structlog.is_configured()
        renderer = structlog.get_config()["processors"][-1]
        expected = (
            structlog.processors.JSONRenderer
            if fmt == "json" else structlog.dev.ConsoleRenderer
        )
        assert isinstance(renderer, expected)

    def test_get_logger_binds(self):
        log = get_logger("annobus.test").bind(bus="x")
        assert log is not None

    def test_level_applied_to_package_loggers(self, restore_logging):
        setup_logging(ObservabilityConfig(log_level="WARNING"))

        assert logging.getLogger("annobus").level == logging.WARNING
        assert not logging.getLogger("annobus.bus.registry").isEnabledFor(logging.INFO)

    def test_defaults_without_config(self, restore_logging):
        setup_logging()

        renderer = structlog.get_config()["processors"][-1]
        assert isinstance(renderer, structlog.processors.JSONRenderer)
        assert logging.getLogger("annobus").level == logging.INFO


# ---------------------------------------------------------------------------
# Settings-driven setup
# ---------------------------------------------------------------------------

@pytest.fixture
def servers(monkeypatch):
    started: list[tuple[int, str]] = []
    monkeypatch.setattr(
        bus_factory, "start_metrics_server",
        lambda port, bus_name: started.append((port, bus_name)),
    )
    return started


class TestConfigureObservability:
    def test_logging_settings_take_effect(self, servers, restore_logging):
        settings = Settings(
            observability={"log_level": "ERROR", "log_format": "console"},
        )

        configure_observability(settings)

        renderer = structlog.get_config()["processors"][-1]
        assert isinstance(renderer, structlog.dev.ConsoleRenderer)
        assert logging.getLogger("annobus").level == logging.ERROR
        assert servers == []

    def test_metrics_server_started_when_port_set(self, servers, restore_logging):
        settings = Settings(bus_name="orders", observability={"metrics_port": 9109})

        configure_observability(settings)

        assert servers == [(9109, "orders")]

    def test_metrics_server_skipped_when_metrics_disabled(
        self, servers, restore_logging,
    ):
        settings = Settings(
            observability={"metrics_enabled": False, "metrics_port": 9109},
        )

        configure_observability(settings)

        assert servers == []

    def test_create_event_bus_opt_in(self, servers, restore_logging):
        settings = Settings(
            bus_name="wired",
            observability={"log_format": LogFormat.CONSOLE, "metrics_port": 9110},
        )

        bus = create_event_bus(settings, setup_observability=True)

        assert bus.name == "wired"
        assert servers == [(9110, "wired")]
        renderer = structlog.get_config()["processors"][-1]
        assert isinstance(renderer, structlog.dev.ConsoleRenderer)

    def test_create_event_bus_leaves_logging_alone_by_default(self, servers):
        structlog.reset_defaults()

        create_event_bus(Settings(observability={"metrics_port": 9111}))

        assert not structlog.is_configured()
        assert servers == []
