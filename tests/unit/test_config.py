"""Test Settings loading and the bus factory."""

import pytest

from annobus.bus.bus import create_event_bus
from annobus.core.config import Settings, load_settings
from annobus.core.enums import ExceptionPolicy, LogFormat
from annobus.core.errors import SettingsError
from annobus.domain.annotations import subscribe
from annobus.handlers.exceptions import (
    LoggingExceptionHandler,
    RecordingExceptionHandler,
)


class Everything:
    def __init__(self) -> None:
        self.events: list[object] = []

    @subscribe
    def on_any(self, event: object) -> None:
        self.events.append(event)


class TestSettingsDefaults:
    def test_default_settings(self):
        settings = Settings()
        assert settings.bus_name == "default"
        assert settings.exception_policy == ExceptionPolicy.LOG

    def test_object_routing_off_by_default(self):
        settings = Settings()
        assert settings.dispatch.route_object_type is False
        assert settings.dispatch.dead_events is True

    def test_observability_defaults(self):
        settings = Settings()
        assert settings.observability.log_level == "INFO"
        assert settings.observability.log_format == LogFormat.JSON
        assert settings.observability.metrics_enabled is True
        assert settings.observability.metrics_port is None


class TestEnvOverrides:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("ANNOBUS_BUS_NAME", "orders")
        monkeypatch.setenv("ANNOBUS_EXCEPTION_POLICY", "record")

        settings = Settings()

        assert settings.bus_name == "orders"
        assert settings.exception_policy == ExceptionPolicy.RECORD

    def test_nested_delimiter(self, monkeypatch):
        monkeypatch.setenv("ANNOBUS_DISPATCH__ROUTE_OBJECT_TYPE", "true")

        assert Settings().dispatch.route_object_type is True

    def test_metrics_port_from_env(self, monkeypatch):
        monkeypatch.setenv("ANNOBUS_OBSERVABILITY__METRICS_PORT", "9200")

        assert Settings().observability.metrics_port == 9200


class TestLoadSettings:
    def test_load_from_toml(self, tmp_path):
        path = tmp_path / "bus.toml"
        path.write_text(
            'bus_name = "audit"\n'
            'exception_policy = "record"\n'
            "\n"
            "[dispatch]\n"
            "dead_events = false\n"
            "\n"
            "[observability]\n"
            'log_format = "console"\n'
        )

        settings = load_settings(path)

        assert settings.bus_name == "audit"
        assert settings.exception_policy == ExceptionPolicy.RECORD
        assert settings.dispatch.dead_events is False
        assert settings.observability.log_format == LogFormat.CONSOLE

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "absent.toml")
        assert settings.bus_name == "default"

    def test_overrides_win(self, tmp_path):
        path = tmp_path / "bus.toml"
        path.write_text('bus_name = "audit"\n')

        settings = load_settings(path, overrides={"bus_name": "override"})

        assert settings.bus_name == "override"

    def test_invalid_toml_raises(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("bus_name = \n")

        with pytest.raises(SettingsError, match="Invalid TOML"):
            load_settings(path)

    def test_invalid_value_raises(self):
        with pytest.raises(SettingsError):
            load_settings(overrides={"exception_policy": "explode"})


class TestCreateEventBus:
    def test_log_policy(self):
        bus = create_event_bus(Settings(bus_name="orders"))

        assert bus.name == "orders"
        assert isinstance(bus.exception_handler, LoggingExceptionHandler)

    def test_record_policy(self):
        bus = create_event_bus(Settings(exception_policy=ExceptionPolicy.RECORD))

        assert isinstance(bus.exception_handler, RecordingExceptionHandler)

    def test_explicit_handler_wins(self):
        recorder = RecordingExceptionHandler()
        bus = create_event_bus(Settings(), exception_handler=recorder)

        assert bus.exception_handler is recorder

    def test_routing_settings_applied(self):
        settings = Settings(
            dispatch={"route_object_type": True, "dead_events": False},
        )
        bus = create_event_bus(settings)
        everything = Everything()
        bus.register(everything)
        bus.post("hello")

        assert everything.events == ["hello"]

    def test_defaults_when_no_settings(self):
        bus = create_event_bus()
        assert bus.name == "default"
