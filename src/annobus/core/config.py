"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from .enums import ExceptionPolicy, LogFormat


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class DispatchConfig(BaseModel):
    # Include ``object`` in the dispatch closure (object handlers see everything)
    route_object_type: bool = False
    # Wrap events nobody handles in DeadEvent and repost once
    dead_events: bool = True


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.JSON
    metrics_enabled: bool = True
    # Prometheus HTTP exporter; off unless a port is given
    metrics_port: int | None = None


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level bus settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    bus_name: str = "default"
    exception_policy: ExceptionPolicy = ExceptionPolicy.LOG

    # Sub-configs
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "ANNOBUS_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        SettingsError: If the file is not valid TOML or fails validation.
    """
    from .errors import SettingsError

    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            try:
                with open(path, "rb") as f:
                    data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise SettingsError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise SettingsError(str(exc)) from exc
