"""Custom exception hierarchy for the event bus."""


class BusError(Exception):
    """Base exception for all event bus errors."""


# --- Configuration ---
class ConfigError(BusError):
    """Invalid listener or bus configuration."""


class HandlerSignatureError(ConfigError):
    """A marked handler method does not have the required shape.

    Raised from ``register()``; the registry is left untouched.
    """

    def __init__(self, method: str, reason: str):
        self.method = method
        self.reason = reason
        super().__init__(f"Handler {method}: {reason}")


class SettingsError(ConfigError):
    """Settings file could not be read or validated."""
