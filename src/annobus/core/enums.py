"""Enumerations used across the event bus."""

from enum import Enum


class ExceptionPolicy(str, Enum):
    """What the default bus does with handler failures."""

    LOG = "log"
    RECORD = "record"


class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"
