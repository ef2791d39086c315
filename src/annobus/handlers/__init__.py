"""Handler discovery, invocation and failure handling."""

from annobus.handlers.discovery import AnnotatedHandlerFinder, ExplicitHandlerFinder
from annobus.handlers.exceptions import (
    LoggingExceptionHandler,
    RecordingExceptionHandler,
)
from annobus.handlers.introspection import Introspector, MethodDescriptor
from annobus.handlers.wrapper import HandlerWrapper

__all__ = [
    "AnnotatedHandlerFinder",
    "ExplicitHandlerFinder",
    "HandlerWrapper",
    "Introspector",
    "LoggingExceptionHandler",
    "MethodDescriptor",
    "RecordingExceptionHandler",
]
