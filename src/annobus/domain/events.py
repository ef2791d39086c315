"""Events produced by the bus itself.

Both types are immutable and created only by the bus machinery.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from annobus.handlers.introspection import MethodDescriptor


@dataclass(frozen=True)
class DeadEvent:
    """Wraps an event that was posted but had no subscribers.

    Subscribing a ``DeadEvent`` handler is useful for debugging or
    logging, as it detects misconfigured event routing.  A ``DeadEvent``
    that itself finds no subscriber is dropped, never re-wrapped.
    """

    event: Any


@dataclass(frozen=True)
class HandlerFailure:
    """Context for an exception raised by a handler during dispatch."""

    cause: Exception
    listener: Any
    method: MethodDescriptor
    event: Any

    @property
    def event_type(self) -> str:
        return type(self.event).__name__

    @property
    def handler_key(self) -> str:
        """``Listener.method`` identifier used for error counts."""
        return f"{type(self.listener).__name__}.{self.method.name}"
