"""Protocol interfaces for the event bus.

All collaborator boundaries are defined here as Protocol classes.
Implementations can be swapped (logging/recording exception handlers,
annotated/explicit finders) without changing callers.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from annobus.domain.annotations import Annotation
    from annobus.domain.events import HandlerFailure
    from annobus.handlers.introspection import MethodDescriptor
    from annobus.handlers.wrapper import HandlerWrapper


# ---------------------------------------------------------------------------
# Exception handling
# ---------------------------------------------------------------------------

@runtime_checkable
class IExceptionHandler(Protocol):
    """Sink for exceptions raised by handlers during dispatch."""

    def handle(self, failure: HandlerFailure) -> None: ...


# ---------------------------------------------------------------------------
# Handler discovery
# ---------------------------------------------------------------------------

@runtime_checkable
class IHandlerFinder(Protocol):
    """Finds the handler methods of one listener.

    Must not mutate shared state; the registry merges the result.
    Raises ``HandlerSignatureError`` for malformed handlers.
    """

    def find_handlers(self, listener: Any) -> dict[type, set[HandlerWrapper]]: ...


@runtime_checkable
class IIntrospector(Protocol):
    """Host-specific enumeration of methods and declared annotations."""

    def list_public_methods(self, instance: Any) -> list[MethodDescriptor]: ...

    def method_descriptor(self, cls: type, name: str) -> MethodDescriptor | None: ...

    def declared_annotations(
        self, target: MethodDescriptor | Callable[..., Any] | type,
    ) -> tuple[Annotation, ...]: ...
