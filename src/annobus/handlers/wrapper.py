"""Bound, failure-isolating handler invocation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from annobus.domain.events import HandlerFailure
from annobus.handlers.introspection import MethodDescriptor

if TYPE_CHECKING:
    from annobus.core.interfaces import IExceptionHandler

logger = logging.getLogger(__name__)


class HandlerWrapper:
    """A listener method bound for dispatch.

    Equality and hashing use ``(listener identity, method)`` only, so
    registering the same listener twice yields one wrapper per method
    under set semantics regardless of the exception handler.  Wrappers
    are immutable once built; the registry shares them across snapshots.
    """

    __slots__ = ("_listener", "_method", "_exception_handler", "_target")

    def __init__(
        self,
        listener: Any,
        method: MethodDescriptor,
        exception_handler: IExceptionHandler,
    ) -> None:
        object.__setattr__(self, "_listener", listener)
        object.__setattr__(self, "_method", method)
        object.__setattr__(self, "_exception_handler", exception_handler)
        object.__setattr__(self, "_target", getattr(listener, method.name))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def listener(self) -> Any:
        return self._listener

    @property
    def method(self) -> MethodDescriptor:
        return self._method

    @property
    def exception_handler(self) -> IExceptionHandler:
        return self._exception_handler

    def invoke(self, event: Any) -> None:
        """Deliver *event*; handler exceptions go to the exception handler."""
        try:
            self._target(event)
        except Exception as exc:
            failure = HandlerFailure(
                cause=exc,
                listener=self._listener,
                method=self._method,
                event=event,
            )
            try:
                self._exception_handler.handle(failure)
            except Exception:
                logger.warning(
                    "Exception handler failed for %s", self._method,
                    exc_info=True,
                )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HandlerWrapper):
            return NotImplemented
        return self._listener is other._listener and self._method == other._method

    def __hash__(self) -> int:
        return hash((id(self._listener), self._method))

    def __repr__(self) -> str:
        return f"HandlerWrapper({self._method}, listener={self._listener!r})"
