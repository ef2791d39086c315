"""Annotation-driven event bus.

Design goals
------------
1.  **Marker discovery**: ``register(listener)`` finds every public
    method carrying the bus's marker annotation (directly or through a
    meta-annotation) and subscribes it for the type of its single
    parameter.
2.  **Covariant routing**: a posted event reaches handlers declared
    for its class, its base classes and abstract interfaces it
    satisfies.  ``object`` is excluded unless ``route_object_type``.
3.  **Failure isolation**: a raising handler never aborts fan-out;
    its exception goes to the bus's ``IExceptionHandler``.
4.  **Dead events**: an event with no handler is reposted once,
    wrapped in ``DeadEvent``.

Usage::

    class Audit:
        @subscribe
        def on_order(self, event: OrderSubmitted) -> None: ...

    bus = EventBus("orders")
    bus.register(Audit())
    bus.post(OrderSubmitted(...))
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from annobus.bus.dispatcher import Dispatcher
from annobus.bus.registry import SubscriptionRegistry
from annobus.core.interfaces import IExceptionHandler, IHandlerFinder
from annobus.domain.annotations import Annotation, Subscribe
from annobus.handlers.discovery import AnnotatedHandlerFinder
from annobus.handlers.exceptions import LoggingExceptionHandler
from annobus.handlers.wrapper import HandlerWrapper


class EventBus:
    """In-process publish/subscribe bus.

    Parameters
    ----------
    name
        Identifies the bus in logs and metric labels.
    annotation_type
        Marker that tags handler methods.  Ignored when *finder* is given.
    exception_handler
        Receives handler failures.  Defaults to logging.  Ignored when
        *finder* is given (the finder injects its own).
    finder
        Custom handler finder, e.g. ``ExplicitHandlerFinder``.
    route_object_type
        Also deliver every event to handlers declared for ``object``.
    dead_events
        Wrap unhandled events in ``DeadEvent`` and repost them.
    metrics_enabled
        Emit Prometheus counters.
    """

    def __init__(
        self,
        name: str = "default",
        *,
        annotation_type: type[Annotation] = Subscribe,
        exception_handler: IExceptionHandler | None = None,
        finder: IHandlerFinder | None = None,
        route_object_type: bool = False,
        dead_events: bool = True,
        metrics_enabled: bool = True,
    ) -> None:
        self._name = name
        if finder is None:
            if exception_handler is None:
                exception_handler = LoggingExceptionHandler(
                    metrics_enabled=metrics_enabled,
                )
            finder = AnnotatedHandlerFinder(annotation_type, exception_handler)
        else:
            exception_handler = getattr(finder, "exception_handler", None)
        self._finder = finder
        self._exception_handler = exception_handler
        self._registry = SubscriptionRegistry(finder, include_object=route_object_type)
        self._dispatcher = Dispatcher(
            self._registry,
            name=name,
            dead_events=dead_events,
            metrics_enabled=metrics_enabled,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def exception_handler(self) -> IExceptionHandler | None:
        return self._exception_handler

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    # -- Core API ----------------------------------------------------------

    def register(self, listener: Any) -> None:
        """Subscribe every handler method of *listener*.

        Registering the same listener twice is harmless.

        Raises
        ------
        HandlerSignatureError
            If a marked method does not take exactly one annotated argument.
        """
        self._registry.register(listener)

    def unregister(self, listener: Any) -> int:
        """Unsubscribe all of *listener*'s handlers; return how many."""
        return self._registry.unregister(listener)

    def post(self, event: Any) -> None:
        """Deliver *event* synchronously to every matching handler."""
        self._dispatcher.post(event)

    # -- Introspection -----------------------------------------------------

    def handlers_for(self, event_type: type) -> frozenset[HandlerWrapper]:
        return self._registry.handlers_for(event_type)

    def is_registered(self, listener: Any) -> bool:
        return self._registry.is_registered(listener)

    def registered_types(self) -> frozenset[type]:
        return self._registry.registered_types()

    def subscriptions(self) -> Mapping[type, frozenset[HandlerWrapper]]:
        return self._registry.snapshot()

    def __repr__(self) -> str:
        return f"EventBus(name={self._name!r})"
