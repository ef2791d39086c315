"""Handler discovery for listener objects.

Two finders produce the same ``{event_type: {HandlerWrapper, ...}}``
mapping for one listener:

*  ``AnnotatedHandlerFinder`` walks the listener's public methods and
   keeps those carrying a marker annotation, directly or through
   meta-annotations.
*  ``ExplicitHandlerFinder`` takes a programmatic handler table built
   with ``bind()`` instead of markers.

Neither finder mutates shared state; merging is the registry's job.
"""

from __future__ import annotations

import inspect
import logging
import types
import typing
from typing import Any, NewType

from annobus.core.errors import HandlerSignatureError
from annobus.core.interfaces import IExceptionHandler, IIntrospector
from annobus.domain.annotations import Annotation, AnnotationResolver, Subscribe
from annobus.handlers.exceptions import LoggingExceptionHandler
from annobus.handlers.introspection import Introspector, MethodDescriptor
from annobus.handlers.wrapper import HandlerWrapper

logger = logging.getLogger(__name__)

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


# ---------------------------------------------------------------------------
# Signature validation
# ---------------------------------------------------------------------------

def handler_event_type(listener: Any, method: MethodDescriptor) -> type:
    """Return the event type *method* handles on *listener*.

    The method must take exactly one positional parameter (besides
    ``self``/``cls``) with a type annotation that names a single class.

    Raises:
        HandlerSignatureError: If the method does not have that shape.
    """
    param = single_parameter(listener, method)
    try:
        hints = typing.get_type_hints(method.function)
    except Exception as exc:
        raise HandlerSignatureError(
            str(method), f"cannot resolve annotation of {param.name!r}: {exc}",
        ) from exc
    if param.name not in hints:
        raise HandlerSignatureError(
            str(method), f"parameter {param.name!r} needs a type annotation",
        )
    return _as_event_type(hints[param.name], method)


def single_parameter(listener: Any, method: MethodDescriptor) -> inspect.Parameter:
    """Return the only parameter of *method* bound to *listener*.

    Raises:
        HandlerSignatureError: Unless there is exactly one positional parameter.
    """
    bound = getattr(listener, method.name)
    try:
        params = list(inspect.signature(bound).parameters.values())
    except (TypeError, ValueError) as exc:
        raise HandlerSignatureError(str(method), f"signature unavailable: {exc}") from exc

    if len(params) != 1:
        raise HandlerSignatureError(
            str(method),
            f"requires {len(params)} arguments; event handler methods "
            f"must require a single argument",
        )
    param = params[0]
    if param.kind not in _POSITIONAL:
        raise HandlerSignatureError(
            str(method), f"parameter {param.name!r} must be positional",
        )
    return param


def _as_event_type(hint: Any, method: MethodDescriptor) -> type:
    # Normalize a hint to the runtime class used as the routing key.
    if hint is Any:
        return object
    if isinstance(hint, NewType):
        return _as_event_type(hint.__supertype__, method)
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        raise HandlerSignatureError(
            str(method),
            f"union annotation {hint!r} is not allowed; a handler is "
            f"registered under exactly one event type",
        )
    if isinstance(origin, type):
        return origin
    if isinstance(hint, type):
        return hint
    raise HandlerSignatureError(
        str(method),
        f"annotation {hint!r} is not a single class; a handler is "
        f"registered under exactly one event type",
    )


# ---------------------------------------------------------------------------
# Finders
# ---------------------------------------------------------------------------

class AnnotatedHandlerFinder:
    """Collects listener methods tagged with *annotation_type*.

    Parameters
    ----------
    annotation_type
        Marker searched for, directly or via meta-annotations.
    exception_handler
        Injected into every wrapper; defaults to logging.
    introspector
        Method/annotation enumeration; defaults to ``Introspector()``.
    """

    def __init__(
        self,
        annotation_type: type[Annotation] = Subscribe,
        exception_handler: IExceptionHandler | None = None,
        *,
        introspector: IIntrospector | None = None,
    ) -> None:
        self._annotation_type = annotation_type
        self._exception_handler = (
            exception_handler if exception_handler is not None
            else LoggingExceptionHandler()
        )
        self._introspector = introspector if introspector is not None else Introspector()
        self._resolver = AnnotationResolver(self._introspector.declared_annotations)

    @property
    def annotation_type(self) -> type[Annotation]:
        return self._annotation_type

    @property
    def exception_handler(self) -> IExceptionHandler:
        return self._exception_handler

    def find_handlers(self, listener: Any) -> dict[type, set[HandlerWrapper]]:
        found: dict[type, set[HandlerWrapper]] = {}
        for method in self._introspector.list_public_methods(listener):
            marker = self._resolver.resolve(
                self._introspector.declared_annotations(method),
                self._annotation_type,
            )
            if marker is None:
                continue
            event_type = handler_event_type(listener, method)
            wrapper = HandlerWrapper(listener, method, self._exception_handler)
            found.setdefault(event_type, set()).add(wrapper)
            logger.debug(
                "Connected handler %s to event type %s",
                method, event_type.__qualname__,
            )
        return found


class ExplicitHandlerFinder:
    """Handler table declared in code instead of with markers.

    Usage::

        finder = (
            ExplicitHandlerFinder()
            .bind(OrderListener, "on_order", OrderSubmitted)
            .bind(OrderListener, "on_fill", FillReceived)
        )

    A binding applies to instances of *listener_type* and its
    subclasses.  The method must still take exactly one argument; its
    annotation, if any, is not consulted.
    """

    def __init__(
        self,
        exception_handler: IExceptionHandler | None = None,
        *,
        introspector: IIntrospector | None = None,
    ) -> None:
        self._exception_handler = (
            exception_handler if exception_handler is not None
            else LoggingExceptionHandler()
        )
        self._introspector = introspector if introspector is not None else Introspector()
        self._bindings: list[tuple[type, str, type]] = []

    @property
    def exception_handler(self) -> IExceptionHandler:
        return self._exception_handler

    def bind(
        self, listener_type: type, method_name: str, event_type: type,
    ) -> ExplicitHandlerFinder:
        """Declare *method_name* on *listener_type* as a handler for *event_type*.

        A method handles exactly one event type; binding it again to a
        different type raises ``HandlerSignatureError``.
        """
        qualified = f"{listener_type.__qualname__}.{method_name}"
        if self._introspector.method_descriptor(listener_type, method_name) is None:
            raise HandlerSignatureError(qualified, "no such method")
        for bound_type, bound_name, bound_event in self._bindings:
            if (
                bound_type is listener_type
                and bound_name == method_name
                and bound_event is not event_type
            ):
                raise HandlerSignatureError(
                    qualified,
                    f"already bound to {bound_event.__qualname__}, "
                    f"cannot also handle {event_type.__qualname__}",
                )
        self._bindings.append((listener_type, method_name, event_type))
        return self

    def find_handlers(self, listener: Any) -> dict[type, set[HandlerWrapper]]:
        found: dict[type, set[HandlerWrapper]] = {}
        # A subclass binding may reach a method bound on a base class
        event_types: dict[MethodDescriptor, type] = {}
        for listener_type, name, event_type in self._bindings:
            if not isinstance(listener, listener_type):
                continue
            method = self._introspector.method_descriptor(type(listener), name)
            if method is None:
                raise HandlerSignatureError(
                    f"{type(listener).__qualname__}.{name}", "no such method",
                )
            single_parameter(listener, method)
            previous = event_types.setdefault(method, event_type)
            if previous is not event_type:
                raise HandlerSignatureError(
                    str(method),
                    f"bound to both {previous.__qualname__} "
                    f"and {event_type.__qualname__}",
                )
            wrapper = HandlerWrapper(listener, method, self._exception_handler)
            found.setdefault(event_type, set()).add(wrapper)
        return found

