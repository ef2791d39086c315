"""Dispatch closure: the event types a posted event is routable under."""

from __future__ import annotations

from functools import lru_cache


@lru_cache(maxsize=1024)
def dispatch_closure(event_type: type, include_object: bool = False) -> tuple[type, ...]:
    """Return *event_type* and its ancestors in MRO order.

    ``object`` is left out unless *include_object* is set; with it, a
    handler for ``object`` receives every event.  Memoized per class,
    class hierarchies do not change after definition.
    """
    if include_object:
        return event_type.__mro__
    return tuple(t for t in event_type.__mro__ if t is not object)
