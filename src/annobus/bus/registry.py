"""Subscription registry: event type → live handler set.

Concurrency model
-----------------
Writers (``register`` / ``unregister``) serialize on one lock and
publish a new immutable snapshot when done.  Readers (``handlers_for``)
take the current snapshot reference without locking, so a ``post``
works against one consistent view even while listeners come and go.
"""

from __future__ import annotations

import abc
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from annobus.bus.routing import dispatch_closure
from annobus.core.interfaces import IHandlerFinder
from annobus.handlers.wrapper import HandlerWrapper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Snapshot:
    handlers: Mapping[type, frozenset[HandlerWrapper]] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    # Keys that can match virtual subclasses (ABC.register, Protocols)
    abstract_keys: tuple[type, ...] = ()

    @classmethod
    def build(cls, handlers: dict[type, frozenset[HandlerWrapper]]) -> _Snapshot:
        abstract = tuple(t for t in handlers if isinstance(t, abc.ABCMeta))
        return cls(handlers=MappingProxyType(handlers), abstract_keys=abstract)


class SubscriptionRegistry:
    """Aggregates finder output across every registered listener.

    Invariants: no key maps to an empty set, and a wrapper appears
    under exactly one event type.

    Parameters
    ----------
    finder
        Produces ``{event_type: {wrapper, ...}}`` for one listener.
    include_object
        Route every event to handlers declared for ``object``.
    """

    def __init__(self, finder: IHandlerFinder, *, include_object: bool = False) -> None:
        self._finder = finder
        self._include_object = include_object
        self._write_lock = threading.Lock()
        self._snapshot = _Snapshot()

    # -- Writes ------------------------------------------------------------

    def register(self, listener: Any) -> None:
        """Discover *listener*'s handlers and add them.

        Raises
        ------
        HandlerSignatureError
            If a marked method is malformed.  Nothing is registered.
        """
        found = self._finder.find_handlers(listener)
        if not found:
            logger.debug("No handlers on %r", listener)
            return

        with self._write_lock:
            handlers = dict(self._snapshot.handlers)
            for event_type, wrappers in found.items():
                handlers[event_type] = handlers.get(event_type, frozenset()) | wrappers
            self._snapshot = _Snapshot.build(handlers)

        logger.debug(
            "Registered %r for %s",
            listener, sorted(t.__qualname__ for t in found),
        )

    def unregister(self, listener: Any) -> int:
        """Evict every wrapper bound to *listener*; return how many."""
        removed = 0
        with self._write_lock:
            handlers: dict[type, frozenset[HandlerWrapper]] = {}
            for event_type, wrappers in self._snapshot.handlers.items():
                kept = frozenset(w for w in wrappers if w.listener is not listener)
                removed += len(wrappers) - len(kept)
                if kept:
                    handlers[event_type] = kept
            if removed:
                self._snapshot = _Snapshot.build(handlers)

        if removed:
            logger.debug("Unregistered %r (%d handlers)", listener, removed)
        else:
            logger.debug("Unregister of unknown listener %r ignored", listener)
        return removed

    # -- Reads -------------------------------------------------------------

    def handlers_for(self, event_type: type) -> frozenset[HandlerWrapper]:
        """Handlers for *event_type* and every registered supertype.

        Covariant: a handler declared for a base class or an abstract
        interface receives events of all its subclasses.
        """
        snapshot = self._snapshot
        handlers = snapshot.handlers
        closure = dispatch_closure(event_type, self._include_object)

        matched: set[HandlerWrapper] = set()
        for t in closure:
            wrappers = handlers.get(t)
            if wrappers:
                matched.update(wrappers)

        for key in snapshot.abstract_keys:
            if key in closure:
                continue
            try:
                virtual = issubclass(event_type, key)
            except TypeError:
                # Non-runtime-checkable Protocols refuse issubclass()
                continue
            if virtual:
                matched.update(handlers[key])
        return frozenset(matched)

    def is_registered(self, listener: Any) -> bool:
        return any(
            w.listener is listener
            for wrappers in self._snapshot.handlers.values()
            for w in wrappers
        )

    def registered_types(self) -> frozenset[type]:
        return frozenset(self._snapshot.handlers)

    def snapshot(self) -> Mapping[type, frozenset[HandlerWrapper]]:
        """Read-only view of the current mapping."""
        return self._snapshot.handlers

    def clear(self) -> None:
        """Drop every registration."""
        with self._write_lock:
            self._snapshot = _Snapshot()
