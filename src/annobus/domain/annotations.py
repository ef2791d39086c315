"""Marker annotations and the meta-annotation resolver.

An annotation is an immutable marker object that decorates either a
function or another annotation class::

    @subscribe
    def on_fill(self, event: FillReceived) -> None: ...

    @subscribe
    @dataclass(frozen=True)
    class Audited(Annotation):
        channel: str = "audit"

    @Audited()
    def on_order(self, event: OrderSubmitted) -> None: ...

``on_order`` is tagged with ``Subscribe`` through ``Audited``'s own
declared annotations.  Declared annotations are never inherited: a
subclass of ``Audited`` does not carry ``Subscribe`` unless it is
decorated itself.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

ANNOTATIONS_ATTR = "__annobus_annotations__"

A = TypeVar("A", bound="Annotation")


class Annotation:
    """Base for marker annotations.

    Subclasses are usually frozen dataclasses so that instances compare
    by value.  Hashability is not required.
    """

    def __call__(self, target: Any) -> Any:
        """Attach this annotation to *target* and return it unchanged."""
        if isinstance(target, (staticmethod, classmethod)):
            _attach(target.__func__, self)
        else:
            _attach(target, self)
        return target


def _attach(target: Any, annotation: Annotation) -> None:
    # Decorators run bottom-up; prepend to keep source order.
    existing = _own_annotations(target)
    setattr(target, ANNOTATIONS_ATTR, (annotation,) + existing)


def _own_annotations(target: Any) -> tuple[Annotation, ...]:
    if isinstance(target, type):
        return tuple(target.__dict__.get(ANNOTATIONS_ATTR, ()))
    return tuple(getattr(target, ANNOTATIONS_ATTR, ()))


def declared_annotations(target: Any) -> tuple[Annotation, ...]:
    """Annotations declared directly on a function or annotation class."""
    if isinstance(target, (staticmethod, classmethod)):
        target = target.__func__
    return _own_annotations(target)


@dataclass(frozen=True)
class Subscribe(Annotation):
    """Default marker for event handler methods."""


subscribe = Subscribe()


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class AnnotationResolver:
    """Depth-first search for a marker through meta-annotation chains.

    Every sibling is examined; a branch that fails does not end the
    search.  A visited set shared across the whole walk stops cycles
    such as self-annotating or mutually annotating annotation types.
    It holds annotation types, not instances: whether an annotation
    matches, and what it is annotated with, depend on its type alone.
    """

    def __init__(
        self,
        annotations_of: Callable[[Any], Iterable[Annotation]] = declared_annotations,
    ) -> None:
        self._annotations_of = annotations_of

    def resolve(
        self,
        annotations: Iterable[Annotation],
        target_type: type[A],
    ) -> A | None:
        """Return the first annotation of *target_type* in the forest, or None."""
        return self._search(annotations, target_type, set())

    def _search(
        self,
        annotations: Iterable[Annotation],
        target_type: type[A],
        visited: set[type],
    ) -> A | None:
        for annotation in annotations:
            kind = type(annotation)
            if kind in visited:
                continue
            if isinstance(annotation, target_type):
                return annotation
            visited.add(kind)
            found = self._search(self._annotations_of(kind), target_type, visited)
            if found is not None:
                return found
        return None
