"""Method and annotation enumeration for listener objects.

The finders never touch ``inspect`` directly; they go through an
``Introspector`` so the lookup rules live in one place.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from annobus.domain.annotations import Annotation, declared_annotations


@dataclass(frozen=True)
class MethodDescriptor:
    """Identity of a handler method: its name, function and defining class."""

    name: str
    function: Callable[..., Any]
    owner: type

    def __str__(self) -> str:
        return f"{self.owner.__qualname__}.{self.name}"


class Introspector:
    """Lists a listener's public methods and reads declared annotations.

    Public means the name does not start with an underscore.  Plain
    functions, staticmethods and classmethods are considered; other
    class attributes (properties, nested classes, callables stored as
    attributes) are not methods and are skipped.  The most-derived
    definition of a name wins, so an override without a marker hides a
    marked parent method.
    """

    def list_public_methods(self, instance: Any) -> list[MethodDescriptor]:
        cls = type(instance)
        methods: list[MethodDescriptor] = []
        for name in sorted(dir(cls)):
            if name.startswith("_"):
                continue
            descriptor = self.method_descriptor(cls, name)
            if descriptor is not None:
                methods.append(descriptor)
        return methods

    def method_descriptor(self, cls: type, name: str) -> MethodDescriptor | None:
        """Describe method *name* of *cls*, or None if it is not a method."""
        for owner in cls.__mro__:
            if name in owner.__dict__:
                raw = owner.__dict__[name]
                break
        else:
            return None

        if isinstance(raw, (staticmethod, classmethod)):
            function = raw.__func__
        elif inspect.isfunction(raw):
            function = raw
        else:
            return None
        return MethodDescriptor(name=name, function=function, owner=owner)

    def declared_annotations(
        self, target: MethodDescriptor | Callable[..., Any] | type,
    ) -> tuple[Annotation, ...]:
        if isinstance(target, MethodDescriptor):
            target = target.function
        return declared_annotations(target)
