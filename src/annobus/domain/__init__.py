"""Domain layer: marker annotations and the bus's own event types.

Everything here is immutable and free of dispatch machinery.
"""

from annobus.domain.annotations import (
    Annotation,
    AnnotationResolver,
    Subscribe,
    declared_annotations,
    subscribe,
)
from annobus.domain.events import DeadEvent, HandlerFailure

__all__ = [
    "Annotation",
    "AnnotationResolver",
    "DeadEvent",
    "HandlerFailure",
    "Subscribe",
    "declared_annotations",
    "subscribe",
]
