"""Event bus: subscription registry, dispatcher and façade.

Import ``EventBus`` for direct construction, or ``create_event_bus``
to build one from ``Settings``.
"""

from annobus.bus.bus import configure_observability, create_event_bus
from annobus.bus.dispatcher import Dispatcher
from annobus.bus.event_bus import EventBus
from annobus.bus.registry import SubscriptionRegistry
from annobus.bus.routing import dispatch_closure

__all__ = [
    "Dispatcher",
    "EventBus",
    "SubscriptionRegistry",
    "configure_observability",
    "create_event_bus",
    "dispatch_closure",
]
