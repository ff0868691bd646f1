"""Domain events and the event type registry."""

from purchasing.events.base import DomainEvent
from purchasing.events.purchase import (
    ITEM_AGGREGATE_TYPE,
    PURCHASE_AGGREGATE_TYPE,
    FishSold,
    PurchaseCreated,
)
from purchasing.events.registry import (
    DuplicateEventTypeError,
    EventRegistry,
    EventTypeNotFoundError,
    default_registry,
    register_event,
)

__all__ = [
    "DomainEvent",
    "DuplicateEventTypeError",
    "EventRegistry",
    "EventTypeNotFoundError",
    "FishSold",
    "ITEM_AGGREGATE_TYPE",
    "PURCHASE_AGGREGATE_TYPE",
    "PurchaseCreated",
    "default_registry",
    "register_event",
]
