"""Event store interface and in-memory implementation."""

from purchasing.stores.in_memory import InMemoryEventStore
from purchasing.stores.interface import AppendResult, EventStore, EventStream, ExpectedVersion

__all__ = [
    "AppendResult",
    "EventStore",
    "EventStream",
    "ExpectedVersion",
    "InMemoryEventStore",
]
