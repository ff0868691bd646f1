"""
Serialization utilities for purchasing events.

Example:
    >>> from purchasing.serialization import serialize_event, deserialize_event
    >>> data = serialize_event(event)
    >>> assert deserialize_event(data) == event
"""

from purchasing.serialization.json import deserialize_event, serialize_event

__all__ = ["deserialize_event", "serialize_event"]
