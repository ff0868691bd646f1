"""
JSON serialization for domain events.

The wire format is pydantic's JSON rendering of the event, UTF-8 encoded.
The ``event_type`` field selects the class on the way back in.
"""

import json

from pydantic import ValidationError as PydanticValidationError

from purchasing.events.base import DomainEvent
from purchasing.events.registry import EventRegistry, EventTypeNotFoundError, default_registry
from purchasing.exceptions import SerializationError


def serialize_event(event: DomainEvent) -> bytes:
    """Render an event as UTF-8 JSON bytes."""
    return event.model_dump_json().encode("utf-8")


def deserialize_event(
    data: str | bytes,
    registry: EventRegistry | None = None,
) -> DomainEvent:
    """
    Rebuild an event from bytes produced by ``serialize_event``.

    Raises:
        SerializationError: If the payload is not JSON, has no registered
                            event_type, or fails validation
    """
    if registry is None:
        registry = default_registry
    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SerializationError("unknown", f"invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise SerializationError("unknown", "payload is not a JSON object")

    event_type = payload.get("event_type")
    if not event_type:
        raise SerializationError("unknown", "missing event_type")

    try:
        event_class = registry.get(event_type)
    except EventTypeNotFoundError as e:
        raise SerializationError(event_type, "event type is not registered") from e

    try:
        return event_class.from_dict(payload)
    except PydanticValidationError as e:
        raise SerializationError(event_type, str(e)) from e


__all__ = ["deserialize_event", "serialize_event"]
