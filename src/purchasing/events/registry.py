"""
Event type registry for deserialization.

Maps ``event_type`` names to event classes so that events read back from a
topic or a store can be rebuilt as the right class.

Usage:
    @register_event
    class FishSold(DomainEvent):
        ...

    event_class = default_registry.get("FishSold")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, TypeVar, overload

if TYPE_CHECKING:
    from purchasing.events.base import DomainEvent

logger = logging.getLogger(__name__)

TEvent = TypeVar("TEvent", bound="DomainEvent")


class EventTypeNotFoundError(KeyError):
    """Raised when an event type is not found in the registry."""

    def __init__(self, event_type: str, available_types: list[str]) -> None:
        self.event_type = event_type
        self.available_types = available_types
        available = ", ".join(sorted(available_types)) if available_types else "none"
        super().__init__(f"Unknown event type: '{event_type}'. Available types: {available}.")


class DuplicateEventTypeError(ValueError):
    """Raised when a different class is registered under an existing type name."""

    def __init__(
        self,
        event_type: str,
        existing_class: type[DomainEvent],
        new_class: type[DomainEvent],
    ) -> None:
        self.event_type = event_type
        self.existing_class = existing_class
        self.new_class = new_class
        super().__init__(
            f"Event type '{event_type}' is already registered to {existing_class.__name__}. "
            f"Cannot register {new_class.__name__} with the same type name."
        )


class EventRegistry:
    """
    Thread-safe registry of event type names to event classes.

    Use the module-level ``default_registry`` in application code, or a
    fresh instance for isolated tests.
    """

    def __init__(self) -> None:
        self._registry: dict[str, type[DomainEvent]] = {}
        self._lock = threading.RLock()

    def register(
        self,
        event_class: type[TEvent],
        event_type: str | None = None,
    ) -> type[TEvent]:
        """
        Register an event class.

        Args:
            event_class: The event class to register
            event_type: Optional type name override. Defaults to the class's
                        event_type field default, then the class name.

        Returns:
            The registered event class (enables use as decorator)

        Raises:
            DuplicateEventTypeError: If the name is taken by a different class
        """
        resolved_type = self._resolve_event_type(event_class, event_type)

        with self._lock:
            existing = self._registry.get(resolved_type)
            if existing is not None:
                if existing is not event_class:
                    raise DuplicateEventTypeError(resolved_type, existing, event_class)
                return event_class

            self._registry[resolved_type] = event_class
            logger.debug(
                "Registered event type '%s' -> %s",
                resolved_type,
                event_class.__name__,
                extra={"event_type": resolved_type, "event_class": event_class.__name__},
            )
            return event_class

    def _resolve_event_type(self, event_class: type[TEvent], event_type: str | None) -> str:
        if event_type is not None:
            return event_type
        field_info = event_class.model_fields.get("event_type")
        if field_info and isinstance(field_info.default, str) and field_info.default:
            return field_info.default
        return event_class.__name__

    def get(self, event_type: str) -> type[DomainEvent]:
        """
        Get event class by type name.

        Raises:
            EventTypeNotFoundError: If the type is not registered
        """
        with self._lock:
            event_class = self._registry.get(event_type)
            if event_class is None:
                raise EventTypeNotFoundError(event_type, list(self._registry))
            return event_class

    def __len__(self) -> int:
        with self._lock:
            return len(self._registry)

    def __contains__(self, event_type: object) -> bool:
        with self._lock:
            return event_type in self._registry

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._registry))


default_registry = EventRegistry()


@overload
def register_event(event_class: type[TEvent]) -> type[TEvent]: ...


@overload
def register_event(
    event_class: None = None,
    *,
    event_type: str | None = None,
    registry: EventRegistry | None = None,
) -> Callable[[type[TEvent]], type[TEvent]]: ...


def register_event(
    event_class: type[TEvent] | None = None,
    *,
    event_type: str | None = None,
    registry: EventRegistry | None = None,
) -> type[TEvent] | Callable[[type[TEvent]], type[TEvent]]:
    """
    Decorator registering an event class, with or without parentheses.

        @register_event
        class FishSold(DomainEvent): ...

        @register_event(registry=custom_registry)
        class FishSold(DomainEvent): ...
    """
    target_registry = registry if registry is not None else default_registry

    def decorator(cls: type[TEvent]) -> type[TEvent]:
        return target_registry.register(cls, event_type)

    if event_class is not None:
        return decorator(event_class)
    return decorator


__all__ = [
    "DuplicateEventTypeError",
    "EventRegistry",
    "EventTypeNotFoundError",
    "default_registry",
    "register_event",
]
