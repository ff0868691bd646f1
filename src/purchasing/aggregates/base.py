"""
Base classes for event-sourced aggregates.

Aggregates are the consistency boundaries: they change state only by
applying events, and they record the new events they raise until a
repository persists them.
"""

import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from purchasing.events.base import DomainEvent
from purchasing.exceptions import EventVersionError
from purchasing.handlers.decorators import get_handled_event_type

logger = logging.getLogger(__name__)

TState = TypeVar("TState", bound=BaseModel)


class AggregateRoot(Generic[TState], ABC):
    """
    Base class for event-sourced aggregate roots.

    Subclasses must implement:
    - `_apply(event)`: Update state based on event type
    - `_get_initial_state()`: Return the state of a not-yet-created aggregate

    Attributes:
        aggregate_id: Identifier of this aggregate instance (string)
        aggregate_type: String identifier for this aggregate type
        version: Number of events applied
        validate_versions: When True, new events out of sequence raise
                           EventVersionError instead of logging a warning
    """

    aggregate_type: str = "Unknown"
    validate_versions: bool = True

    def __init__(self, aggregate_id: str) -> None:
        self._aggregate_id = aggregate_id
        self._version = 0
        self._uncommitted_events: list[DomainEvent] = []
        self._state: TState = self._get_initial_state()

    @property
    def aggregate_id(self) -> str:
        return self._aggregate_id

    @property
    def version(self) -> int:
        return self._version

    @property
    def state(self) -> TState:
        return self._state

    @property
    def uncommitted_events(self) -> list[DomainEvent]:
        """Events not yet persisted. Returns a copy."""
        return self._uncommitted_events.copy()

    @property
    def has_uncommitted_events(self) -> bool:
        return len(self._uncommitted_events) > 0

    def apply_event(self, event: DomainEvent, is_new: bool = True) -> None:
        """
        Apply an event to the aggregate.

        Args:
            event: The domain event to apply
            is_new: True for a freshly raised event (validated and tracked as
                    uncommitted), False when replaying stored history

        Raises:
            EventVersionError: If validate_versions is set and a new event's
                               version is not current version + 1
        """
        if is_new:
            expected_version = self._version + 1
            if event.aggregate_version != expected_version:
                if self.validate_versions:
                    raise EventVersionError(
                        expected_version=expected_version,
                        actual_version=event.aggregate_version,
                        event_id=event.event_id,
                        aggregate_id=self._aggregate_id,
                    )
                logger.warning(
                    "Version mismatch (validation disabled): expected %d, got %d "
                    "for aggregate %s, event %s",
                    expected_version,
                    event.aggregate_version,
                    self._aggregate_id,
                    event.event_id,
                    extra={
                        "aggregate_id": self._aggregate_id,
                        "expected_version": expected_version,
                        "actual_version": event.aggregate_version,
                        "event_id": str(event.event_id),
                    },
                )

        self._version = event.aggregate_version
        self._apply(event)

        if is_new:
            self._uncommitted_events.append(event)

    @abstractmethod
    def _apply(self, event: DomainEvent) -> None:
        """Update state for one event."""

    @abstractmethod
    def _get_initial_state(self) -> TState:
        """Return the state before any event has been applied."""

    def mark_events_as_committed(self) -> None:
        """Forget uncommitted events once the repository has stored them."""
        self._uncommitted_events.clear()

    def load_from_history(self, events: list[DomainEvent]) -> None:
        """Replay stored events in order without tracking them as new."""
        for event in events:
            self.apply_event(event, is_new=False)

    def get_next_version(self) -> int:
        return self._version + 1

    def _raise_event(self, event: DomainEvent) -> None:
        """Apply a new event raised by a command method."""
        self.apply_event(event, is_new=True)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"id={self._aggregate_id}, "
            f"version={self._version}, "
            f"uncommitted={len(self._uncommitted_events)})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AggregateRoot):
            return NotImplemented
        return type(self) is type(other) and self._aggregate_id == other._aggregate_id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._aggregate_id))


class DeclarativeAggregate(AggregateRoot[TState], ABC):
    """
    Aggregate that routes events to methods marked with ``@handles``.

    Unhandled event types are logged and otherwise ignored, so older code
    can replay streams that contain newer event types.

    Example:
        >>> class PurchaseAggregate(DeclarativeAggregate[PurchaseState]):
        ...     aggregate_type = "Purchase"
        ...
        ...     @handles(PurchaseCreated)
        ...     def _on_created(self, event: PurchaseCreated) -> None:
        ...         self._state = ...
    """

    _event_handlers: dict[type[DomainEvent], str] = {}

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        cls._event_handlers = {}
        for name in dir(cls):
            event_type = get_handled_event_type(getattr(cls, name, None))
            if event_type is not None:
                cls._event_handlers[event_type] = name

    def _apply(self, event: DomainEvent) -> None:
        handler_name = self._event_handlers.get(type(event))
        if handler_name:
            getattr(self, handler_name)(event)
            return

        logger.warning(
            "No handler registered for event type %s in %s",
            type(event).__name__,
            self.__class__.__name__,
            extra={
                "event_type": type(event).__name__,
                "event_id": str(event.event_id),
                "handler_class": self.__class__.__name__,
            },
        )


__all__ = ["AggregateRoot", "DeclarativeAggregate", "TState"]
