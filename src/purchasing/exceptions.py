"""Exceptions for the purchasing package.

Command-level failures (``ValidationError``, ``NotFoundError``) are
per-request outcomes reported to the caller, as is ``PersistenceError`` when
the event store fails. ``PublishError`` belongs to the event publication
boundary and never fails an already-handled command.
"""

from dataclasses import dataclass
from typing import Any


class PurchasingError(Exception):
    """Base exception for the purchasing package."""

    pass


@dataclass(frozen=True)
class FieldError:
    """A single invalid or missing command field."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ValidationError(PurchasingError):
    """
    Raised when a command carries missing or malformed fields.

    All problems found in a command are reported together so the caller can
    fix them in one round trip.

    Attributes:
        command_type: Name of the rejected command class
        errors: Every field error found, in field order
    """

    def __init__(self, command_type: str, errors: list[FieldError]) -> None:
        self.command_type = command_type
        self.errors = list(errors)
        details = "; ".join(str(error) for error in self.errors) or "invalid command"
        super().__init__(f"Invalid {command_type}: {details}")

    @property
    def fields(self) -> list[str]:
        """Names of the offending fields."""
        return [error.field for error in self.errors]


class NotFoundError(PurchasingError):
    """Raised when a command references an entity unknown to its lookup."""

    def __init__(self, entity: str, identifier: str) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}")


class PublishError(PurchasingError):
    """Raised by an event publisher when the transport fails."""

    def __init__(self, event_id: Any, topic: str, message: str) -> None:
        self.event_id = event_id
        self.topic = topic
        super().__init__(f"Failed to publish event {event_id} to '{topic}': {message}")


class AggregateNotFoundError(PurchasingError):
    """Raised when an aggregate has no stored history."""

    def __init__(self, aggregate_id: str, aggregate_type: str | None = None) -> None:
        self.aggregate_id = aggregate_id
        self.aggregate_type = aggregate_type
        type_info = f" of type {aggregate_type}" if aggregate_type else ""
        super().__init__(f"Aggregate{type_info} not found: {aggregate_id}")


class OptimisticLockError(PurchasingError):
    """Raised when there's a version conflict during event append."""

    def __init__(self, aggregate_id: str, expected_version: int, actual_version: int) -> None:
        self.aggregate_id = aggregate_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Optimistic lock error for aggregate {aggregate_id}: "
            f"expected version {expected_version}, but current version is {actual_version}"
        )


class EventVersionError(PurchasingError):
    """
    Raised when a new event does not follow the aggregate's current version.

    Attributes:
        expected_version: The version that was expected (current version + 1)
        actual_version: The version found in the event
        event_id: ID of the event with invalid version
        aggregate_id: ID of the aggregate being updated
    """

    def __init__(
        self,
        expected_version: int,
        actual_version: int,
        event_id: Any,
        aggregate_id: str,
    ) -> None:
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.event_id = event_id
        self.aggregate_id = aggregate_id
        super().__init__(
            f"Event version mismatch for aggregate {aggregate_id}: "
            f"expected version {expected_version}, got {actual_version} "
            f"(event_id: {event_id})"
        )


class InvalidTransitionError(PurchasingError):
    """Raised when a command does not apply to the aggregate's current status."""

    def __init__(self, aggregate_id: str, status: str, operation: str) -> None:
        self.aggregate_id = aggregate_id
        self.status = status
        self.operation = operation
        super().__init__(f"Cannot {operation} aggregate {aggregate_id} in status {status}")


class PersistenceError(PurchasingError):
    """Raised when the event store fails for a reason other than a version conflict."""

    def __init__(self, aggregate_id: str, message: str) -> None:
        self.aggregate_id = aggregate_id
        super().__init__(f"Failed to persist aggregate {aggregate_id}: {message}")


class SerializationError(PurchasingError):
    """Raised when event serialization or deserialization fails."""

    def __init__(self, event_type: str, message: str) -> None:
        self.event_type = event_type
        super().__init__(f"Serialization error for {event_type}: {message}")


__all__ = [
    "AggregateNotFoundError",
    "EventVersionError",
    "FieldError",
    "InvalidTransitionError",
    "NotFoundError",
    "OptimisticLockError",
    "PersistenceError",
    "PublishError",
    "PurchasingError",
    "SerializationError",
    "ValidationError",
]
