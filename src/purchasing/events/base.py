"""
Base class for domain events.

Events are immutable records of things that have happened. They are the
output of command handling and the unit of publication.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Self
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DomainEvent(BaseModel):
    """
    Base class for all domain events with automatic event_type derivation.

    The event_type field defaults to the class name, so subclasses only
    declare their payload fields.

    Attributes:
        event_id: Unique identifier for this event instance
        event_type: Type name of the event (class name unless overridden)
        event_version: Schema version for this event type
        occurred_at: When the event occurred (UTC timestamp)
        aggregate_id: ID of the aggregate this event belongs to, as a string
        aggregate_type: Type of aggregate (e.g., 'Purchase')
        aggregate_version: Version of aggregate after this event
        actor_id: User/system that triggered this event
        correlation_id: ID linking related events
        causation_id: ID of the event or command that caused this event
        metadata: Additional event metadata dictionary

    Example:
        >>> class PurchaseCreated(DomainEvent):
        ...     aggregate_type: str = "Purchase"
        ...     ship_name: str
        ...
        >>> event = PurchaseCreated(aggregate_id="1", ship_name="Neptune")
        >>> assert event.event_type == "PurchaseCreated"
    """

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier",
    )
    event_type: str = Field(
        default="",
        description="Type of event (auto-derived from class name if not set)",
    )
    event_version: int = Field(
        default=1,
        ge=1,
        description="Event schema version",
    )
    occurred_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When event occurred (UTC)",
    )

    aggregate_id: str = Field(
        ...,
        min_length=1,
        description="ID of the aggregate this event belongs to",
    )
    aggregate_type: str = Field(
        ...,
        description="Type of aggregate (e.g., 'Purchase')",
    )
    aggregate_version: int = Field(
        default=1,
        ge=1,
        description="Version of aggregate after this event",
    )

    actor_id: str | None = Field(
        default=None,
        description="User/system that triggered this event",
    )
    correlation_id: UUID = Field(
        default_factory=uuid4,
        description="ID linking related events",
    )
    causation_id: UUID | None = Field(
        default=None,
        description="ID of the event that caused this event",
    )

    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event metadata",
    )

    @model_validator(mode="before")
    @classmethod
    def _ensure_event_type(cls, data: Any) -> Any:
        """Fill event_type with the class name when it is missing or empty."""
        if isinstance(data, dict) and not data.get("event_type"):
            field_info = cls.model_fields.get("event_type")
            field_default = field_info.default if field_info else ""
            data = dict(data)
            data["event_type"] = field_default or cls.__name__
        return data

    def __str__(self) -> str:
        return (
            f"{self.event_type}(event_id={self.event_id}, "
            f"aggregate_id={self.aggregate_id}, "
            f"version={self.aggregate_version})"
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create an event from a decoded JSON object."""
        return cls.model_validate(data)


__all__ = ["DomainEvent"]
