"""Event store interface and data structures."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from purchasing.events.base import DomainEvent


@dataclass(frozen=True)
class EventStream:
    """
    The events of a single aggregate, oldest first.

    Attributes:
        aggregate_id: Identifier of the aggregate
        aggregate_type: Type name of the aggregate (e.g., 'Purchase')
        events: Events in chronological order
        version: Version of the aggregate after the last event
    """

    aggregate_id: str
    aggregate_type: str
    events: list[DomainEvent] = field(default_factory=list)
    version: int = 0

    @property
    def is_empty(self) -> bool:
        return len(self.events) == 0


@dataclass(frozen=True)
class AppendResult:
    """Outcome of ``EventStore.append_events``."""

    success: bool
    new_version: int
    global_position: int = 0

    @classmethod
    def successful(cls, new_version: int, global_position: int = 0) -> "AppendResult":
        return cls(success=True, new_version=new_version, global_position=global_position)


class ExpectedVersion:
    """
    Special expected-version values for ``append_events``.

    - ANY: Skip the version check
    - NO_STREAM: The stream must not exist yet
    """

    ANY: int = -1
    NO_STREAM: int = 0


class EventStore(ABC):
    """
    Abstract event store: append-only streams keyed by aggregate.

    Implementations must reject appends whose expected version does not match
    the stream's current version with ``OptimisticLockError``.
    """

    @abstractmethod
    async def append_events(
        self,
        aggregate_id: str,
        aggregate_type: str,
        events: list[DomainEvent],
        expected_version: int,
    ) -> AppendResult:
        """
        Append events to an aggregate's stream.

        Args:
            aggregate_id: Identifier of the aggregate
            aggregate_type: Type of aggregate (e.g., 'Purchase')
            events: Events to append, in order
            expected_version: Version the stream must currently be at

        Raises:
            OptimisticLockError: If the stream moved on concurrently
        """

    @abstractmethod
    async def get_events(
        self,
        aggregate_id: str,
        aggregate_type: str,
        from_version: int = 0,
    ) -> EventStream:
        """Read an aggregate's stream, skipping the first ``from_version`` events."""

    @abstractmethod
    async def get_stream_version(self, aggregate_id: str, aggregate_type: str) -> int:
        """Return the current version of a stream (0 if it does not exist)."""


__all__ = ["AppendResult", "EventStore", "EventStream", "ExpectedVersion"]
