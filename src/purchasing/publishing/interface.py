"""
Event publisher interface.

A publisher hands one event to a message transport under a topic. It either
succeeds or raises ``PublishError``. Retry policy belongs to the publisher
implementation (see ``RetryingEventPublisher``), never to the command
handler.
"""

from abc import ABC, abstractmethod

from purchasing.events.base import DomainEvent

DEFAULT_TOPIC = "purchase-events"


class EventPublisher(ABC):
    """
    Abstract topic-based event publisher.

    Example:
        >>> publisher = InMemoryEventPublisher(topic="purchase-events")
        >>> await publisher.publish(purchase_created)
    """

    @property
    @abstractmethod
    def topic(self) -> str:
        """Destination topic of this publisher."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """
        Publish one event.

        Raises:
            PublishError: On transport failure
        """

    async def close(self) -> None:
        """Release transport resources. No-op by default."""
        return None


__all__ = ["DEFAULT_TOPIC", "EventPublisher"]
