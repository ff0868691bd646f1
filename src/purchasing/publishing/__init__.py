"""
Event publication for purchasing.

Publishers send one event to a topic and raise ``PublishError`` on failure.
The ``PublicationDispatcher`` moves publication off the command path.

Example:
    >>> from purchasing.publishing import InMemoryEventPublisher, PublicationDispatcher
    >>> dispatcher = PublicationDispatcher(InMemoryEventPublisher())
    >>> dispatcher.submit(events)
"""

from purchasing.publishing.dispatcher import PublicationDispatcher
from purchasing.publishing.interface import DEFAULT_TOPIC, EventPublisher
from purchasing.publishing.kafka import (
    KAFKA_AVAILABLE,
    KafkaEventPublisher,
    KafkaNotAvailableError,
    KafkaPublisherConfig,
)
from purchasing.publishing.memory import InMemoryEventPublisher
from purchasing.publishing.retry import RetryConfig, RetryingEventPublisher, calculate_backoff

__all__ = [
    "DEFAULT_TOPIC",
    "EventPublisher",
    "InMemoryEventPublisher",
    "KAFKA_AVAILABLE",
    "KafkaEventPublisher",
    "KafkaNotAvailableError",
    "KafkaPublisherConfig",
    "PublicationDispatcher",
    "RetryConfig",
    "RetryingEventPublisher",
    "calculate_backoff",
]
