"""
In-memory event publisher.

Records what would have been sent to the broker. Intended for tests and
development; it can be told to fail so that failure handling is testable.
"""

import asyncio
import logging
import threading

from purchasing.events.base import DomainEvent
from purchasing.exceptions import PublishError
from purchasing.observability import (
    ATTR_AGGREGATE_ID,
    ATTR_EVENT_ID,
    ATTR_EVENT_TYPE,
    ATTR_MESSAGING_DESTINATION,
    ATTR_MESSAGING_OPERATION,
    ATTR_MESSAGING_SYSTEM,
    SpanKindEnum,
    Tracer,
    create_tracer,
)
from purchasing.publishing.interface import DEFAULT_TOPIC, EventPublisher

logger = logging.getLogger(__name__)


class InMemoryEventPublisher(EventPublisher):
    """
    Publisher that appends events to an in-process list.

    Args:
        topic: Destination topic name
        delay: Seconds to sleep inside each publish, to simulate a slow broker
        tracer: Optional custom Tracer instance
        enable_tracing: If True and OpenTelemetry is available, emit traces

    Example:
        >>> publisher = InMemoryEventPublisher()
        >>> publisher.fail_next(2)
        >>> await publisher.publish(event)  # raises PublishError
    """

    def __init__(
        self,
        topic: str = DEFAULT_TOPIC,
        *,
        delay: float = 0.0,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._topic = topic
        self._delay = delay
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._published: list[tuple[str, DomainEvent]] = []
        self._failures_remaining = 0
        self._attempts = 0
        self._lock = threading.Lock()

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def published_events(self) -> list[DomainEvent]:
        """Successfully published events, in publish order."""
        with self._lock:
            return [event for _, event in self._published]

    @property
    def published(self) -> list[tuple[str, DomainEvent]]:
        """``(topic, event)`` pairs, in publish order."""
        with self._lock:
            return list(self._published)

    @property
    def attempts(self) -> int:
        """Number of publish calls, failed ones included."""
        return self._attempts

    def fail_next(self, count: int = 1) -> None:
        """Make the next ``count`` publish calls raise PublishError."""
        with self._lock:
            self._failures_remaining = count

    def clear(self) -> None:
        with self._lock:
            self._published.clear()
            self._failures_remaining = 0
            self._attempts = 0

    async def publish(self, event: DomainEvent) -> None:
        with self._tracer.span_with_kind(
            "purchasing.publisher.publish",
            kind=SpanKindEnum.PRODUCER,
            attributes={
                ATTR_MESSAGING_SYSTEM: "memory",
                ATTR_MESSAGING_DESTINATION: self._topic,
                ATTR_MESSAGING_OPERATION: "publish",
                ATTR_EVENT_TYPE: event.event_type,
                ATTR_EVENT_ID: str(event.event_id),
                ATTR_AGGREGATE_ID: event.aggregate_id,
            },
        ):
            if self._delay:
                await asyncio.sleep(self._delay)

            with self._lock:
                self._attempts += 1
                if self._failures_remaining > 0:
                    self._failures_remaining -= 1
                    raise PublishError(event.event_id, self._topic, "simulated transport failure")
                self._published.append((self._topic, event))

            logger.debug(
                "Published %s to %s",
                event.event_type,
                self._topic,
                extra={
                    "event_type": event.event_type,
                    "event_id": str(event.event_id),
                    "topic": self._topic,
                },
            )


__all__ = ["InMemoryEventPublisher"]
