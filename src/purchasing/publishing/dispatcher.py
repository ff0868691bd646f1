"""
Asynchronous publication dispatcher.

The command path hands emitted events to the dispatcher and returns at
once. Events are queued per aggregate stream and each stream has at most
one worker task, so events of one purchase are published in the order they
were emitted. Streams are independent: a slow or failing stream does not
hold up the others, and there is no ordering across streams.

Every publish call is bounded by ``publish_timeout``. Failures and timeouts
are logged and counted; they never reach the command caller.

Example:
    >>> dispatcher = PublicationDispatcher(publisher, publish_timeout=5.0)
    >>> dispatcher.submit(events)          # returns immediately
    >>> await dispatcher.drain(timeout=10.0)
    >>> await dispatcher.shutdown()
"""

import asyncio
import contextlib
import logging
from collections import deque
from collections.abc import Iterable
from typing import Any

from purchasing.events.base import DomainEvent
from purchasing.exceptions import PublishError
from purchasing.observability import (
    ATTR_AGGREGATE_ID,
    ATTR_AGGREGATE_TYPE,
    ATTR_ERROR_TYPE,
    ATTR_EVENT_ID,
    ATTR_EVENT_TYPE,
    ATTR_MESSAGING_DESTINATION,
    Tracer,
    create_tracer,
)
from purchasing.publishing.interface import EventPublisher

logger = logging.getLogger(__name__)

StreamKey = tuple[str, str]


class PublicationDispatcher:
    """
    Fire-and-forget, per-aggregate ordered event publication.

    Args:
        publisher: Publisher that performs the actual transport call
        publish_timeout: Upper bound in seconds for a single publish call
        tracer: Optional custom Tracer instance
        enable_tracing: If True and OpenTelemetry is available, emit traces
    """

    def __init__(
        self,
        publisher: EventPublisher,
        publish_timeout: float = 5.0,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        if publish_timeout <= 0:
            raise ValueError(f"publish_timeout must be positive, got {publish_timeout}")

        self._publisher = publisher
        self._publish_timeout = publish_timeout
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._queues: dict[StreamKey, deque[DomainEvent]] = {}
        self._workers: dict[StreamKey, asyncio.Task[None]] = {}
        self._in_flight = 0
        self._closed = False
        self._stats = {
            "submitted": 0,
            "published": 0,
            "failed": 0,
            "timed_out": 0,
            "dropped": 0,
        }

    @property
    def publisher(self) -> EventPublisher:
        return self._publisher

    @property
    def publish_timeout(self) -> float:
        return self._publish_timeout

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        """Events queued or currently being published."""
        return sum(len(queue) for queue in self._queues.values()) + self._in_flight

    def get_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = dict(self._stats)
        stats["pending"] = self.pending_count
        stats["active_streams"] = len(self._workers)
        return stats

    def submit(self, events: Iterable[DomainEvent]) -> int:
        """
        Queue events for publication without waiting for the transport.

        Must be called from within a running event loop.

        Returns:
            Number of events queued

        Raises:
            RuntimeError: If the dispatcher has been shut down
        """
        if self._closed:
            raise RuntimeError("PublicationDispatcher is shut down")

        count = 0
        for event in events:
            key = (event.aggregate_type, event.aggregate_id)
            self._queues.setdefault(key, deque()).append(event)
            self._stats["submitted"] += 1
            count += 1

            worker = self._workers.get(key)
            if worker is None or worker.done():
                self._workers[key] = asyncio.create_task(
                    self._run_stream(key),
                    name=f"publish:{key[0]}:{key[1]}",
                )

        if count:
            logger.debug("Queued %d event(s) for publication", count, extra={"count": count})
        return count

    async def _run_stream(self, key: StreamKey) -> None:
        queue = self._queues[key]
        try:
            while queue:
                event = queue.popleft()
                self._in_flight += 1
                try:
                    await self._publish_one(event)
                finally:
                    self._in_flight -= 1
        finally:
            # No await between the emptiness check and this cleanup, so a
            # concurrent submit() either sees this worker alive or starts a new one.
            if not queue:
                self._queues.pop(key, None)
            if self._workers.get(key) is asyncio.current_task():
                del self._workers[key]

    async def _publish_one(self, event: DomainEvent) -> None:
        with self._tracer.span(
            "purchasing.dispatcher.publish",
            {
                ATTR_EVENT_TYPE: event.event_type,
                ATTR_EVENT_ID: str(event.event_id),
                ATTR_AGGREGATE_ID: event.aggregate_id,
                ATTR_AGGREGATE_TYPE: event.aggregate_type,
                ATTR_MESSAGING_DESTINATION: self._publisher.topic,
            },
        ) as span:
            try:
                await asyncio.wait_for(
                    self._publisher.publish(event),
                    timeout=self._publish_timeout,
                )
            except TimeoutError:
                self._stats["timed_out"] += 1
                if span:
                    span.set_attribute(ATTR_ERROR_TYPE, "TimeoutError")
                logger.warning(
                    "Timed out publishing %s after %.2fs",
                    event.event_type,
                    self._publish_timeout,
                    extra={
                        "event_id": str(event.event_id),
                        "event_type": event.event_type,
                        "aggregate_id": event.aggregate_id,
                        "timeout": self._publish_timeout,
                    },
                )
            except PublishError as e:
                self._stats["failed"] += 1
                if span:
                    span.set_attribute(ATTR_ERROR_TYPE, type(e).__name__)
                logger.error(
                    "Failed to publish %s: %s",
                    event.event_type,
                    e,
                    extra={
                        "event_id": str(event.event_id),
                        "event_type": event.event_type,
                        "aggregate_id": event.aggregate_id,
                        "topic": e.topic,
                    },
                )
            except Exception as e:
                self._stats["failed"] += 1
                if span:
                    span.set_attribute(ATTR_ERROR_TYPE, type(e).__name__)
                logger.error(
                    "Unexpected error publishing %s",
                    event.event_type,
                    exc_info=True,
                    extra={
                        "event_id": str(event.event_id),
                        "event_type": event.event_type,
                        "aggregate_id": event.aggregate_id,
                    },
                )
            else:
                self._stats["published"] += 1

    async def drain(self, timeout: float | None = None) -> bool:
        """
        Wait until every queued event has been handled.

        Args:
            timeout: Maximum time to wait in seconds. If None, waits indefinitely.

        Returns:
            True if all work finished, False if the timeout expired first
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while self._workers:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                break
            _, pending = await asyncio.wait(list(self._workers.values()), timeout=remaining)
            if pending and deadline is not None and loop.time() >= deadline:
                break

        drained = not self._workers
        if not drained:
            logger.warning(
                "Publication drain timed out with %d event(s) pending",
                self.pending_count,
                extra={"pending": self.pending_count, "timeout": timeout},
            )
        return drained

    async def shutdown(self, timeout: float | None = 10.0) -> None:
        """
        Stop accepting events, drain what is queued, then cancel leftovers.

        Safe to call multiple times.
        """
        if self._closed:
            return
        self._closed = True

        logger.info("Shutting down publication dispatcher", extra=self.get_stats())
        await self.drain(timeout)

        # Counted before cancelling so events mid-publish are included.
        dropped = self.pending_count
        workers = list(self._workers.values())
        for task in workers:
            task.cancel()
        for task in workers:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if dropped:
            self._stats["dropped"] += dropped
            logger.warning(
                "Dropped %d unpublished event(s) on shutdown",
                dropped,
                extra={"dropped": dropped},
            )
        self._queues.clear()
        self._workers.clear()

        await self._publisher.close()
        logger.info("Publication dispatcher stopped", extra=self.get_stats())


__all__ = ["PublicationDispatcher"]
