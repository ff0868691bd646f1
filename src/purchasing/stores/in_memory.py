"""
In-memory event store implementation.

Useful for tests and development; everything is lost when the process exits.
"""

import asyncio
import logging
from collections import defaultdict
from uuid import UUID

from purchasing.events.base import DomainEvent
from purchasing.exceptions import OptimisticLockError
from purchasing.observability import (
    ATTR_AGGREGATE_ID,
    ATTR_AGGREGATE_TYPE,
    ATTR_EVENT_COUNT,
    ATTR_EXPECTED_VERSION,
    Tracer,
    create_tracer,
)
from purchasing.stores.interface import AppendResult, EventStore, EventStream, ExpectedVersion

logger = logging.getLogger(__name__)


class InMemoryEventStore(EventStore):
    """
    In-memory event store keyed by ``(aggregate_type, aggregate_id)``.

    Appends are serialized with an ``asyncio.Lock``; events already stored
    (same ``event_id``) are skipped so a retried append is harmless.
    """

    def __init__(
        self,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._streams: dict[tuple[str, str], list[DomainEvent]] = defaultdict(list)
        self._event_ids: set[UUID] = set()
        self._global_position = 0
        self._lock = asyncio.Lock()

    async def append_events(
        self,
        aggregate_id: str,
        aggregate_type: str,
        events: list[DomainEvent],
        expected_version: int,
    ) -> AppendResult:
        if not events:
            return AppendResult.successful(expected_version)

        with self._tracer.span(
            "purchasing.event_store.append_events",
            {
                ATTR_AGGREGATE_ID: aggregate_id,
                ATTR_AGGREGATE_TYPE: aggregate_type,
                ATTR_EVENT_COUNT: len(events),
                ATTR_EXPECTED_VERSION: expected_version,
            },
        ):
            async with self._lock:
                stream = self._streams[(aggregate_type, aggregate_id)]
                current_version = len(stream)

                if expected_version != ExpectedVersion.ANY and current_version != expected_version:
                    raise OptimisticLockError(aggregate_id, expected_version, current_version)

                for event in events:
                    if event.event_id in self._event_ids:
                        continue
                    stream.append(event)
                    self._event_ids.add(event.event_id)
                    self._global_position += 1

                logger.debug(
                    "Appended %d event(s) to %s/%s",
                    len(events),
                    aggregate_type,
                    aggregate_id,
                    extra={
                        "aggregate_id": aggregate_id,
                        "aggregate_type": aggregate_type,
                        "new_version": len(stream),
                    },
                )
                return AppendResult.successful(len(stream), self._global_position)

    async def get_events(
        self,
        aggregate_id: str,
        aggregate_type: str,
        from_version: int = 0,
    ) -> EventStream:
        async with self._lock:
            events = list(self._streams.get((aggregate_type, aggregate_id), []))
        return EventStream(
            aggregate_id=aggregate_id,
            aggregate_type=aggregate_type,
            events=events[from_version:],
            version=len(events),
        )

    async def get_stream_version(self, aggregate_id: str, aggregate_type: str) -> int:
        async with self._lock:
            return len(self._streams.get((aggregate_type, aggregate_id), []))


__all__ = ["InMemoryEventStore"]
