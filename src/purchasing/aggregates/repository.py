"""
Repository for event-sourced aggregates.

Loads an aggregate by replaying its stream and saves it by appending its
uncommitted events. Publication is not the repository's job; the
application service hands saved events to the dispatcher.
"""

import logging
from typing import Any, Generic, TypeVar

from purchasing.aggregates.base import AggregateRoot
from purchasing.exceptions import AggregateNotFoundError
from purchasing.observability import (
    ATTR_AGGREGATE_ID,
    ATTR_AGGREGATE_TYPE,
    ATTR_EVENT_COUNT,
    ATTR_VERSION,
    Tracer,
    create_tracer,
)
from purchasing.stores.interface import EventStore

logger = logging.getLogger(__name__)

TAggregate = TypeVar("TAggregate", bound="AggregateRoot[Any]")


class AggregateRepository(Generic[TAggregate]):
    """
    Repository for one aggregate type.

    Example:
        >>> repo = AggregateRepository(
        ...     event_store=InMemoryEventStore(),
        ...     aggregate_factory=PurchaseAggregate,
        ... )
        >>> await repo.save(purchase)
        >>> loaded = await repo.load(purchase.aggregate_id)
        >>> assert loaded.version == purchase.version
    """

    def __init__(
        self,
        event_store: EventStore,
        aggregate_factory: type[TAggregate],
        aggregate_type: str | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._event_store = event_store
        self._aggregate_factory = aggregate_factory
        self._aggregate_type = aggregate_type or aggregate_factory.aggregate_type

    @property
    def aggregate_type(self) -> str:
        return self._aggregate_type

    @property
    def event_store(self) -> EventStore:
        return self._event_store

    async def load(self, aggregate_id: str) -> TAggregate:
        """
        Rebuild an aggregate from its stored events.

        Raises:
            AggregateNotFoundError: If the stream is empty
        """
        with self._tracer.span(
            "purchasing.repository.load",
            {
                ATTR_AGGREGATE_ID: aggregate_id,
                ATTR_AGGREGATE_TYPE: self._aggregate_type,
            },
        ) as span:
            stream = await self._event_store.get_events(aggregate_id, self._aggregate_type)
            if stream.is_empty:
                raise AggregateNotFoundError(aggregate_id, self._aggregate_type)

            aggregate = self._aggregate_factory(aggregate_id)
            aggregate.load_from_history(stream.events)

            if span:
                span.set_attribute(ATTR_VERSION, aggregate.version)

            logger.debug(
                "Loaded %s/%s at version %d",
                self._aggregate_type,
                aggregate_id,
                aggregate.version,
            )
            return aggregate

    async def exists(self, aggregate_id: str) -> bool:
        version = await self._event_store.get_stream_version(aggregate_id, self._aggregate_type)
        return version > 0

    async def save(self, aggregate: TAggregate) -> None:
        """
        Append the aggregate's uncommitted events, then mark them committed.

        A no-op when there is nothing to save.

        Raises:
            OptimisticLockError: If the stream changed since the aggregate was loaded
        """
        events = aggregate.uncommitted_events
        if not events:
            logger.debug(
                "No uncommitted events for %s/%s",
                self._aggregate_type,
                aggregate.aggregate_id,
            )
            return

        with self._tracer.span(
            "purchasing.repository.save",
            {
                ATTR_AGGREGATE_ID: aggregate.aggregate_id,
                ATTR_AGGREGATE_TYPE: self._aggregate_type,
                ATTR_EVENT_COUNT: len(events),
            },
        ):
            expected_version = aggregate.version - len(events)
            result = await self._event_store.append_events(
                aggregate_id=aggregate.aggregate_id,
                aggregate_type=self._aggregate_type,
                events=events,
                expected_version=expected_version,
            )
            aggregate.mark_events_as_committed()

            logger.info(
                "Saved %d event(s) for %s/%s",
                len(events),
                self._aggregate_type,
                aggregate.aggregate_id,
                extra={
                    "aggregate_id": aggregate.aggregate_id,
                    "aggregate_type": self._aggregate_type,
                    "event_count": len(events),
                    "new_version": result.new_version,
                },
            )


__all__ = ["AggregateRepository"]
