"""
Application service for purchases and sales.

``PurchasingService`` is the entrypoint an outer boundary (HTTP routes for
``/purchases`` and ``/items``, a CLI, a message consumer) calls. It runs the
command handler, saves the aggregate, and hands the emitted events to the
``PublicationDispatcher``. Domain rejections and store failures come back
as a failed ``CommandResult``; publication outcomes never affect the result.

Example:
    >>> service = await create_service(accounts=[Account(account_id="A-1", name="Acme")])
    >>> result = await service.create_purchase(
    ...     CreatePurchaseCommand(ship_name="Neptune", product_name="Tuna", account_id="A-1")
    ... )
    >>> result.value.purchase_id
    1
    >>> await service.close()
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from purchasing.aggregates.purchase import PurchaseAggregate
from purchasing.aggregates.repository import AggregateRepository
from purchasing.command_handler import (
    IdGenerator,
    PurchaseCommandHandler,
    RepositoryIdGenerator,
)
from purchasing.commands import Command, CreatePurchaseCommand, RecordSaleCommand
from purchasing.config import PurchasingConfig
from purchasing.events.base import DomainEvent
from purchasing.exceptions import (
    NotFoundError,
    PersistenceError,
    PurchasingError,
    ValidationError,
)
from purchasing.idempotency import (
    IdempotencyGuard,
    IdempotencyStore,
    InMemoryIdempotencyStore,
)
from purchasing.lookups import (
    Account,
    AccountLookup,
    InMemoryAccountDirectory,
    InMemoryItemCatalog,
    Item,
    ItemLookup,
)
from purchasing.observability import (
    ATTR_COMMAND_TYPE,
    ATTR_IDEMPOTENCY_KEY,
    ATTR_IDEMPOTENT_REPLAY,
    Tracer,
    create_tracer,
)
from purchasing.publishing import (
    EventPublisher,
    InMemoryEventPublisher,
    KafkaEventPublisher,
    KafkaPublisherConfig,
    PublicationDispatcher,
    RetryingEventPublisher,
)
from purchasing.stores import EventStore, InMemoryEventStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of a command.

    Attributes:
        success: True if the command was accepted
        value: The command's return value (the Purchase for create_purchase)
        events: Events emitted by this call (empty for idempotent replays)
        error: The rejection, when success is False
    """

    success: bool
    value: Any = None
    events: tuple[DomainEvent, ...] = ()
    error: PurchasingError | None = None

    @classmethod
    def ok(cls, value: Any = None, events: Iterable[DomainEvent] = ()) -> "CommandResult":
        return cls(success=True, value=value, events=tuple(events))

    @classmethod
    def failed(cls, error: PurchasingError) -> "CommandResult":
        return cls(success=False, error=error)

    @property
    def succeeded(self) -> bool:
        return self.success


class PurchasingService:
    """
    Runs commands end to end.

    A command with an ``idempotency_key`` holds that key from handling until
    its events are queued for publication. The key is recorded only once
    the aggregate is saved and its events are queued, so a command that fails
    on the way can be retried with the same key.

    Args:
        handler: Produces the aggregate and events for a command
        repository: Persists purchases
        dispatcher: Publishes events in the background
        idempotency_store: Optional store enabling idempotent re-submission
        tracer: Optional custom Tracer instance
        enable_tracing: If True and OpenTelemetry is available, emit traces
    """

    def __init__(
        self,
        handler: PurchaseCommandHandler,
        repository: AggregateRepository[PurchaseAggregate],
        dispatcher: PublicationDispatcher,
        idempotency_store: IdempotencyStore | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._handler = handler
        self._repository = repository
        self._dispatcher = dispatcher
        self._idempotency = IdempotencyGuard(idempotency_store)

    @property
    def dispatcher(self) -> PublicationDispatcher:
        return self._dispatcher

    @property
    def repository(self) -> AggregateRepository[PurchaseAggregate]:
        return self._repository

    @property
    def idempotency(self) -> IdempotencyGuard:
        return self._idempotency

    async def create_purchase(self, command: CreatePurchaseCommand) -> CommandResult:
        """
        Create a purchase, persist it and queue its PurchaseCreated event.

        A replayed idempotent command returns the stored purchase, freshly
        loaded, and no events.

        Raises:
            RuntimeError: If the service has been closed
        """
        self._raise_if_closed()
        with self._tracer.span(
            "purchasing.service.create_purchase",
            {
                ATTR_COMMAND_TYPE: command.command_type,
                ATTR_IDEMPOTENCY_KEY: command.idempotency_key or "",
            },
        ) as span:
            try:
                async with self._idempotency.claim(
                    command.idempotency_key, command.command_type
                ) as claim:
                    if claim.record is not None and claim.record.aggregate_id is not None:
                        if span:
                            span.set_attribute(ATTR_IDEMPOTENT_REPLAY, True)
                        purchase = await self._repository.load(claim.record.aggregate_id)
                        return CommandResult.ok(value=purchase)

                    purchase, events = await self._handler.handle_create_purchase(command)
                    await self._save(purchase)
                    self._dispatcher.submit(events)
                    await claim.complete(purchase.aggregate_id, events)
            except PurchasingError as e:
                return self._rejected(command, e)

            return CommandResult.ok(value=purchase, events=events)

    async def record_sale(self, command: RecordSaleCommand) -> CommandResult:
        """
        Record a sale and queue its FishSold event.

        Raises:
            RuntimeError: If the service has been closed
        """
        self._raise_if_closed()
        with self._tracer.span(
            "purchasing.service.record_sale",
            {
                ATTR_COMMAND_TYPE: command.command_type,
                ATTR_IDEMPOTENCY_KEY: command.idempotency_key or "",
            },
        ) as span:
            try:
                async with self._idempotency.claim(
                    command.idempotency_key, command.command_type
                ) as claim:
                    if claim.is_replay:
                        if span:
                            span.set_attribute(ATTR_IDEMPOTENT_REPLAY, True)
                        return CommandResult.ok()

                    events = await self._handler.handle_record_sale(command)
                    self._dispatcher.submit(events)
                    await claim.complete(events=events)
            except PurchasingError as e:
                return self._rejected(command, e)

            return CommandResult.ok(events=events)

    async def get_purchase(self, purchase_id: int) -> PurchaseAggregate:
        """
        Load a saved purchase.

        Raises:
            AggregateNotFoundError: If no purchase has this identifier
        """
        return await self._repository.load(str(purchase_id))

    async def close(self, timeout: float | None = 10.0) -> None:
        """Flush pending publications and release the publisher."""
        await self._dispatcher.shutdown(timeout)

    async def _save(self, purchase: PurchaseAggregate) -> None:
        try:
            await self._repository.save(purchase)
        except PurchasingError:
            raise
        except Exception as e:
            raise PersistenceError(purchase.aggregate_id, str(e)) from e

    def _raise_if_closed(self) -> None:
        if self._dispatcher.is_closed:
            raise RuntimeError("PurchasingService is closed")

    def _rejected(self, command: Command, error: PurchasingError) -> CommandResult:
        extra = {"command_type": command.command_type, "error_type": type(error).__name__}
        if isinstance(error, (ValidationError, NotFoundError)):
            logger.info("%s rejected: %s", command.command_type, error, extra=extra)
        else:
            logger.error(
                "%s failed: %s",
                command.command_type,
                error,
                exc_info=error,
                extra=extra,
            )
        return CommandResult.failed(error)


async def create_service(
    config: PurchasingConfig | None = None,
    *,
    accounts: Iterable[Account] = (),
    items: Iterable[Item] = (),
    account_lookup: AccountLookup | None = None,
    item_lookup: ItemLookup | None = None,
    event_store: EventStore | None = None,
    publisher: EventPublisher | None = None,
    id_generator: IdGenerator | None = None,
    idempotency_store: IdempotencyStore | None = None,
) -> PurchasingService:
    """
    Wire a PurchasingService.

    Anything not passed in gets an in-memory implementation, except the
    identifier source, which defaults to a ``RepositoryIdGenerator`` over the
    service's own repository. The publisher is a connected
    ``KafkaEventPublisher`` when ``config.kafka_bootstrap_servers`` is set,
    otherwise an ``InMemoryEventPublisher``. A publisher built here is wrapped
    in ``RetryingEventPublisher`` using ``config.retry``; a publisher passed
    in is used as is.
    """
    config = config or PurchasingConfig()
    tracing = config.enable_tracing

    if publisher is None:
        inner: EventPublisher
        if config.kafka_bootstrap_servers is not None:
            kafka = KafkaEventPublisher(
                KafkaPublisherConfig(
                    bootstrap_servers=config.kafka_bootstrap_servers,
                    topic=config.topic,
                ),
                enable_tracing=tracing,
            )
            await kafka.connect()
            inner = kafka
        else:
            inner = InMemoryEventPublisher(config.topic, enable_tracing=tracing)
        publisher = RetryingEventPublisher(inner, config.retry)

    if account_lookup is None:
        account_lookup = InMemoryAccountDirectory(accounts)
    if item_lookup is None:
        item_lookup = InMemoryItemCatalog(items)
    if idempotency_store is None:
        idempotency_store = InMemoryIdempotencyStore()
    if event_store is None:
        event_store = InMemoryEventStore(enable_tracing=tracing)

    repository: AggregateRepository[PurchaseAggregate] = AggregateRepository(
        event_store=event_store,
        aggregate_factory=PurchaseAggregate,
        enable_tracing=tracing,
    )
    if id_generator is None:
        id_generator = RepositoryIdGenerator(repository)
    handler = PurchaseCommandHandler(
        account_lookup,
        item_lookup,
        id_generator=id_generator,
        enable_tracing=tracing,
    )
    dispatcher = PublicationDispatcher(
        publisher,
        publish_timeout=config.publish_timeout,
        enable_tracing=tracing,
    )

    logger.info(
        "Purchasing service ready",
        extra={
            "topic": publisher.topic,
            "publisher": type(publisher).__name__,
            "publish_timeout": config.publish_timeout,
        },
    )
    return PurchasingService(
        handler,
        repository,
        dispatcher,
        idempotency_store,
        enable_tracing=tracing,
    )


__all__ = ["CommandResult", "PurchasingService", "create_service"]
