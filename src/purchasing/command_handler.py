"""
Command handling for purchases and sales.

``PurchaseCommandHandler`` turns a command into a state transition plus the
domain events describing it. It has no side effects beyond returning those
values: idempotency, persisting the aggregate and publishing the events are
the caller's job (see ``purchasing.service``).

Example:
    >>> handler = PurchaseCommandHandler(accounts, items)
    >>> purchase, events = await handler.handle_create_purchase(
    ...     CreatePurchaseCommand(ship_name="Neptune", product_name="Tuna", account_id="A-1")
    ... )
    >>> purchase.purchase_id
    1
"""

import asyncio
import itertools
import logging
from collections.abc import Iterator
from typing import Protocol

from purchasing.aggregates.purchase import PurchaseAggregate
from purchasing.aggregates.repository import AggregateRepository
from purchasing.commands import Command, CreatePurchaseCommand, RecordSaleCommand
from purchasing.events.base import DomainEvent
from purchasing.events.purchase import FishSold
from purchasing.exceptions import FieldError, NotFoundError, ValidationError
from purchasing.lookups import AccountLookup, ItemLookup
from purchasing.observability import (
    ATTR_AGGREGATE_ID,
    ATTR_COMMAND_TYPE,
    ATTR_EVENT_COUNT,
    Tracer,
    create_tracer,
)
from purchasing.values import AccountReference, PurchaseDetail

logger = logging.getLogger(__name__)


class IdGenerator(Protocol):
    async def next_id(self) -> int: ...


class SequentialIdGenerator:
    """Hands out increasing integer identifiers, starting at ``start``."""

    def __init__(self, start: int = 1) -> None:
        if start < 1:
            raise ValueError(f"start must be >= 1, got {start}")
        self._counter: Iterator[int] = itertools.count(start)

    async def next_id(self) -> int:
        return next(self._counter)


class RepositoryIdGenerator:
    """
    Hands out increasing identifiers, skipping any already stored.

    Every candidate is checked against the repository, so a generator
    started over a store that already holds purchases (a restarted
    process, or a second service sharing the store) continues after them.
    Two processes allocating at the same instant can still pick the same
    identifier; the second save then fails with OptimisticLockError.
    """

    def __init__(
        self,
        repository: AggregateRepository[PurchaseAggregate],
        start: int = 1,
    ) -> None:
        if start < 1:
            raise ValueError(f"start must be >= 1, got {start}")
        self._repository = repository
        self._next = start
        self._lock = asyncio.Lock()

    async def next_id(self) -> int:
        async with self._lock:
            candidate = self._next
            while await self._repository.exists(str(candidate)):
                candidate += 1
            self._next = candidate + 1
            return candidate


class PurchaseCommandHandler:
    """
    Validates commands and produces events.

    Args:
        account_lookup: Answers whether an account exists
        item_lookup: Answers whether an item exists
        id_generator: Source of purchase identifiers
                      (default: SequentialIdGenerator starting at 1)
        tracer: Optional custom Tracer instance
        enable_tracing: If True and OpenTelemetry is available, emit traces
    """

    def __init__(
        self,
        account_lookup: AccountLookup,
        item_lookup: ItemLookup,
        id_generator: IdGenerator | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._account_lookup = account_lookup
        self._item_lookup = item_lookup
        self._id_generator = id_generator or SequentialIdGenerator()

    async def handle_create_purchase(
        self,
        command: CreatePurchaseCommand,
    ) -> tuple[PurchaseAggregate, list[DomainEvent]]:
        """
        Create a purchase.

        Returns:
            The new aggregate (still holding its uncommitted event) and the
            single PurchaseCreated event

        Raises:
            ValidationError: If required fields are missing or malformed
            NotFoundError: If the account is unknown
        """
        with self._tracer.span(
            "purchasing.command.create_purchase",
            {ATTR_COMMAND_TYPE: command.command_type},
        ) as span:
            self._raise_if_invalid(command, validate_create_purchase(command))

            if not await self._account_lookup.account_exists(command.account_id):
                raise NotFoundError("Account", command.account_id)

            purchase_id = await self._id_generator.next_id()
            purchase = PurchaseAggregate(str(purchase_id))
            purchase.create(
                ship_name=command.ship_name,
                product_name=command.product_name,
                account=AccountReference(account_id=command.account_id),
                details=tuple(
                    PurchaseDetail(
                        detail_id=index,
                        item_id=detail.item_id,
                        quantity=detail.quantity,
                        unit_price=detail.unit_price,
                    )
                    for index, detail in enumerate(command.details, start=1)
                ),
                purchase_type=command.purchase_type,
                purchase_date=command.purchase_date,
                warehouse_arrival_date=command.warehouse_arrival_date,
                storage_fee_due_date=command.storage_fee_due_date,
                storage_fee_paid=command.storage_fee_paid,
                actor_id=command.actor_id,
            )
            events = purchase.uncommitted_events

            if span:
                span.set_attribute(ATTR_AGGREGATE_ID, purchase.aggregate_id)
                span.set_attribute(ATTR_EVENT_COUNT, len(events))

            logger.info(
                "Created purchase %s for account %s",
                purchase.aggregate_id,
                command.account_id,
                extra={
                    "purchase_id": purchase.purchase_id,
                    "account_id": command.account_id,
                    "detail_count": len(command.details),
                },
            )
            return purchase, events

    async def handle_record_sale(self, command: RecordSaleCommand) -> list[DomainEvent]:
        """
        Record a sale of an item.

        Returns:
            A single FishSold event

        Raises:
            ValidationError: If quantity <= 0 or the item identifier is empty
            NotFoundError: If the item is unknown
        """
        with self._tracer.span(
            "purchasing.command.record_sale",
            {ATTR_COMMAND_TYPE: command.command_type},
        ):
            self._raise_if_invalid(command, validate_record_sale(command))

            if not await self._item_lookup.item_exists(command.item_id):
                raise NotFoundError("Item", command.item_id)

            event = FishSold(
                aggregate_id=command.item_id,
                actor_id=command.actor_id,
                item_id=command.item_id,
                quantity=command.quantity,
            )

            logger.info(
                "Recorded sale of %d x %s",
                command.quantity,
                command.item_id,
                extra={"item_id": command.item_id, "quantity": command.quantity},
            )
            return [event]

    def _raise_if_invalid(self, command: Command, errors: list[FieldError]) -> None:
        if not errors:
            return
        logger.info(
            "Rejected %s: %s",
            command.command_type,
            ", ".join(error.field for error in errors),
            extra={"command_type": command.command_type, "fields": [e.field for e in errors]},
        )
        raise ValidationError(command.command_type, errors)


def validate_create_purchase(command: CreatePurchaseCommand) -> list[FieldError]:
    """Return every field error in a CreatePurchaseCommand (empty when valid)."""
    errors: list[FieldError] = []

    if not command.ship_name.strip():
        errors.append(FieldError("ship_name", "must not be empty"))
    if not command.product_name.strip():
        errors.append(FieldError("product_name", "must not be empty"))
    if not command.account_id.strip():
        errors.append(FieldError("account_id", "must not be empty"))

    if (
        command.purchase_date is not None
        and command.warehouse_arrival_date is not None
        and command.purchase_date > command.warehouse_arrival_date
    ):
        errors.append(
            FieldError("warehouse_arrival_date", "must not be earlier than purchase_date")
        )

    for index, detail in enumerate(command.details):
        if detail.quantity < 0:
            errors.append(FieldError(f"details[{index}].quantity", "must not be negative"))
        if detail.unit_price is not None and detail.unit_price < 0:
            errors.append(FieldError(f"details[{index}].unit_price", "must not be negative"))

    return errors


def validate_record_sale(command: RecordSaleCommand) -> list[FieldError]:
    """Return every field error in a RecordSaleCommand (empty when valid)."""
    errors: list[FieldError] = []
    if not command.item_id.strip():
        errors.append(FieldError("item_id", "must not be empty"))
    if command.quantity <= 0:
        errors.append(FieldError("quantity", "must be greater than zero"))
    return errors


__all__ = [
    "IdGenerator",
    "PurchaseCommandHandler",
    "RepositoryIdGenerator",
    "SequentialIdGenerator",
    "validate_create_purchase",
    "validate_record_sale",
]
