"""
Unit tests for PurchaseCommandHandler.

Tests cover:
- Creating a purchase: fresh identifier, one matching PurchaseCreated
- Field validation reporting every error at once
- Unknown account / item lookups
- Recording sales
- Handling without side effects
- Tracing spans
- Identifier generators
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from purchasing.aggregates.purchase import PurchaseAggregate, PurchaseStatus
from purchasing.aggregates.repository import AggregateRepository
from purchasing.command_handler import (
    PurchaseCommandHandler,
    RepositoryIdGenerator,
    SequentialIdGenerator,
    validate_create_purchase,
    validate_record_sale,
)
from purchasing.commands import CreatePurchaseCommand, PurchaseDetailInput, RecordSaleCommand
from purchasing.events.purchase import FishSold, PurchaseCreated
from purchasing.exceptions import NotFoundError, ValidationError
from purchasing.lookups import InMemoryAccountDirectory, InMemoryItemCatalog
from purchasing.observability import MockTracer


def neptune_command(**overrides: object) -> CreatePurchaseCommand:
    fields: dict[str, object] = {
        "ship_name": "Neptune",
        "product_name": "Tuna",
        "account_id": "A-1",
    }
    fields.update(overrides)
    return CreatePurchaseCommand(**fields)  # type: ignore[arg-type]


class TestCreatePurchase:
    @pytest.mark.asyncio
    async def test_neptune_tuna_scenario(self, command_handler: PurchaseCommandHandler) -> None:
        purchase, events = await command_handler.handle_create_purchase(neptune_command())

        assert purchase.purchase_id == 1
        assert purchase.status is PurchaseStatus.CREATED
        assert len(events) == 1

        event = events[0]
        assert isinstance(event, PurchaseCreated)
        assert event.purchase_id == 1
        assert event.ship_name == "Neptune"
        assert event.product_name == "Tuna"
        assert event.account_id == "A-1"

    @pytest.mark.asyncio
    async def test_identifiers_are_fresh(self, command_handler: PurchaseCommandHandler) -> None:
        first, _ = await command_handler.handle_create_purchase(neptune_command())
        second, _ = await command_handler.handle_create_purchase(neptune_command())

        assert (first.purchase_id, second.purchase_id) == (1, 2)

    @pytest.mark.asyncio
    async def test_event_matches_aggregate(self, command_handler: PurchaseCommandHandler) -> None:
        purchase, events = await command_handler.handle_create_purchase(
            neptune_command(
                purchase_type="frozen",
                purchase_date=date(2024, 3, 1),
                warehouse_arrival_date=date(2024, 3, 1),
                storage_fee_paid=True,
            )
        )
        event = events[0]

        assert event.aggregate_id == purchase.aggregate_id
        assert event.aggregate_version == purchase.version
        assert event.purchase_type == purchase.state.purchase_type
        assert event.purchase_date == purchase.state.purchase_date
        assert event.storage_fee_paid is True
        assert purchase.uncommitted_events == events

    @pytest.mark.asyncio
    async def test_details_are_numbered_in_order(
        self, command_handler: PurchaseCommandHandler
    ) -> None:
        purchase, _ = await command_handler.handle_create_purchase(
            neptune_command(
                details=(
                    PurchaseDetailInput(item_id="ITM-1", quantity=10, unit_price=Decimal("4.20")),
                    PurchaseDetailInput(item_id="ITM-2", quantity=3),
                )
            )
        )

        assert [(d.detail_id, d.item_id) for d in purchase.details] == [
            (1, "ITM-1"),
            (2, "ITM-2"),
        ]
        assert purchase.details[0].unit_price == Decimal("4.20")

    @pytest.mark.asyncio
    async def test_actor_id_is_carried(self, command_handler: PurchaseCommandHandler) -> None:
        _, events = await command_handler.handle_create_purchase(neptune_command(actor_id="clerk"))
        assert events[0].actor_id == "clerk"

    @pytest.mark.asyncio
    async def test_missing_fields_are_all_reported(
        self, command_handler: PurchaseCommandHandler
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await command_handler.handle_create_purchase(CreatePurchaseCommand())

        assert exc_info.value.fields == ["ship_name", "product_name", "account_id"]
        assert exc_info.value.command_type == "CreatePurchaseCommand"

    @pytest.mark.asyncio
    async def test_arrival_before_purchase_is_invalid(
        self, command_handler: PurchaseCommandHandler
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await command_handler.handle_create_purchase(
                neptune_command(
                    purchase_date=date(2024, 3, 5),
                    warehouse_arrival_date=date(2024, 3, 1),
                )
            )

        assert exc_info.value.fields == ["warehouse_arrival_date"]

    @pytest.mark.asyncio
    async def test_negative_detail_values_are_invalid(
        self, command_handler: PurchaseCommandHandler
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await command_handler.handle_create_purchase(
                neptune_command(
                    details=(
                        PurchaseDetailInput(quantity=1),
                        PurchaseDetailInput(quantity=-2, unit_price=Decimal("-1")),
                    )
                )
            )

        assert exc_info.value.fields == ["details[1].quantity", "details[1].unit_price"]

    @pytest.mark.asyncio
    async def test_unknown_account_raises_not_found(
        self, command_handler: PurchaseCommandHandler
    ) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await command_handler.handle_create_purchase(neptune_command(account_id="A-404"))

        assert exc_info.value.entity == "Account"
        assert exc_info.value.identifier == "A-404"

    @pytest.mark.asyncio
    async def test_rejected_command_consumes_no_identifier(
        self, command_handler: PurchaseCommandHandler
    ) -> None:
        with pytest.raises(NotFoundError):
            await command_handler.handle_create_purchase(neptune_command(account_id="A-404"))

        purchase, _ = await command_handler.handle_create_purchase(neptune_command())
        assert purchase.purchase_id == 1


class TestRecordSale:
    @pytest.mark.asyncio
    async def test_records_one_fish_sold(self, command_handler: PurchaseCommandHandler) -> None:
        events = await command_handler.handle_record_sale(
            RecordSaleCommand(item_id="ITM-1", quantity=5)
        )

        assert len(events) == 1
        event = events[0]
        assert isinstance(event, FishSold)
        assert event.item_id == "ITM-1"
        assert event.quantity == 5
        assert event.aggregate_id == "ITM-1"
        assert event.aggregate_type == "Item"

    @pytest.mark.asyncio
    async def test_negative_quantity_is_invalid(
        self, command_handler: PurchaseCommandHandler
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await command_handler.handle_record_sale(
                RecordSaleCommand(item_id="ITM-7", quantity=-3)
            )

        assert exc_info.value.fields == ["quantity"]
        assert "must be greater than zero" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_non_positive_quantity_is_invalid(
        self, command_handler: PurchaseCommandHandler, quantity: int
    ) -> None:
        with pytest.raises(ValidationError):
            await command_handler.handle_record_sale(
                RecordSaleCommand(item_id="ITM-1", quantity=quantity)
            )

    @pytest.mark.asyncio
    async def test_unknown_item_raises_not_found(
        self, command_handler: PurchaseCommandHandler
    ) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await command_handler.handle_record_sale(RecordSaleCommand(item_id="ITM-7", quantity=2))

        assert exc_info.value.entity == "Item"
        assert str(exc_info.value) == "Item not found: ITM-7"

    @pytest.mark.asyncio
    async def test_empty_item_and_quantity_reported_together(
        self, command_handler: PurchaseCommandHandler
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await command_handler.handle_record_sale(RecordSaleCommand())

        assert exc_info.value.fields == ["item_id", "quantity"]


class TestSideEffects:
    @pytest.mark.asyncio
    async def test_idempotency_key_does_not_change_handling(
        self, command_handler: PurchaseCommandHandler
    ) -> None:
        command = neptune_command(idempotency_key="req-1")

        first, first_events = await command_handler.handle_create_purchase(command)
        second, second_events = await command_handler.handle_create_purchase(command)

        assert (first.purchase_id, second.purchase_id) == (1, 2)
        assert len(first_events) == len(second_events) == 1

    @pytest.mark.asyncio
    async def test_nothing_is_persisted(
        self,
        command_handler: PurchaseCommandHandler,
        purchase_repository: AggregateRepository[PurchaseAggregate],
    ) -> None:
        purchase, _ = await command_handler.handle_create_purchase(neptune_command())

        assert purchase.has_uncommitted_events
        assert not await purchase_repository.exists(purchase.aggregate_id)


class TestTracing:
    @pytest.mark.asyncio
    async def test_command_spans(
        self,
        account_directory: InMemoryAccountDirectory,
        item_catalog: InMemoryItemCatalog,
        mock_tracer: MockTracer,
    ) -> None:
        handler = PurchaseCommandHandler(account_directory, item_catalog, tracer=mock_tracer)

        await handler.handle_create_purchase(neptune_command())
        await handler.handle_record_sale(RecordSaleCommand(item_id="ITM-1", quantity=1))

        assert mock_tracer.span_names == [
            "purchasing.command.create_purchase",
            "purchasing.command.record_sale",
        ]
        attributes = mock_tracer.attributes_for("purchasing.command.create_purchase")
        assert attributes["purchasing.command.type"] == "CreatePurchaseCommand"


class TestIdGenerator:
    @pytest.mark.asyncio
    async def test_sequential_from_start(self) -> None:
        generator = SequentialIdGenerator(start=10)
        assert [await generator.next_id() for _ in range(3)] == [10, 11, 12]

    def test_start_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            SequentialIdGenerator(start=0)

    @pytest.mark.asyncio
    async def test_custom_generator_is_used(
        self,
        account_directory: InMemoryAccountDirectory,
        item_catalog: InMemoryItemCatalog,
    ) -> None:
        handler = PurchaseCommandHandler(
            account_directory,
            item_catalog,
            id_generator=SequentialIdGenerator(start=500),
            enable_tracing=False,
        )
        purchase, _ = await handler.handle_create_purchase(neptune_command())
        assert purchase.aggregate_id == "500"


class TestRepositoryIdGenerator:
    @pytest.mark.asyncio
    async def test_empty_repository_starts_at_one(
        self, purchase_repository: AggregateRepository[PurchaseAggregate]
    ) -> None:
        generator = RepositoryIdGenerator(purchase_repository)
        assert [await generator.next_id() for _ in range(3)] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_skips_stored_identifiers(
        self,
        command_handler: PurchaseCommandHandler,
        purchase_repository: AggregateRepository[PurchaseAggregate],
    ) -> None:
        for _ in range(2):
            purchase, _ = await command_handler.handle_create_purchase(neptune_command())
            await purchase_repository.save(purchase)

        generator = RepositoryIdGenerator(purchase_repository)

        assert await generator.next_id() == 3
        assert await generator.next_id() == 4

    @pytest.mark.asyncio
    async def test_concurrent_calls_get_distinct_identifiers(
        self, purchase_repository: AggregateRepository[PurchaseAggregate]
    ) -> None:
        generator = RepositoryIdGenerator(purchase_repository)

        ids = await asyncio.gather(*(generator.next_id() for _ in range(10)))

        assert sorted(ids) == list(range(1, 11))

    def test_start_must_be_positive(
        self, purchase_repository: AggregateRepository[PurchaseAggregate]
    ) -> None:
        with pytest.raises(ValueError):
            RepositoryIdGenerator(purchase_repository, start=0)


class TestValidators:
    def test_valid_create_has_no_errors(self) -> None:
        assert validate_create_purchase(neptune_command()) == []

    def test_blank_strings_are_empty(self) -> None:
        errors = validate_create_purchase(neptune_command(ship_name="   "))
        assert [e.field for e in errors] == ["ship_name"]

    def test_valid_sale_has_no_errors(self) -> None:
        assert validate_record_sale(RecordSaleCommand(item_id="ITM-1", quantity=1)) == []
