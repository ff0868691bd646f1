"""
Unit tests for the exception hierarchy.
"""

from uuid import uuid4

import pytest

from purchasing.exceptions import (
    AggregateNotFoundError,
    EventVersionError,
    FieldError,
    InvalidTransitionError,
    NotFoundError,
    OptimisticLockError,
    PublishError,
    PurchasingError,
    SerializationError,
    ValidationError,
)


@pytest.mark.parametrize(
    "error",
    [
        ValidationError("RecordSaleCommand", [FieldError("quantity", "must be greater than zero")]),
        NotFoundError("Item", "ITM-7"),
        PublishError(uuid4(), "purchase-events", "timeout"),
        AggregateNotFoundError("1", "Purchase"),
        OptimisticLockError("1", 0, 1),
        EventVersionError(1, 3, uuid4(), "1"),
        InvalidTransitionError("1", "created", "create"),
        SerializationError("FishSold", "bad payload"),
    ],
)
def test_all_errors_share_base(error: PurchasingError) -> None:
    assert isinstance(error, PurchasingError)


class TestValidationError:
    def test_message_lists_every_field(self) -> None:
        error = ValidationError(
            "CreatePurchaseCommand",
            [
                FieldError("ship_name", "must not be empty"),
                FieldError("account_id", "must not be empty"),
            ],
        )

        assert str(error) == (
            "Invalid CreatePurchaseCommand: ship_name: must not be empty; "
            "account_id: must not be empty"
        )
        assert error.fields == ["ship_name", "account_id"]


class TestMessages:
    def test_not_found(self) -> None:
        assert str(NotFoundError("Account", "A-9")) == "Account not found: A-9"

    def test_publish_error_keeps_context(self) -> None:
        event_id = uuid4()
        error = PublishError(event_id, "purchase-events", "broker down")

        assert error.event_id == event_id
        assert error.topic == "purchase-events"
        assert "broker down" in str(error)

    def test_aggregate_not_found_without_type(self) -> None:
        assert str(AggregateNotFoundError("7")) == "Aggregate not found: 7"
