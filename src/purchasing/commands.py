"""
Commands accepted by the purchase command handler.

Commands are plain immutable records. Field values are not checked at
construction; the handler validates them and reports every problem as a
``ValidationError``.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class PurchaseDetailInput(BaseModel):
    """A line item as submitted by the caller, before it gets an identifier."""

    model_config = ConfigDict(frozen=True)

    item_id: str | None = None
    quantity: int = 0
    unit_price: Decimal | None = None


class Command(BaseModel):
    """
    Base class for commands.

    Attributes:
        idempotency_key: Optional caller-chosen key. A command re-submitted
                         with a key that was already processed produces no
                         new events.
        actor_id: User/system issuing the command
    """

    model_config = ConfigDict(frozen=True)

    idempotency_key: str | None = None
    actor_id: str | None = None

    @property
    def command_type(self) -> str:
        return type(self).__name__


class CreatePurchaseCommand(Command):
    """Request to create a purchase."""

    ship_name: str = ""
    product_name: str = ""
    account_id: str = ""
    purchase_type: str | None = None
    purchase_date: date | None = None
    warehouse_arrival_date: date | None = None
    storage_fee_due_date: date | None = None
    storage_fee_paid: bool = False
    details: tuple[PurchaseDetailInput, ...] = Field(default=())


class RecordSaleCommand(Command):
    """Request to record that a quantity of an item was sold."""

    item_id: str = ""
    quantity: int = 0


__all__ = [
    "Command",
    "CreatePurchaseCommand",
    "PurchaseDetailInput",
    "RecordSaleCommand",
]
