"""Domain events emitted by purchase command handling."""

from datetime import date

from pydantic import Field

from purchasing.events.base import DomainEvent
from purchasing.events.registry import register_event
from purchasing.values import PurchaseDetail

PURCHASE_AGGREGATE_TYPE = "Purchase"
ITEM_AGGREGATE_TYPE = "Item"


@register_event
class PurchaseCreated(DomainEvent):
    """
    A purchase was created.

    Carries a full snapshot of the purchase as it stood at creation time, so
    consumers never need to read the purchase back.
    """

    aggregate_type: str = PURCHASE_AGGREGATE_TYPE

    purchase_id: int = Field(..., ge=1)
    purchase_type: str | None = None
    purchase_date: date | None = None
    warehouse_arrival_date: date | None = None
    storage_fee_due_date: date | None = None
    storage_fee_paid: bool = False
    ship_name: str
    product_name: str
    account_id: str
    details: tuple[PurchaseDetail, ...] = ()


@register_event
class FishSold(DomainEvent):
    """Stock of an item was sold. The aggregate is the item."""

    aggregate_type: str = ITEM_AGGREGATE_TYPE

    item_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


__all__ = [
    "FishSold",
    "ITEM_AGGREGATE_TYPE",
    "PURCHASE_AGGREGATE_TYPE",
    "PurchaseCreated",
]
