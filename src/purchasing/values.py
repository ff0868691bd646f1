"""Value objects shared by purchase commands, events and state."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class AccountReference(BaseModel):
    """
    Reference to an account owned by the account master-data service.

    Compared by value; it has no lifecycle of its own here.
    """

    model_config = ConfigDict(frozen=True)

    account_id: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return self.account_id


class PurchaseDetail(BaseModel):
    """
    One line item of a purchase.

    Only ``detail_id`` is meaningful upstream; item reference, quantity and
    unit price are placeholders until real requirements land.
    """

    model_config = ConfigDict(frozen=True)

    detail_id: int = Field(..., ge=1)
    item_id: str | None = None
    quantity: int = Field(default=0, ge=0)
    unit_price: Decimal | None = Field(default=None, ge=0)


__all__ = ["AccountReference", "PurchaseDetail"]
