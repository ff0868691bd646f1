"""
The Purchase aggregate.

A purchase owns its ordered line items and references an account that lives
in the account master-data service. Its lifecycle has two statuses:
``DRAFT`` before creation and ``CREATED`` afterwards.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict

from purchasing.aggregates.base import DeclarativeAggregate
from purchasing.events.purchase import PURCHASE_AGGREGATE_TYPE, PurchaseCreated
from purchasing.exceptions import InvalidTransitionError
from purchasing.handlers import handles
from purchasing.values import AccountReference, PurchaseDetail


class PurchaseStatus(str, Enum):
    DRAFT = "draft"
    CREATED = "created"


class PurchaseState(BaseModel):
    """Current state of a purchase."""

    model_config = ConfigDict(frozen=True)

    purchase_id: int
    status: PurchaseStatus = PurchaseStatus.DRAFT
    purchase_type: str | None = None
    purchase_date: date | None = None
    warehouse_arrival_date: date | None = None
    storage_fee_due_date: date | None = None
    storage_fee_paid: bool = False
    ship_name: str = ""
    product_name: str = ""
    account: AccountReference | None = None
    details: tuple[PurchaseDetail, ...] = ()


class PurchaseAggregate(DeclarativeAggregate[PurchaseState]):
    """
    Aggregate root for one purchase transaction.

    The identifier is the string form of the integer ``purchase_id``
    assigned at creation.
    """

    aggregate_type = PURCHASE_AGGREGATE_TYPE

    def _get_initial_state(self) -> PurchaseState:
        return PurchaseState(purchase_id=int(self.aggregate_id))

    @property
    def purchase_id(self) -> int:
        return self.state.purchase_id

    @property
    def status(self) -> PurchaseStatus:
        return self.state.status

    @property
    def details(self) -> tuple[PurchaseDetail, ...]:
        return self.state.details

    def create(
        self,
        *,
        ship_name: str,
        product_name: str,
        account: AccountReference,
        details: tuple[PurchaseDetail, ...] = (),
        purchase_type: str | None = None,
        purchase_date: date | None = None,
        warehouse_arrival_date: date | None = None,
        storage_fee_due_date: date | None = None,
        storage_fee_paid: bool = False,
        actor_id: str | None = None,
    ) -> PurchaseCreated:
        """
        Create the purchase, moving it from DRAFT to CREATED.

        Field validation belongs to the command handler; this method only
        guards the status transition.

        Raises:
            InvalidTransitionError: If the purchase was already created
        """
        if self.status is not PurchaseStatus.DRAFT:
            raise InvalidTransitionError(self.aggregate_id, self.status.value, "create")

        event = PurchaseCreated(
            aggregate_id=self.aggregate_id,
            aggregate_version=self.get_next_version(),
            actor_id=actor_id,
            purchase_id=self.purchase_id,
            purchase_type=purchase_type,
            purchase_date=purchase_date,
            warehouse_arrival_date=warehouse_arrival_date,
            storage_fee_due_date=storage_fee_due_date,
            storage_fee_paid=storage_fee_paid,
            ship_name=ship_name,
            product_name=product_name,
            account_id=account.account_id,
            details=details,
        )
        self._raise_event(event)
        return event

    @handles(PurchaseCreated)
    def _on_purchase_created(self, event: PurchaseCreated) -> None:
        self._state = PurchaseState(
            purchase_id=event.purchase_id,
            status=PurchaseStatus.CREATED,
            purchase_type=event.purchase_type,
            purchase_date=event.purchase_date,
            warehouse_arrival_date=event.warehouse_arrival_date,
            storage_fee_due_date=event.storage_fee_due_date,
            storage_fee_paid=event.storage_fee_paid,
            ship_name=event.ship_name,
            product_name=event.product_name,
            account=AccountReference(account_id=event.account_id),
            details=event.details,
        )


__all__ = ["PurchaseAggregate", "PurchaseState", "PurchaseStatus"]
