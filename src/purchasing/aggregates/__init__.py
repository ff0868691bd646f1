"""Aggregates: the event-sourced base classes and the Purchase aggregate."""

from purchasing.aggregates.base import AggregateRoot, DeclarativeAggregate
from purchasing.aggregates.purchase import PurchaseAggregate, PurchaseState, PurchaseStatus
from purchasing.aggregates.repository import AggregateRepository

__all__ = [
    "AggregateRepository",
    "AggregateRoot",
    "DeclarativeAggregate",
    "PurchaseAggregate",
    "PurchaseState",
    "PurchaseStatus",
]
