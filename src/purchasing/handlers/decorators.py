"""
Event handler decorators.

``@handles`` marks an aggregate method as the applier for one event type.
``DeclarativeAggregate`` discovers the marked methods at class creation.
"""

from collections.abc import Callable
from typing import Any, TypeVar

from purchasing.events.base import DomainEvent

F = TypeVar("F", bound=Callable[..., Any])


def handles(event_type: type[DomainEvent]) -> Callable[[F], F]:
    """
    Mark a method as the handler for ``event_type``.

    Example:
        >>> class PurchaseAggregate(DeclarativeAggregate[PurchaseState]):
        ...     @handles(PurchaseCreated)
        ...     def _on_created(self, event: PurchaseCreated) -> None:
        ...         ...
    """

    def decorator(func: F) -> F:
        func._handles_event_type = event_type  # type: ignore[attr-defined]
        return func

    return decorator


def get_handled_event_type(func: Callable[..., Any]) -> type[DomainEvent] | None:
    """Return the event type a decorated function handles, or None."""
    return getattr(func, "_handles_event_type", None)


__all__ = ["get_handled_event_type", "handles"]
