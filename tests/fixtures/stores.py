"""
Event store doubles for service tests.
"""

from purchasing.events.base import DomainEvent
from purchasing.stores.in_memory import InMemoryEventStore
from purchasing.stores.interface import AppendResult


class FlakyEventStore(InMemoryEventStore):
    """Fails the first ``failures`` appends with ConnectionError, then behaves normally."""

    def __init__(self, failures: int = 1) -> None:
        super().__init__(enable_tracing=False)
        self.failures = failures
        self.append_attempts = 0

    async def append_events(
        self,
        aggregate_id: str,
        aggregate_type: str,
        events: list[DomainEvent],
        expected_version: int,
    ) -> AppendResult:
        self.append_attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("event store unreachable")
        return await super().append_events(
            aggregate_id, aggregate_type, events, expected_version
        )
