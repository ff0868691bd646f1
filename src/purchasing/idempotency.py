"""
Idempotency for command handling.

A command carrying an ``idempotency_key`` takes effect once. The first
submission claims the key, and the claim is completed only after the
command's events are persisted and queued for publication. If anything fails
before that, nothing is recorded and a retry with the same key runs the
command again. Re-submissions of a completed command get the original
outcome back and emit nothing new.

Example:
    >>> guard = IdempotencyGuard(InMemoryIdempotencyStore())
    >>> async with guard.claim(command.idempotency_key, command.command_type) as claim:
    ...     if claim.record is not None:
    ...         return replay(claim.record)
    ...     purchase, events = await handler.handle_create_purchase(command)
    ...     await repository.save(purchase)
    ...     await claim.complete(purchase.aggregate_id, events)
"""

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from purchasing.events.base import DomainEvent
from purchasing.exceptions import FieldError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdempotencyRecord:
    """
    What a command produced the first time it took effect.

    Attributes:
        key: The command's idempotency key
        command_type: Name of the command class
        aggregate_id: Aggregate the command created, if it created one
        event_ids: Identifiers of the events emitted then
        recorded_at: When the record was stored
    """

    key: str
    command_type: str
    aggregate_id: str | None = None
    event_ids: tuple[Any, ...] = ()
    recorded_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class IdempotencyStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> IdempotencyRecord | None:
        """Return the record stored under ``key``, if any."""

    @abstractmethod
    async def put(self, record: IdempotencyRecord) -> None:
        """Store a record. An existing record for the same key is kept."""


class InMemoryIdempotencyStore(IdempotencyStore):
    def __init__(self) -> None:
        self._records: dict[str, IdempotencyRecord] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> IdempotencyRecord | None:
        async with self._lock:
            return self._records.get(key)

    async def put(self, record: IdempotencyRecord) -> None:
        async with self._lock:
            self._records.setdefault(record.key, record)

    def __len__(self) -> int:
        return len(self._records)


class IdempotencyClaim:
    """
    Exclusive hold on one idempotency key for the duration of a command.

    ``record`` is the stored outcome of an earlier submission, or None when
    the command has not taken effect yet.
    """

    def __init__(
        self,
        store: IdempotencyStore | None,
        key: str | None,
        command_type: str,
        record: IdempotencyRecord | None = None,
    ) -> None:
        self._store = store
        self._key = key
        self._command_type = command_type
        self.record = record

    @property
    def is_replay(self) -> bool:
        return self.record is not None

    async def complete(
        self,
        aggregate_id: str | None = None,
        events: Iterable[DomainEvent] = (),
    ) -> None:
        """Record the outcome so later submissions with this key replay it."""
        if self._store is None or self._key is None:
            return
        record = IdempotencyRecord(
            key=self._key,
            command_type=self._command_type,
            aggregate_id=aggregate_id,
            event_ids=tuple(event.event_id for event in events),
        )
        await self._store.put(record)
        self.record = record


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class IdempotencyGuard:
    """
    Serializes commands sharing an idempotency key.

    Per-key locks exist only while some command holds or waits for the key,
    so the guard does not grow with the number of keys ever seen.

    Args:
        store: Where outcomes are recorded. With no store every claim is a
               pass-through and keys are ignored.
    """

    def __init__(self, store: IdempotencyStore | None = None) -> None:
        self._store = store
        self._locks: dict[str, _KeyLock] = {}

    @property
    def store(self) -> IdempotencyStore | None:
        return self._store

    @property
    def held_keys(self) -> int:
        """Number of keys currently held or waited on."""
        return len(self._locks)

    @contextlib.asynccontextmanager
    async def claim(self, key: str | None, command_type: str) -> AsyncIterator[IdempotencyClaim]:
        """
        Hold ``key`` until the block exits.

        Raises:
            ValidationError: If the key was already used by another command type
        """
        if key is None or self._store is None:
            yield IdempotencyClaim(None, None, command_type)
            return

        entry = self._locks.setdefault(key, _KeyLock())
        entry.holders += 1
        try:
            async with entry.lock:
                record = await self._store.get(key)
                if record is not None:
                    if record.command_type != command_type:
                        reason = f"already used by {record.command_type}"
                        raise ValidationError(command_type, [FieldError("idempotency_key", reason)])
                    logger.info(
                        "Idempotent replay of %s with key %s",
                        command_type,
                        key,
                        extra={"command_type": command_type, "idempotency_key": key},
                    )
                yield IdempotencyClaim(self._store, key, command_type, record)
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                del self._locks[key]


__all__ = [
    "IdempotencyClaim",
    "IdempotencyGuard",
    "IdempotencyRecord",
    "IdempotencyStore",
    "InMemoryIdempotencyStore",
]
