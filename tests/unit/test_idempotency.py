"""
Unit tests for IdempotencyGuard and InMemoryIdempotencyStore.
"""

import asyncio

import pytest

from purchasing.exceptions import ValidationError
from purchasing.idempotency import (
    IdempotencyGuard,
    IdempotencyRecord,
    InMemoryIdempotencyStore,
)
from tests.fixtures import create_fish_sold


class TestInMemoryIdempotencyStore:
    @pytest.mark.asyncio
    async def test_first_record_wins(self) -> None:
        store = InMemoryIdempotencyStore()
        await store.put(IdempotencyRecord(key="k", command_type="A", aggregate_id="1"))
        await store.put(IdempotencyRecord(key="k", command_type="A", aggregate_id="2"))

        record = await store.get("k")

        assert record is not None
        assert record.aggregate_id == "1"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_unknown_key(self) -> None:
        assert await InMemoryIdempotencyStore().get("missing") is None


class TestIdempotencyGuard:
    @pytest.mark.asyncio
    async def test_completed_claim_is_replayed(self) -> None:
        store = InMemoryIdempotencyStore()
        guard = IdempotencyGuard(store)
        event = create_fish_sold()

        async with guard.claim("k", "RecordSaleCommand") as claim:
            assert not claim.is_replay
            await claim.complete(events=[event])

        async with guard.claim("k", "RecordSaleCommand") as claim:
            assert claim.is_replay
            assert claim.record is not None
            assert claim.record.event_ids == (event.event_id,)

    @pytest.mark.asyncio
    async def test_failed_block_records_nothing_and_releases_key(self) -> None:
        store = InMemoryIdempotencyStore()
        guard = IdempotencyGuard(store)

        with pytest.raises(ConnectionError):
            async with guard.claim("k", "CreatePurchaseCommand"):
                raise ConnectionError("store down")

        assert len(store) == 0
        assert guard.held_keys == 0
        async with guard.claim("k", "CreatePurchaseCommand") as claim:
            assert not claim.is_replay

    @pytest.mark.asyncio
    async def test_key_of_other_command_type_is_rejected(self) -> None:
        guard = IdempotencyGuard(InMemoryIdempotencyStore())
        async with guard.claim("k", "CreatePurchaseCommand") as claim:
            await claim.complete("1")

        with pytest.raises(ValidationError) as exc_info:
            async with guard.claim("k", "RecordSaleCommand"):
                pass

        assert exc_info.value.fields == ["idempotency_key"]
        assert guard.held_keys == 0

    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self) -> None:
        guard = IdempotencyGuard(InMemoryIdempotencyStore())
        order: list[str] = []

        async def hold(name: str) -> None:
            async with guard.claim("k", "RecordSaleCommand"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(hold("a"), hold("b"))

        assert order == ["a-in", "a-out", "b-in", "b-out"]
        assert guard.held_keys == 0

    @pytest.mark.asyncio
    async def test_locks_do_not_accumulate(self) -> None:
        guard = IdempotencyGuard(InMemoryIdempotencyStore())

        for index in range(1000):
            async with guard.claim(f"key-{index}", "RecordSaleCommand") as claim:
                await claim.complete()

        assert guard.held_keys == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key, with_store", [(None, True), ("k", False)])
    async def test_pass_through(self, key: str | None, with_store: bool) -> None:
        store = InMemoryIdempotencyStore() if with_store else None
        guard = IdempotencyGuard(store)

        async with guard.claim(key, "RecordSaleCommand") as claim:
            assert not claim.is_replay
            await claim.complete("1")

        assert guard.held_keys == 0
        if store is not None:
            assert len(store) == 0
