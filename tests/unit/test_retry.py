"""
Unit tests for RetryConfig, calculate_backoff and RetryingEventPublisher.
"""

from unittest.mock import AsyncMock

import pytest

from purchasing.exceptions import PublishError
from purchasing.publishing import (
    InMemoryEventPublisher,
    RetryConfig,
    RetryingEventPublisher,
    calculate_backoff,
)
from tests.fixtures import CrashingPublisher, create_fish_sold

FAST = RetryConfig(max_retries=2, initial_delay=0.001, max_delay=0.01, jitter=0.0)


class TestRetryConfig:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_retries": -1},
            {"initial_delay": 0},
            {"initial_delay": 2.0, "max_delay": 1.0},
            {"exponential_base": 1.0},
            {"jitter": 1.5},
        ],
    )
    def test_invalid(self, kwargs: dict[str, float]) -> None:
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)  # type: ignore[arg-type]


class TestCalculateBackoff:
    def test_exponential_growth(self) -> None:
        config = RetryConfig(initial_delay=1.0, max_delay=60.0, jitter=0.0)
        assert [calculate_backoff(n, config) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max_delay(self) -> None:
        config = RetryConfig(initial_delay=1.0, max_delay=5.0, jitter=0.0)
        assert calculate_backoff(10, config) == 5.0

    def test_jitter_stays_in_range(self) -> None:
        config = RetryConfig(initial_delay=1.0, max_delay=60.0, jitter=0.1)
        for _ in range(50):
            assert 0.9 <= calculate_backoff(0, config) <= 1.1


class TestRetryingEventPublisher:
    @pytest.mark.asyncio
    async def test_success_first_try(self, publisher: InMemoryEventPublisher) -> None:
        retrying = RetryingEventPublisher(publisher, FAST)
        await retrying.publish(create_fish_sold())

        assert retrying.get_stats() == {"attempts": 1, "retries": 0, "exhausted": 0}
        assert retrying.topic == publisher.topic

    @pytest.mark.asyncio
    async def test_recovers_after_failures(self, publisher: InMemoryEventPublisher) -> None:
        publisher.fail_next(2)
        retrying = RetryingEventPublisher(publisher, FAST)
        event = create_fish_sold()

        await retrying.publish(event)

        assert publisher.published_events == [event]
        assert retrying.get_stats() == {"attempts": 3, "retries": 2, "exhausted": 0}

    @pytest.mark.asyncio
    async def test_exhausted_reraises(self, publisher: InMemoryEventPublisher) -> None:
        publisher.fail_next(10)
        retrying = RetryingEventPublisher(publisher, FAST)

        with pytest.raises(PublishError):
            await retrying.publish(create_fish_sold())

        assert publisher.attempts == 3
        assert retrying.get_stats()["exhausted"] == 1

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self) -> None:
        retrying = RetryingEventPublisher(CrashingPublisher(), FAST)

        with pytest.raises(RuntimeError):
            await retrying.publish(create_fish_sold())

        assert retrying.get_stats()["retries"] == 0

    @pytest.mark.asyncio
    async def test_close_delegates(self, publisher: InMemoryEventPublisher) -> None:
        publisher.close = AsyncMock()  # type: ignore[method-assign]
        await RetryingEventPublisher(publisher).close()
        publisher.close.assert_awaited_once()
