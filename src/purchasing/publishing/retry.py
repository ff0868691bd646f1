"""
Retrying publisher.

Wraps another publisher and retries ``PublishError`` with exponential
backoff and jitter. Once attempts are exhausted the last ``PublishError``
propagates to the caller (normally the dispatcher, which logs it).
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any

from purchasing.events.base import DomainEvent
from purchasing.exceptions import PublishError
from purchasing.publishing.interface import EventPublisher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_retries: Maximum number of retry attempts (0 = no retries)
        initial_delay: Delay in seconds before the first retry
        max_delay: Maximum delay in seconds between retries
        exponential_base: Base for exponential backoff calculation
        jitter: Fraction of delay to add as random jitter (0-1)
    """

    max_retries: int = 3
    initial_delay: float = 0.5
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: float = 0.1

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(
                f"max_retries must be >= 0, got {self.max_retries}. Use 0 for no retries."
            )
        if self.initial_delay <= 0:
            raise ValueError(f"initial_delay must be positive, got {self.initial_delay}.")
        if self.max_delay < self.initial_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) must be >= initial_delay ({self.initial_delay})."
            )
        if self.exponential_base <= 1.0:
            raise ValueError(f"exponential_base must be > 1.0, got {self.exponential_base}.")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError(f"jitter must be between 0.0 and 1.0, got {self.jitter}.")


def calculate_backoff(attempt: int, config: RetryConfig) -> float:
    """
    Delay before retry number ``attempt`` (0-based), capped and jittered.

    Example:
        >>> config = RetryConfig(initial_delay=1.0, max_delay=60.0)
        >>> delay = calculate_backoff(3, config)  # ~8s
    """
    delay = min(config.initial_delay * (config.exponential_base**attempt), config.max_delay)
    jitter_range = delay * config.jitter
    delay += random.uniform(-jitter_range, jitter_range)  # nosec B311 - not crypto
    return max(0.0, delay)


class RetryingEventPublisher(EventPublisher):
    """
    Publisher decorator adding retries with backoff.

    Example:
        >>> publisher = RetryingEventPublisher(
        ...     KafkaEventPublisher(config),
        ...     RetryConfig(max_retries=5),
        ... )
    """

    def __init__(self, inner: EventPublisher, config: RetryConfig | None = None) -> None:
        self._inner = inner
        self._config = config or RetryConfig()
        self._stats = {"attempts": 0, "retries": 0, "exhausted": 0}

    @property
    def topic(self) -> str:
        return self._inner.topic

    @property
    def config(self) -> RetryConfig:
        return self._config

    def get_stats(self) -> dict[str, Any]:
        return dict(self._stats)

    async def publish(self, event: DomainEvent) -> None:
        for attempt in range(self._config.max_retries + 1):
            self._stats["attempts"] += 1
            try:
                await self._inner.publish(event)
            except PublishError as e:
                if attempt >= self._config.max_retries:
                    self._stats["exhausted"] += 1
                    logger.error(
                        "All retries exhausted publishing %s",
                        event.event_type,
                        extra={
                            "event_id": str(event.event_id),
                            "event_type": event.event_type,
                            "attempts": attempt + 1,
                            "error": str(e),
                        },
                    )
                    raise

                delay = calculate_backoff(attempt, self._config)
                self._stats["retries"] += 1
                logger.warning(
                    "Retrying publish of %s after failure",
                    event.event_type,
                    extra={
                        "event_id": str(event.event_id),
                        "attempt": attempt + 1,
                        "max_retries": self._config.max_retries,
                        "delay_seconds": delay,
                        "error": str(e),
                    },
                )
                await asyncio.sleep(delay)
            else:
                if attempt > 0:
                    logger.info(
                        "Published %s after %d retries",
                        event.event_type,
                        attempt,
                        extra={"event_id": str(event.event_id), "attempt": attempt + 1},
                    )
                return

    async def close(self) -> None:
        await self._inner.close()


__all__ = ["RetryConfig", "RetryingEventPublisher", "calculate_backoff"]
