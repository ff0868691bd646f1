"""Kafka event publisher using aiokafka.

Events are sent to a single topic, keyed by ``aggregate_id`` so that every
event of one purchase lands on the same partition and keeps its order.
The message value is the JSON produced by ``serialize_event``; routing
metadata is duplicated into message headers so consumers can filter
without decoding the body.

Delivery is at-least-once at best. The publisher does not coordinate with
the event store, so a failed publish after a successful append is reported
as ``PublishError`` and left to the caller (or ``RetryingEventPublisher``).

Example:
    >>> config = KafkaPublisherConfig(bootstrap_servers="localhost:9092")
    >>> async with KafkaEventPublisher(config) as publisher:
    ...     await publisher.publish(purchase_created)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any

from purchasing.events.base import DomainEvent
from purchasing.exceptions import PublishError
from purchasing.observability import (
    ATTR_AGGREGATE_ID,
    ATTR_AGGREGATE_TYPE,
    ATTR_EVENT_ID,
    ATTR_EVENT_TYPE,
    ATTR_MESSAGING_DESTINATION,
    ATTR_MESSAGING_OPERATION,
    ATTR_MESSAGING_SYSTEM,
    SpanKindEnum,
    Tracer,
    create_tracer,
)
from purchasing.publishing.interface import DEFAULT_TOPIC, EventPublisher
from purchasing.serialization import serialize_event

# Optional aiokafka import - fail gracefully if not installed
try:
    from aiokafka import AIOKafkaProducer
    from aiokafka.errors import KafkaError

    KAFKA_AVAILABLE = True
except ImportError:
    KAFKA_AVAILABLE = False
    AIOKafkaProducer = None
    KafkaError = Exception

logger = logging.getLogger(__name__)

_VALID_PROTOCOLS = frozenset({"PLAINTEXT", "SSL", "SASL_PLAINTEXT", "SASL_SSL"})
_VALID_ACKS = frozenset({"0", "1", "all"})


class KafkaNotAvailableError(ImportError):
    """Raised when the aiokafka package is not installed."""

    def __init__(self) -> None:
        super().__init__(
            "aiokafka package is not installed. Install it with: pip install purchasing[kafka]"
        )


@dataclass
class KafkaPublisherConfig:
    """Configuration for the Kafka publisher.

    Attributes:
        bootstrap_servers: Broker addresses, comma-separated (host1:port1,host2:port2)
        topic: Destination topic for purchase and sale events
        client_id: Client identifier reported to the brokers
        acks: Acknowledgment level ("0", "1" or "all")
        compression_type: Producer compression codec, or None
        linger_ms: Time to wait for batching before sending
        request_timeout_ms: Broker request timeout
        security_protocol: PLAINTEXT, SSL, SASL_PLAINTEXT or SASL_SSL
        sasl_mechanism: SASL mechanism when a SASL protocol is used
        sasl_username: SASL username
        sasl_password: SASL password (redacted in logs)
    """

    bootstrap_servers: str = "localhost:9092"
    topic: str = DEFAULT_TOPIC
    client_id: str = "purchasing-publisher"
    acks: str = "all"
    compression_type: str | None = "gzip"
    linger_ms: int = 5
    request_timeout_ms: int = 30000
    security_protocol: str = "PLAINTEXT"
    sasl_mechanism: str | None = None
    sasl_username: str | None = None
    sasl_password: str | None = None

    def __post_init__(self) -> None:
        if not self.bootstrap_servers:
            raise ValueError("bootstrap_servers must not be empty")
        if not self.topic:
            raise ValueError("topic must not be empty")
        if self.acks not in _VALID_ACKS:
            raise ValueError(f"Invalid acks: {self.acks}. Must be one of: {sorted(_VALID_ACKS)}")
        if self.security_protocol not in _VALID_PROTOCOLS:
            raise ValueError(
                f"Invalid security_protocol: {self.security_protocol}. "
                f"Must be one of: {sorted(_VALID_PROTOCOLS)}"
            )
        if self.security_protocol.startswith("SASL_"):
            if not self.sasl_mechanism:
                raise ValueError(
                    f"sasl_mechanism is required when security_protocol is "
                    f"{self.security_protocol}"
                )
            if not self.sasl_username or not self.sasl_password:
                raise ValueError("sasl_username and sasl_password are required for SASL")

    def get_producer_config(self) -> dict[str, Any]:
        """Keyword arguments for ``AIOKafkaProducer``."""
        config: dict[str, Any] = {
            "bootstrap_servers": self.bootstrap_servers,
            "client_id": self.client_id,
            "acks": self.acks if self.acks == "all" else int(self.acks),
            "compression_type": self.compression_type,
            "linger_ms": self.linger_ms,
            "request_timeout_ms": self.request_timeout_ms,
            "security_protocol": self.security_protocol,
        }
        if self.security_protocol.startswith("SASL_"):
            config["sasl_mechanism"] = self.sasl_mechanism
            config["sasl_plain_username"] = self.sasl_username
            config["sasl_plain_password"] = self.sasl_password
        return config

    def get_sanitized_config(self) -> dict[str, Any]:
        """Configuration safe for logging, with the password redacted."""
        return {
            "bootstrap_servers": self.bootstrap_servers,
            "topic": self.topic,
            "client_id": self.client_id,
            "acks": self.acks,
            "security_protocol": self.security_protocol,
            "sasl_mechanism": self.sasl_mechanism,
            "sasl_username": self.sasl_username,
            "sasl_password": "***" if self.sasl_password else None,
        }


class KafkaEventPublisher(EventPublisher):
    """Publisher that sends events to a Kafka topic.

    Args:
        config: Connection and producer settings
        tracer: Optional custom Tracer instance
        enable_tracing: If True and OpenTelemetry is available, emit traces

    Raises:
        KafkaNotAvailableError: If aiokafka is not installed
    """

    def __init__(
        self,
        config: KafkaPublisherConfig | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        if not KAFKA_AVAILABLE:
            raise KafkaNotAvailableError()

        self._config = config or KafkaPublisherConfig()
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._producer: Any = None

    @property
    def topic(self) -> str:
        return self._config.topic

    @property
    def config(self) -> KafkaPublisherConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._producer is not None

    async def connect(self) -> None:
        """Create and start the producer. Safe to call when already connected."""
        if self._producer is not None:
            logger.warning("KafkaEventPublisher already connected")
            return

        logger.info("Connecting to Kafka", extra=self._config.get_sanitized_config())
        producer = AIOKafkaProducer(**self._config.get_producer_config())
        await producer.start()
        self._producer = producer
        logger.info("Connected to Kafka", extra={"topic": self._config.topic})

    async def close(self) -> None:
        """Stop the producer. Safe to call multiple times."""
        if self._producer is None:
            logger.debug("KafkaEventPublisher not connected, nothing to close")
            return

        producer, self._producer = self._producer, None
        try:
            await producer.stop()
        except KafkaError as e:
            logger.warning("Error stopping producer: %s", e)
        logger.info("Disconnected from Kafka")

    async def __aenter__(self) -> KafkaEventPublisher:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def publish(self, event: DomainEvent) -> None:
        if self._producer is None:
            raise RuntimeError("Producer not connected. Call connect() first.")

        key = event.aggregate_id.encode("utf-8")
        value = serialize_event(event)
        headers = self._create_headers(event)

        with self._tracer.span_with_kind(
            f"purchasing.publisher.publish {event.event_type}",
            kind=SpanKindEnum.PRODUCER,
            attributes={
                ATTR_MESSAGING_SYSTEM: "kafka",
                ATTR_MESSAGING_DESTINATION: self._config.topic,
                ATTR_MESSAGING_OPERATION: "publish",
                ATTR_EVENT_TYPE: event.event_type,
                ATTR_EVENT_ID: str(event.event_id),
                ATTR_AGGREGATE_ID: event.aggregate_id,
                ATTR_AGGREGATE_TYPE: event.aggregate_type,
            },
        ) as span:
            try:
                record_metadata = await self._producer.send_and_wait(
                    self._config.topic,
                    value=value,
                    key=key,
                    headers=headers,
                )
            except KafkaError as e:
                logger.error(
                    "Failed to publish %s to Kafka",
                    event.event_type,
                    exc_info=True,
                    extra={
                        "event_id": str(event.event_id),
                        "topic": self._config.topic,
                        "error": str(e),
                    },
                )
                raise PublishError(event.event_id, self._config.topic, str(e)) from e

            if span:
                span.set_attribute("messaging.kafka.partition", record_metadata.partition)
                span.set_attribute("messaging.kafka.offset", record_metadata.offset)

        logger.debug(
            "Event published",
            extra={
                "event_id": str(event.event_id),
                "topic": record_metadata.topic,
                "partition": record_metadata.partition,
                "offset": record_metadata.offset,
            },
        )

    def _create_headers(self, event: DomainEvent) -> list[tuple[str, bytes]]:
        """Routing headers, so consumers can filter without decoding the body."""
        headers: list[tuple[str, bytes]] = [
            ("event_id", str(event.event_id).encode("utf-8")),
            ("event_type", event.event_type.encode("utf-8")),
            ("aggregate_id", event.aggregate_id.encode("utf-8")),
            ("aggregate_type", event.aggregate_type.encode("utf-8")),
            ("aggregate_version", str(event.aggregate_version).encode("utf-8")),
            ("occurred_at", event.occurred_at.isoformat().encode("utf-8")),
        ]
        if event.correlation_id:
            headers.append(("correlation_id", str(event.correlation_id).encode("utf-8")))
        if event.causation_id:
            headers.append(("causation_id", str(event.causation_id).encode("utf-8")))
        return headers


__all__ = [
    "KAFKA_AVAILABLE",
    "KafkaEventPublisher",
    "KafkaNotAvailableError",
    "KafkaPublisherConfig",
]
