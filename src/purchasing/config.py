"""
Configuration for the purchasing service.

Values come from keyword arguments, then ``PURCHASING_*`` environment
variables, then defaults. Retry settings are nested and use a double
underscore: ``PURCHASING_RETRY__MAX_RETRIES=5``.

Example:
    >>> config = PurchasingConfig()
    >>> config.topic
    'purchase-events'
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from purchasing.publishing.interface import DEFAULT_TOPIC
from purchasing.publishing.retry import RetryConfig


class PurchasingConfig(BaseSettings):
    """
    Settings for command handling and event publication.

    Attributes:
        topic: Topic that purchase and sale events are published to
        publish_timeout: Upper bound in seconds for one publish call
        retry: Retry policy for transport failures
        kafka_bootstrap_servers: Kafka brokers; None selects the in-memory publisher
        enable_tracing: Emit OpenTelemetry spans when OpenTelemetry is installed
    """

    model_config = SettingsConfigDict(
        env_prefix="PURCHASING_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    topic: str = Field(default=DEFAULT_TOPIC, min_length=1)
    publish_timeout: float = Field(default=5.0, gt=0)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    kafka_bootstrap_servers: str | None = None
    enable_tracing: bool = True

    @field_validator("kafka_bootstrap_servers")
    @classmethod
    def _servers_not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("kafka_bootstrap_servers must not be blank when set")
        return value


__all__ = ["PurchasingConfig"]
