"""
Standard span attributes for purchasing components.

Messaging attributes follow OpenTelemetry semantic conventions.
"""

# =============================================================================
# Aggregate Attributes
# =============================================================================

ATTR_AGGREGATE_ID = "purchasing.aggregate.id"
"""Identifier of the aggregate instance (string)."""

ATTR_AGGREGATE_TYPE = "purchasing.aggregate.type"
"""Type name of the aggregate (e.g., 'Purchase', 'Item')."""

ATTR_VERSION = "purchasing.version"
"""Current version of an aggregate or stream (integer)."""

ATTR_EXPECTED_VERSION = "purchasing.expected_version"
"""Expected version for optimistic concurrency (integer)."""

# =============================================================================
# Event Attributes
# =============================================================================

ATTR_EVENT_ID = "purchasing.event.id"
"""Unique identifier for the event (UUID string)."""

ATTR_EVENT_TYPE = "purchasing.event.type"
"""Type name of the event (e.g., 'PurchaseCreated')."""

ATTR_EVENT_COUNT = "purchasing.event.count"
"""Number of events in an operation (integer)."""

# =============================================================================
# Command Attributes
# =============================================================================

ATTR_COMMAND_TYPE = "purchasing.command.type"
"""Type name of the command being handled."""

ATTR_IDEMPOTENCY_KEY = "purchasing.command.idempotency_key"
"""Idempotency key carried by the command, if any."""

ATTR_IDEMPOTENT_REPLAY = "purchasing.command.idempotent_replay"
"""True when a command was answered from the idempotency store."""

# =============================================================================
# Messaging Attributes (OTEL semantic)
# =============================================================================

ATTR_MESSAGING_SYSTEM = "messaging.system"
"""Messaging system identifier (e.g., 'kafka', 'memory')."""

ATTR_MESSAGING_DESTINATION = "messaging.destination.name"
"""Topic the event is published to."""

ATTR_MESSAGING_OPERATION = "messaging.operation"
"""Messaging operation type ('publish')."""

ATTR_ERROR_TYPE = "error.type"
"""Exception class name on failure."""


__all__ = [
    "ATTR_AGGREGATE_ID",
    "ATTR_AGGREGATE_TYPE",
    "ATTR_COMMAND_TYPE",
    "ATTR_ERROR_TYPE",
    "ATTR_EVENT_COUNT",
    "ATTR_EVENT_ID",
    "ATTR_EVENT_TYPE",
    "ATTR_EXPECTED_VERSION",
    "ATTR_IDEMPOTENCY_KEY",
    "ATTR_IDEMPOTENT_REPLAY",
    "ATTR_MESSAGING_DESTINATION",
    "ATTR_MESSAGING_OPERATION",
    "ATTR_MESSAGING_SYSTEM",
    "ATTR_VERSION",
]
