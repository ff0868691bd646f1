"""
Observability utilities for purchasing.

Provides a composition-based ``Tracer`` and standard span attributes.
OpenTelemetry is optional; without it every tracer is a ``NullTracer``.

Example:
    >>> from purchasing.observability import create_tracer
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>> with tracer.span("purchasing.command.create_purchase"):
    ...     pass
"""

from purchasing.observability.attributes import (
    ATTR_AGGREGATE_ID,
    ATTR_AGGREGATE_TYPE,
    ATTR_COMMAND_TYPE,
    ATTR_ERROR_TYPE,
    ATTR_EVENT_COUNT,
    ATTR_EVENT_ID,
    ATTR_EVENT_TYPE,
    ATTR_EXPECTED_VERSION,
    ATTR_IDEMPOTENCY_KEY,
    ATTR_IDEMPOTENT_REPLAY,
    ATTR_MESSAGING_DESTINATION,
    ATTR_MESSAGING_OPERATION,
    ATTR_MESSAGING_SYSTEM,
    ATTR_VERSION,
)
from purchasing.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    SpanKindEnum,
    Tracer,
    create_tracer,
)
from purchasing.observability.tracing import OTEL_AVAILABLE

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
    "MockTracer",
    "NullTracer",
    "OTEL_AVAILABLE",
    "OpenTelemetryTracer",
    "RecordedSpan",
    "SpanKindEnum",
    "Tracer",
    "create_tracer",
]
