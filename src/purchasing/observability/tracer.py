"""
Tracers for the purchasing components.

Handlers, repositories and publishers receive a ``Tracer`` in their
constructor and never import OpenTelemetry themselves:

    >>> class AuditPublisher(EventPublisher):
    ...     def __init__(self, tracer: Tracer | None = None, enable_tracing: bool = True):
    ...         self._tracer = tracer if tracer is not None else create_tracer(
    ...             __name__, enable_tracing
    ...         )
    ...
    ...     async def publish(self, event: DomainEvent) -> None:
    ...         with self._tracer.span_with_kind(
    ...             "audit.publish", SpanKindEnum.PRODUCER, {"event.id": str(event.event_id)}
    ...         ):
    ...             ...

``create_tracer`` falls back to a ``NullTracer`` when tracing is switched off
or OpenTelemetry is not installed, so callers never branch on availability.
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator
from contextlib import AbstractContextManager
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol, runtime_checkable

from purchasing.observability.tracing import OTEL_AVAILABLE

if TYPE_CHECKING:
    from opentelemetry.trace import Span


class SpanKindEnum(Enum):
    """Span kinds used by this package."""

    INTERNAL = "internal"
    PRODUCER = "producer"


@runtime_checkable
class Tracer(Protocol):
    """Anything that can open spans around purchasing operations."""

    @property
    def enabled(self) -> bool: ...

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]: ...

    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]: ...


class NullTracer:
    """Tracer that opens no spans."""

    @property
    def enabled(self) -> bool:
        return False

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[None]:
        return self.span_with_kind(name, SpanKindEnum.INTERNAL, attributes)

    @contextlib.contextmanager
    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[None, None, None]:
        yield None


class OpenTelemetryTracer:
    """
    Tracer backed by the OpenTelemetry API.

    Span kinds are translated to ``opentelemetry.trace.SpanKind``; a kind with
    no counterpart is reported as INTERNAL.

    Raises:
        ImportError: If OpenTelemetry is not installed
    """

    def __init__(self, tracer_name: str) -> None:
        from opentelemetry import trace
        from opentelemetry.trace import SpanKind

        self._tracer = trace.get_tracer(tracer_name)
        self._kinds = {
            SpanKindEnum.INTERNAL: SpanKind.INTERNAL,
            SpanKindEnum.PRODUCER: SpanKind.PRODUCER,
        }
        self._default_kind = SpanKind.INTERNAL

    @property
    def enabled(self) -> bool:
        return True

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        return self.span_with_kind(name, SpanKindEnum.INTERNAL, attributes)

    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        return self._tracer.start_as_current_span(
            name,
            kind=self._kinds.get(kind, self._default_kind),
            attributes=attributes or {},
        )


class RecordedSpan(NamedTuple):
    name: str
    attributes: dict[str, Any]
    kind: SpanKindEnum


class MockTracer:
    """
    Tracer for tests that records every span it is asked to open.

    Example:
        >>> tracer = MockTracer()
        >>> with tracer.span("purchasing.command.record_sale", {"purchasing.item.id": "ITM-1"}):
        ...     pass
        >>> tracer.span_names
        ['purchasing.command.record_sale']
        >>> tracer.attributes_for("purchasing.command.record_sale")
        {'purchasing.item.id': 'ITM-1'}
    """

    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    @property
    def enabled(self) -> bool:
        return True

    @property
    def span_names(self) -> list[str]:
        return [span.name for span in self.spans]

    def attributes_for(self, name: str) -> dict[str, Any]:
        """Attributes of the first recorded span called ``name``."""
        for span in self.spans:
            if span.name == name:
                return span.attributes
        raise KeyError(name)

    def clear(self) -> None:
        self.spans.clear()

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[None]:
        return self.span_with_kind(name, SpanKindEnum.INTERNAL, attributes)

    @contextlib.contextmanager
    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[None, None, None]:
        self.spans.append(RecordedSpan(name, dict(attributes or {}), kind))
        yield None


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """OpenTelemetryTracer when enabled and installed, NullTracer otherwise."""
    if enable_tracing and OTEL_AVAILABLE:
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "MockTracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "RecordedSpan",
    "SpanKindEnum",
    "Tracer",
    "create_tracer",
]
