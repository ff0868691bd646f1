"""
OpenTelemetry availability detection.

OpenTelemetry is an optional dependency (``pip install purchasing[telemetry]``).
Everything in ``purchasing.observability`` degrades to no-ops without it.
"""

try:
    from opentelemetry import trace  # noqa: F401

    OTEL_AVAILABLE = True
except ImportError:
    OTEL_AVAILABLE = False


__all__ = ["OTEL_AVAILABLE"]
