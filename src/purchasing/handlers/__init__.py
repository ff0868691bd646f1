"""Decorators for declarative event handling."""

from purchasing.handlers.decorators import get_handled_event_type, handles

__all__ = ["get_handled_event_type", "handles"]
