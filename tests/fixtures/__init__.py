"""
Shared test fixtures for the purchasing package.

This module provides reusable test helpers including:
- Event factories (create_purchase_created, create_fish_sold)
- An unhandled test event (NoteAdded)
- Publisher doubles (SlowPublisher, HangingPublisher, SelectiveFailingPublisher,
  CrashingPublisher)
- Event store doubles (FlakyEventStore)

Usage:
    from tests.fixtures import create_purchase_created, SlowPublisher
"""

from tests.fixtures.events import NoteAdded, create_fish_sold, create_purchase_created
from tests.fixtures.publishers import (
    CrashingPublisher,
    HangingPublisher,
    SelectiveFailingPublisher,
    SlowPublisher,
)
from tests.fixtures.stores import FlakyEventStore

__all__ = [
    # Events
    "NoteAdded",
    "create_fish_sold",
    "create_purchase_created",
    # Publishers
    "CrashingPublisher",
    "HangingPublisher",
    "SelectiveFailingPublisher",
    "SlowPublisher",
    # Stores
    "FlakyEventStore",
]
