"""
Shared pytest fixtures for the purchasing tests.

This module provides:
- Master data fixtures (account_directory, item_catalog)
- Command handling fixtures (idempotency_store, command_handler)
- Persistence fixtures (event_store, purchase_repository)
- Publication fixtures (publisher, dispatcher)
- Service fixture wiring everything together
- Tracing fixtures (mock_tracer)
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from purchasing.aggregates.purchase import PurchaseAggregate
from purchasing.aggregates.repository import AggregateRepository
from purchasing.command_handler import PurchaseCommandHandler
from purchasing.idempotency import InMemoryIdempotencyStore
from purchasing.lookups import Account, InMemoryAccountDirectory, InMemoryItemCatalog, Item
from purchasing.observability import OTEL_AVAILABLE, MockTracer
from purchasing.publishing import InMemoryEventPublisher, PublicationDispatcher
from purchasing.service import PurchasingService
from purchasing.stores.in_memory import InMemoryEventStore

# ============================================================================
# Skip Conditions
# ============================================================================

skip_if_no_otel = pytest.mark.skipif(not OTEL_AVAILABLE, reason="opentelemetry not installed")


# =============================================================================
# Master Data Fixtures
# =============================================================================


@pytest.fixture
def account_directory() -> InMemoryAccountDirectory:
    """Accounts A-1 and A-2."""
    return InMemoryAccountDirectory(
        [
            Account(account_id="A-1", name="Atlantic Traders"),
            Account(account_id="A-2", name="Baltic Foods"),
        ]
    )


@pytest.fixture
def item_catalog() -> InMemoryItemCatalog:
    """Items ITM-1 and ITM-2. ITM-7 is not in the catalog."""
    return InMemoryItemCatalog(
        [
            Item(item_id="ITM-1", name="Tuna loin"),
            Item(item_id="ITM-2", name="Salmon fillet"),
        ]
    )


# =============================================================================
# Command Handling Fixtures
# =============================================================================


@pytest.fixture
def idempotency_store() -> InMemoryIdempotencyStore:
    return InMemoryIdempotencyStore()


@pytest.fixture
def command_handler(
    account_directory: InMemoryAccountDirectory,
    item_catalog: InMemoryItemCatalog,
) -> PurchaseCommandHandler:
    """Handler with sequential ids starting at 1."""
    return PurchaseCommandHandler(account_directory, item_catalog, enable_tracing=False)


# =============================================================================
# Persistence Fixtures
# =============================================================================


@pytest.fixture
def event_store() -> InMemoryEventStore:
    return InMemoryEventStore(enable_tracing=False)


@pytest.fixture
def purchase_repository(
    event_store: InMemoryEventStore,
) -> AggregateRepository[PurchaseAggregate]:
    return AggregateRepository(
        event_store=event_store,
        aggregate_factory=PurchaseAggregate,
        enable_tracing=False,
    )


# =============================================================================
# Publication Fixtures
# =============================================================================


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher(enable_tracing=False)


@pytest_asyncio.fixture
async def dispatcher(
    publisher: InMemoryEventPublisher,
) -> AsyncGenerator[PublicationDispatcher, None]:
    """Dispatcher over the in-memory publisher, shut down after the test."""
    dispatcher = PublicationDispatcher(publisher, publish_timeout=1.0, enable_tracing=False)
    yield dispatcher
    await dispatcher.shutdown(timeout=1.0)


@pytest_asyncio.fixture
async def service(
    command_handler: PurchaseCommandHandler,
    purchase_repository: AggregateRepository[PurchaseAggregate],
    dispatcher: PublicationDispatcher,
    idempotency_store: InMemoryIdempotencyStore,
) -> PurchasingService:
    """Service with idempotency enabled."""
    return PurchasingService(
        command_handler,
        purchase_repository,
        dispatcher,
        idempotency_store,
        enable_tracing=False,
    )


# =============================================================================
# Tracing Fixtures
# =============================================================================


@pytest.fixture
def mock_tracer() -> MockTracer:
    return MockTracer()
