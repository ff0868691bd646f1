"""
purchasing - Event-sourced purchase and sale command handling.

This package provides:
- The Purchase aggregate with its line items and account reference
- CreatePurchaseCommand / RecordSaleCommand and their command handler
- PurchaseCreated / FishSold domain events with a type registry
- An in-memory event store and aggregate repository
- Topic-based event publishers (in-memory, Kafka) with retry
- An asynchronous, per-aggregate ordered publication dispatcher
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("purchasing")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from purchasing.aggregates import (
    AggregateRepository,
    AggregateRoot,
    DeclarativeAggregate,
    PurchaseAggregate,
    PurchaseState,
    PurchaseStatus,
)
from purchasing.command_handler import (
    IdGenerator,
    PurchaseCommandHandler,
    RepositoryIdGenerator,
    SequentialIdGenerator,
    validate_create_purchase,
    validate_record_sale,
)
from purchasing.commands import (
    Command,
    CreatePurchaseCommand,
    PurchaseDetailInput,
    RecordSaleCommand,
)
from purchasing.config import PurchasingConfig
from purchasing.events import (
    DomainEvent,
    DuplicateEventTypeError,
    EventRegistry,
    EventTypeNotFoundError,
    FishSold,
    PurchaseCreated,
    default_registry,
    register_event,
)
from purchasing.exceptions import (
    AggregateNotFoundError,
    EventVersionError,
    FieldError,
    InvalidTransitionError,
    NotFoundError,
    OptimisticLockError,
    PersistenceError,
    PublishError,
    PurchasingError,
    SerializationError,
    ValidationError,
)
from purchasing.handlers import handles
from purchasing.idempotency import (
    IdempotencyClaim,
    IdempotencyGuard,
    IdempotencyRecord,
    IdempotencyStore,
    InMemoryIdempotencyStore,
)
from purchasing.lookups import (
    Account,
    AccountLookup,
    InMemoryAccountDirectory,
    InMemoryItemCatalog,
    Item,
    ItemLookup,
)
from purchasing.publishing import (
    DEFAULT_TOPIC,
    KAFKA_AVAILABLE,
    EventPublisher,
    InMemoryEventPublisher,
    KafkaEventPublisher,
    KafkaNotAvailableError,
    KafkaPublisherConfig,
    PublicationDispatcher,
    RetryConfig,
    RetryingEventPublisher,
)
from purchasing.serialization import deserialize_event, serialize_event
from purchasing.service import CommandResult, PurchasingService, create_service
from purchasing.stores import (
    AppendResult,
    EventStore,
    EventStream,
    ExpectedVersion,
    InMemoryEventStore,
)
from purchasing.values import AccountReference, PurchaseDetail

__all__ = [
    "__version__",
    # Values and aggregates
    "AccountReference",
    "AggregateRepository",
    "AggregateRoot",
    "DeclarativeAggregate",
    "PurchaseAggregate",
    "PurchaseDetail",
    "PurchaseState",
    "PurchaseStatus",
    # Commands
    "Command",
    "CreatePurchaseCommand",
    "IdGenerator",
    "PurchaseCommandHandler",
    "PurchaseDetailInput",
    "RecordSaleCommand",
    "RepositoryIdGenerator",
    "SequentialIdGenerator",
    "validate_create_purchase",
    "validate_record_sale",
    # Events
    "DomainEvent",
    "DuplicateEventTypeError",
    "EventRegistry",
    "EventTypeNotFoundError",
    "FishSold",
    "PurchaseCreated",
    "default_registry",
    "handles",
    "register_event",
    # Exceptions
    "AggregateNotFoundError",
    "EventVersionError",
    "FieldError",
    "InvalidTransitionError",
    "NotFoundError",
    "OptimisticLockError",
    "PersistenceError",
    "PublishError",
    "PurchasingError",
    "SerializationError",
    "ValidationError",
    # Idempotency and lookups
    "Account",
    "AccountLookup",
    "IdempotencyClaim",
    "IdempotencyGuard",
    "IdempotencyRecord",
    "IdempotencyStore",
    "InMemoryAccountDirectory",
    "InMemoryIdempotencyStore",
    "InMemoryItemCatalog",
    "Item",
    "ItemLookup",
    # Publishing
    "DEFAULT_TOPIC",
    "EventPublisher",
    "InMemoryEventPublisher",
    "KAFKA_AVAILABLE",
    "KafkaEventPublisher",
    "KafkaNotAvailableError",
    "KafkaPublisherConfig",
    "PublicationDispatcher",
    "RetryConfig",
    "RetryingEventPublisher",
    # Serialization
    "deserialize_event",
    "serialize_event",
    # Service and config
    "CommandResult",
    "PurchasingConfig",
    "PurchasingService",
    "create_service",
    # Stores
    "AppendResult",
    "EventStore",
    "EventStream",
    "ExpectedVersion",
    "InMemoryEventStore",
]
