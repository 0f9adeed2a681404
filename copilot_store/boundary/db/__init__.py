"""
Database boundary layer: ORM model, connection management and the
partitioned document store.

Exports:
  - Base, TimestampMixin, PartitionKeyMixin: Model building blocks
  - DocumentModel: Partitioned JSON document row
  - get_async_engine(), get_async_session_factory(): Async connection management
  - DocumentStore, DocumentQuery, FeedPage, VectorMatch: Store API
  - TransactionalBatch, BatchOperation, BatchOperationType: Atomic batches

Dependencies: sqlalchemy, copilot_store.configs
System role: Database adapter providing persistent storage for chat
sessions and messages, cache entries and catalog products.
"""

from copilot_store.boundary.db.base import Base, PartitionKeyMixin, TimestampMixin
from copilot_store.boundary.db.batch import (
    BatchOperation,
    BatchOperationType,
    TransactionalBatch,
    TransactionalBatchResponse,
)
from copilot_store.boundary.db.connection import (
    create_all_tables,
    drop_all_tables,
    get_async_engine,
    get_async_session_factory,
)
from copilot_store.boundary.db.document_store import (
    DocumentQuery,
    DocumentStore,
    FeedPage,
    VectorMatch,
)
from copilot_store.boundary.db.models import DocumentModel

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "PartitionKeyMixin",
    # Connection
    "get_async_engine",
    "get_async_session_factory",
    "create_all_tables",
    "drop_all_tables",
    # Models
    "DocumentModel",
    # Store
    "DocumentStore",
    "DocumentQuery",
    "FeedPage",
    "VectorMatch",
    # Batches
    "TransactionalBatch",
    "TransactionalBatchResponse",
    "BatchOperation",
    "BatchOperationType",
]
