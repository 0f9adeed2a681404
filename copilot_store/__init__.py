"""
copilot_store: data-access layer over a partitioned document store.

Multi-tenant chat sessions and messages with atomic batches, a semantic
response cache keyed by embedding similarity, and a vector-searchable
product catalog.

Usage:
    from copilot_store import CopilotDataService, PartitionKeyBuilder

    async with CopilotDataService() as service:
        await service.initialize()
        scope = PartitionKeyBuilder.derive(tenant_id, user_id, session_id)
        session = await service.chat.get_session(scope, session_id)
"""

from copilot_store.application.services import (
    BootstrapReport,
    ChatStore,
    CopilotDataService,
    ProductCatalog,
    SemanticCache,
)
from copilot_store.core import (
    ConflictError,
    CopilotStoreException,
    InvalidArgumentError,
    NotFoundError,
    PartialBootstrapFailure,
    PartitionKeyBuilder,
    PartitionScope,
    PreconditionFailedError,
    StoreUnavailableError,
)
from copilot_store.models import CacheItem, Message, Product, ProductTag, Session

__all__ = [
    "CopilotDataService",
    "ChatStore",
    "SemanticCache",
    "ProductCatalog",
    "BootstrapReport",
    "PartitionKeyBuilder",
    "PartitionScope",
    "Session",
    "Message",
    "CacheItem",
    "Product",
    "ProductTag",
    "CopilotStoreException",
    "ConflictError",
    "InvalidArgumentError",
    "NotFoundError",
    "PartialBootstrapFailure",
    "PreconditionFailedError",
    "StoreUnavailableError",
]
