"""
Core domain layer: partition scopes, similarity math and the exception hierarchy.
"""

from copilot_store.core.exceptions import (
    ConflictError,
    CopilotStoreException,
    InvalidArgumentError,
    NotFoundError,
    PartialBootstrapFailure,
    PreconditionFailedError,
    StoreUnavailableError,
)
from copilot_store.core.partition_key import PartitionKeyBuilder, PartitionScope

__all__ = [
    "CopilotStoreException",
    "ConflictError",
    "InvalidArgumentError",
    "NotFoundError",
    "PartialBootstrapFailure",
    "PreconditionFailedError",
    "StoreUnavailableError",
    "PartitionKeyBuilder",
    "PartitionScope",
]
