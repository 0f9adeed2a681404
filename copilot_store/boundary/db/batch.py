"""
Transactional batches.

A batch collects create, replace, upsert and delete operations for one
partition scope and hands them to the store as a single all-or-nothing unit.
Nothing touches the database until execute().

Dependencies: copilot_store.core
System role: Atomic multi-document writes for chat sessions and messages
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Self

from copilot_store.core.partition_key import PartitionScope

if TYPE_CHECKING:
    from copilot_store.boundary.db.document_store import DocumentStore


class BatchOperationType(str, Enum):
    """Kind of write applied by a batch operation."""

    CREATE = "create"
    REPLACE = "replace"
    UPSERT = "upsert"
    DELETE = "delete"


@dataclass(frozen=True)
class BatchOperation:
    """
    Single write inside a batch.

    Attributes:
        operation_type: Kind of write
        id: Target document id
        document: Body for create/replace/upsert, None for delete
        if_match: ETag the stored document must still carry (replace/delete)
    """

    operation_type: BatchOperationType
    id: str
    document: dict[str, Any] | None = None
    if_match: str | None = None


@dataclass
class TransactionalBatchResponse:
    """Outcome of a committed batch, one entry per operation in order."""

    operations: list[BatchOperation]
    documents: list[dict[str, Any] | None]

    def __len__(self) -> int:
        return len(self.operations)


class TransactionalBatch:
    """
    Builder for an atomic batch in one partition scope.

    Usage:
        batch = store.create_transactional_batch("chat", scope)
        batch.upsert_item(session_doc).upsert_item(message_doc)
        await batch.execute()
    """

    def __init__(self, store: "DocumentStore", container: str, scope: PartitionScope) -> None:
        self._store = store
        self.container = container
        self.scope = scope
        self._operations: list[BatchOperation] = []

    def create_item(self, document: dict[str, Any]) -> Self:
        self._operations.append(BatchOperation(BatchOperationType.CREATE, str(document.get("id", "")), document))
        return self

    def replace_item(self, id: str, document: dict[str, Any], if_match: str | None = None) -> Self:
        self._operations.append(BatchOperation(BatchOperationType.REPLACE, id, document, if_match))
        return self

    def upsert_item(self, document: dict[str, Any]) -> Self:
        self._operations.append(BatchOperation(BatchOperationType.UPSERT, str(document.get("id", "")), document))
        return self

    def delete_item(self, id: str, if_match: str | None = None) -> Self:
        self._operations.append(BatchOperation(BatchOperationType.DELETE, id, if_match=if_match))
        return self

    @property
    def operations(self) -> tuple[BatchOperation, ...]:
        return tuple(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    async def execute(self) -> TransactionalBatchResponse:
        """
        Commit every queued operation atomically.

        Returns:
            TransactionalBatchResponse: Resulting documents in operation order

        Raises:
            NotFoundError: A replace or delete target is missing (nothing written)
            ConflictError: A create collided or an ETag no longer matches (nothing written)
            StoreUnavailableError: The store could not be reached
        """
        operations = list(self._operations)
        documents = await self._store.execute_batch(self.container, self.scope, operations)
        return TransactionalBatchResponse(operations=operations, documents=documents)
