"""
Test suite for transactional batches.

Tests that queued operations commit together, that any failing operation
rolls back the whole batch, and that ETag-guarded deletes detect documents
modified after they were read.

System role: Verification of atomic multi-document writes
"""

import pytest

from copilot_store.boundary.db.batch import BatchOperationType, TransactionalBatch
from copilot_store.boundary.db.document_store import DocumentStore
from copilot_store.core.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    PreconditionFailedError,
)
from copilot_store.core.partition_key import PartitionScope

CONTAINER = "chat"


@pytest.fixture
def scope() -> PartitionScope:
    """Provide a full 3-level scope."""
    return PartitionScope(("t1", "u1", "s1"))


class TestTransactionalBatchBuilder:
    """Test suite for queuing operations without touching the store."""

    def test_builder_should_queue_operations_in_order(
        self, document_store: DocumentStore, scope: PartitionScope
    ) -> None:
        """Test chained calls queue one operation each."""
        # Act
        batch = (
            document_store.create_transactional_batch(CONTAINER, scope)
            .create_item({"id": "a"})
            .upsert_item({"id": "b"})
            .replace_item("c", {"id": "c"}, if_match="etag-c")
            .delete_item("d")
        )

        # Assert
        assert isinstance(batch, TransactionalBatch)
        assert len(batch) == 4
        assert [op.operation_type for op in batch.operations] == [
            BatchOperationType.CREATE,
            BatchOperationType.UPSERT,
            BatchOperationType.REPLACE,
            BatchOperationType.DELETE,
        ]
        assert batch.operations[2].if_match == "etag-c"

    @pytest.mark.asyncio
    async def test_empty_batch_should_commit_nothing(
        self, document_store: DocumentStore, scope: PartitionScope
    ) -> None:
        """Test executing an empty batch is a no-op."""
        # Act
        response = await document_store.create_transactional_batch(CONTAINER, scope).execute()

        # Assert
        assert len(response) == 0
        assert response.documents == []


class TestTransactionalBatchExecute:
    """Test suite for atomic execution."""

    @pytest.mark.asyncio
    async def test_execute_should_commit_all_operations(
        self, document_store: DocumentStore, scope: PartitionScope
    ) -> None:
        """Test every operation is visible after a successful batch."""
        # Arrange
        await document_store.create_item(CONTAINER, scope, {"id": "old"})
        batch = document_store.create_transactional_batch(CONTAINER, scope)
        batch.create_item({"id": "a", "n": 1}).upsert_item({"id": "b", "n": 2}).delete_item("old")

        # Act
        response = await batch.execute()

        # Assert
        assert [doc["id"] if doc else None for doc in response.documents] == ["a", "b", None]
        items = await document_store.query_items(CONTAINER, scope=scope)
        assert sorted(item["id"] for item in items) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_failing_operation_should_roll_back_earlier_ones(
        self, document_store: DocumentStore, scope: PartitionScope
    ) -> None:
        """Test a missing delete target leaves no earlier write behind."""
        # Arrange
        batch = document_store.create_transactional_batch(CONTAINER, scope)
        batch.upsert_item({"id": "a"}).upsert_item({"id": "b"}).delete_item("missing")

        # Act & Assert
        with pytest.raises(NotFoundError) as exc_info:
            await batch.execute()

        assert exc_info.value.details["batch_index"] == 2
        assert await document_store.query_items(CONTAINER) == []

    @pytest.mark.asyncio
    async def test_create_conflict_should_roll_back_batch(
        self, document_store: DocumentStore, scope: PartitionScope
    ) -> None:
        """Test a duplicate create rejects the whole batch."""
        # Arrange
        await document_store.create_item(CONTAINER, scope, {"id": "existing", "n": 0})
        batch = document_store.create_transactional_batch(CONTAINER, scope)
        batch.upsert_item({"id": "existing", "n": 1}).create_item({"id": "existing"})

        # Act & Assert
        with pytest.raises(ConflictError):
            await batch.execute()

        stored = await document_store.read_item(CONTAINER, scope, "existing")
        assert stored["n"] == 0

    @pytest.mark.asyncio
    async def test_stale_etag_should_fail_guarded_delete(
        self, document_store: DocumentStore, scope: PartitionScope
    ) -> None:
        """Test a document changed after it was read blocks the batch delete."""
        # Arrange
        first = await document_store.create_item(CONTAINER, scope, {"id": "a"})
        second = await document_store.create_item(CONTAINER, scope, {"id": "b", "v": 1})
        await document_store.replace_item(CONTAINER, scope, "b", {"id": "b", "v": 2})
        batch = document_store.create_transactional_batch(CONTAINER, scope)
        batch.delete_item("a", if_match=first["_etag"]).delete_item("b", if_match=second["_etag"])

        # Act & Assert
        with pytest.raises(PreconditionFailedError):
            await batch.execute()

        assert len(await document_store.query_items(CONTAINER, scope=scope)) == 2

    @pytest.mark.asyncio
    async def test_batch_should_stay_inside_its_partition(self, document_store: DocumentStore) -> None:
        """Test a batch cannot delete a same-id document in another partition."""
        # Arrange
        other = PartitionScope(("t1", "u1", "s2"))
        await document_store.create_item(CONTAINER, other, {"id": "a"})
        batch = document_store.create_transactional_batch(CONTAINER, PartitionScope(("t1", "u1", "s1")))
        batch.delete_item("a")

        # Act & Assert
        with pytest.raises(NotFoundError):
            await batch.execute()

        assert await document_store.read_item(CONTAINER, other, "a")

    @pytest.mark.asyncio
    async def test_upsert_without_id_should_be_rejected(
        self, document_store: DocumentStore, scope: PartitionScope
    ) -> None:
        """Test documents without an id fail and nothing is written."""
        # Arrange
        batch = document_store.create_transactional_batch(CONTAINER, scope)
        batch.upsert_item({"id": "a"}).upsert_item({"value": 1})

        # Act & Assert
        with pytest.raises(InvalidArgumentError):
            await batch.execute()

        assert await document_store.query_items(CONTAINER) == []
