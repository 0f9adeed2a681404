"""
Test suite for SemanticCache.

Tests nearest-neighbour lookups against similarity thresholds, eviction of
a single near-exact entry, clearing a container larger than one page,
rejection of malformed vectors, concurrent puts of one id and store
failures surfacing as errors rather than misses.

System role: Verification of the semantic response cache
"""

import asyncio
from collections.abc import AsyncIterator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from copilot_store.application.services.semantic_cache import SemanticCache
from copilot_store.boundary.db.document_store import DocumentStore
from copilot_store.core.exceptions import InvalidArgumentError, StoreUnavailableError
from copilot_store.core.partition_key import PartitionScope
from copilot_store.models.cache import CacheItem

V1 = [1.0, 0.0, 0.0, 0.0]
V2 = [0.0, 1.0, 0.0, 0.0]


def _item(vectors: list[float], completion: str, item_id: str | None = None) -> CacheItem:
    fields = {"vectors": vectors, "prompt": f"prompt for {completion}", "completion": completion}
    if item_id:
        fields["id"] = item_id
    return CacheItem(**fields)


@pytest.fixture
async def unreachable_cache() -> AsyncIterator[SemanticCache]:
    """Provide a cache over a database file that cannot be opened."""
    store = DocumentStore(create_async_engine("sqlite+aiosqlite:////nonexistent-dir/copilot/cache.db"))
    yield SemanticCache(store)
    await store.close()


class TestCacheLookup:
    """Test suite for put() and get()."""

    @pytest.mark.asyncio
    async def test_get_should_hit_stored_vector(self, semantic_cache: SemanticCache) -> None:
        """Test the same vector finds its completion at a loose threshold."""
        # Arrange
        await semantic_cache.put(_item(V1, "R1"))

        # Act
        result = await semantic_cache.get(V1, similarity_threshold=0.5)

        # Assert
        assert result == "R1"

    @pytest.mark.asyncio
    async def test_get_should_miss_unrelated_vector(self, semantic_cache: SemanticCache) -> None:
        """Test an orthogonal vector misses at a strict threshold."""
        # Arrange
        await semantic_cache.put(_item(V1, "R1"))

        # Act
        result = await semantic_cache.get(V2, similarity_threshold=0.99)

        # Assert
        assert result is None

    @pytest.mark.asyncio
    async def test_get_should_miss_on_empty_cache(self, semantic_cache: SemanticCache) -> None:
        """Test an empty cache returns None."""
        # Act & Assert
        assert await semantic_cache.get(V1) is None

    @pytest.mark.asyncio
    async def test_get_should_return_best_match_only(self, semantic_cache: SemanticCache) -> None:
        """Test the closest entry wins over a weaker match."""
        # Arrange
        await semantic_cache.put(_item([1.0, 1.0, 0.0, 0.0], "weak"))
        await semantic_cache.put(_item([1.0, 0.05, 0.0, 0.0], "strong"))

        # Act
        result = await semantic_cache.get(V1, similarity_threshold=0.5)

        # Assert
        assert result == "strong"

    @pytest.mark.asyncio
    async def test_get_should_use_default_threshold(self, semantic_cache: SemanticCache) -> None:
        """Test the cache-wide 0.95 threshold applies when none is given."""
        # Arrange
        await semantic_cache.put(_item([1.0, 1.0, 0.0, 0.0], "diagonal"))

        # Act
        result = await semantic_cache.get(V1)

        # Assert
        assert result is None

    @pytest.mark.asyncio
    async def test_put_should_overwrite_same_id(self, semantic_cache: SemanticCache) -> None:
        """Test put is an upsert by id."""
        # Arrange
        await semantic_cache.put(_item(V1, "old", item_id="fixed"))

        # Act
        await semantic_cache.put(_item(V1, "new", item_id="fixed"))

        # Assert
        assert await semantic_cache.get(V1, similarity_threshold=0.5) == "new"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("vectors", [[], [0.0, 0.0, 0.0, 0.0], [float("nan"), 1.0, 0.0, 0.0]])
    async def test_get_should_reject_malformed_vector(self, semantic_cache: SemanticCache, vectors) -> None:
        """Test malformed query vectors raise instead of missing."""
        # Act & Assert
        with pytest.raises(InvalidArgumentError):
            await semantic_cache.get(vectors)

    @pytest.mark.asyncio
    async def test_configured_dimension_should_be_enforced(self, document_store: DocumentStore) -> None:
        """Test vectors of the wrong length are rejected on put and get."""
        # Arrange
        cache = SemanticCache(document_store, embedding_dimension=4)

        # Act & Assert
        with pytest.raises(InvalidArgumentError):
            await cache.put(_item([1.0, 0.0], "short"))
        with pytest.raises(InvalidArgumentError):
            await cache.get([1.0, 0.0])


class TestCacheRemoval:
    """Test suite for remove_by_vector() and clear()."""

    @pytest.mark.asyncio
    async def test_remove_by_vector_should_delete_exactly_one_duplicate(
        self, semantic_cache: SemanticCache
    ) -> None:
        """Test two entries with the same vector lose one entry per call."""
        # Arrange
        await semantic_cache.put(_item(V1, "first", item_id="a"))
        await semantic_cache.put(_item(V1, "second", item_id="b"))

        # Act
        removed = await semantic_cache.remove_by_vector(V1)

        # Assert
        assert removed is True
        remaining = await semantic_cache.store.query_items("cache")
        assert [item["id"] for item in remaining] == ["b"]
        assert await semantic_cache.get(V1, similarity_threshold=0.5) == "second"

    @pytest.mark.asyncio
    async def test_remove_by_vector_should_ignore_distant_entries(self, semantic_cache: SemanticCache) -> None:
        """Test entries below the exact-match threshold are kept."""
        # Arrange
        await semantic_cache.put(_item([1.0, 0.5, 0.0, 0.0], "near but not same"))

        # Act
        removed = await semantic_cache.remove_by_vector(V1)

        # Assert
        assert removed is False
        assert len(await semantic_cache.store.query_items("cache")) == 1

    @pytest.mark.asyncio
    async def test_clear_should_remove_more_than_one_page(self, engine: AsyncEngine) -> None:
        """Test clearing 250 entries with 100-document pages empties the cache."""
        # Arrange
        store = DocumentStore(engine, page_size=100)
        await store.create_all()
        cache = SemanticCache(store)
        for i in range(250):
            await cache.put(_item([1.0, float(i), 0.0, 0.0], f"R{i}"))

        # Act
        removed = await cache.clear()

        # Assert
        assert removed == 250
        assert await store.query_items("cache") == []
        assert await cache.get(V1, similarity_threshold=-1.0) is None

    @pytest.mark.asyncio
    async def test_clear_should_leave_other_containers(
        self, semantic_cache: SemanticCache, document_store: DocumentStore
    ) -> None:
        """Test only the cache container is cleared."""
        # Arrange
        await semantic_cache.put(_item(V1, "R1"))
        await document_store.create_item("products", PartitionScope(("cat-a",)), {"id": "p-1"})

        # Act
        removed = await semantic_cache.clear()

        # Assert
        assert removed == 1
        assert len(await document_store.query_items("products")) == 1


class TestConcurrentPut:
    """Test suite for put() under concurrent writers."""

    @pytest.mark.asyncio
    async def test_concurrent_puts_of_one_id_should_all_succeed(self, file_document_store: DocumentStore) -> None:
        """Test writers racing on a new id all upsert and leave one entry."""
        # Arrange
        cache = SemanticCache(file_document_store)
        items = [_item(V1, f"R{i}", item_id="same") for i in range(5)]

        # Act
        results = await asyncio.gather(*(cache.put(item) for item in items), return_exceptions=True)

        # Assert
        assert results == [None] * 5
        stored = await file_document_store.query_items("cache")
        assert len(stored) == 1
        assert stored[0]["completion"] in {item.completion for item in items}


class TestStoreFailures:
    """Test suite for store failures surfacing through the cache."""

    @pytest.mark.asyncio
    async def test_get_should_raise_instead_of_missing(self, unreachable_cache: SemanticCache) -> None:
        """Test an unreachable store is an error, not a cache miss."""
        # Act & Assert
        with pytest.raises(StoreUnavailableError):
            await unreachable_cache.get(V1, similarity_threshold=0.5)

    @pytest.mark.asyncio
    async def test_remove_by_vector_should_raise_instead_of_false(self, unreachable_cache: SemanticCache) -> None:
        """Test eviction over an unreachable store raises."""
        # Act & Assert
        with pytest.raises(StoreUnavailableError):
            await unreachable_cache.remove_by_vector(V1)

    @pytest.mark.asyncio
    async def test_put_should_raise_when_store_unreachable(self, unreachable_cache: SemanticCache) -> None:
        """Test a write to an unreachable store raises."""
        # Act & Assert
        with pytest.raises(StoreUnavailableError):
            await unreachable_cache.put(_item(V1, "R1"))
