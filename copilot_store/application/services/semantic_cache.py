"""
Semantic response cache.

Completions are cached against the embedding of their prompt and looked up
by nearest neighbour instead of exact key. A lookup hits when the best
entry's cosine similarity to the query is strictly above the threshold;
only that single best entry is returned. Ties go to the smallest id.

The cache is one shared space: entries are partitioned by their own id,
never by tenant.

Dependencies: numpy (via copilot_store.core.similarity), copilot_store.boundary.db
System role: Semantic cache service
"""

import logging
from collections.abc import Sequence

from copilot_store.boundary.db.CRUD.base_crud import BaseCRUD
from copilot_store.boundary.db.document_store import DocumentQuery, DocumentStore
from copilot_store.core.exceptions import NotFoundError
from copilot_store.core.partition_key import PartitionScope
from copilot_store.core.similarity import to_vector
from copilot_store.models.cache import CacheItem
from copilot_store.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)


def _entry_scope(item_id: str) -> PartitionScope:
    return PartitionScope((item_id,))


class SemanticCache:
    """
    Approximate key-value cache keyed by embedding similarity.

    Misses are returned as None. Store failures and malformed vectors raise.
    """

    def __init__(
        self,
        store: DocumentStore,
        container: str = "cache",
        similarity_threshold: float = 0.95,
        exact_match_threshold: float = 0.99,
        embedding_dimension: int | None = None,
    ) -> None:
        """
        Initialize semantic cache.

        Args:
            store: Shared document store
            container: Cache container name
            similarity_threshold: Default lookup threshold for get()
            exact_match_threshold: Similarity above which remove_by_vector treats
                an entry as the same prompt
            embedding_dimension: Required vector length, None to accept any
        """
        self.store = store
        self.container = container
        self.similarity_threshold = similarity_threshold
        self.exact_match_threshold = exact_match_threshold
        self.embedding_dimension = embedding_dimension
        self.entries = BaseCRUD(store, container, CacheItem)

    async def put(self, item: CacheItem) -> None:
        """
        Insert or overwrite a cache entry by id.

        Entries with different ids and near-identical vectors coexist.

        Raises:
            InvalidArgumentError: If the item's vectors are malformed
        """
        to_vector(item.vectors, dimension=self.embedding_dimension)
        await self.entries.upsert(_entry_scope(item.id), item)
        log_with_context(logger, logging.DEBUG, f"{__name__}:put - Cached completion", id=item.id, vectors=item.vectors)

    async def get(self, vectors: Sequence[float], similarity_threshold: float | None = None) -> str | None:
        """
        Look up the completion of the closest cached prompt.

        Args:
            vectors: Query embedding
            similarity_threshold: Minimum cosine similarity (exclusive); defaults
                to the cache-wide threshold

        Returns:
            str | None: Completion of the best match, None on a miss

        Raises:
            InvalidArgumentError: If the query vector is malformed
            StoreUnavailableError: If the store cannot be reached
        """
        if similarity_threshold is None:
            similarity_threshold = self.similarity_threshold
        matches = await self.store.nearest(
            self.container,
            vectors,
            top=1,
            threshold=similarity_threshold,
            dimension=self.embedding_dimension,
        )
        if not matches:
            logger.debug(f"{__name__}:get - Cache miss (threshold={similarity_threshold})")
            return None

        best = matches[0]
        logger.info(f"{__name__}:get - Cache hit id={best.document['id']} score={best.score:.4f}")
        return CacheItem.from_document(best.document).completion

    async def remove_by_vector(self, vectors: Sequence[float]) -> bool:
        """
        Delete the single entry matching ``vectors`` almost exactly.

        Args:
            vectors: Embedding of the prompt to evict

        Returns:
            bool: True when an entry was removed
        """
        matches = await self.store.nearest(
            self.container,
            vectors,
            top=1,
            threshold=self.exact_match_threshold,
            dimension=self.embedding_dimension,
        )
        if not matches:
            return False

        item_id = matches[0].document["id"]
        try:
            await self.store.delete_item(self.container, _entry_scope(item_id), item_id)
        except NotFoundError:
            # Removed concurrently between lookup and delete.
            logger.debug(f"{__name__}:remove_by_vector - Entry {item_id} already gone")
            return False
        logger.info(f"{__name__}:remove_by_vector - Removed entry {item_id}")
        return True

    async def clear(self) -> int:
        """
        Delete every cache entry.

        Pages through the whole container; later pages are unaffected by
        deleting earlier ones.

        Returns:
            int: Number of entries removed
        """
        removed = 0
        query = DocumentQuery(fields=("id",))
        async for page in self.store.query_pages(self.container, query):
            for document in page.items:
                item_id = document["id"]
                try:
                    await self.store.delete_item(self.container, _entry_scope(item_id), item_id)
                except NotFoundError:
                    continue
                removed += 1
        logger.info(f"{__name__}:clear - Removed {removed} cache entries")
        return removed
