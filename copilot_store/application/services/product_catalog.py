"""
Product catalog service.

Read-mostly catalog partitioned by category. Seeded once from a remote
vectorized JSON feed when a well-known sentinel product is missing, then
served through vector similarity search.

Dependencies: copilot_store.boundary.db, copilot_store.boundary.http
System role: Catalog bootstrap and product search
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from copilot_store.boundary.db.CRUD.base_crud import BaseCRUD
from copilot_store.boundary.db.document_store import DocumentStore
from copilot_store.boundary.http.product_source import ProductSourceClient
from copilot_store.core.exceptions import ConflictError, PartialBootstrapFailure
from copilot_store.core.partition_key import PartitionScope
from copilot_store.models.product import Product

logger = logging.getLogger(__name__)


@dataclass
class BootstrapReport:
    """
    Outcome of a catalog bootstrap.

    Attributes:
        already_loaded: Sentinel product was present, nothing fetched
        fetched: Products received from the source
        inserted: Products written to the catalog
        failures: Products skipped because they already existed
    """

    already_loaded: bool = False
    fetched: int = 0
    inserted: int = 0
    failures: list[PartialBootstrapFailure] = field(default_factory=list)


def _category_scope(category_id: str) -> PartitionScope:
    return PartitionScope((category_id,))


class ProductCatalog:
    """Vector-searchable product catalog over the product container."""

    def __init__(
        self,
        store: DocumentStore,
        source: ProductSourceClient,
        container: str = "products",
        source_uri: str | None = None,
        sentinel_id: str = "027D0B9A-F9D9-4C96-8213-C8546C4AAE71",
        sentinel_partition: str = "26C74104-40BC-4541-8EF5-9892F7F03D72",
    ) -> None:
        """
        Initialize product catalog.

        Args:
            store: Shared document store
            source: Client for the remote product feed
            container: Product container name
            source_uri: Default feed URI for bootstrap_if_empty()
            sentinel_id: Product id whose presence means the catalog is loaded
            sentinel_partition: Category id of the sentinel product
        """
        self.store = store
        self.source = source
        self.container = container
        self.source_uri = source_uri
        self.sentinel_id = sentinel_id
        self.sentinel_partition = sentinel_partition
        self.products = BaseCRUD(store, container, Product)

    async def bootstrap_if_empty(self, source_uri: str | None = None) -> BootstrapReport:
        """
        Seed the catalog from the remote feed unless already seeded.

        Individual products that already exist are logged and skipped; an
        unavailable feed leaves the catalog empty without raising.

        Args:
            source_uri: Feed URI, defaults to the configured one

        Returns:
            BootstrapReport: What was fetched, inserted and skipped
        """
        report = BootstrapReport()
        if await self.products.exists(_category_scope(self.sentinel_partition), self.sentinel_id):
            logger.info(f"{__name__}:bootstrap_if_empty - Catalog already loaded, skipping")
            report.already_loaded = True
            return report

        uri = source_uri or self.source_uri
        if not uri:
            logger.warning(f"{__name__}:bootstrap_if_empty - No product source configured, skipping")
            return report

        products = await self.source.fetch_products(uri)
        report.fetched = len(products)
        for product in products:
            try:
                await self.insert(product)
            except ConflictError as e:
                failure = PartialBootstrapFailure(product.id, product.name, cause=e)
                logger.warning(f"{__name__}:bootstrap_if_empty - {failure}")
                report.failures.append(failure)
                continue
            report.inserted += 1

        logger.info(
            f"{__name__}:bootstrap_if_empty - Inserted {report.inserted}/{report.fetched} products "
            f"({len(report.failures)} skipped)"
        )
        return report

    async def search(self, vectors: Sequence[float], max_results: int) -> list[Product]:
        """
        Find the products closest to ``vectors``.

        Args:
            vectors: Query embedding
            max_results: Maximum number of products

        Returns:
            list[Product]: Most similar first, with similarity_score set and
                vectors omitted

        Raises:
            InvalidArgumentError: If the query vector is malformed
        """
        matches = await self.store.nearest(self.container, vectors, top=max_results)
        results = []
        for match in matches:
            document = {key: value for key, value in match.document.items() if key != "vectors"}
            product = Product.from_document(document)
            product.similarity_score = match.score
            results.append(product)
        return results

    async def insert(self, product: Product) -> Product:
        """
        Create a product in its category partition.

        Raises:
            ConflictError: If the product already exists
        """
        return await self.products.create(_category_scope(product.category_id), product)

    async def delete(self, product: Product) -> None:
        """
        Delete a product from its category partition.

        Raises:
            NotFoundError: If the product does not exist
        """
        await self.products.delete_by_id(_category_scope(product.category_id), product.id)
