"""
Copilot data service.

Single entry point for the upstream service layer. Validates configuration,
builds the one shared engine/store handle at construction and wires the chat,
cache and catalog components to their containers.

Dependencies: copilot_store.configs, copilot_store.boundary, copilot_store.application
System role: Composition root of the data-access layer
"""

import logging
from types import TracebackType
from typing import Self

import httpx

from copilot_store.application.services.chat_store import ChatStore
from copilot_store.application.services.product_catalog import BootstrapReport, ProductCatalog
from copilot_store.application.services.semantic_cache import SemanticCache
from copilot_store.boundary.db.document_store import DocumentStore
from copilot_store.boundary.http.product_source import ProductSourceClient
from copilot_store.configs import Settings, get_settings
from copilot_store.core.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


def _require(value: str | None, field: str) -> None:
    if not value or not value.strip():
        raise InvalidArgumentError(f"{field} must not be empty", field=field)


class CopilotDataService:
    """
    Facade over the partitioned document store.

    Attributes:
        store: Shared document store (one engine per process)
        chat: Session and message persistence
        cache: Semantic response cache
        catalog: Product catalog
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: DocumentStore | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize data service.

        Args:
            settings: Application settings, defaults to get_settings()
            store: Prebuilt store to share; built from settings when None
            http_client: Shared HTTP client for the product feed

        Raises:
            InvalidArgumentError: If the URL, a container name or the product
                source URI is empty
        """
        self.settings = settings or get_settings()
        store_config = self.settings.store
        catalog_config = self.settings.catalog
        cache_config = self.settings.cache

        _require(store_config.database_url, "database_url")
        _require(store_config.chat_container, "chat_container")
        _require(store_config.cache_container, "cache_container")
        _require(store_config.product_container, "product_container")
        _require(catalog_config.data_source_uri, "data_source_uri")

        self.store = store or DocumentStore.from_settings(store_config)
        self.chat = ChatStore(self.store, container=store_config.chat_container)
        self.cache = SemanticCache(
            self.store,
            container=store_config.cache_container,
            similarity_threshold=cache_config.similarity_threshold,
            exact_match_threshold=cache_config.exact_match_threshold,
            embedding_dimension=cache_config.embedding_dimension,
        )
        self.catalog = ProductCatalog(
            self.store,
            ProductSourceClient(http_client, timeout_seconds=catalog_config.http_timeout_seconds),
            container=store_config.product_container,
            source_uri=catalog_config.data_source_uri,
            sentinel_id=catalog_config.sentinel_id,
            sentinel_partition=catalog_config.sentinel_partition,
        )

    async def initialize(self, load_products: bool = True) -> BootstrapReport | None:
        """
        Create the document table and seed the catalog if empty.

        Args:
            load_products: Run the catalog bootstrap

        Returns:
            BootstrapReport | None: Bootstrap outcome, None when skipped
        """
        await self.store.create_all()
        logger.info(f"{__name__}:initialize - Document store ready ({self.settings.environment})")
        if not load_products:
            return None
        return await self.catalog.bootstrap_if_empty()

    async def close(self) -> None:
        """Release the store's connection pool."""
        await self.store.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
