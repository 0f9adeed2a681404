"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory SQLite document store, chat/cache/catalog services,
partition scopes, vectors and a mocked product feed
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite, httpx
System role: Test infrastructure and fixture management
"""

import json
import uuid
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from copilot_store.application.services.chat_store import ChatStore
from copilot_store.application.services.product_catalog import ProductCatalog
from copilot_store.application.services.semantic_cache import SemanticCache
from copilot_store.boundary.db.document_store import DocumentStore
from copilot_store.boundary.http.product_source import ProductSourceClient
from copilot_store.core.partition_key import PartitionKeyBuilder, PartitionScope
from copilot_store.models.chat import Message, Session

PRODUCT_FEED_URI = "https://feed.test/products.json"


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """
    Create in-memory SQLite async engine for testing.

    StaticPool keeps the single in-memory database alive across sessions.

    Yields:
        AsyncEngine: Engine disposed after the test
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    await engine.dispose()


@pytest.fixture
async def document_store(engine: AsyncEngine) -> AsyncIterator[DocumentStore]:
    """
    Provide a document store with its table created and small pages.

    Yields:
        DocumentStore: Store whose table is dropped after the test
    """
    store = DocumentStore(engine, page_size=10)
    await store.create_all()
    yield store
    await store.drop_all()


@pytest.fixture
async def file_document_store(tmp_path: Path) -> AsyncIterator[DocumentStore]:
    """
    Provide a document store on a SQLite file with a regular connection pool.

    Each session gets its own connection, so concurrent writers and
    cancelled transactions behave as they would against a server.

    Yields:
        DocumentStore: Store disposed after the test
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    store = DocumentStore(engine, page_size=10)
    await store.create_all()
    yield store
    await store.close()


@pytest.fixture
def chat_store(document_store: DocumentStore) -> ChatStore:
    """Provide ChatStore over the test document store."""
    return ChatStore(document_store, container="chat")


@pytest.fixture
def semantic_cache(document_store: DocumentStore) -> SemanticCache:
    """Provide SemanticCache with default thresholds."""
    return SemanticCache(document_store, container="cache")


@pytest.fixture
def tenant_id() -> str:
    """Generate a test tenant ID."""
    return f"tenant-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def user_id() -> str:
    """Generate a test user ID."""
    return f"user-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def user_scope(tenant_id: str, user_id: str) -> PartitionScope:
    """Provide the (tenant, user) partition scope."""
    return PartitionKeyBuilder.derive(tenant_id, user_id)


@pytest.fixture
def session(tenant_id: str, user_id: str) -> Session:
    """Provide a fresh chat session."""
    return Session.new(tenant_id, user_id)


@pytest.fixture
def session_scope(session: Session) -> PartitionScope:
    """Provide the full (tenant, user, session) partition scope."""
    return PartitionKeyBuilder.derive(session.tenant_id, session.user_id, session.session_id)


@pytest.fixture
def make_message(session: Session) -> Callable[..., Message]:
    """Factory for messages belonging to the fixture session."""

    def _make(prompt: str = "What is a partition key?", **overrides) -> Message:
        message = Message.new(session.tenant_id, session.user_id, session.session_id, prompt)
        return message.model_copy(update=overrides) if overrides else message

    return _make


def _product_record(
    product_id: str,
    category_id: str,
    vectors: list[float],
    name: str | None = None,
) -> dict:
    """Build one product record as it appears in the remote feed."""
    return {
        "id": product_id,
        "categoryId": category_id,
        "categoryName": "Bikes, Touring Bikes",
        "sku": f"SKU-{product_id}",
        "name": name or f"Product {product_id}",
        "description": "A product used in tests",
        "price": 99.5,
        "tags": [{"id": "tag-1", "name": "Tag-1"}],
        "vectors": vectors,
    }


@pytest.fixture
def product_record() -> Callable[..., dict]:
    """Factory for product records in the remote feed format."""
    return _product_record


@pytest.fixture
def feed_uri() -> str:
    """URI the mock product feed is served at."""
    return PRODUCT_FEED_URI


@pytest.fixture
def product_feed() -> list[dict]:
    """Provide a small vectorized product feed."""
    return [
        _product_record("p-1", "cat-a", [1.0, 0.0, 0.0]),
        _product_record("p-2", "cat-a", [0.0, 1.0, 0.0]),
        _product_record("p-3", "cat-b", [0.0, 0.0, 1.0]),
    ]


@pytest.fixture
def feed_transport(product_feed: list[dict]) -> httpx.MockTransport:
    """Serve ``product_feed`` at PRODUCT_FEED_URI, 404 everywhere else."""

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == PRODUCT_FEED_URI:
            return httpx.Response(200, content=json.dumps(product_feed).encode())
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture
async def http_client(feed_transport: httpx.MockTransport) -> AsyncIterator[httpx.AsyncClient]:
    """Provide an httpx client routed through the mock feed."""
    async with httpx.AsyncClient(transport=feed_transport) as client:
        yield client


@pytest.fixture
def product_catalog(document_store: DocumentStore, http_client: httpx.AsyncClient) -> ProductCatalog:
    """Provide ProductCatalog seeded from the mock feed, sentinel p-1 in cat-a."""
    return ProductCatalog(
        document_store,
        ProductSourceClient(http_client),
        container="products",
        source_uri=PRODUCT_FEED_URI,
        sentinel_id="p-1",
        sentinel_partition="cat-a",
    )
