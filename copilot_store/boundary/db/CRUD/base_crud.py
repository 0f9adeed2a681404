"""
Base CRUD operations for stored documents.

Binds one container of the document store to one pydantic model so callers
work with typed documents instead of raw dicts. Model-specific services
inherit or compose it.

Dependencies: pydantic, copilot_store.boundary.db.document_store
System role: Foundation for all container access
"""

from typing import Generic, TypeVar

from copilot_store.boundary.db.document_store import DocumentQuery, DocumentStore
from copilot_store.core.exceptions import NotFoundError
from copilot_store.core.partition_key import PartitionScope
from copilot_store.models.document import StoreDocument

DocT = TypeVar("DocT", bound=StoreDocument)


class BaseCRUD(Generic[DocT]):
    """
    Generic typed access to one container.

    Type Parameters:
        DocT: StoreDocument subclass stored in the container

    Attributes:
        store: Shared document store
        container: Container name
        model: Pydantic model used to (de)serialize documents
    """

    def __init__(self, store: DocumentStore, container: str, model: type[DocT]) -> None:
        """
        Initialize CRUD with target container and model.

        Args:
            store: Shared document store
            container: Container name
            model: StoreDocument subclass for this container
        """
        self.store = store
        self.container = container
        self.model = model

    async def create(self, scope: PartitionScope, document: DocT) -> DocT:
        """
        Create a new document.

        Raises:
            ConflictError: If the id already exists in the partition
        """
        stored = await self.store.create_item(self.container, scope, document.to_document())
        return self.model.from_document(stored)

    async def get_by_id(self, scope: PartitionScope, id: str) -> DocT:
        """
        Retrieve a single document by id.

        Raises:
            NotFoundError: If the document does not exist
        """
        stored = await self.store.read_item(self.container, scope, id)
        return self.model.from_document(stored)

    async def replace(self, scope: PartitionScope, document: DocT) -> DocT:
        """
        Replace a document wholesale.

        Raises:
            NotFoundError: If the document does not exist
        """
        stored = await self.store.replace_item(self.container, scope, document.id, document.to_document())
        return self.model.from_document(stored)

    async def upsert(self, scope: PartitionScope, document: DocT) -> DocT:
        """Create or overwrite a document by id."""
        stored = await self.store.upsert_item(self.container, scope, document.to_document())
        return self.model.from_document(stored)

    async def delete_by_id(self, scope: PartitionScope, id: str) -> None:
        """
        Delete a document by id.

        Raises:
            NotFoundError: If the document does not exist
        """
        await self.store.delete_item(self.container, scope, id)

    async def exists(self, scope: PartitionScope, id: str) -> bool:
        """Check whether a document exists."""
        try:
            await self.store.read_item(self.container, scope, id)
        except NotFoundError:
            return False
        return True

    async def query(
        self,
        scope: PartitionScope | None = None,
        distinct: bool = False,
        top: int | None = None,
        **filters,
    ) -> list[DocT]:
        """
        Retrieve every document matching equality filters, all pages drained.

        Args:
            scope: Partition scope or prefix (None for cross-partition)
            distinct: Drop duplicate documents
            top: Maximum number of documents
            **filters: camelCase field name to required value

        Returns:
            list of model instances
        """
        query = DocumentQuery(filters=filters, distinct=distinct, top=top)
        documents = await self.store.query_items(self.container, query, scope)
        return [self.model.from_document(document) for document in documents]
