"""
Partitioned document store.

Point reads and writes by (container, partition scope, id), keyset-paginated
queries with equality filters, nearest-neighbour search by cosine similarity
and atomic transactional batches confined to one partition scope, all on top
of one async SQLAlchemy engine.

Dependencies: sqlalchemy, numpy, copilot_store.core
System role: Store collaborator behind the chat, cache and catalog components
"""

import heapq
import json
import logging
from collections.abc import AsyncIterator, Iterator, Mapping
from contextlib import aclosing, contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Sequence

import numpy as np
from sqlalchemy import ColumnElement, select
from sqlalchemy import exc as sa_exc
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from copilot_store.boundary.db.batch import BatchOperation, BatchOperationType, TransactionalBatch
from copilot_store.boundary.db.connection import (
    create_all_tables,
    drop_all_tables,
    get_async_engine,
    get_async_session_factory,
)
from copilot_store.boundary.db.models.document_model import DocumentModel, new_etag
from copilot_store.configs.store import StoreSettings
from copilot_store.core.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    PreconditionFailedError,
    StoreUnavailableError,
)
from copilot_store.core.partition_key import PartitionScope
from copilot_store.core.similarity import cosine_similarities, to_vector
from copilot_store.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

_PARTITION_COLUMNS = DocumentModel.partition_columns()
_DOCUMENT_KEY = ("container", "pk_level_1", "pk_level_2", "pk_level_3", "id")

# Dialects whose INSERT supports ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


@dataclass(frozen=True)
class DocumentQuery:
    """
    Query over one container.

    Attributes:
        filters: Equality predicates on top-level document fields
        fields: Projection; None returns whole documents
        distinct: Drop duplicate results (applied while draining pages)
        top: Maximum number of results
    """

    filters: Mapping[str, Any] = field(default_factory=dict)
    fields: tuple[str, ...] | None = None
    distinct: bool = False
    top: int | None = None


@dataclass
class FeedPage:
    """One page of query results and the token to resume after it."""

    items: list[dict[str, Any]]
    continuation: str | None


@dataclass(frozen=True)
class VectorMatch:
    """Document returned by a nearest-neighbour query with its similarity."""

    document: dict[str, Any]
    score: float


@contextmanager
def translate_store_errors(operation: str, container: str) -> Iterator[None]:
    """Map driver and pool failures to StoreUnavailableError."""
    try:
        yield
    except (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError, OSError) as e:
        log_exception_with_context(
            logger, f"{__name__}:{operation} - Store unavailable", e, container=container
        )
        raise StoreUnavailableError(
            message="Document store unavailable",
            operation=operation,
            details={"container": container, "error": str(e)},
        ) from e
    except sa_exc.DBAPIError as e:
        if not e.connection_invalidated:
            raise
        log_exception_with_context(
            logger, f"{__name__}:{operation} - Connection invalidated", e, container=container
        )
        raise StoreUnavailableError(
            message="Document store connection lost",
            operation=operation,
            details={"container": container, "error": str(e)},
        ) from e


def _document_id(document: Mapping[str, Any]) -> str:
    document_id = document.get("id")
    if not isinstance(document_id, str) or not document_id:
        raise InvalidArgumentError("Document must have a non-empty string id", field="id")
    return document_id


def _strip_system_properties(document: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in document.items() if not key.startswith("_")}


def _filter_clause(name: str, value: Any) -> ColumnElement[bool]:
    element = DocumentModel.body[name]
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, int):
        return element.as_integer() == value
    if isinstance(value, float):
        return element.as_float() == value
    return element.as_string() == str(value)


def _project(document: dict[str, Any], fields: tuple[str, ...] | None) -> dict[str, Any]:
    if fields is None:
        return document
    return {name: document.get(name) for name in fields}


def _distinct_key(item: dict[str, Any]) -> str:
    return json.dumps(item, sort_keys=True, default=str)


def _match_rank(match: "VectorMatch") -> tuple[float, str]:
    return (-match.score, str(match.document.get("id", "")))


def _row_values(container: str, scope: PartitionScope, operation: BatchOperation) -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    pk_level_1, pk_level_2, pk_level_3 = scope.padded()
    return {
        "container": container,
        "pk_level_1": pk_level_1,
        "pk_level_2": pk_level_2,
        "pk_level_3": pk_level_3,
        "id": operation.id,
        "etag": new_etag(),
        "body": _strip_system_properties(operation.document or {}),
        "created_at": now,
        "updated_at": now,
    }


class DocumentStore:
    """
    Async document store over a single SQLAlchemy engine.

    One instance is built at startup and shared by every component; it holds
    no per-call state, so concurrent tasks may use it freely.
    """

    def __init__(self, engine: AsyncEngine, page_size: int = 100) -> None:
        """
        Initialize store around a shared engine.

        Args:
            engine: Async engine, owned by the caller or by from_settings()
            page_size: Maximum rows fetched per query page
        """
        if page_size < 1:
            raise InvalidArgumentError("page_size must be positive", field="page_size")
        self.engine = engine
        self.page_size = page_size
        self._session_factory = get_async_session_factory(engine)

    @classmethod
    def from_settings(cls, config: StoreSettings) -> "DocumentStore":
        """Build the engine described by ``config`` and wrap it."""
        return cls(get_async_engine(config), page_size=config.page_size)

    async def create_all(self) -> None:
        """Create the document table if it does not exist."""
        with translate_store_errors("create_all", "*"):
            await create_all_tables(self.engine)

    async def drop_all(self) -> None:
        """Drop the document table and every stored document."""
        with translate_store_errors("drop_all", "*"):
            await drop_all_tables(self.engine)

    async def close(self) -> None:
        """Dispose of the connection pool."""
        await self.engine.dispose()

    # Point operations

    async def read_item(self, container: str, scope: PartitionScope, id: str) -> dict[str, Any]:
        """
        Read one document by key.

        Raises:
            NotFoundError: If no document has this id in this partition
        """
        with translate_store_errors("read", container):
            async with self._session_factory() as session:
                row = await self._fetch_row(session, container, scope, id)
        if row is None:
            raise NotFoundError(
                f"Document not found: {id}",
                container=container,
                document_id=id,
                details={"partition_key": str(scope)},
            )
        return row.to_document()

    async def create_item(self, container: str, scope: PartitionScope, document: Mapping[str, Any]) -> dict[str, Any]:
        """
        Insert a new document.

        Raises:
            ConflictError: If the id already exists in this partition
        """
        operation = BatchOperation(BatchOperationType.CREATE, _document_id(document), dict(document))
        return await self._execute_single(container, scope, operation)

    async def replace_item(
        self,
        container: str,
        scope: PartitionScope,
        id: str,
        document: Mapping[str, Any],
        if_match: str | None = None,
    ) -> dict[str, Any]:
        """
        Replace an existing document wholesale.

        Raises:
            NotFoundError: If the document does not exist
            PreconditionFailedError: If ``if_match`` differs from the stored ETag
        """
        operation = BatchOperation(BatchOperationType.REPLACE, id, dict(document), if_match)
        return await self._execute_single(container, scope, operation)

    async def upsert_item(self, container: str, scope: PartitionScope, document: Mapping[str, Any]) -> dict[str, Any]:
        """Insert the document, or replace it if its id already exists."""
        operation = BatchOperation(BatchOperationType.UPSERT, _document_id(document), dict(document))
        return await self._execute_single(container, scope, operation)

    async def delete_item(
        self,
        container: str,
        scope: PartitionScope,
        id: str,
        if_match: str | None = None,
    ) -> None:
        """
        Delete one document by key.

        Raises:
            NotFoundError: If the document does not exist
            PreconditionFailedError: If ``if_match`` differs from the stored ETag
        """
        await self._execute_single(container, scope, BatchOperation(BatchOperationType.DELETE, id, if_match=if_match))

    # Queries

    async def query_pages(
        self,
        container: str,
        query: DocumentQuery | None = None,
        scope: PartitionScope | None = None,
        page_size: int | None = None,
        continuation: str | None = None,
    ) -> AsyncIterator[FeedPage]:
        """
        Iterate query results page by page.

        Pages follow insertion order and are keyed on the row sequence, so
        deleting already-returned documents never shifts later pages.

        Args:
            container: Container to query
            query: Filters, projection and limit
            scope: Partition scope or prefix; None queries across partitions
            page_size: Override of the store page size
            continuation: Token from a previous page to resume after

        Yields:
            FeedPage: Results and the continuation token (None on the last page)
        """
        query = query or DocumentQuery()
        page_size = page_size or self.page_size
        try:
            cursor = int(continuation) if continuation else 0
        except ValueError as e:
            raise InvalidArgumentError("Malformed continuation token", field="continuation") from e

        clauses: list[ColumnElement[bool]] = [DocumentModel.container == container]
        if scope is not None:
            clauses.extend(column == value for column, value in zip(_PARTITION_COLUMNS, scope.components))
        clauses.extend(_filter_clause(name, value) for name, value in query.filters.items())

        remaining = query.top
        while remaining is None or remaining > 0:
            limit = page_size if remaining is None else min(page_size, remaining)
            stmt = (
                select(DocumentModel)
                .where(DocumentModel.seq > cursor, *clauses)
                .order_by(DocumentModel.seq)
                .limit(limit)
            )
            with translate_store_errors("query", container):
                async with self._session_factory() as session:
                    rows = (await session.execute(stmt)).scalars().all()

            if not rows:
                return
            cursor = rows[-1].seq
            if remaining is not None:
                remaining -= len(rows)
            has_more = len(rows) == limit and (remaining is None or remaining > 0)
            yield FeedPage(
                items=[_project(row.to_document(), query.fields) for row in rows],
                continuation=str(cursor) if has_more else None,
            )
            if not has_more:
                return

    async def query_items(
        self,
        container: str,
        query: DocumentQuery | None = None,
        scope: PartitionScope | None = None,
    ) -> list[dict[str, Any]]:
        """Run a query and drain every page into one list."""
        query = query or DocumentQuery()
        page_query = replace(query, top=None) if query.distinct else query
        results: list[dict[str, Any]] = []
        seen: set[str] = set()

        async with aclosing(self.query_pages(container, page_query, scope)) as pages:
            async for page in pages:
                for item in page.items:
                    if query.distinct:
                        key = _distinct_key(item)
                        if key in seen:
                            continue
                        seen.add(key)
                    results.append(item)
                    if query.top is not None and len(results) >= query.top:
                        return results
        return results

    async def nearest(
        self,
        container: str,
        vector: Sequence[float],
        top: int = 1,
        threshold: float | None = None,
        scope: PartitionScope | None = None,
        vector_field: str = "vectors",
        dimension: int | None = None,
    ) -> list[VectorMatch]:
        """
        Nearest documents to ``vector`` by cosine similarity.

        Args:
            container: Container to search
            vector: Query embedding
            top: Number of matches to return
            threshold: Keep only matches with score strictly above this
            scope: Partition scope or prefix; None searches every partition
            vector_field: Document field holding the embedding
            dimension: Required query length, if known

        Returns:
            list[VectorMatch]: Best first; equal scores ordered by id

        Raises:
            InvalidArgumentError: If the query vector is malformed
        """
        query_vector = to_vector(vector, dimension=dimension)
        if top < 1:
            raise InvalidArgumentError("top must be at least 1", field="top")

        matches: list[VectorMatch] = []
        skipped = 0
        async with aclosing(self.query_pages(container, scope=scope)) as pages:
            async for page in pages:
                documents = []
                candidates = []
                for document in page.items:
                    candidate = self._stored_vector(document.get(vector_field), query_vector.size)
                    if candidate is None:
                        skipped += 1
                        continue
                    documents.append(document)
                    candidates.append(candidate)
                if not candidates:
                    continue

                scores = cosine_similarities(query_vector, np.vstack(candidates))
                page_matches = [
                    VectorMatch(document=document, score=score)
                    for document, score in zip(documents, scores.tolist())
                    if threshold is None or score > threshold
                ]
                # At most top + page_size documents are held at once.
                matches = heapq.nsmallest(top, matches + page_matches, key=_match_rank)

        if skipped:
            logger.warning(
                f"{__name__}:nearest - Skipped {skipped} documents in {container} "
                f"without a usable {query_vector.size}-dim '{vector_field}'"
            )
        return matches

    # Batches

    def create_transactional_batch(self, container: str, scope: PartitionScope) -> TransactionalBatch:
        """Start an all-or-nothing batch confined to one partition scope."""
        return TransactionalBatch(self, container, scope)

    async def execute_batch(
        self,
        container: str,
        scope: PartitionScope,
        operations: Sequence[BatchOperation],
    ) -> list[dict[str, Any] | None]:
        """
        Apply ``operations`` in one database transaction.

        Any failing operation rolls back every earlier one. Cancellation
        before commit also rolls back.

        Returns:
            list: Resulting document per operation (None for deletes)

        Raises:
            NotFoundError, ConflictError: With ``batch_index`` in details
        """
        if not operations:
            return []

        results: list[dict[str, Any] | None] = []
        with translate_store_errors("batch", container):
            async with self._session_factory() as session:
                async with session.begin():
                    for index, operation in enumerate(operations):
                        try:
                            results.append(await self._apply(session, container, scope, operation))
                        except (NotFoundError, ConflictError) as e:
                            e.details["batch_index"] = index
                            logger.warning(
                                f"{__name__}:execute_batch - Rolled back {len(operations)} operations "
                                f"in {container} [{scope}]: {operation.operation_type.value} {operation.id} failed"
                            )
                            raise
        logger.debug(f"{__name__}:execute_batch - Committed {len(operations)} operations in {container} [{scope}]")
        return results

    # Internals

    async def _execute_single(
        self,
        container: str,
        scope: PartitionScope,
        operation: BatchOperation,
    ) -> Any:
        with translate_store_errors(operation.operation_type.value, container):
            async with self._session_factory() as session:
                async with session.begin():
                    return await self._apply(session, container, scope, operation)

    async def _fetch_row(
        self,
        session: AsyncSession,
        container: str,
        scope: PartitionScope,
        id: str,
    ) -> DocumentModel | None:
        stmt = select(DocumentModel).where(
            DocumentModel.container == container,
            DocumentModel.id == id,
            *(column == value for column, value in zip(_PARTITION_COLUMNS, scope.padded())),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def _apply(
        self,
        session: AsyncSession,
        container: str,
        scope: PartitionScope,
        operation: BatchOperation,
    ) -> dict[str, Any] | None:
        kind = operation.operation_type
        if kind in (BatchOperationType.CREATE, BatchOperationType.UPSERT):
            _document_id(operation.document or {})
        if kind is BatchOperationType.CREATE:
            return await self._insert(session, container, scope, operation)
        if kind is BatchOperationType.UPSERT:
            return await self._upsert(session, container, scope, operation)

        row = await self._fetch_row(session, container, scope, operation.id)
        if row is None:
            raise NotFoundError(
                f"Document not found: {operation.id}",
                container=container,
                document_id=operation.id,
                details={"partition_key": str(scope)},
            )
        if operation.if_match is not None and operation.if_match != row.etag:
            raise PreconditionFailedError(
                f"Document changed since it was read: {operation.id}",
                container=container,
                document_id=operation.id,
                details={"partition_key": str(scope)},
            )

        if kind is BatchOperationType.REPLACE:
            return await self._overwrite(session, row, operation)

        await session.delete(row)
        await session.flush()
        return None

    async def _insert(
        self,
        session: AsyncSession,
        container: str,
        scope: PartitionScope,
        operation: BatchOperation,
    ) -> dict[str, Any]:
        row = DocumentModel(**_row_values(container, scope, operation))
        session.add(row)
        try:
            await session.flush()
        except sa_exc.IntegrityError as e:
            raise ConflictError(
                f"Document already exists: {operation.id}",
                container=container,
                document_id=operation.id,
                details={"partition_key": str(scope)},
            ) from e
        return row.to_document()

    async def _upsert(
        self,
        session: AsyncSession,
        container: str,
        scope: PartitionScope,
        operation: BatchOperation,
    ) -> dict[str, Any]:
        """
        Insert, or overwrite whatever row holds the id.

        A concurrent writer inserting the same id between the lookup and the
        insert turns the insert into a no-op; the winner's row is then
        overwritten instead of raising ConflictError.
        """
        row = await self._fetch_row(session, container, scope, operation.id)
        if row is None:
            conflict_insert = _CONFLICT_INSERTS.get(self.engine.dialect.name)
            if conflict_insert is None:
                return await self._insert(session, container, scope, operation)

            stmt = (
                conflict_insert(DocumentModel)
                .values(**_row_values(container, scope, operation))
                .on_conflict_do_nothing(index_elements=list(_DOCUMENT_KEY))
            )
            result = await session.execute(stmt)
            row = await self._fetch_row(session, container, scope, operation.id)
            if result.rowcount == 1:
                return row.to_document()
            logger.debug(f"{__name__}:upsert - {operation.id} inserted concurrently in {container}, overwriting")
        return await self._overwrite(session, row, operation)

    async def _overwrite(
        self,
        session: AsyncSession,
        row: DocumentModel,
        operation: BatchOperation,
    ) -> dict[str, Any]:
        document = operation.document or {}
        if document.get("id", row.id) != row.id:
            raise InvalidArgumentError(
                "Replacement document id does not match the target id",
                field="id",
                details={"target": row.id, "document": document.get("id")},
            )
        row.body = _strip_system_properties(document)
        row.etag = new_etag()
        row.updated_at = datetime.now(timezone.utc)
        await session.flush()
        return row.to_document()

    @staticmethod
    def _stored_vector(raw: Any, size: int) -> np.ndarray | None:
        if not isinstance(raw, list) or len(raw) != size:
            return None
        try:
            candidate = np.asarray(raw, dtype=np.float64)
        except (TypeError, ValueError):
            return None
        if candidate.ndim != 1 or not np.all(np.isfinite(candidate)) or not np.any(candidate):
            return None
        return candidate
