"""
Chat session and message persistence.

Sessions and their messages live in one container under the hierarchical
(tenant, user, session) partition key, which makes "all sessions of a user"
a prefix query and lets a session and its messages commit or delete together
in one transactional batch.

Dependencies: copilot_store.boundary.db, copilot_store.models
System role: Chat persistence service
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from copilot_store.boundary.db.CRUD.base_crud import BaseCRUD
from copilot_store.boundary.db.document_store import DocumentQuery, DocumentStore
from copilot_store.core.exceptions import InvalidArgumentError
from copilot_store.core.partition_key import PartitionKeyBuilder, PartitionScope
from copilot_store.models.chat import Message, Session, chat_item_scope_key

logger = logging.getLogger(__name__)


class ChatStore:
    """
    Chat persistence over the chat container.

    Every write is addressed to the full (tenant, user, session) scope of the
    item being written. Scopes passed by the caller must agree with the
    items, otherwise the call fails before reaching the store.
    """

    def __init__(self, store: DocumentStore, container: str = "chat") -> None:
        """
        Initialize chat store.

        Args:
            store: Shared document store
            container: Chat container name
        """
        self.store = store
        self.container = container
        self.sessions = BaseCRUD(store, container, Session)
        self.messages = BaseCRUD(store, container, Message)

    async def insert_session(self, scope: PartitionScope, session: Session) -> Session:
        """
        Create a new chat session.

        Args:
            scope: Partition scope of the session
            session: Session to create

        Returns:
            Session: Stored session

        Raises:
            ConflictError: If the session id already exists in the scope
            InvalidArgumentError: If the scope does not belong to the session
        """
        target = self._item_scope(scope, session)
        created = await self.sessions.create(target, session)
        logger.info(f"{__name__}:insert_session - Created session {created.session_id} [{target}]")
        return created

    async def insert_message(self, scope: PartitionScope, message: Message) -> Message:
        """
        Create a new chat message stamped with the current UTC time.

        Args:
            scope: Partition scope of the message's session
            message: Message to create

        Returns:
            Message: Stored message carrying the assigned timestamp

        Raises:
            ConflictError: If the message id already exists in the scope
            InvalidArgumentError: If the scope does not belong to the message
        """
        target = self._item_scope(scope, message)
        stamped = message.model_copy(update={"time_stamp": datetime.now(timezone.utc)})
        return await self.messages.create(target, stamped)

    async def get_sessions(self, tenant_id: str, user_id: str) -> list[Session]:
        """
        List every session of a user.

        Args:
            tenant_id: Tenant identifier
            user_id: User identifier

        Returns:
            list[Session]: Distinct sessions in store order
        """
        scope = PartitionKeyBuilder.derive(tenant_id, user_id, "")
        return await self.sessions.query(scope, distinct=True, type="Session")

    async def get_session_messages(self, tenant_id: str, user_id: str, session_id: str) -> list[Message]:
        """
        List every message of one session.

        Args:
            tenant_id: Tenant identifier
            user_id: User identifier
            session_id: Session identifier

        Returns:
            list[Message]: Messages in store order
        """
        scope = PartitionKeyBuilder.derive(tenant_id, user_id, session_id)
        return await self.messages.query(scope, sessionId=session_id, type="Message")

    async def update_session(self, scope: PartitionScope, session: Session) -> Session:
        """
        Replace an existing session.

        Raises:
            NotFoundError: If the session does not exist
            InvalidArgumentError: If the scope does not belong to the session
        """
        return await self.sessions.replace(self._item_scope(scope, session), session)

    async def update_session_name(self, scope: PartitionScope, session_id: str, name: str) -> Session:
        """
        Rename a session.

        Raises:
            NotFoundError: If the session does not exist
        """
        session = await self.get_session(scope, session_id)
        return await self.update_session(scope, session.model_copy(update={"name": name}))

    async def get_session(self, scope: PartitionScope, session_id: str) -> Session:
        """
        Read one session.

        Args:
            scope: Session scope, or its (tenant, user) prefix
            session_id: Session identifier (also the session document id)

        Raises:
            NotFoundError: If the session does not exist
        """
        return await self.sessions.get_by_id(self._session_scope(scope, session_id), session_id)

    async def upsert_batch(self, scope: PartitionScope, items: Sequence[Session | Message]) -> None:
        """
        Create or replace sessions and messages of one session atomically.

        All items must name the same session, and the same tenant and user as
        the scope. Validation happens before any store call.

        Args:
            scope: Session scope, or its (tenant, user) prefix
            items: Sessions and/or messages to write

        Raises:
            InvalidArgumentError: If items are empty or span partitions
            NotFoundError, ConflictError: If the store rejects the batch (nothing written)
        """
        if not items:
            raise InvalidArgumentError("Batch must contain at least one item", field="items")

        session_ids = {chat_item_scope_key(item) for item in items}
        if len(session_ids) > 1:
            raise InvalidArgumentError(
                "All items must have the same partition key.",
                field="sessionId",
                details={"session_ids": sorted(session_ids)},
            )

        target = self._session_scope(scope, session_ids.pop())
        for item in items:
            self._check_owner(target, item)

        batch = self.store.create_transactional_batch(self.container, target)
        for item in items:
            batch.upsert_item(item.to_document())
        await batch.execute()
        logger.info(f"{__name__}:upsert_batch - Upserted {len(items)} items [{target}]")

    async def upsert_session_batch(self, scope: PartitionScope, session: Session, *messages: Message) -> None:
        """Write a session together with its newest messages in one batch."""
        await self.upsert_batch(scope, [*messages, session])

    async def delete_session_and_messages(self, scope: PartitionScope, session_id: str) -> int:
        """
        Delete a session and all of its messages atomically.

        Phase one drains a scoped query for the id and ETag of every document
        of the session; phase two deletes them in one batch, each guarded by
        its ETag. A document modified in between fails the whole batch. A
        message inserted in between is not seen by phase one and survives.

        Args:
            scope: Session scope, or its (tenant, user) prefix
            session_id: Session identifier

        Returns:
            int: Number of documents deleted

        Raises:
            PreconditionFailedError: If a discovered document changed before deletion
        """
        target = self._session_scope(scope, session_id)
        query = DocumentQuery(filters={"sessionId": session_id}, fields=("id", "_etag"))
        discovered = await self.store.query_items(self.container, query, target)
        if not discovered:
            logger.info(f"{__name__}:delete_session_and_messages - Nothing to delete [{target}]")
            return 0

        batch = self.store.create_transactional_batch(self.container, target)
        for document in discovered:
            batch.delete_item(document["id"], if_match=document["_etag"])
        await batch.execute()
        logger.info(f"{__name__}:delete_session_and_messages - Deleted {len(discovered)} documents [{target}]")
        return len(discovered)

    @staticmethod
    def _session_scope(scope: PartitionScope, session_id: str) -> PartitionScope:
        if not session_id:
            raise InvalidArgumentError("session_id is required", field="session_id")
        if scope.depth == 3:
            if scope.session_id != session_id:
                raise InvalidArgumentError(
                    "Partition scope belongs to a different session",
                    field="session_id",
                    details={"scope": str(scope), "session_id": session_id},
                )
            return scope
        if scope.depth == 2:
            return scope.child(session_id)
        raise InvalidArgumentError(
            "A (tenant, user) scope is required to address a session",
            field="user_id",
            details={"scope": str(scope)},
        )

    def _item_scope(self, scope: PartitionScope, item: Session | Message) -> PartitionScope:
        target = self._session_scope(scope, chat_item_scope_key(item))
        self._check_owner(target, item)
        return target

    @staticmethod
    def _check_owner(scope: PartitionScope, item: Session | Message) -> None:
        if not PartitionScope((item.tenant_id, item.user_id)).matches(scope):
            raise InvalidArgumentError(
                "Item tenant and user do not match the partition scope",
                field="tenantId",
                details={"scope": str(scope), "item_id": item.id},
            )
