"""
Chat domain models.

Sessions and messages share one container and one partition scope per
conversation; the ``type`` field tells them apart.

Dependencies: pydantic
System role: Chat persistence contracts
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from copilot_store.models.document import StoreDocument


class Session(StoreDocument):
    """One conversation. ``id`` equals ``session_id`` for sessions created via new()."""

    type: Literal["Session"] = "Session"
    session_id: str
    tenant_id: str
    user_id: str
    tokens: int = Field(default=0, ge=0, description="Running token count for the session")
    name: str = Field(default="New Chat", description="Display name shown in the session list")

    @classmethod
    def new(cls, tenant_id: str, user_id: str, name: str = "New Chat") -> "Session":
        session_id = str(uuid.uuid4())
        return cls(id=session_id, session_id=session_id, tenant_id=tenant_id, user_id=user_id, name=name)


class Message(StoreDocument):
    """One prompt/completion exchange inside a session."""

    type: Literal["Message"] = "Message"
    session_id: str
    tenant_id: str
    user_id: str
    time_stamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    prompt: str = ""
    prompt_tokens: int = 0
    completion: str = ""
    completion_tokens: int = 0
    generation_tokens: int = 0
    cache_hit: bool = False

    @classmethod
    def new(
        cls,
        tenant_id: str,
        user_id: str,
        session_id: str,
        prompt: str,
        prompt_tokens: int = 0,
        completion: str = "",
        completion_tokens: int = 0,
        generation_tokens: int = 0,
        cache_hit: bool = False,
    ) -> "Message":
        return cls(
            id=str(uuid.uuid4()),
            session_id=session_id,
            tenant_id=tenant_id,
            user_id=user_id,
            prompt=prompt,
            prompt_tokens=prompt_tokens,
            completion=completion,
            completion_tokens=completion_tokens,
            generation_tokens=generation_tokens,
            cache_hit=cache_hit,
        )


ChatItem = Annotated[Union[Session, Message], Field(discriminator="type")]

chat_item_adapter: TypeAdapter[ChatItem] = TypeAdapter(ChatItem)


def chat_item_scope_key(item: Session | Message) -> str:
    """Session id that decides which partition a chat item belongs to."""
    return item.session_id
