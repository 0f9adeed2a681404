"""
Semantic cache item schema.

Dependencies: pydantic
System role: Cached prompt/completion pair keyed by its embedding
"""

import uuid

from pydantic import Field

from copilot_store.models.document import StoreDocument


class CacheItem(StoreDocument):
    """A previously generated completion and the embedding of its prompt."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    vectors: list[float] = Field(description="Embedding of the prompt")
    prompt: str = Field(description="Original prompt text")
    completion: str = Field(description="Completion returned for the prompt")
