"""
Base schema for stored documents.

Documents travel to and from the store as camelCase JSON dicts; fields are
snake_case in Python.

Dependencies: pydantic
System role: Serialization contract between domain models and the store
"""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StoreDocument(BaseModel):
    """Pydantic base for every document kept in a container."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str

    def to_document(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON body written to the store."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Self:
        """Build a fresh instance from a stored body (system fields ignored)."""
        return cls.model_validate(document)
