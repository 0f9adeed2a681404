"""
Product catalog schemas.

Dependencies: pydantic
System role: Vectorized catalog item contract
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from copilot_store.models.document import StoreDocument


class ProductTag(BaseModel):
    """Tag attached to a product."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    name: str


class Product(StoreDocument):
    """Catalog product, partitioned by ``category_id``."""

    category_id: str
    category_name: str = ""
    sku: str = ""
    name: str = ""
    description: str = ""
    price: float = 0.0
    tags: list[ProductTag] = Field(default_factory=list)
    vectors: list[float] = Field(default_factory=list)
    similarity_score: float | None = Field(
        default=None,
        exclude=True,
        description="Cosine similarity to the search vector (search results only)",
    )
