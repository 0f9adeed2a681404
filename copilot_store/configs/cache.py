"""
Semantic cache configuration settings.

Similarity thresholds for cache lookups and near-exact removal.
Scores are cosine similarity: higher means closer, 1.0 is identical.

Dependencies: pydantic_settings
System role: Semantic cache tuning
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Semantic cache thresholds and vector shape."""

    model_config = SettingsConfigDict(
        env_prefix="SEMANTIC_CACHE_",
        case_sensitive=False,
        extra="ignore",
    )

    similarity_threshold: float = Field(
        default=0.95,
        ge=-1.0,
        le=1.0,
        description="Default minimum similarity for a cache hit",
    )
    exact_match_threshold: float = Field(
        default=0.99,
        ge=-1.0,
        le=1.0,
        description="Similarity above which an entry counts as the same prompt",
    )
    embedding_dimension: int | None = Field(
        default=None,
        ge=1,
        description="Expected vector length; None accepts any consistent length",
    )
