"""
Product catalog configuration settings.

Remote JSON seed location and the sentinel document used to decide
whether the catalog has already been bootstrapped.

Dependencies: pydantic_settings
System role: Product catalog bootstrap configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogSettings(BaseSettings):
    """Settings for the product catalog seed."""

    model_config = SettingsConfigDict(
        env_prefix="PRODUCT_",
        case_sensitive=False,
        extra="ignore",
    )

    data_source_uri: str = Field(
        default="https://cosmosdbcosmicworks.blob.core.windows.net/cosmic-works-vectorized/product-text-3-large-1536-llm-gen-2.json",
        description="URI of the vectorized product JSON array",
    )
    sentinel_id: str = Field(
        default="027D0B9A-F9D9-4C96-8213-C8546C4AAE71",
        description="Product id whose presence marks the catalog as loaded",
    )
    sentinel_partition: str = Field(
        default="26C74104-40BC-4541-8EF5-9892F7F03D72",
        description="categoryId of the sentinel product",
    )
    http_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for the seed download",
    )
