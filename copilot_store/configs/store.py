"""
Document store configuration settings.

Manages the SQLAlchemy connection URL, pool sizing and the names of the
three logical containers (chat, cache, products) sharing the document table.

Dependencies: pydantic, pydantic_settings
System role: Document store connection configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from copilot_store.configs.base import BaseSettings


class StoreSettings(BaseSettings):
    """Partitioned document store configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./copilot_store.db",
        description="SQLAlchemy async URL (postgresql+asyncpg://... in production)",
    )

    chat_container: str = Field(default="chat", description="Container for sessions and messages")
    cache_container: str = Field(default="cache", description="Container for semantic cache items")
    product_container: str = Field(default="products", description="Container for catalog products")

    page_size: int = Field(
        default=100,
        ge=1,
        description="Maximum documents returned per query page",
    )

    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=20, description="Maximum overflow connections")
    pool_timeout: int = Field(default=30, description="Connection pool timeout in seconds")
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured URL targets SQLite (no server-side pool)."""
        return self.database_url.startswith("sqlite")
