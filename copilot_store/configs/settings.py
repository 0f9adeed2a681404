"""
Unified settings for the copilot data layer.

Groups store, cache and catalog configuration under one object so the data
service can be built from a single argument.

Dependencies: All config modules
System role: Central configuration aggregator for the data-access layer
"""

from functools import lru_cache

from copilot_store.configs.base import BaseSettings
from copilot_store.configs.cache import CacheSettings
from copilot_store.configs.catalog import CatalogSettings
from copilot_store.configs.store import StoreSettings


class Settings(BaseSettings):
    """Store, cache and catalog sections plus the shared base fields."""

    store: StoreSettings = StoreSettings()
    cache: CacheSettings = CacheSettings()
    catalog: CatalogSettings = CatalogSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Settings read once from the environment and .env, then reused.

    Usage:
        from copilot_store.configs import get_settings
        store = DocumentStore.from_settings(get_settings().store)
    """
    return Settings()
