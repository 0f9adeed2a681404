"""
Services over the partitioned document store.
"""

from copilot_store.application.services.chat_store import ChatStore
from copilot_store.application.services.data_service import CopilotDataService
from copilot_store.application.services.product_catalog import BootstrapReport, ProductCatalog
from copilot_store.application.services.semantic_cache import SemanticCache

__all__ = [
    "ChatStore",
    "CopilotDataService",
    "BootstrapReport",
    "ProductCatalog",
    "SemanticCache",
]
