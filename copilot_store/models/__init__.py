"""
Domain models for chat, cache and catalog documents.
"""

from copilot_store.models.cache import CacheItem
from copilot_store.models.chat import ChatItem, Message, Session, chat_item_adapter, chat_item_scope_key
from copilot_store.models.document import StoreDocument
from copilot_store.models.product import Product, ProductTag

__all__ = [
    "StoreDocument",
    "Session",
    "Message",
    "ChatItem",
    "chat_item_adapter",
    "chat_item_scope_key",
    "CacheItem",
    "Product",
    "ProductTag",
]
