"""
Database models package.

Exports:
  - DocumentModel: Partitioned JSON document row

Dependencies: sqlalchemy, copilot_store.boundary.db.base
System role: Database model definitions for the document store
"""

from copilot_store.boundary.db.models.document_model import DocumentModel, new_etag

__all__ = [
    "DocumentModel",
    "new_etag",
]
