"""
Document ORM model.

One table holds every container. A document is addressed by
(container, partition key, id); the partition key occupies up to three
columns so a shorter key can filter a longer one by prefix.

Dependencies: sqlalchemy, copilot_store.boundary.db.base
System role: Physical layout of the partitioned document store
"""

import uuid
from datetime import timezone

from sqlalchemy import JSON, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from copilot_store.boundary.db.base import Base, PartitionKeyMixin, TimestampMixin


def new_etag() -> str:
    return uuid.uuid4().hex


class DocumentModel(Base, PartitionKeyMixin, TimestampMixin):
    """
    Stored JSON document.

    Attributes:
        seq: Surrogate key, also the keyset pagination cursor
        container: Logical container name (chat, cache, products)
        pk_level_1: Outermost partition key component
        pk_level_2: Second component, empty when the key is shorter
        pk_level_3: Third component, empty when the key is shorter
        id: Document id, unique within (container, partition key)
        etag: Opaque version token, regenerated on every write
        body: Document JSON as supplied by the caller
    """

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint(
            "container", "pk_level_1", "pk_level_2", "pk_level_3", "id",
            name="uq_documents_partition_id",
        ),
        Index("ix_documents_container_partition", "container", "pk_level_1", "pk_level_2", "pk_level_3"),
    )

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    container: Mapped[str] = mapped_column(String(255), nullable=False)
    id: Mapped[str] = mapped_column(String(255), nullable=False)
    etag: Mapped[str] = mapped_column(String(64), nullable=False, default=new_etag)
    body: Mapped[dict] = mapped_column(JSON, nullable=False)

    def to_document(self) -> dict:
        """Body plus the store's system properties."""
        document = dict(self.body)
        document["_etag"] = self.etag
        document["_ts"] = None
        if self.updated_at is not None:
            # SQLite hands back naive datetimes; they were written as UTC.
            updated_at = self.updated_at
            if updated_at.tzinfo is None:
                updated_at = updated_at.replace(tzinfo=timezone.utc)
            document["_ts"] = int(updated_at.timestamp())
        return document
