"""
SQLAlchemy declarative base and column mixins.

Dependencies: sqlalchemy
System role: Foundation for the document table
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, MetaData, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base; constraint names follow NAMING_CONVENTION."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class TimestampMixin:
    """
    Write timestamps in UTC.

    The store assigns both columns explicitly on every insert and overwrite,
    so no ORM-side onupdate hook fires inside an async flush.

    Attributes:
        created_at: Time of the first write
        updated_at: Time of the latest write, exposed as ``_ts``
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class PartitionKeyMixin:
    """
    Hierarchical partition key spread over three columns.

    Shorter keys are right-padded with empty strings, so a scope prefix
    becomes equality on the leading columns.
    """

    pk_level_1: Mapped[str] = mapped_column(String(255), nullable=False)
    pk_level_2: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    pk_level_3: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    @classmethod
    def partition_columns(cls) -> tuple:
        return (cls.pk_level_1, cls.pk_level_2, cls.pk_level_3)
