"""
Base Model Classes and Mixins

Provides foundational patterns for all Salary Desk database models.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """
    Declarative base for all Salary Desk models.

    Provides common type annotations and metadata configuration.
    """

    type_annotation_map: dict[type, Any] = {
        dict: JSONType,
    }


class TimestampMixin:
    """
    Mixin for automatic created_at and updated_at timestamps.

    Automatically sets created_at on insert and updated_at on every update.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp when record was created",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Timestamp when record was last updated",
    )


class OwnedMixin:
    """
    Mixin recording which operator created a record.

    Operators live in the workforce API, so the reference is their external
    user id rather than a foreign key.
    """

    created_by: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
        comment="External user id of the operator who created this record",
    )
