"""
Base ORM Model and Mixins.

============================================================
PURPOSE
============================================================
Provides the declarative base and common mixins used by the
sentiment service ORM models.

============================================================
COMPONENTS
============================================================
- Base: SQLAlchemy declarative base for all models
- CreatedAtMixin: append-only creation timestamp
- TimestampMixin: creation + update timestamps

============================================================
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Default factory for timestamp columns."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base for all ORM models.

    All timestamps are stored timezone-aware.
    """

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class CreatedAtMixin:
    """
    Mixin providing a creation timestamp.

    Used by append-only tables. The value is normally supplied
    by the writer (from its injected clock); the default only
    covers ad hoc inserts.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        comment="Record creation timestamp (UTC)"
    )


class TimestampMixin(CreatedAtMixin):
    """Mixin adding an update timestamp to CreatedAtMixin."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        comment="Last update timestamp (UTC)"
    )
