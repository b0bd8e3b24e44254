"""
Collection Log ORM Model.

============================================================
PURPOSE
============================================================
Audit trail of indicator collection runs. One row per
attempt, successful or not, with timing and the error that
ended a failed attempt.

============================================================
DATA LIFECYCLE
============================================================
- Stage: AUDIT
- Mutability: APPEND-ONLY

============================================================
"""

from typing import Any, Dict, Optional

from sqlalchemy import Float, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base, CreatedAtMixin


class CollectionLogRecord(Base, CreatedAtMixin):
    """One collection attempt."""

    __tablename__ = "data_collection_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    data_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Indicator type",
    )

    source: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Data source identifier",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="success / failed",
    )

    record_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Valid readings stored by this attempt",
    )

    execution_time_ms: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
    )

    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # "metadata" is reserved on declarative classes
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
        comment="Collection result as JSON",
    )

    __table_args__ = (
        Index("ix_collection_log_type_status_created", "data_type", "status", "created_at"),
        Index("ix_collection_log_source_created", "source", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"CollectionLogRecord("
            f"id={self.id}, "
            f"type={self.data_type}, "
            f"source={self.source}, "
            f"status={self.status})"
        )
