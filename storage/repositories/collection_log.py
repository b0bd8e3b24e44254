"""
Collection Log Repository.

Append-only access to the collection audit trail.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from core.clock import ensure_utc
from storage.models.collection_log import CollectionLogRecord
from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import ValidationError


COLLECTION_STATUSES = ("success", "failed")


class CollectionLogRepository(BaseRepository[CollectionLogRecord]):
    """Repository for collection log entries."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, CollectionLogRecord, "CollectionLogRepository")

    def append(
        self,
        data_type: str,
        source: str,
        status: str,
        created_at: datetime,
        record_count: int = 0,
        execution_time_ms: Optional[float] = None,
        error_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> CollectionLogRecord:
        """
        Append one log entry.

        Raises:
            ValidationError: Unknown status or negative record count
        """
        if status not in COLLECTION_STATUSES:
            raise ValidationError(
                repository_name=self.repository_name,
                operation="append",
                field="status",
                reason=f"{status!r} is not one of {COLLECTION_STATUSES}",
            )
        if record_count < 0:
            raise ValidationError(
                repository_name=self.repository_name,
                operation="append",
                field="record_count",
                reason="must not be negative",
            )

        return self._add(
            CollectionLogRecord(
                data_type=data_type,
                source=source,
                status=status,
                record_count=record_count,
                execution_time_ms=execution_time_ms,
                error_message=error_message,
                details=details,
                created_at=ensure_utc(created_at),
            )
        )

    def get_recent(
        self,
        data_type: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> List[CollectionLogRecord]:
        """Newest entries first, optionally filtered."""
        stmt = select(CollectionLogRecord)
        if data_type:
            stmt = stmt.where(CollectionLogRecord.data_type == data_type)
        if status:
            stmt = stmt.where(CollectionLogRecord.status == status)
        stmt = stmt.order_by(
            desc(CollectionLogRecord.created_at), desc(CollectionLogRecord.id)
        ).limit(limit)
        return self._execute_query(stmt, "get_recent")
