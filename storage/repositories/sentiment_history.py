"""
Sentiment History Repository.

============================================================
PURPOSE
============================================================
Data access for computed sentiment snapshots (the "history
store"). Writes are append-only; there is deliberately no
update or upsert method.

============================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, asc, desc, select
from sqlalchemy.orm import Session

from core.clock import ensure_utc
from storage.models.sentiment_history import SentimentHistoryRecord
from storage.repositories.base import BaseRepository


class SentimentHistoryRepository(BaseRepository[SentimentHistoryRecord]):
    """
    Repository for sentiment history snapshots.

    ============================================================
    METHODS
    ============================================================
    - append: Persist one snapshot
    - get_since: Records strictly newer than a cutoff, ascending
    - get_in_range: Records inside [start, end], ascending
    - get_latest: Most recent record

    ============================================================
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session, SentimentHistoryRecord, "SentimentHistoryRepository")

    # --------------------------------------------------------
    # WRITE OPERATIONS
    # --------------------------------------------------------

    def append(
        self,
        score: Optional[int],
        status: str,
        color: Optional[str],
        action: Optional[str],
        indicators: Dict[str, Any],
        calculation_details: Dict[str, Any],
        method: str,
        trading_date: str,
        created_at: datetime,
    ) -> SentimentHistoryRecord:
        """
        Append one sentiment snapshot.

        Returns:
            The persisted record (flushed, id assigned)
        """
        record = SentimentHistoryRecord(
            score=score,
            status=status,
            color=color,
            action=action,
            indicators=indicators,
            calculation_details=calculation_details,
            method=method,
            trading_date=trading_date,
            created_at=ensure_utc(created_at),
        )
        return self._add(record)

    # --------------------------------------------------------
    # READ OPERATIONS
    # --------------------------------------------------------

    def get_since(self, since: datetime) -> List[SentimentHistoryRecord]:
        """
        Records with created_at strictly after a cutoff, oldest first.
        """
        stmt = (
            select(SentimentHistoryRecord)
            .where(SentimentHistoryRecord.created_at > ensure_utc(since))
            .order_by(asc(SentimentHistoryRecord.created_at), asc(SentimentHistoryRecord.id))
        )
        return self._execute_query(stmt, "get_since")

    def get_in_range(
        self,
        start_time: datetime,
        end_time: datetime,
    ) -> List[SentimentHistoryRecord]:
        """
        Records with created_at inside [start_time, end_time], oldest first.
        """
        stmt = (
            select(SentimentHistoryRecord)
            .where(
                and_(
                    SentimentHistoryRecord.created_at >= ensure_utc(start_time),
                    SentimentHistoryRecord.created_at <= ensure_utc(end_time),
                )
            )
            .order_by(asc(SentimentHistoryRecord.created_at), asc(SentimentHistoryRecord.id))
        )
        return self._execute_query(stmt, "get_in_range")

    def get_latest(self) -> Optional[SentimentHistoryRecord]:
        """Most recent snapshot, or None if the table is empty."""
        stmt = (
            select(SentimentHistoryRecord)
            .order_by(desc(SentimentHistoryRecord.created_at), desc(SentimentHistoryRecord.id))
            .limit(1)
        )
        return self._execute_scalar(stmt, "get_latest")

    def count(self) -> int:
        return self._count()
