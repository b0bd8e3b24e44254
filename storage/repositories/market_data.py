"""
Market Data Repository.

============================================================
PURPOSE
============================================================
Data access for collected indicator observations. This is
the persistent side of the "market data store" that the
sentiment engine reads through an indicator source.

============================================================
DATA LIFECYCLE
============================================================
- Stage: RAW
- Mutability: APPEND-ONLY
- Invalid observations are kept for diagnostics

============================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, desc, func, select
from sqlalchemy.orm import Session

from core.clock import ensure_utc
from storage.models.market_data import MarketDataRecord
from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import ValidationError


class MarketDataRepository(BaseRepository[MarketDataRecord]):
    """
    Repository for market data observations.

    ============================================================
    METHODS
    ============================================================
    - save_reading: Append one observation (valid or not)
    - get_latest_valid: Newest valid observation of a type after a cutoff
    - query: Filtered listing, newest first
    - get_statistics: Record counts and source distribution

    ============================================================
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session, MarketDataRecord, "MarketDataRepository")

    # --------------------------------------------------------
    # WRITE OPERATIONS
    # --------------------------------------------------------

    def save_reading(
        self,
        data_type: str,
        source: str,
        raw_data: Optional[Dict[str, Any]],
        normalized_value: Optional[float],
        trading_date: str,
        created_at: datetime,
        is_valid: bool = True,
        error_message: Optional[str] = None,
    ) -> MarketDataRecord:
        """
        Append one indicator observation.

        Args:
            data_type: Indicator type value
            source: Data source identifier
            raw_data: Provider payload (JSON-serializable)
            normalized_value: Value in [0, 1] or None
            trading_date: YYYY-MM-DD bucket
            created_at: Capture timestamp
            is_valid: False for failed collections
            error_message: Failure reason for invalid observations

        Returns:
            The persisted record (flushed, id assigned)
        """
        if normalized_value is not None and not 0.0 <= normalized_value <= 1.0:
            raise ValidationError(
                repository_name=self.repository_name,
                operation="save_reading",
                field="normalized_value",
                reason=f"{normalized_value} is outside [0, 1]",
            )

        record = MarketDataRecord(
            data_type=data_type,
            source=source,
            raw_data=raw_data,
            normalized_value=normalized_value,
            trading_date=trading_date,
            is_valid=is_valid,
            error_message=error_message,
            created_at=ensure_utc(created_at),
            updated_at=ensure_utc(created_at),
        )
        return self._add(record)

    # --------------------------------------------------------
    # READ OPERATIONS
    # --------------------------------------------------------

    def get_latest_valid(
        self,
        data_type: str,
        since: datetime,
    ) -> Optional[MarketDataRecord]:
        """
        Get the newest valid observation of a type captured after a cutoff.

        Args:
            data_type: Indicator type value
            since: Exclusive lower bound on created_at

        Returns:
            MarketDataRecord or None
        """
        stmt = (
            select(MarketDataRecord)
            .where(
                and_(
                    MarketDataRecord.data_type == data_type,
                    MarketDataRecord.is_valid.is_(True),
                    MarketDataRecord.created_at > ensure_utc(since),
                )
            )
            .order_by(desc(MarketDataRecord.created_at), desc(MarketDataRecord.id))
            .limit(1)
        )
        return self._execute_scalar(stmt, "get_latest_valid")

    def query(
        self,
        data_type: Optional[str] = None,
        source: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        limit: int = 100,
        only_valid: bool = True,
    ) -> List[MarketDataRecord]:
        """
        List observations matching optional filters, newest first.

        Args:
            data_type: Filter by indicator type
            source: Filter by data source
            start_time: Inclusive lower bound on created_at
            end_time: Inclusive upper bound on created_at
            limit: Maximum number of records
            only_valid: Skip failed collections
        """
        conditions = []

        if data_type:
            conditions.append(MarketDataRecord.data_type == data_type)
        if source:
            conditions.append(MarketDataRecord.source == source)
        if only_valid:
            conditions.append(MarketDataRecord.is_valid.is_(True))
        if start_time:
            conditions.append(MarketDataRecord.created_at >= ensure_utc(start_time))
        if end_time:
            conditions.append(MarketDataRecord.created_at <= ensure_utc(end_time))

        stmt = select(MarketDataRecord)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(desc(MarketDataRecord.created_at)).limit(limit)

        return self._execute_query(stmt, "query")

    # --------------------------------------------------------
    # ANALYTICS
    # --------------------------------------------------------

    def get_statistics(
        self,
        today: str,
        data_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Record counts for the store.

        Args:
            today: Trading date used for the "today" count
            data_type: Optional indicator type filter

        Returns:
            Dict with total/valid/today counts and per-source counts
        """
        base = [MarketDataRecord.data_type == data_type] if data_type else []

        total = self._count(*base)
        valid = self._count(*base, MarketDataRecord.is_valid.is_(True))
        today_count = self._count(*base, MarketDataRecord.trading_date == today)

        stmt = select(MarketDataRecord.source, func.count(MarketDataRecord.id))
        if base:
            stmt = stmt.where(*base)
        stmt = stmt.group_by(MarketDataRecord.source)
        rows = self._execute_rows(stmt, "get_statistics")

        return {
            "total_records": total,
            "valid_records": valid,
            "today_records": today_count,
            "source_distribution": {source: count for source, count in rows},
        }
