"""
Sentiment Index - Query and Statistics Service.

============================================================
PURPOSE
============================================================
Read-side of the history store: the score series for charts,
summary statistics over a date range and the latest record.

============================================================
STATISTICS
============================================================
- average: half-up rounded mean of scored records
- maximum / minimum: over scored records
- volatility: population standard deviation (two-pass fsum)
- distribution: status counts over ALL records, including
  no_data snapshots

============================================================
"""

import logging
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from core.clock import ClockProtocol, SystemClock, ensure_utc, to_iso8601
from storage.models.sentiment_history import SentimentHistoryRecord
from storage.repositories import SentimentHistoryRepository
from .aggregator import round_half_up
from .types import MISSING_SENTINEL, HistoryPoint, SentimentStatistics, SentimentStatus


logger = logging.getLogger(__name__)


def population_std(values: Sequence[float]) -> float:
    """
    Population standard deviation; 0.0 for fewer than two values.
    """
    if len(values) < 2:
        return 0.0
    mean = math.fsum(values) / len(values)
    variance = math.fsum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def history_record_to_dict(record: SentimentHistoryRecord) -> Dict[str, Any]:
    """Wire form of a stored snapshot (absent score -> -1)."""
    return {
        "id": record.id,
        "score": record.score if record.score is not None else MISSING_SENTINEL,
        "status": record.status,
        "color": record.color,
        "action": record.action,
        "indicators": record.indicators,
        "calculation_details": record.calculation_details,
        "method": record.method,
        "trading_date": record.trading_date,
        "created_at": to_iso8601(record.created_at),
    }


class QueryStatsService:
    """History queries over one session."""

    def __init__(
        self,
        session: Session,
        clock: Optional[ClockProtocol] = None,
        default_days: int = 30,
    ) -> None:
        self._repository = SentimentHistoryRepository(session)
        self._clock = clock or SystemClock()
        self._default_days = default_days

    def get_history(self, days: int = 30) -> List[HistoryPoint]:
        """
        Snapshots from the last `days` days, oldest first, labelled
        with their trading date.

        days <= 0 returns an empty list without querying.
        """
        if days <= 0:
            return []

        since = self._clock.now() - timedelta(days=days)
        records = self._repository.get_since(since)

        return [
            HistoryPoint(
                date=r.trading_date,
                score=r.score,
                status=SentimentStatus(r.status),
                captured_at=ensure_utc(r.created_at),
            )
            for r in records
        ]

    def get_aggregated_stats(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Optional[SentimentStatistics]:
        """
        Summary statistics for snapshots with created_at in [start, end].

        Args:
            start: Defaults to end - default_days
            end: Defaults to now

        Returns:
            SentimentStatistics, or None when the range holds no records
        """
        end = ensure_utc(end) if end else self._clock.now()
        start = ensure_utc(start) if start else end - timedelta(days=self._default_days)

        records = self._repository.get_in_range(start, end)
        if not records:
            logger.info(f"No sentiment history between {start.isoformat()} and {end.isoformat()}")
            return None

        distribution = Counter(r.status for r in records)
        scores = [r.score for r in records if r.score is not None]

        if scores:
            average = round_half_up(math.fsum(scores) / len(scores))
            maximum = max(scores)
            minimum = min(scores)
            volatility = population_std(scores)
        else:
            average = maximum = minimum = None
            volatility = None

        return SentimentStatistics(
            start=start,
            end=end,
            count=len(records),
            average=average,
            maximum=maximum,
            minimum=minimum,
            volatility=volatility,
            distribution=dict(distribution),
        )

    def get_latest(self) -> Optional[Dict[str, Any]]:
        """Most recent snapshot in wire form, or None."""
        record = self._repository.get_latest()
        if record is None:
            return None
        return history_record_to_dict(record)
