"""
Sentiment Index - History Recorder.

============================================================
PURPOSE
============================================================
Appends computed results to the history store.

- One row per result, never overwritten
- Any store failure surfaces as PersistenceError

============================================================
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.clock import ClockProtocol, SystemClock
from storage.models.sentiment_history import SentimentHistoryRecord
from storage.repositories import RepositoryException, SentimentHistoryRepository
from .exceptions import PersistenceError
from .types import SentimentResult


logger = logging.getLogger(__name__)


class HistoryRecorder:
    """Persists SentimentResult snapshots."""

    def __init__(self, session: Session, clock: Optional[ClockProtocol] = None) -> None:
        self._repository = SentimentHistoryRepository(session)
        self._clock = clock or SystemClock()

    def record(
        self,
        result: SentimentResult,
        trading_date: Optional[str] = None,
    ) -> SentimentHistoryRecord:
        """
        Append one history row and commit it.

        Args:
            result: Computed sentiment
            trading_date: Override the bucket (defaults to the
                          market-timezone date of result.timestamp)

        Raises:
            PersistenceError: The row could not be written
        """
        trading_date = trading_date or self._clock.trading_date(result.timestamp)

        try:
            record = self._repository.append(
                score=result.score,
                status=result.status.value,
                color=result.color,
                action=result.action,
                indicators=result.indicators_to_dict(),
                calculation_details=result.calculation_details.to_dict(),
                method=result.method.value,
                trading_date=trading_date,
                created_at=result.timestamp,
            )
            self._repository.commit()
        except (RepositoryException, SQLAlchemyError) as e:
            logger.error(f"Failed to record sentiment history: {e}")
            raise PersistenceError(
                f"Failed to record sentiment history: {e}",
                context={"trading_date": trading_date, "score": result.score},
            ) from e

        logger.info(
            f"Sentiment recorded | id={record.id} score={record.score} "
            f"status={record.status} date={trading_date}"
        )
        return record
