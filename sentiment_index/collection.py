"""
Sentiment Index - Indicator Collection.

============================================================
PURPOSE
============================================================
Template for storing one indicator observation:

    fetcher() -> payload -> normalizer -> market data store
                                       -> collection log

Provider-specific fetching is injected as a callable; this
module only owns what happens around it.

============================================================
FAILURE HANDLING
============================================================
- Fetcher raises: an INVALID reading with the error message
  is stored, and a failed CollectionResult is returned
- Payload cannot be normalized: stored as INVALID
- Every attempt appends one row to the collection log
- Store write fails: the repository exception propagates

============================================================
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from core.clock import ClockProtocol, SystemClock
from storage.repositories import CollectionLogRepository, MarketDataRepository
from .normalizer import IndicatorNormalizer
from .types import IndicatorType


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionResult:
    """Outcome of one collection attempt."""

    success: bool
    data_type: str
    source: str
    record_id: Optional[int] = None
    normalized_value: Optional[float] = None
    error: Optional[str] = None
    execution_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data_type": self.data_type,
            "source": self.source,
            "record_id": self.record_id,
            "normalized_value": self.normalized_value,
            "error": self.error,
            "execution_time_ms": self.execution_time_ms,
        }


class IndicatorCollector:
    """Runs fetchers and stores their readings."""

    def __init__(
        self,
        session: Session,
        normalizer: Optional[IndicatorNormalizer] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._repository = MarketDataRepository(session)
        self._log_repository = CollectionLogRepository(session)
        self._clock = clock or SystemClock()
        self._normalizer = normalizer or IndicatorNormalizer(clock=self._clock)

    def collect(
        self,
        indicator_type: IndicatorType,
        source: str,
        fetcher: Callable[[], Any],
    ) -> CollectionResult:
        """
        Fetch, normalize and store one reading, log the attempt, then commit.

        Args:
            indicator_type: Indicator being collected
            source: Provider identifier stored with the reading
            fetcher: Zero-argument callable returning the payload
                     (a number or a dict the normalizer understands)
        """
        indicator_type = IndicatorType.parse(indicator_type)
        started = time.monotonic()
        now = self._clock.now()
        trading_date = self._clock.trading_date(now)

        try:
            payload = fetcher()
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.error(f"Collection failed for {indicator_type.value} from {source}: {error}")
            raw_data = {"error": error}
            value = None
        else:
            raw_data = payload if isinstance(payload, dict) else {"value": payload}
            normalized = self._normalizer.normalize(indicator_type, payload)
            value = normalized.value
            error = None if normalized.is_present else f"Unusable payload ({normalized.reason})"

        record = self._repository.save_reading(
            data_type=indicator_type.value,
            source=source,
            raw_data=raw_data,
            normalized_value=value,
            trading_date=trading_date,
            created_at=now,
            is_valid=error is None,
            error_message=error,
        )

        result = CollectionResult(
            success=error is None,
            data_type=indicator_type.value,
            source=source,
            record_id=record.id,
            normalized_value=value,
            error=error,
            execution_time_ms=_elapsed_ms(started),
        )
        self._log_repository.append(
            data_type=result.data_type,
            source=source,
            status="success" if result.success else "failed",
            created_at=now,
            record_count=1 if result.success else 0,
            execution_time_ms=result.execution_time_ms,
            error_message=error,
            details=result.to_dict(),
        )
        self._repository.commit()

        logger.info(
            f"Collected {indicator_type.value} from {source} | "
            f"normalized={value} valid={result.success}"
        )
        return result


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 3)
