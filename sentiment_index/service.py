"""
Sentiment Index - Sentiment Service.

============================================================
PURPOSE
============================================================
Entry point used by the API, the CLI and the scheduler.

- calculate_current_sentiment: primary source, falling back
  to the raw payload source when the primary store fails
- compute_and_record: the same, then append to history

============================================================
FAILURE POLICY
============================================================
- Missing data is not a failure: the result is no_data
- IndicatorSourceError on the primary path -> fallback
- AggregationError is a contract violation -> propagates
- Fallback failure -> propagates (API answers 503)

============================================================
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.clock import ClockProtocol, SystemClock
from .config import SentimentIndexConfig, get_default_config
from .engine import SentimentEngine
from .exceptions import IndicatorSourceError
from .normalizer import IndicatorNormalizer
from .recorder import HistoryRecorder
from .sources import IndicatorSource, RawPayloadIndicatorSource, StoreIndicatorSource
from .types import SentimentResult


logger = logging.getLogger(__name__)


class SentimentService:
    """
    Strategy selection around the sentiment engine.

    Sources default to the market data store behind `session`;
    both can be replaced (tests, ad hoc runs).
    """

    def __init__(
        self,
        session: Session,
        config: Optional[SentimentIndexConfig] = None,
        clock: Optional[ClockProtocol] = None,
        normalizer: Optional[IndicatorNormalizer] = None,
        primary_source: Optional[IndicatorSource] = None,
        fallback_source: Optional[IndicatorSource] = None,
    ) -> None:
        self._session = session
        self._config = config or get_default_config()
        self._clock = clock or SystemClock(self._config.market_timezone)
        self._engine = SentimentEngine(self._config, self._clock)

        normalizer = normalizer or IndicatorNormalizer(self._config.bounds, self._clock)
        self._primary = primary_source or StoreIndicatorSource(session)
        self._fallback = fallback_source or RawPayloadIndicatorSource(session, normalizer)

    @property
    def engine(self) -> SentimentEngine:
        return self._engine

    def calculate_current_sentiment(self, require_score: bool = False) -> SentimentResult:
        """
        Compute the current sentiment.

        Raises:
            IndicatorSourceError: Both sources failed
            AggregationError: Contract violation
            MissingIndicatorError: No usable indicator and require_score
        """
        try:
            return self._engine.compute(self._primary, require_score=require_score)
        except IndicatorSourceError as e:
            logger.warning(
                f"Primary source {self._primary.name} failed ({e.message}), "
                f"falling back to {self._fallback.name}"
            )
            self._session.rollback()

        return self._engine.compute(self._fallback, require_score=require_score)

    def compute_and_record(self) -> SentimentResult:
        """
        Compute the current sentiment and append it to history.

        Raises:
            PersistenceError: The history row could not be written
        """
        result = self.calculate_current_sentiment()
        HistoryRecorder(self._session, self._clock).record(result)
        return result
