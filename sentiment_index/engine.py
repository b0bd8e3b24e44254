"""
Sentiment Index - Engine.

============================================================
PURPOSE
============================================================
The single sentiment pipeline:

    source.fetch -> aggregate -> classify -> SentimentResult

The engine holds no state between calls. The indicator source
decides where values come from (and whether the result is
tagged primary or fallback); everything else is identical.

============================================================
"""

import logging
from datetime import timedelta
from typing import Dict, Mapping, Optional

from core.clock import ClockProtocol, SystemClock
from .aggregator import aggregate
from .classifier import SentimentClassifier
from .config import SentimentIndexConfig, get_default_config
from .exceptions import MissingIndicatorError
from .sources import IndicatorSource, SourcedIndicator
from .types import (
    CalculationDetails,
    ComputationMethod,
    IndicatorFreshness,
    IndicatorType,
    SentimentResult,
)


logger = logging.getLogger(__name__)


class SentimentEngine:
    """
    Computes sentiment results from an indicator source.

    ============================================================
    USAGE
    ============================================================
    engine = SentimentEngine(config, clock)
    result = engine.compute(StoreIndicatorSource(session))

    ============================================================
    """

    def __init__(
        self,
        config: Optional[SentimentIndexConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._config = config or get_default_config()
        self._clock = clock or SystemClock(self._config.market_timezone)
        self._classifier = SentimentClassifier(self._config.thresholds)

    @property
    def config(self) -> SentimentIndexConfig:
        return self._config

    @property
    def classifier(self) -> SentimentClassifier:
        return self._classifier

    def compute(
        self,
        source: IndicatorSource,
        require_score: bool = False,
    ) -> SentimentResult:
        """
        Run the pipeline against one indicator source.

        Args:
            source: Where indicator values come from
            require_score: Raise instead of returning a no-data result

        Raises:
            IndicatorSourceError: The source failed
            AggregationError: Contract violation
            MissingIndicatorError: No usable indicator and require_score
        """
        now = self._clock.now()
        since = now - timedelta(minutes=self._config.freshness_window_minutes)
        indicator_types = [t for t, _ in self._config.weights.items()]

        sourced = source.fetch(indicator_types, since)

        logger.debug(f"Computing sentiment from {source.name} ({source.method.value})")
        return self.compute_from_values(
            sourced,
            method=source.method,
            require_score=require_score,
        )

    def compute_from_values(
        self,
        sourced: Mapping[IndicatorType, SourcedIndicator],
        method: ComputationMethod = ComputationMethod.PRIMARY,
        require_score: bool = False,
    ) -> SentimentResult:
        """Aggregate and classify already sourced values."""
        now = self._clock.now()

        outcome = aggregate(
            {t: s.value for t, s in sourced.items()},
            self._config.weights,
        )

        if outcome.score is None:
            if require_score:
                raise MissingIndicatorError(
                    "No usable indicators to compute a score",
                    context={"method": method.value},
                )
            classification = self._classifier.classify_no_data()
        else:
            classification = self._classifier.classify(outcome.score)

        details = CalculationDetails(
            weights=outcome.weights,
            raw_indicators=outcome.indicators,
            weighted_sum=outcome.weighted_sum,
            composite_fraction=outcome.composite_fraction,
            total_weight=outcome.total_weight,
            valid_indicator_count=outcome.valid_indicator_count,
            data_freshness=self._freshness(sourced),
            calculated_at=now,
            method=method,
        )

        result = SentimentResult(
            score=outcome.score,
            status=classification.status,
            color=classification.color,
            action=classification.action,
            indicators=dict(outcome.indicators),
            calculation_details=details,
            timestamp=now,
        )

        logger.info(
            f"Sentiment computed | score={result.score} status={result.status.value} "
            f"valid={outcome.valid_indicator_count} method={method.value}"
        )
        return result

    def _freshness(
        self,
        sourced: Mapping[IndicatorType, SourcedIndicator],
    ) -> Dict[IndicatorType, IndicatorFreshness]:
        freshness = {}
        for indicator_type, item in sourced.items():
            if item.captured_at is None:
                continue
            minutes_old = self._clock.minutes_since(item.captured_at)
            freshness[indicator_type] = IndicatorFreshness(
                minutes_old=minutes_old,
                is_fresh=minutes_old < self._config.fresh_minutes,
                captured_at=item.captured_at,
            )
        return freshness
