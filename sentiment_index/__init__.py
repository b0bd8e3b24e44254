"""
Market Sentiment Index.

============================================================
PURPOSE
============================================================
Computes a 0-100 market sentiment index from five weighted
indicators (volatility, breadth, volume, margin, foreign
flow), records it and serves it.

============================================================
PIPELINE
============================================================
indicator source -> aggregate -> classify -> SentimentResult
                                              |
                                              v
                                       history recorder

Missing indicators are excluded and the remaining weights
re-normalized; with nothing usable the result is no_data.

============================================================
"""

__version__ = "1.0.0"

from .types import (
    MISSING_SENTINEL,
    IndicatorType,
    SentimentStatus,
    ComputationMethod,
    IndicatorValue,
    IndicatorReading,
    IndicatorFreshness,
    Classification,
    CalculationDetails,
    SentimentResult,
    HistoryPoint,
    SentimentStatistics,
)
from .exceptions import (
    SentimentIndexError,
    MissingIndicatorError,
    AggregationError,
    PersistenceError,
    IndicatorSourceError,
    ConfigurationError,
)
from .config import (
    DEFAULT_WEIGHTS,
    WeightTable,
    NormalizationBounds,
    SentimentThresholds,
    SentimentIndexConfig,
    get_default_config,
)
from .normalizer import IndicatorNormalizer, clamp_linear
from .volatility import VolatilitySnapshot, calculate_volatility
from .aggregator import AggregationOutcome, aggregate, round_half_up, score_from_fraction
from .classifier import SentimentClassifier
from .sources import (
    IndicatorSource,
    StoreIndicatorSource,
    RawPayloadIndicatorSource,
    StaticIndicatorSource,
)
from .engine import SentimentEngine
from .recorder import HistoryRecorder
from .stats import QueryStatsService, population_std
from .service import SentimentService
from .scheduler import SentimentScheduler
from .collection import IndicatorCollector, CollectionResult


__all__ = [
    "__version__",
    # Types
    "MISSING_SENTINEL",
    "IndicatorType",
    "SentimentStatus",
    "ComputationMethod",
    "IndicatorValue",
    "IndicatorReading",
    "IndicatorFreshness",
    "Classification",
    "CalculationDetails",
    "SentimentResult",
    "HistoryPoint",
    "SentimentStatistics",
    # Exceptions
    "SentimentIndexError",
    "MissingIndicatorError",
    "AggregationError",
    "PersistenceError",
    "IndicatorSourceError",
    "ConfigurationError",
    # Config
    "DEFAULT_WEIGHTS",
    "WeightTable",
    "NormalizationBounds",
    "SentimentThresholds",
    "SentimentIndexConfig",
    "get_default_config",
    # Components
    "IndicatorNormalizer",
    "clamp_linear",
    "VolatilitySnapshot",
    "calculate_volatility",
    "AggregationOutcome",
    "aggregate",
    "round_half_up",
    "score_from_fraction",
    "SentimentClassifier",
    "IndicatorSource",
    "StoreIndicatorSource",
    "RawPayloadIndicatorSource",
    "StaticIndicatorSource",
    "SentimentEngine",
    "HistoryRecorder",
    "QueryStatsService",
    "population_std",
    "SentimentService",
    "SentimentScheduler",
    "IndicatorCollector",
    "CollectionResult",
]
