"""
Sentiment Index - Configuration.

============================================================
PURPOSE
============================================================
Configuration dataclasses for the sentiment engine: indicator
weights, normalization bounds, classification thresholds and
runtime settings.

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable configurations
- Validated on construction
- Environment overrides via SENTIMENT_* variables (.env aware)

============================================================
"""

import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from dotenv import load_dotenv

from core.clock import DEFAULT_MARKET_TIMEZONE
from .exceptions import AggregationError, ConfigurationError
from .types import IndicatorType


WEIGHT_SUM_TOLERANCE = 1e-9

DEFAULT_WEIGHTS: Dict[IndicatorType, float] = {
    IndicatorType.VOLATILITY: 0.30,
    IndicatorType.BREADTH: 0.25,
    IndicatorType.VOLUME: 0.20,
    IndicatorType.MARGIN: 0.15,
    IndicatorType.FOREIGN: 0.10,
}


# ============================================================
# WEIGHTS
# ============================================================


@dataclass(frozen=True)
class WeightTable:
    """
    Indicator weights used by the aggregator.

    ============================================================
    INVARIANTS
    ============================================================
    - Keys are known indicator types
    - Weights are finite and non-negative
    - Weights sum to 1.0 (within 1e-9)

    A violation raises AggregationError: the weight table is
    part of the aggregation contract.

    ============================================================
    """

    weights: Mapping[IndicatorType, float] = field(
        default_factory=lambda: dict(DEFAULT_WEIGHTS)
    )

    def __post_init__(self) -> None:
        parsed: Dict[IndicatorType, float] = {}
        for key, weight in dict(self.weights).items():
            try:
                indicator_type = IndicatorType.parse(key)
            except ValueError as e:
                raise AggregationError(
                    f"Unknown indicator type in weight table: {key!r}",
                    context={"key": str(key)},
                ) from e

            if isinstance(weight, bool) or not isinstance(weight, (int, float)):
                raise AggregationError(
                    f"Weight for {indicator_type.value} is not a number: {weight!r}",
                )
            if not math.isfinite(weight) or weight < 0:
                raise AggregationError(
                    f"Weight for {indicator_type.value} must be finite and >= 0, got {weight}",
                )
            parsed[indicator_type] = float(weight)

        total = math.fsum(parsed.values())
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise AggregationError(
                f"Weights must sum to 1.0, got {total}",
                context={"weights": {t.value: w for t, w in parsed.items()}},
            )

        object.__setattr__(self, "weights", parsed)

    def get(self, indicator_type: IndicatorType) -> float:
        return self.weights.get(indicator_type, 0.0)

    def items(self) -> Iterator[Tuple[IndicatorType, float]]:
        return iter(self.weights.items())

    def __contains__(self, indicator_type: object) -> bool:
        return indicator_type in self.weights

    def to_dict(self) -> Dict[str, float]:
        return {t.value: w for t, w in self.weights.items()}


# ============================================================
# NORMALIZATION BOUNDS
# ============================================================


@dataclass(frozen=True)
class NormalizationBounds:
    """
    Calibration for raw indicator values.

    ============================================================
    BOUNDS
    ============================================================
    volatility: composite VIX 10 (calm) .. 50 (panic)
    volume: 0 .. 2 x average turnover (average 500B CNY)
    margin: balance change -5% .. +5%
    foreign: net inflow -100 .. +100 (100M CNY units)
    breadth: ratio in [0, 1], no calibration

    ============================================================
    """

    volatility_min: float = 10.0
    volatility_max: float = 50.0

    volume_average: float = 500_000_000_000.0

    margin_min_pct: float = -5.0
    margin_max_pct: float = 5.0

    foreign_min: float = -100.0
    foreign_max: float = 100.0

    # Reference count of listed A-share stocks for breadth totals
    default_total_stocks: int = 5152
    stock_count_ttl_hours: float = 24.0

    def __post_init__(self) -> None:
        for name, low, high in (
            ("volatility", self.volatility_min, self.volatility_max),
            ("margin", self.margin_min_pct, self.margin_max_pct),
            ("foreign", self.foreign_min, self.foreign_max),
        ):
            if not low < high:
                raise ConfigurationError(
                    f"{name} bounds must satisfy min < max, got {low} >= {high}"
                )
        if self.volume_average <= 0:
            raise ConfigurationError(f"volume_average must be > 0, got {self.volume_average}")
        if self.default_total_stocks <= 0:
            raise ConfigurationError("default_total_stocks must be > 0")
        if self.stock_count_ttl_hours <= 0:
            raise ConfigurationError("stock_count_ttl_hours must be > 0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "volatility_min": self.volatility_min,
            "volatility_max": self.volatility_max,
            "volume_average": self.volume_average,
            "margin_min_pct": self.margin_min_pct,
            "margin_max_pct": self.margin_max_pct,
            "foreign_min": self.foreign_min,
            "foreign_max": self.foreign_max,
            "default_total_stocks": self.default_total_stocks,
            "stock_count_ttl_hours": self.stock_count_ttl_hours,
        }


# ============================================================
# CLASSIFICATION THRESHOLDS
# ============================================================


@dataclass(frozen=True)
class SentimentThresholds:
    """
    Inclusive upper bounds of each sentiment band.

    score <= 25 extreme fear, <= 40 fear, <= 60 neutral,
    <= 75 greed, otherwise extreme greed.
    """

    extreme_fear: int = 25
    fear: int = 40
    neutral: int = 60
    greed: int = 75

    def __post_init__(self) -> None:
        ordered = [self.extreme_fear, self.fear, self.neutral, self.greed]
        if not all(0 <= t <= 100 for t in ordered):
            raise ConfigurationError(f"Thresholds must be within [0, 100]: {ordered}")
        if any(a >= b for a, b in zip(ordered, ordered[1:])):
            raise ConfigurationError(f"Thresholds must be strictly ascending: {ordered}")

    def to_dict(self) -> Dict[str, int]:
        return {
            "extreme_fear": self.extreme_fear,
            "fear": self.fear,
            "neutral": self.neutral,
            "greed": self.greed,
        }


# ============================================================
# MASTER CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class SentimentIndexConfig:
    """
    Complete configuration for the sentiment service.
    """

    weights: WeightTable = field(default_factory=WeightTable)
    bounds: NormalizationBounds = field(default_factory=NormalizationBounds)
    thresholds: SentimentThresholds = field(default_factory=SentimentThresholds)

    # Readings older than this are ignored by aggregation runs
    freshness_window_minutes: int = 60

    # Readings younger than this are flagged is_fresh
    fresh_minutes: int = 30

    schedule_interval_minutes: int = 10
    market_timezone: str = DEFAULT_MARKET_TIMEZONE

    history_default_days: int = 30
    stats_default_days: int = 30

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.freshness_window_minutes <= 0:
            raise ConfigurationError("freshness_window_minutes must be > 0")
        if self.fresh_minutes <= 0:
            raise ConfigurationError("fresh_minutes must be > 0")
        if self.schedule_interval_minutes <= 0 or 60 % self.schedule_interval_minutes:
            raise ConfigurationError(
                "schedule_interval_minutes must be a positive divisor of 60, "
                f"got {self.schedule_interval_minutes}"
            )
        if not 0 < self.api_port < 65536:
            raise ConfigurationError(f"api_port out of range: {self.api_port}")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "SentimentIndexConfig":
        """
        Build a configuration from SENTIMENT_* environment variables.

        Args:
            env: Mapping to read instead of os.environ (.env is
                 only loaded when reading the real environment)

        Raises:
            ConfigurationError: For unparseable values
        """
        if env is None:
            load_dotenv()
            env = os.environ

        overrides: Dict[str, Any] = {}
        for env_name, attr, cast in (
            ("SENTIMENT_FRESHNESS_MINUTES", "freshness_window_minutes", int),
            ("SENTIMENT_SCHEDULE_INTERVAL_MINUTES", "schedule_interval_minutes", int),
            ("SENTIMENT_MARKET_TIMEZONE", "market_timezone", str),
            ("SENTIMENT_API_HOST", "api_host", str),
            ("SENTIMENT_API_PORT", "api_port", int),
            ("SENTIMENT_LOG_LEVEL", "log_level", str.upper),
        ):
            raw = env.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                overrides[attr] = cast(raw)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {env_name}: {raw!r}",
                    context={"variable": env_name},
                ) from e

        return cls(**overrides)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weights": self.weights.to_dict(),
            "bounds": self.bounds.to_dict(),
            "thresholds": self.thresholds.to_dict(),
            "freshness_window_minutes": self.freshness_window_minutes,
            "fresh_minutes": self.fresh_minutes,
            "schedule_interval_minutes": self.schedule_interval_minutes,
            "market_timezone": self.market_timezone,
            "history_default_days": self.history_default_days,
            "stats_default_days": self.stats_default_days,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "log_level": self.log_level,
        }


def get_default_config() -> SentimentIndexConfig:
    """Return the default configuration."""
    return SentimentIndexConfig()
