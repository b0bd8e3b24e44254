"""
Sentiment Index - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the sentiment aggregation engine.

This module defines the enums and dataclasses passed between
the normalizer, aggregator, classifier, recorder and API.

============================================================
DESIGN PRINCIPLES
============================================================
- All types are immutable
- Missing data is an explicit state (IndicatorValue.absent),
  never a magic number inside the core
- The legacy -1 sentinel exists only in to_dict() output

============================================================
INDICATORS
============================================================
1. VOLATILITY - VIX-like index volatility proxy
2. BREADTH - advance/decline breadth
3. VOLUME - turnover vs rolling average
4. MARGIN - margin balance change
5. FOREIGN - foreign fund net flow

============================================================
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from core.clock import to_iso8601


# Wire-format marker for "no value" (scores and indicators)
MISSING_SENTINEL = -1


# ============================================================
# ENUMS
# ============================================================


class IndicatorType(str, Enum):
    """The five market indicators feeding the composite score."""

    VOLATILITY = "volatility"
    BREADTH = "breadth"
    VOLUME = "volume"
    MARGIN = "margin"
    FOREIGN = "foreign"

    @classmethod
    def all_types(cls) -> List["IndicatorType"]:
        """Return all indicator types in weight order."""
        return [cls.VOLATILITY, cls.BREADTH, cls.VOLUME, cls.MARGIN, cls.FOREIGN]

    @classmethod
    def parse(cls, value: Any) -> "IndicatorType":
        """
        Convert a string (or IndicatorType) to IndicatorType.

        The legacy name "vix" is accepted for VOLATILITY.

        Raises:
            ValueError: For unknown names
        """
        if isinstance(value, cls):
            return value
        if value == "vix":
            return cls.VOLATILITY
        return cls(value)


class SentimentStatus(str, Enum):
    """Discrete sentiment bands, plus the explicit no-data state."""

    EXTREME_FEAR = "extreme_fear"
    FEAR = "fear"
    NEUTRAL = "neutral"
    GREED = "greed"
    EXTREME_GREED = "extreme_greed"
    NO_DATA = "no_data"


class ComputationMethod(str, Enum):
    """Which indicator source produced a result."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


# ============================================================
# INDICATOR VALUES
# ============================================================


@dataclass(frozen=True)
class IndicatorValue:
    """
    A normalized indicator: present with a value in [0, 1], or absent.

    Use the constructors instead of instantiating directly:

        IndicatorValue.present(0.42)
        IndicatorValue.absent("stale")
        IndicatorValue.coerce(raw)   # lenient
    """

    value: Optional[float] = None
    reason: Optional[str] = None

    @classmethod
    def present(cls, value: float) -> "IndicatorValue":
        """
        Raises:
            ValueError: If value is not a finite number in [0, 1]
        """
        number = float(value)
        if not math.isfinite(number) or not 0.0 <= number <= 1.0:
            raise ValueError(f"Normalized indicator must be in [0, 1], got {value!r}")
        return cls(value=number)

    @classmethod
    def absent(cls, reason: str = "missing") -> "IndicatorValue":
        return cls(value=None, reason=reason)

    @classmethod
    def coerce(cls, raw: Any) -> "IndicatorValue":
        """
        Build a value from untrusted input without raising.

        None, NaN, infinities, non-numbers, negatives (including
        the -1 sentinel) and values above 1 all become absent.
        """
        if raw is None:
            return cls.absent("missing")
        if isinstance(raw, IndicatorValue):
            return raw
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            return cls.absent("non_numeric")

        number = float(raw)
        if not math.isfinite(number):
            return cls.absent("not_finite")
        if number == MISSING_SENTINEL:
            return cls.absent("missing")
        if not 0.0 <= number <= 1.0:
            return cls.absent("out_of_range")
        return cls(value=number)

    @property
    def is_present(self) -> bool:
        return self.value is not None

    def to_wire(self) -> float:
        """Value for JSON output (absent -> -1)."""
        return self.value if self.value is not None else MISSING_SENTINEL


# ============================================================
# INPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class IndicatorReading:
    """
    One collected observation of an indicator.

    Created by the collection layer; read-only to the core.
    """

    indicator_type: IndicatorType
    raw_value: Any
    normalized_value: Optional[float]
    source: str
    trading_date: str
    captured_at: datetime
    valid: bool = True
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "indicator_type": self.indicator_type.value,
            "raw_value": self.raw_value,
            "normalized_value": self.normalized_value,
            "source": self.source,
            "trading_date": self.trading_date,
            "captured_at": to_iso8601(self.captured_at),
            "valid": self.valid,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class IndicatorFreshness:
    """Age of the reading behind one indicator."""

    minutes_old: int
    is_fresh: bool
    captured_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minutes_old": self.minutes_old,
            "is_fresh": self.is_fresh,
            "captured_at": to_iso8601(self.captured_at),
        }


# ============================================================
# OUTPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class Classification:
    """Presentation of a sentiment band."""

    status: SentimentStatus
    color: str
    action: str


@dataclass(frozen=True)
class CalculationDetails:
    """
    Audit trail for one computation.

    weighted_sum and composite_fraction are kept unrounded so a
    score can be re-derived from the record.
    """

    weights: Dict[str, float]
    raw_indicators: Dict[IndicatorType, IndicatorValue]
    weighted_sum: float
    composite_fraction: Optional[float]
    total_weight: float
    valid_indicator_count: int
    data_freshness: Dict[IndicatorType, IndicatorFreshness]
    calculated_at: datetime
    method: ComputationMethod = ComputationMethod.PRIMARY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weights": dict(self.weights),
            "raw_indicators": {
                t.value: v.to_wire() for t, v in self.raw_indicators.items()
            },
            "weighted_sum": self.weighted_sum,
            "composite_fraction": self.composite_fraction,
            "total_weight": self.total_weight,
            "valid_indicator_count": self.valid_indicator_count,
            "data_freshness": {
                t.value: f.to_dict() for t, f in self.data_freshness.items()
            },
            "calculated_at": to_iso8601(self.calculated_at),
            "method": self.method.value,
        }


@dataclass(frozen=True)
class SentimentResult:
    """
    Output of one sentiment computation.

    ============================================================
    OUTPUT GUARANTEES
    ============================================================
    - valid_indicator_count == 0  <=>  score is None and
      status is NO_DATA
    - Otherwise score is an int in [0, 100]

    ============================================================
    """

    score: Optional[int]
    status: SentimentStatus
    color: str
    action: str
    indicators: Dict[IndicatorType, IndicatorValue]
    calculation_details: CalculationDetails
    timestamp: datetime

    @property
    def has_score(self) -> bool:
        return self.score is not None

    @property
    def method(self) -> ComputationMethod:
        return self.calculation_details.method

    def indicators_to_dict(self) -> Dict[str, float]:
        return {t.value: v.to_wire() for t, v in self.indicators.items()}

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable wire form."""
        return {
            "score": self.score if self.score is not None else MISSING_SENTINEL,
            "status": self.status.value,
            "color": self.color,
            "action": self.action,
            "indicators": self.indicators_to_dict(),
            "calculation_details": self.calculation_details.to_dict(),
            "timestamp": to_iso8601(self.timestamp),
        }


@dataclass(frozen=True)
class HistoryPoint:
    """One point of the sentiment history series, keyed by trading date."""

    date: str
    score: Optional[int]
    status: SentimentStatus
    captured_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "captured_at": to_iso8601(self.captured_at),
            "score": self.score if self.score is not None else MISSING_SENTINEL,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class SentimentStatistics:
    """Summary statistics over a history window."""

    start: datetime
    end: datetime
    count: int
    average: Optional[int]
    maximum: Optional[int]
    minimum: Optional[int]
    volatility: Optional[float]
    distribution: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": {
                "start": to_iso8601(self.start),
                "end": to_iso8601(self.end),
                "count": self.count,
            },
            "statistics": {
                "average": self.average,
                "maximum": self.maximum,
                "minimum": self.minimum,
                "volatility": self.volatility,
            },
            "distribution": dict(self.distribution),
        }
