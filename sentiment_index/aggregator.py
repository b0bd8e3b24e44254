"""
Sentiment Index - Weighted Aggregator.

============================================================
PURPOSE
============================================================
Combines normalized indicators into a 0-100 composite score.

============================================================
PARTIAL DATA
============================================================
Absent indicators are dropped from BOTH the weighted sum and
the weight denominator, so the remaining weights are
re-normalized:

    fraction = sum(v_i * w_i) / sum(w_i)   over present i
    score    = round_half_up(clamp(fraction * 100, 0, 100))

If no weight is left, there is no score (no-data outcome)
and no division takes place.

============================================================
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional, Union

from .config import WeightTable
from .exceptions import AggregationError
from .types import IndicatorType, IndicatorValue


logger = logging.getLogger(__name__)

# Decimal places kept before half-up rounding; absorbs float noise
# such as 45.50000000000001 or 45.49999999999999
ROUNDING_GUARD_DIGITS = 9


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 away from zero."""
    guarded = Decimal(repr(round(value, ROUNDING_GUARD_DIGITS)))
    return int(guarded.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def score_from_fraction(fraction: float) -> int:
    """Map a [0, 1] composite fraction to an integer 0-100 score."""
    return round_half_up(max(0.0, min(100.0, fraction * 100.0)))


@dataclass(frozen=True)
class AggregationOutcome:
    """Result of one aggregation pass, before classification."""

    score: Optional[int]
    weighted_sum: float
    composite_fraction: Optional[float]
    total_weight: float
    valid_indicator_count: int
    weights: Dict[str, float]
    indicators: Dict[IndicatorType, IndicatorValue]

    @property
    def has_data(self) -> bool:
        return self.score is not None


def _parse_indicators(
    indicators: Mapping[Any, Any],
) -> Dict[IndicatorType, IndicatorValue]:
    parsed: Dict[IndicatorType, IndicatorValue] = {}
    for key, value in indicators.items():
        try:
            indicator_type = IndicatorType.parse(key)
        except ValueError as e:
            raise AggregationError(
                f"Unknown indicator type: {key!r}",
                context={"key": str(key)},
            ) from e
        parsed[indicator_type] = (
            value if isinstance(value, IndicatorValue) else IndicatorValue.coerce(value)
        )
    return parsed


def aggregate(
    indicators: Mapping[Any, Any],
    weights: Union[WeightTable, Mapping[Any, float], None] = None,
) -> AggregationOutcome:
    """
    Aggregate normalized indicators into a composite score.

    Args:
        indicators: Indicator type -> IndicatorValue (raw numbers
                    are coerced leniently)
        weights: WeightTable or a plain mapping (validated)

    Returns:
        AggregationOutcome (score None when nothing is usable)

    Raises:
        AggregationError: Unknown indicator key or malformed weights
    """
    if weights is None:
        weights = WeightTable()
    elif not isinstance(weights, WeightTable):
        weights = WeightTable(weights)

    parsed = _parse_indicators(indicators)

    snapshot: Dict[IndicatorType, IndicatorValue] = {}
    products = []
    used_weights = []

    for indicator_type, weight in weights.items():
        value = parsed.get(indicator_type, IndicatorValue.absent("missing"))
        snapshot[indicator_type] = value

        # Zero-weight indicators cannot move the score
        if not value.is_present or weight == 0:
            continue

        products.append(value.value * weight)
        used_weights.append(weight)

    weighted_sum = math.fsum(products)
    total_weight = math.fsum(used_weights)

    if total_weight == 0:
        logger.warning("No usable indicators, producing no-data outcome")
        return AggregationOutcome(
            score=None,
            weighted_sum=0.0,
            composite_fraction=None,
            total_weight=0.0,
            valid_indicator_count=0,
            weights=weights.to_dict(),
            indicators=snapshot,
        )

    fraction = weighted_sum / total_weight
    score = score_from_fraction(fraction)

    logger.debug(
        f"Aggregated {len(used_weights)} indicators: "
        f"sum={weighted_sum:.6f} weight={total_weight:.4f} score={score}"
    )

    return AggregationOutcome(
        score=score,
        weighted_sum=weighted_sum,
        composite_fraction=fraction,
        total_weight=total_weight,
        valid_indicator_count=len(used_weights),
        weights=weights.to_dict(),
        indicators=snapshot,
    )
