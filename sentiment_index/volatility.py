"""
Sentiment Index - Volatility Proxy.

============================================================
PURPOSE
============================================================
Derives a VIX-like volatility value for the A-share market
from daily index closes, since no listed volatility index
exists for it.

============================================================
METHOD
============================================================
1. Log returns of consecutive closes
2. Historical volatility: sample std of returns, annualized
   (sqrt 252), in percent
3. EWMA volatility (lambda 0.94), annualized, in percent
4. Blend: 0.3 * historical + 0.7 * EWMA
5. Shanghai clamp [10, 50]; Shenzhen x1.12 clamp [12, 55]
6. Composite: 0.6 * Shanghai + 0.4 * Shenzhen, clamp [10, 50]

Any missing input yields None (missing), never a number.

============================================================
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


logger = logging.getLogger(__name__)


MIN_PRICE_POINTS = 30
TRADING_DAYS_PER_YEAR = 252
EWMA_LAMBDA = 0.94
DEFAULT_VOLATILITY_PCT = 20.0

HISTORICAL_WEIGHT = 0.3
EWMA_WEIGHT = 0.7

SHENZHEN_PREMIUM = 1.12
SHANGHAI_COMPOSITE_WEIGHT = 0.6
SHENZHEN_COMPOSITE_WEIGHT = 0.4

SHANGHAI_RANGE = (10.0, 50.0)
SHENZHEN_RANGE = (12.0, 55.0)
COMPOSITE_RANGE = (10.0, 50.0)


# ============================================================
# RETURN / VOLATILITY PRIMITIVES
# ============================================================


def log_returns(prices: Sequence[float]) -> List[float]:
    """Log returns, skipping pairs with a non-positive previous close."""
    returns = []
    for previous, current in zip(prices, prices[1:]):
        if previous > 0 and current > 0:
            returns.append(math.log(current / previous))
    return returns


def historical_volatility(returns: Sequence[float]) -> float:
    """Annualized sample standard deviation of returns, in percent."""
    if len(returns) < 2:
        return DEFAULT_VOLATILITY_PCT

    mean = math.fsum(returns) / len(returns)
    variance = math.fsum((r - mean) ** 2 for r in returns) / (len(returns) - 1)
    return math.sqrt(variance) * math.sqrt(TRADING_DAYS_PER_YEAR) * 100


def ewma_volatility(returns: Sequence[float], decay: float = EWMA_LAMBDA) -> float:
    """
    Exponentially weighted volatility, annualized, in percent.

    Seeded with the population variance, then updated from the
    newest return back to the oldest.
    """
    if len(returns) < 10:
        return DEFAULT_VOLATILITY_PCT

    mean = math.fsum(returns) / len(returns)
    variance = math.fsum((r - mean) ** 2 for r in returns) / len(returns)

    for r in reversed(returns):
        variance = decay * variance + (1 - decay) * r * r

    return math.sqrt(variance * TRADING_DAYS_PER_YEAR) * 100


def _blended(prices: Sequence[float]) -> Optional[float]:
    if len(prices) < MIN_PRICE_POINTS:
        logger.warning(
            f"Need at least {MIN_PRICE_POINTS} closes for volatility, got {len(prices)}"
        )
        return None

    returns = log_returns(prices)
    return (
        HISTORICAL_WEIGHT * historical_volatility(returns)
        + EWMA_WEIGHT * ewma_volatility(returns)
    )


def _clamp(value: float, bounds: tuple) -> float:
    return max(bounds[0], min(bounds[1], value))


# ============================================================
# INDEX VOLATILITY
# ============================================================


def shanghai_vix(prices: Sequence[float]) -> Optional[float]:
    """VIX-like value for the Shanghai Composite, or None."""
    blended = _blended(prices)
    if blended is None:
        return None
    return _clamp(blended, SHANGHAI_RANGE)


def shenzhen_vix(prices: Sequence[float]) -> Optional[float]:
    """VIX-like value for the Shenzhen Component, or None."""
    blended = _blended(prices)
    if blended is None:
        return None
    return _clamp(blended * SHENZHEN_PREMIUM, SHENZHEN_RANGE)


def composite_vix(
    shanghai: Optional[float],
    shenzhen: Optional[float],
) -> Optional[float]:
    """Weighted composite; None if either side is missing."""
    if shanghai is None or shenzhen is None:
        return None
    return _clamp(
        SHANGHAI_COMPOSITE_WEIGHT * shanghai + SHENZHEN_COMPOSITE_WEIGHT * shenzhen,
        COMPOSITE_RANGE,
    )


@dataclass(frozen=True)
class VolatilitySnapshot:
    """Per-index and composite volatility values (None when missing)."""

    shanghai_vix: Optional[float]
    shenzhen_vix: Optional[float]
    composite_vix: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        """Payload form understood by the volatility normalizer."""
        return {
            "shanghai_vix": _round2(self.shanghai_vix),
            "shenzhen_vix": _round2(self.shenzhen_vix),
            "composite_vix": _round2(self.composite_vix),
        }


def _round2(value: Optional[float]) -> Optional[float]:
    return round(value, 2) if value is not None else None


def calculate_volatility(
    shanghai_prices: Sequence[float],
    shenzhen_prices: Sequence[float],
) -> VolatilitySnapshot:
    """Compute the full volatility snapshot from two close series."""
    sh = shanghai_vix(shanghai_prices)
    sz = shenzhen_vix(shenzhen_prices)
    return VolatilitySnapshot(
        shanghai_vix=sh,
        shenzhen_vix=sz,
        composite_vix=composite_vix(sh, sz),
    )
