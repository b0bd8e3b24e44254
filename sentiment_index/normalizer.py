"""
Sentiment Index - Indicator Normalizer.

============================================================
PURPOSE
============================================================
Maps raw indicator payloads onto [0, 1].

Missing or unusable input returns IndicatorValue.absent();
normalization never raises for bad data. Out-of-range values
are clamped.

============================================================
PAYLOADS
============================================================
A payload is either a bare number (the primary metric) or a
dict read by known keys:

volatility: composite_vix | value
breadth:    ratio | value | rising + falling (+ unchanged) (+ total)
volume:     ratio | total | value (+ average)
margin:     change_percent | value
foreign:    net_inflow | value

============================================================
"""

import logging
import math
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from core.cache import TTLCache
from core.clock import ClockProtocol, SystemClock
from .config import NormalizationBounds
from .types import MISSING_SENTINEL, IndicatorType, IndicatorValue


logger = logging.getLogger(__name__)

STOCK_COUNT_CACHE_KEY = "a_share_total"


# ============================================================
# HELPERS
# ============================================================


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def clamp_linear(value: float, minimum: float, maximum: float) -> float:
    """
    Linear rescale of [minimum, maximum] onto [0, 1], clamped.

    Raises:
        ValueError: If maximum <= minimum
    """
    if maximum <= minimum:
        raise ValueError(f"Invalid bounds: [{minimum}, {maximum}]")
    return clamp((value - minimum) / (maximum - minimum), 0.0, 1.0)


def to_number(raw: Any) -> Optional[float]:
    """Finite float from raw input, or None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        number = float(raw)
    elif isinstance(raw, str):
        try:
            number = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _non_negative(raw: Any) -> Optional[float]:
    # The -1 sentinel and other negatives mean "no data" for quantities
    # that cannot be negative
    number = to_number(raw)
    if number is None or number < 0 or number == MISSING_SENTINEL:
        return None
    return number


def _pick(payload: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


# ============================================================
# NORMALIZER
# ============================================================


class IndicatorNormalizer:
    """
    Per-type normalization of raw indicator payloads.

    The only state is the injected stock count cache, used when
    a breadth payload carries counts but no total.
    """

    def __init__(
        self,
        bounds: Optional[NormalizationBounds] = None,
        clock: Optional[ClockProtocol] = None,
        stock_count_loader: Optional[Callable[[], int]] = None,
        stock_count_cache: Optional[TTLCache] = None,
    ) -> None:
        """
        Args:
            bounds: Calibration (defaults to NormalizationBounds())
            clock: Clock for the stock count cache
            stock_count_loader: Fetches the number of listed stocks
            stock_count_cache: Explicit cache (built from clock otherwise)
        """
        self._bounds = bounds or NormalizationBounds()
        self._stock_count_loader = stock_count_loader
        self._stock_count_cache = stock_count_cache or TTLCache(
            clock or SystemClock(),
            ttl=timedelta(hours=self._bounds.stock_count_ttl_hours),
        )
        self._handlers: Dict[IndicatorType, Callable[[Any], IndicatorValue]] = {
            IndicatorType.VOLATILITY: self.normalize_volatility,
            IndicatorType.BREADTH: self.normalize_breadth,
            IndicatorType.VOLUME: self.normalize_volume,
            IndicatorType.MARGIN: self.normalize_margin,
            IndicatorType.FOREIGN: self.normalize_foreign,
        }

    @property
    def bounds(self) -> NormalizationBounds:
        return self._bounds

    def normalize(self, indicator_type: IndicatorType, raw: Any) -> IndicatorValue:
        """
        Normalize a raw payload for the given indicator type.

        Raises:
            ValueError: Only for an unknown indicator type
        """
        handler = self._handlers[IndicatorType.parse(indicator_type)]
        return handler(raw)

    # --------------------------------------------------------
    # PER-TYPE NORMALIZATION
    # --------------------------------------------------------

    def normalize_volatility(self, raw: Any) -> IndicatorValue:
        if isinstance(raw, dict):
            raw = _pick(raw, "composite_vix", "compositeVIX", "value")
        vix = _non_negative(raw)
        if vix is None:
            return IndicatorValue.absent("missing")
        return IndicatorValue.present(
            clamp_linear(vix, self._bounds.volatility_min, self._bounds.volatility_max)
        )

    def normalize_breadth(self, raw: Any) -> IndicatorValue:
        if not isinstance(raw, dict):
            ratio = _non_negative(raw)
            if ratio is None:
                return IndicatorValue.absent("missing")
            return IndicatorValue.present(clamp(ratio, 0.0, 1.0))

        ratio = _non_negative(_pick(raw, "ratio", "value"))
        if ratio is not None:
            return IndicatorValue.present(clamp(ratio, 0.0, 1.0))

        rising = _non_negative(raw.get("rising"))
        if rising is None:
            return IndicatorValue.absent("missing")

        total = _non_negative(raw.get("total"))
        if total is None:
            falling = _non_negative(raw.get("falling"))
            if falling is not None:
                total = rising + falling + (_non_negative(raw.get("unchanged")) or 0.0)
            else:
                total = float(self.reference_stock_count())

        if total <= 0:
            return IndicatorValue.absent("zero_total")
        return IndicatorValue.present(clamp(rising / total, 0.0, 1.0))

    def normalize_volume(self, raw: Any) -> IndicatorValue:
        average = self._bounds.volume_average
        if isinstance(raw, dict):
            ratio = _non_negative(raw.get("ratio"))
            if ratio is not None:
                # ratio is turnover / average; 2x average maps to 1.0
                return IndicatorValue.present(clamp(ratio / 2.0, 0.0, 1.0))
            payload_average = _non_negative(raw.get("average"))
            if payload_average:
                average = payload_average
            raw = _pick(raw, "total", "value")

        total = _non_negative(raw)
        if total is None:
            return IndicatorValue.absent("missing")
        return IndicatorValue.present(clamp_linear(total, 0.0, average * 2.0))

    def normalize_margin(self, raw: Any) -> IndicatorValue:
        if isinstance(raw, dict):
            raw = _pick(raw, "change_percent", "value")
        change = to_number(raw)
        if change is None:
            return IndicatorValue.absent("missing")
        return IndicatorValue.present(
            clamp_linear(change, self._bounds.margin_min_pct, self._bounds.margin_max_pct)
        )

    def normalize_foreign(self, raw: Any) -> IndicatorValue:
        if isinstance(raw, dict):
            raw = _pick(raw, "net_inflow", "value")
        inflow = to_number(raw)
        if inflow is None:
            return IndicatorValue.absent("missing")
        return IndicatorValue.present(
            clamp_linear(inflow, self._bounds.foreign_min, self._bounds.foreign_max)
        )

    # --------------------------------------------------------
    # REFERENCE DATA
    # --------------------------------------------------------

    def reference_stock_count(self) -> int:
        """
        Number of listed stocks, cached for the configured TTL.

        Without a loader, or when the loader fails, the default
        count is returned (and cached, so failures are not retried
        on every call).
        """
        default = self._bounds.default_total_stocks
        if self._stock_count_loader is None:
            return default
        return self._stock_count_cache.get_or_load(
            STOCK_COUNT_CACHE_KEY,
            self._stock_count_loader,
            default=default,
        )
