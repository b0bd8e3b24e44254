"""
Tests for the VIX-like volatility proxy.
"""

import math

import pytest

from sentiment_index.volatility import (
    calculate_volatility,
    composite_vix,
    ewma_volatility,
    historical_volatility,
    log_returns,
    shanghai_vix,
    shenzhen_vix,
)


def _zigzag(n=40, base=3000.0, step=0.02):
    """Closes alternating +/- step, a steady high-volatility series."""
    prices = [base]
    for i in range(1, n):
        factor = 1 + step if i % 2 else 1 - step
        prices.append(prices[-1] * factor)
    return prices


class TestPrimitives:

    def test_log_returns(self):
        returns = log_returns([100.0, 110.0, 99.0])
        assert returns[0] == pytest.approx(math.log(1.1))
        assert returns[1] == pytest.approx(math.log(0.9))

    def test_log_returns_skip_non_positive(self):
        assert len(log_returns([100.0, 0.0, 50.0, 55.0])) == 1

    def test_flat_series_has_zero_volatility(self):
        returns = log_returns([100.0] * 40)
        assert historical_volatility(returns) == 0.0
        assert ewma_volatility(returns) == 0.0

    def test_short_series_use_default(self):
        assert historical_volatility([0.01]) == 20.0
        assert ewma_volatility([0.01] * 5) == 20.0


class TestIndexVolatility:

    def test_requires_thirty_prices(self):
        assert shanghai_vix([3000.0] * 29) is None
        assert shenzhen_vix([10000.0] * 29) is None

    def test_calm_market_hits_floor(self):
        assert shanghai_vix([3000.0] * 30) == 10.0
        assert shenzhen_vix([10000.0] * 30) == 12.0

    def test_volatile_market_hits_ceiling(self):
        prices = _zigzag(step=0.08)
        assert shanghai_vix(prices) == 50.0
        assert shenzhen_vix(prices) == 55.0

    def test_composite_requires_both(self):
        assert composite_vix(None, 20.0) is None
        assert composite_vix(20.0, None) is None
        assert composite_vix(20.0, 30.0) == pytest.approx(24.0)

    def test_composite_clamped(self):
        assert composite_vix(50.0, 55.0) == 50.0

    def test_snapshot_payload(self):
        snapshot = calculate_volatility([3000.0] * 30, [10000.0] * 10)

        assert snapshot.shanghai_vix == 10.0
        assert snapshot.shenzhen_vix is None
        assert snapshot.composite_vix is None
        assert snapshot.to_dict()["composite_vix"] is None

    def test_snapshot_feeds_the_normalizer(self):
        import sentiment_index

        snapshot = sentiment_index.calculate_volatility(_zigzag(), _zigzag(base=10000.0))
        assert isinstance(snapshot, sentiment_index.VolatilitySnapshot)

        value = sentiment_index.IndicatorNormalizer().normalize(
            sentiment_index.IndicatorType.VOLATILITY, snapshot.to_dict()
        )

        assert value.is_present
        assert 0.0 <= value.value <= 1.0
