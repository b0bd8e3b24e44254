"""
Tests for weighted aggregation.

============================================================
PURPOSE
============================================================
Covers re-normalization over present indicators, the no-data
outcome, half-up rounding, clamping and contract errors.

============================================================
"""

import pytest

from sentiment_index.aggregator import aggregate, round_half_up, score_from_fraction
from sentiment_index.config import WeightTable
from sentiment_index.exceptions import AggregationError
from sentiment_index.types import IndicatorType, IndicatorValue


@pytest.fixture
def full_indicators():
    return {
        IndicatorType.VOLATILITY: IndicatorValue.present(0.2),
        IndicatorType.BREADTH: IndicatorValue.present(0.6),
        IndicatorType.VOLUME: IndicatorValue.present(0.7),
        IndicatorType.MARGIN: IndicatorValue.present(0.5),
        IndicatorType.FOREIGN: IndicatorValue.present(0.3),
    }


# ============================================================
# ROUNDING TESTS
# ============================================================

class TestRounding:

    @pytest.mark.parametrize(
        "value, expected",
        [(45.5, 46), (44.5, 45), (45.49, 45), (0.5, 1), (99.5, 100), (45.50000000000001, 46), (45.49999999999999, 46)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_score_from_fraction_clamps(self):
        assert score_from_fraction(1.3) == 100
        assert score_from_fraction(-0.2) == 0
        assert score_from_fraction(0.455) == 46


# ============================================================
# AGGREGATION TESTS
# ============================================================

class TestAggregate:
    """Weighted sum over present indicators."""

    def test_end_to_end_example(self, full_indicators):
        outcome = aggregate(full_indicators, WeightTable())

        assert outcome.weighted_sum == pytest.approx(0.455)
        assert outcome.total_weight == pytest.approx(1.0)
        assert outcome.composite_fraction == pytest.approx(0.455)
        assert outcome.valid_indicator_count == 5
        assert outcome.score == 46

    def test_single_indicator_absorbs_full_weight(self):
        outcome = aggregate({IndicatorType.BREADTH: IndicatorValue.present(1.0)})

        assert outcome.score == 100
        assert outcome.valid_indicator_count == 1
        assert outcome.total_weight == pytest.approx(0.25)

    def test_partial_data_renormalizes(self):
        outcome = aggregate({
            IndicatorType.VOLATILITY: IndicatorValue.present(0.2),
            IndicatorType.BREADTH: IndicatorValue.present(0.6),
            IndicatorType.VOLUME: IndicatorValue.absent(),
        })

        # (0.2*0.3 + 0.6*0.25) / 0.55 = 0.3818...
        assert outcome.composite_fraction == pytest.approx(0.21 / 0.55)
        assert outcome.score == 38
        assert outcome.indicators[IndicatorType.VOLUME].is_present is False
        assert outcome.indicators[IndicatorType.MARGIN].is_present is False

    def test_all_missing_is_no_data(self):
        outcome = aggregate({t: IndicatorValue.absent() for t in IndicatorType.all_types()})

        assert outcome.score is None
        assert outcome.composite_fraction is None
        assert outcome.total_weight == 0.0
        assert outcome.valid_indicator_count == 0
        assert not outcome.has_data

    def test_empty_input_is_no_data(self):
        assert aggregate({}).score is None

    def test_raw_numbers_are_coerced(self):
        outcome = aggregate({"breadth": 0.5, "volume": -1, "margin": None})

        assert outcome.score == 50
        assert outcome.valid_indicator_count == 1

    def test_zero_weight_indicator_does_not_count(self):
        weights = WeightTable({
            IndicatorType.VOLATILITY: 0.0,
            IndicatorType.BREADTH: 1.0,
        })
        outcome = aggregate({IndicatorType.VOLATILITY: IndicatorValue.present(0.9)}, weights)

        assert outcome.score is None
        assert outcome.valid_indicator_count == 0

    def test_deterministic(self, full_indicators):
        first = aggregate(full_indicators, WeightTable())
        second = aggregate(full_indicators, WeightTable())
        assert first == second

    def test_records_weights(self, full_indicators):
        outcome = aggregate(full_indicators)
        assert outcome.weights == {
            "volatility": 0.3,
            "breadth": 0.25,
            "volume": 0.2,
            "margin": 0.15,
            "foreign": 0.1,
        }


# ============================================================
# CONTRACT ERROR TESTS
# ============================================================

class TestAggregationErrors:

    def test_unknown_indicator_key(self):
        with pytest.raises(AggregationError):
            aggregate({"sentiment": 0.5})

    def test_weights_must_sum_to_one(self):
        with pytest.raises(AggregationError):
            aggregate({"breadth": 0.5}, {"breadth": 0.5, "volume": 0.2})

    def test_negative_weight(self):
        with pytest.raises(AggregationError):
            WeightTable({"breadth": 1.2, "volume": -0.2})

    def test_unknown_weight_key(self):
        with pytest.raises(AggregationError):
            WeightTable({"breadth": 0.5, "rsi": 0.5})

    def test_non_numeric_weight(self):
        with pytest.raises(AggregationError):
            WeightTable({"breadth": "1.0"})
