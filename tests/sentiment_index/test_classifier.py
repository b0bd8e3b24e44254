"""
Tests for score classification.
"""

import pytest

from sentiment_index.classifier import SentimentClassifier
from sentiment_index.config import SentimentThresholds
from sentiment_index.exceptions import ConfigurationError
from sentiment_index.types import SentimentStatus


@pytest.fixture
def classifier():
    return SentimentClassifier()


class TestThresholds:
    """Inclusive upper bounds, ascending, first match wins."""

    @pytest.mark.parametrize(
        "score, expected",
        [
            (0, SentimentStatus.EXTREME_FEAR),
            (25, SentimentStatus.EXTREME_FEAR),
            (26, SentimentStatus.FEAR),
            (40, SentimentStatus.FEAR),
            (41, SentimentStatus.NEUTRAL),
            (60, SentimentStatus.NEUTRAL),
            (61, SentimentStatus.GREED),
            (75, SentimentStatus.GREED),
            (76, SentimentStatus.EXTREME_GREED),
            (100, SentimentStatus.EXTREME_GREED),
        ],
    )
    def test_boundaries(self, classifier, score, expected):
        assert classifier.status_for(score) == expected

    def test_out_of_range_scores_are_clamped(self, classifier):
        assert classifier.status_for(-10) == SentimentStatus.EXTREME_FEAR
        assert classifier.status_for(150) == SentimentStatus.EXTREME_GREED

    def test_invalid_thresholds(self):
        with pytest.raises(ConfigurationError):
            SentimentThresholds(extreme_fear=40, fear=25)
        with pytest.raises(ConfigurationError):
            SentimentThresholds(greed=120)


class TestPresentation:

    def test_classify_returns_color_and_action(self, classifier):
        result = classifier.classify(46)

        assert result.status == SentimentStatus.NEUTRAL
        assert result.color == "#00aa00"
        assert result.action.startswith("Neutral")

    def test_no_data_presentation(self, classifier):
        result = classifier.classify_no_data()

        assert result.status == SentimentStatus.NO_DATA
        assert result.color == "#999999"

    def test_no_status_from_score_is_no_data(self, classifier):
        assert all(
            classifier.status_for(s) != SentimentStatus.NO_DATA for s in range(-5, 106)
        )

    def test_describe(self, classifier):
        assert classifier.describe(10) == "Extreme fear"
        assert classifier.describe(None) == "No data"


class TestHelpers:

    def test_negative_positive_neutral(self, classifier):
        assert classifier.is_negative(40)
        assert not classifier.is_negative(41)
        assert classifier.is_positive(75)
        assert not classifier.is_positive(74)
        assert classifier.is_neutral(50)
        assert not classifier.is_neutral(40)
        assert not classifier.is_neutral(75)
