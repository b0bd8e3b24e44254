"""
Sentiment Index - Classifier.

============================================================
PURPOSE
============================================================
Maps a 0-100 score to a sentiment band with its display color
and action advice.

Bands are inclusive upper bounds, checked in ascending order;
the first match wins. NO_DATA is never produced from a score,
only from classify_no_data().

============================================================
"""

from typing import Dict, Optional

from .config import SentimentThresholds
from .types import Classification, SentimentStatus


PRESENTATION: Dict[SentimentStatus, Classification] = {
    SentimentStatus.EXTREME_FEAR: Classification(
        SentimentStatus.EXTREME_FEAR, "#0044ff", "Extreme fear: accumulate on weakness"
    ),
    SentimentStatus.FEAR: Classification(
        SentimentStatus.FEAR, "#0088ff", "Fear: watch for opportunities"
    ),
    SentimentStatus.NEUTRAL: Classification(
        SentimentStatus.NEUTRAL, "#00aa00", "Neutral: participate moderately"
    ),
    SentimentStatus.GREED: Classification(
        SentimentStatus.GREED, "#ff8800", "Greed: stay on the sidelines"
    ),
    SentimentStatus.EXTREME_GREED: Classification(
        SentimentStatus.EXTREME_GREED, "#ff4444", "Extreme greed: trim positions into strength"
    ),
    SentimentStatus.NO_DATA: Classification(
        SentimentStatus.NO_DATA, "#999999", "Insufficient data: no advice available"
    ),
}

DESCRIPTIONS: Dict[SentimentStatus, str] = {
    SentimentStatus.EXTREME_FEAR: "Extreme fear",
    SentimentStatus.FEAR: "Fear",
    SentimentStatus.NEUTRAL: "Neutral",
    SentimentStatus.GREED: "Greed",
    SentimentStatus.EXTREME_GREED: "Extreme greed",
    SentimentStatus.NO_DATA: "No data",
}


class SentimentClassifier:
    """Threshold-based score classification."""

    def __init__(self, thresholds: Optional[SentimentThresholds] = None) -> None:
        self._thresholds = thresholds or SentimentThresholds()

    @property
    def thresholds(self) -> SentimentThresholds:
        return self._thresholds

    def status_for(self, score: float) -> SentimentStatus:
        """Band for a score; out-of-range scores are clamped first."""
        score = max(0, min(100, score))
        t = self._thresholds

        if score <= t.extreme_fear:
            return SentimentStatus.EXTREME_FEAR
        elif score <= t.fear:
            return SentimentStatus.FEAR
        elif score <= t.neutral:
            return SentimentStatus.NEUTRAL
        elif score <= t.greed:
            return SentimentStatus.GREED
        else:
            return SentimentStatus.EXTREME_GREED

    def classify(self, score: float) -> Classification:
        return PRESENTATION[self.status_for(score)]

    def classify_no_data(self) -> Classification:
        return PRESENTATION[SentimentStatus.NO_DATA]

    def describe(self, score: Optional[float]) -> str:
        """Short human-readable label."""
        if score is None:
            return DESCRIPTIONS[SentimentStatus.NO_DATA]
        return DESCRIPTIONS[self.status_for(score)]

    # --------------------------------------------------------
    # HELPERS
    # --------------------------------------------------------

    def is_negative(self, score: float) -> bool:
        """Fear or worse."""
        return score <= self._thresholds.fear

    def is_positive(self, score: float) -> bool:
        return score >= self._thresholds.greed

    def is_neutral(self, score: float) -> bool:
        return self._thresholds.fear < score < self._thresholds.greed
