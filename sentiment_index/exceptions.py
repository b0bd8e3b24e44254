"""
Sentiment Index - Exception Hierarchy.

============================================================
PURPOSE
============================================================
Every error raised by the sentiment core derives from
SentimentIndexError and carries a context dict for logging.

============================================================
SEVERITY
============================================================
- MissingIndicatorError (soft): only raised when a caller
  demands a numeric score and none is available
- AggregationError (hard): contract violation (bad weights,
  unknown indicator type). Never retried.
- PersistenceError (hard): the history store rejected a write
- IndicatorSourceError: the store behind an indicator source
  failed. Triggers the fallback path.
- ConfigurationError: invalid bounds, thresholds or env values

============================================================
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class SentimentIndexError(Exception):
    """Base exception for the sentiment index core."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


class MissingIndicatorError(SentimentIndexError):
    """No indicator was usable but a numeric score was required."""
    pass


class AggregationError(SentimentIndexError):
    """Malformed weight table or unknown indicator type."""
    pass


class PersistenceError(SentimentIndexError):
    """A history record could not be written."""
    pass


class IndicatorSourceError(SentimentIndexError):
    """An indicator source could not read its backing store."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, context)
        self.source_name = source_name

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["source_name"] = self.source_name
        return data


class ConfigurationError(SentimentIndexError):
    """Invalid configuration value."""
    pass
