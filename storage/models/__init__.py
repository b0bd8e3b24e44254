"""
Storage Models Package.

ORM models for the sentiment service database.

============================================================
MODEL ORGANIZATION
============================================================

Raw observations (market_data.py)
- MarketDataRecord

Derived results (sentiment_history.py)
- SentimentHistoryRecord

Audit (collection_log.py)
- CollectionLogRecord

============================================================
"""

from storage.models.base import Base, CreatedAtMixin, TimestampMixin, utc_now
from storage.models.market_data import MarketDataRecord
from storage.models.sentiment_history import SentimentHistoryRecord
from storage.models.collection_log import CollectionLogRecord


__all__ = [
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "utc_now",
    "MarketDataRecord",
    "SentimentHistoryRecord",
    "CollectionLogRecord",
]
