"""
Storage Package.

This package manages all data persistence for the sentiment
service. Every computed result is written for audit.

Modules:
- models/: ORM models (market_data, sentiment_history)
- repositories/: Data access layer
"""

from storage.models import Base, MarketDataRecord, SentimentHistoryRecord
from storage.repositories import (
    MarketDataRepository,
    SentimentHistoryRepository,
    RepositoryException,
)


__all__ = [
    "Base",
    "MarketDataRecord",
    "SentimentHistoryRecord",
    "MarketDataRepository",
    "SentimentHistoryRepository",
    "RepositoryException",
]
