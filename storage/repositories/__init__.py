"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The repository layer is the only gateway to persistent
storage. Sessions are injected, never created here, and all
database errors are wrapped in repository exceptions.

============================================================
REPOSITORIES
============================================================
- MarketDataRepository: collected indicator observations
- SentimentHistoryRepository: computed sentiment snapshots
- CollectionLogRepository: collection audit trail

============================================================
"""

from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import (
    RepositoryException,
    DatabaseFailure,
    ConnectionError,
    QueryError,
    IntegrityError,
    TransactionError,
    ValidationError,
)
from storage.repositories.market_data import MarketDataRepository
from storage.repositories.sentiment_history import SentimentHistoryRepository
from storage.repositories.collection_log import CollectionLogRepository


__all__ = [
    "BaseRepository",
    "RepositoryException",
    "DatabaseFailure",
    "ConnectionError",
    "QueryError",
    "IntegrityError",
    "TransactionError",
    "ValidationError",
    "MarketDataRepository",
    "SentimentHistoryRepository",
    "CollectionLogRepository",
]
