"""
FastAPI dependencies.

Sessions, configuration, clock and services are injected via
Depends so tests can swap them with app.dependency_overrides.
"""

from functools import lru_cache
from typing import Generator, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from core.clock import ClockProtocol, SystemClock
from database.engine import get_session
from sentiment_index.config import SentimentIndexConfig
from sentiment_index.normalizer import IndicatorNormalizer
from sentiment_index.service import SentimentService
from sentiment_index.stats import QueryStatsService


def get_db() -> Generator[Session, None, None]:
    db = get_session()
    try:
        yield db
    finally:
        db.close()


@lru_cache(maxsize=1)
def get_config() -> SentimentIndexConfig:
    return SentimentIndexConfig.from_env()


def get_clock(config: SentimentIndexConfig = Depends(get_config)) -> ClockProtocol:
    return SystemClock(config.market_timezone)


_normalizer: Optional[IndicatorNormalizer] = None


def get_normalizer(
    config: SentimentIndexConfig = Depends(get_config),
) -> IndicatorNormalizer:
    # One normalizer per process so the stock count cache survives requests
    global _normalizer
    if _normalizer is None:
        _normalizer = IndicatorNormalizer(config.bounds, SystemClock(config.market_timezone))
    return _normalizer


def get_sentiment_service(
    db: Session = Depends(get_db),
    config: SentimentIndexConfig = Depends(get_config),
    clock: ClockProtocol = Depends(get_clock),
    normalizer: IndicatorNormalizer = Depends(get_normalizer),
) -> SentimentService:
    return SentimentService(db, config=config, clock=clock, normalizer=normalizer)


def get_stats_service(
    db: Session = Depends(get_db),
    config: SentimentIndexConfig = Depends(get_config),
    clock: ClockProtocol = Depends(get_clock),
) -> QueryStatsService:
    return QueryStatsService(db, clock=clock, default_days=config.stats_default_days)
