"""
Shared fixtures: a fixed market clock and an in-memory database.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from core.clock import MockClock
from database.engine import create_all_tables, create_database_engine, get_session_factory
from sentiment_index.types import IndicatorType
from storage.repositories import MarketDataRepository


# Thursday 2024-03-14 10:00 Asia/Shanghai (morning session)
FIXED_NOW = datetime(2024, 3, 14, 2, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return MockClock(FIXED_NOW)


@pytest.fixture
def db_engine():
    engine = create_database_engine("sqlite://")
    create_all_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory(db_engine)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def seed_reading(session, clock):
    """Insert a market data row `minutes_ago` before the clock's now."""
    repository = MarketDataRepository(session)

    def _seed(
        indicator_type: IndicatorType,
        normalized_value: Optional[float],
        raw_data: Any = None,
        minutes_ago: float = 5,
        is_valid: bool = True,
        source: str = "test",
    ):
        captured_at = clock.now() - timedelta(minutes=minutes_ago)
        record = repository.save_reading(
            data_type=indicator_type.value,
            source=source,
            raw_data=raw_data,
            normalized_value=normalized_value,
            trading_date=clock.trading_date(captured_at),
            created_at=captured_at,
            is_valid=is_valid,
            error_message=None if is_valid else "collection failed",
        )
        session.commit()
        return record

    return _seed
