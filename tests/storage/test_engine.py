"""
Tests for engine creation, initialization and session scopes.
"""

import pytest

from database.engine import (
    create_database_engine,
    get_session_factory,
    init_database,
    session_scope,
)
from sentiment_index.types import IndicatorType
from storage.repositories import MarketDataRepository, SentimentHistoryRepository


@pytest.fixture
def memory_engine():
    engine = create_database_engine("sqlite://")
    yield engine
    engine.dispose()


class TestInitDatabase:

    def test_creates_required_tables(self, memory_engine):
        init_database(memory_engine)

        with session_scope(get_session_factory(memory_engine)) as session:
            assert SentimentHistoryRepository(session).count() == 0

    def test_is_idempotent(self, memory_engine):
        init_database(memory_engine)
        init_database(memory_engine)


class TestSessionScope:

    def test_commits_on_success(self, db_engine, clock):
        factory = get_session_factory(db_engine)

        with session_scope(factory) as session:
            MarketDataRepository(session).save_reading(
                data_type=IndicatorType.BREADTH.value,
                source="test",
                raw_data={"ratio": 0.5},
                normalized_value=0.5,
                trading_date="2024-03-14",
                created_at=clock.now(),
            )

        with session_scope(factory) as session:
            assert len(MarketDataRepository(session).query()) == 1

    def test_rolls_back_and_reraises(self, db_engine, clock):
        factory = get_session_factory(db_engine)

        with pytest.raises(RuntimeError):
            with session_scope(factory) as session:
                MarketDataRepository(session).save_reading(
                    data_type=IndicatorType.BREADTH.value,
                    source="test",
                    raw_data=None,
                    normalized_value=0.5,
                    trading_date="2024-03-14",
                    created_at=clock.now(),
                )
                raise RuntimeError("abort")

        with session_scope(factory) as session:
            assert MarketDataRepository(session).query() == []
