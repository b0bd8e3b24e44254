"""
Tests for the market data and sentiment history repositories.

============================================================
PURPOSE
============================================================
1. Writes flush and validate
2. Latest-valid lookups respect validity and the cutoff
3. Filtered queries and statistics
4. History ordering and range bounds
5. Collection log validation and filters

============================================================
"""

from datetime import timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from sentiment_index.types import IndicatorType
from storage.repositories import (
    CollectionLogRepository,
    ConnectionError,
    MarketDataRepository,
    QueryError,
    SentimentHistoryRepository,
    ValidationError,
)


# ============================================================
# MARKET DATA
# ============================================================

class TestMarketDataRepository:

    def test_save_assigns_id(self, session, clock):
        record = MarketDataRepository(session).save_reading(
            data_type="breadth",
            source="akshare",
            raw_data={"rising": 3000, "falling": 2000},
            normalized_value=0.6,
            trading_date="2024-03-14",
            created_at=clock.now(),
        )

        assert record.id is not None
        assert record.is_valid is True

    def test_out_of_range_value_rejected(self, session, clock):
        with pytest.raises(ValidationError) as exc_info:
            MarketDataRepository(session).save_reading(
                data_type="breadth",
                source="akshare",
                raw_data=None,
                normalized_value=1.5,
                trading_date="2024-03-14",
                created_at=clock.now(),
            )
        assert exc_info.value.field == "normalized_value"

    def test_latest_valid_prefers_newest(self, session, clock, seed_reading):
        seed_reading(IndicatorType.MARGIN, 0.3, minutes_ago=30)
        seed_reading(IndicatorType.MARGIN, 0.7, minutes_ago=10)
        seed_reading(IndicatorType.MARGIN, None, minutes_ago=2, is_valid=False)

        latest = MarketDataRepository(session).get_latest_valid(
            "margin", clock.now() - timedelta(hours=1)
        )

        assert latest.normalized_value == 0.7

    def test_latest_valid_cutoff_is_exclusive(self, session, clock, seed_reading):
        seed_reading(IndicatorType.MARGIN, 0.3, minutes_ago=60)

        latest = MarketDataRepository(session).get_latest_valid(
            "margin", clock.now() - timedelta(minutes=60)
        )

        assert latest is None

    def test_query_filters(self, session, clock, seed_reading):
        seed_reading(IndicatorType.VOLUME, 0.4, minutes_ago=50, source="akshare")
        seed_reading(IndicatorType.VOLUME, 0.5, minutes_ago=20, source="tushare")
        seed_reading(IndicatorType.VOLUME, None, minutes_ago=10, is_valid=False)
        seed_reading(IndicatorType.FOREIGN, 0.5, minutes_ago=5)
        repository = MarketDataRepository(session)

        volume = repository.query(data_type="volume")
        assert [r.normalized_value for r in volume] == [0.5, 0.4]

        assert len(repository.query(data_type="volume", only_valid=False)) == 3
        assert len(repository.query(source="akshare")) == 1
        assert len(repository.query(start_time=clock.now() - timedelta(minutes=30))) == 2
        assert len(repository.query(limit=1)) == 1

    def test_statistics(self, session, clock, seed_reading):
        seed_reading(IndicatorType.BREADTH, 0.5, source="akshare")
        seed_reading(IndicatorType.BREADTH, None, source="akshare", is_valid=False)
        seed_reading(IndicatorType.VOLUME, 0.5, source="tushare", minutes_ago=60 * 24)
        repository = MarketDataRepository(session)

        stats = repository.get_statistics(today="2024-03-14")

        assert stats["total_records"] == 3
        assert stats["valid_records"] == 2
        assert stats["today_records"] == 2
        assert stats["source_distribution"] == {"akshare": 2, "tushare": 1}

        breadth = repository.get_statistics(today="2024-03-14", data_type="breadth")
        assert breadth["total_records"] == 2

    def test_database_errors_are_wrapped(self, clock):
        session = MagicMock()
        session.execute.side_effect = ProgrammingError("SELECT", {}, Exception("no such column"))

        with pytest.raises(QueryError) as exc_info:
            MarketDataRepository(session).get_latest_valid("breadth", clock.now())

        assert exc_info.value.operation == "get_latest_valid"

    def test_operational_errors_are_connection_errors(self, clock):
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))

        with pytest.raises(ConnectionError):
            MarketDataRepository(session).query()


# ============================================================
# SENTIMENT HISTORY
# ============================================================

def _append(repository, clock, score, hours_ago):
    created_at = clock.now() - timedelta(hours=hours_ago)
    return repository.append(
        score=score,
        status="neutral",
        color="#00aa00",
        action="Neutral",
        indicators={"breadth": 0.5},
        calculation_details={"weighted_sum": 0.125},
        method="primary",
        trading_date=clock.trading_date(created_at),
        created_at=created_at,
    )


class TestSentimentHistoryRepository:

    def test_append_and_latest(self, session, clock):
        repository = SentimentHistoryRepository(session)
        _append(repository, clock, 40, hours_ago=2)
        _append(repository, clock, 55, hours_ago=1)
        repository.commit()

        latest = repository.get_latest()

        assert latest.score == 55
        assert latest.calculation_details == {"weighted_sum": 0.125}
        assert repository.count() == 2

    def test_latest_on_empty_table(self, session):
        assert SentimentHistoryRepository(session).get_latest() is None

    def test_get_since_is_exclusive_and_ascending(self, session, clock):
        repository = SentimentHistoryRepository(session)
        for score, hours_ago in ((10, 5), (20, 3), (30, 1)):
            _append(repository, clock, score, hours_ago)
        repository.commit()

        records = repository.get_since(clock.now() - timedelta(hours=3))

        assert [r.score for r in records] == [30]

    def test_get_in_range_is_inclusive(self, session, clock):
        repository = SentimentHistoryRepository(session)
        for score, hours_ago in ((10, 5), (20, 3), (30, 1)):
            _append(repository, clock, score, hours_ago)
        repository.commit()

        records = repository.get_in_range(
            clock.now() - timedelta(hours=5),
            clock.now() - timedelta(hours=3),
        )

        assert [r.score for r in records] == [10, 20]

    def test_timestamps_read_back_as_utc_instants(self, session, clock):
        repository = SentimentHistoryRepository(session)
        _append(repository, clock, 50, hours_ago=0)
        repository.commit()
        session.expire_all()

        created_at = repository.get_latest().created_at

        assert created_at.replace(tzinfo=timezone.utc) == clock.now()


# ============================================================
# COLLECTION LOG
# ============================================================

class TestCollectionLogRepository:

    def test_append_and_recent_newest_first(self, session, clock):
        repository = CollectionLogRepository(session)
        repository.append("breadth", "akshare", "success", clock.now() - timedelta(minutes=10), record_count=1)
        repository.append("volume", "sina", "failed", clock.now(), error_message="timeout")
        repository.commit()

        entries = repository.get_recent()

        assert [e.data_type for e in entries] == ["volume", "breadth"]
        assert entries[0].error_message == "timeout"
        assert [e.source for e in repository.get_recent(status="success")] == ["akshare"]
        assert len(repository.get_recent(limit=1)) == 1

    def test_unknown_status_rejected(self, session, clock):
        with pytest.raises(ValidationError) as exc_info:
            CollectionLogRepository(session).append("breadth", "akshare", "partial", clock.now())
        assert exc_info.value.field == "status"

    def test_negative_record_count_rejected(self, session, clock):
        with pytest.raises(ValidationError) as exc_info:
            CollectionLogRepository(session).append(
                "breadth", "akshare", "success", clock.now(), record_count=-1
            )
        assert exc_info.value.field == "record_count"
