"""
Tests for indicator collection into the market data store.
"""

import pytest

from sentiment_index.collection import IndicatorCollector
from sentiment_index.normalizer import IndicatorNormalizer
from sentiment_index.types import IndicatorType
from storage.models import MarketDataRecord
from storage.repositories import CollectionLogRepository, MarketDataRepository


@pytest.fixture
def collector(session, clock):
    return IndicatorCollector(session, IndicatorNormalizer(clock=clock), clock)


class TestCollect:

    def test_dict_payload_is_stored_with_normalized_value(self, collector, session):
        result = collector.collect(
            IndicatorType.VOLATILITY, "akshare", lambda: {"composite_vix": 20.0}
        )

        assert result.success
        assert result.normalized_value == pytest.approx(0.25)

        record = session.get(MarketDataRecord, result.record_id)
        assert record.raw_data == {"composite_vix": 20.0}
        assert record.is_valid
        assert record.trading_date == "2024-03-14"

    def test_number_payload_is_wrapped(self, collector, session):
        result = collector.collect("breadth", "akshare", lambda: 0.7)

        record = session.get(MarketDataRecord, result.record_id)
        assert record.raw_data == {"value": 0.7}
        assert record.normalized_value == pytest.approx(0.7)

    def test_fetcher_error_is_stored_invalid(self, collector, session):
        def fetcher():
            raise TimeoutError("provider timed out")

        result = collector.collect(IndicatorType.MARGIN, "akshare", fetcher)

        assert not result.success
        assert "provider timed out" in result.error

        record = session.get(MarketDataRecord, result.record_id)
        assert record.is_valid is False
        assert record.normalized_value is None
        assert "TimeoutError" in record.raw_data["error"]

    def test_unusable_payload_is_stored_invalid(self, collector, session):
        result = collector.collect(IndicatorType.VOLUME, "akshare", lambda: -1)

        assert not result.success
        record = session.get(MarketDataRecord, result.record_id)
        assert record.is_valid is False
        assert record.raw_data == {"value": -1}

    def test_invalid_readings_are_not_used(self, collector, session, clock):
        collector.collect(IndicatorType.BREADTH, "akshare", lambda: 0.4)
        collector.collect(IndicatorType.BREADTH, "akshare", lambda: "n/a")

        since = clock.now().replace(hour=0)
        latest = MarketDataRepository(session).get_latest_valid("breadth", since)

        assert latest.normalized_value == pytest.approx(0.4)

    def test_result_to_dict(self, collector):
        wire = collector.collect(IndicatorType.FOREIGN, "akshare", lambda: 50.0).to_dict()

        assert wire["success"] is True
        assert wire["data_type"] == "foreign"
        assert wire["normalized_value"] == pytest.approx(0.75)


class TestCollectionLog:

    def test_success_is_logged(self, collector, session, clock):
        result = collector.collect(IndicatorType.BREADTH, "akshare", lambda: 0.6)

        [entry] = CollectionLogRepository(session).get_recent()
        assert entry.data_type == "breadth"
        assert entry.source == "akshare"
        assert entry.status == "success"
        assert entry.record_count == 1
        assert entry.error_message is None
        assert entry.execution_time_ms == result.execution_time_ms
        assert entry.details["record_id"] == result.record_id

    def test_failed_fetch_leaves_invalid_reading_and_failed_log(self, collector, session):
        def fetcher():
            raise ConnectionRefusedError("provider down")

        result = collector.collect(IndicatorType.VOLUME, "sina", fetcher)

        reading = session.get(MarketDataRecord, result.record_id)
        assert reading.is_valid is False

        [entry] = CollectionLogRepository(session).get_recent(status="failed")
        assert entry.data_type == "volume"
        assert entry.record_count == 0
        assert "provider down" in entry.error_message
        assert entry.details["success"] is False

    def test_unusable_payload_is_logged_failed(self, collector, session):
        collector.collect(IndicatorType.BREADTH, "akshare", lambda: "n/a")

        [entry] = CollectionLogRepository(session).get_recent()
        assert entry.status == "failed"
        assert entry.error_message.startswith("Unusable payload")

    def test_one_entry_per_attempt(self, collector, session):
        collector.collect(IndicatorType.BREADTH, "akshare", lambda: 0.4)
        collector.collect(IndicatorType.MARGIN, "akshare", lambda: {"bogus": 1})
        collector.collect(IndicatorType.BREADTH, "akshare", lambda: 0.5)

        repository = CollectionLogRepository(session)
        assert len(repository.get_recent()) == 3
        assert len(repository.get_recent(data_type="breadth")) == 2
