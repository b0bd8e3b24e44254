"""
Tests for the periodic sentiment scheduler.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from core.clock import MockClock
from sentiment_index.scheduler import SentimentScheduler


# Thursday 2024-03-14 12:00 Asia/Shanghai (lunch break)
LUNCH_BREAK = datetime(2024, 3, 14, 4, 0, tzinfo=timezone.utc)

# Saturday 2024-03-16 10:00 Asia/Shanghai
SATURDAY = datetime(2024, 3, 16, 2, 0, tzinfo=timezone.utc)


class TestCadence:

    def test_next_run_on_boundary(self, clock):
        scheduler = SentimentScheduler(lambda: None, clock)
        assert scheduler.seconds_until_next_run() == 600

    def test_next_run_mid_interval(self, clock):
        clock.advance(minutes=3, seconds=30)
        scheduler = SentimentScheduler(lambda: None, clock)
        assert scheduler.seconds_until_next_run() == 390

    def test_custom_interval(self, clock):
        clock.advance(minutes=7)
        scheduler = SentimentScheduler(lambda: None, clock, interval_minutes=15)
        assert scheduler.seconds_until_next_run() == 8 * 60

    def test_invalid_interval(self, clock):
        with pytest.raises(ValueError):
            SentimentScheduler(lambda: None, clock, interval_minutes=0)


class TestRunOnce:

    @pytest.mark.asyncio
    async def test_runs_during_trading_hours(self, clock):
        scheduler = SentimentScheduler(lambda: "done", clock)

        assert await scheduler.run_once() == "done"
        assert scheduler.get_stats() == {"runs": 1, "skipped": 0, "failures": 0}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("instant", [LUNCH_BREAK, SATURDAY])
    async def test_skips_outside_trading_hours(self, instant):
        calls = []
        scheduler = SentimentScheduler(lambda: calls.append(1), MockClock(instant))

        assert await scheduler.run_once() is None
        assert calls == []
        assert scheduler.get_stats()["skipped"] == 1

    @pytest.mark.asyncio
    async def test_gate_can_be_disabled(self):
        scheduler = SentimentScheduler(
            lambda: "done", MockClock(SATURDAY), trading_hours_only=False
        )
        assert await scheduler.run_once() == "done"

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_loop_survives(self, clock, caplog):
        outcomes = iter([RuntimeError("database locked"), "ok"])

        def job():
            outcome = next(outcomes)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        scheduler = SentimentScheduler(job, clock)

        with caplog.at_level(logging.ERROR, logger="sentiment_index.scheduler"):
            assert await scheduler.run_once() is None
        assert "database locked" in caplog.text

        assert await scheduler.run_once() == "ok"
        assert scheduler.get_stats() == {"runs": 1, "skipped": 0, "failures": 1}


class TestRunForever:

    @pytest.mark.asyncio
    async def test_stop_before_start(self, clock):
        scheduler = SentimentScheduler(lambda: None, clock)
        scheduler.stop()

        await scheduler.run_forever()

        assert scheduler.is_stopped
        assert scheduler.get_stats()["runs"] == 0

    @pytest.mark.asyncio
    async def test_runs_until_stopped(self, clock, monkeypatch):
        scheduler = SentimentScheduler(lambda: None, clock)
        monkeypatch.setattr(scheduler, "seconds_until_next_run", lambda: 0.01)
        runs = []

        async def run_once():
            runs.append(clock.now())
            clock.advance(minutes=10)
            if len(runs) == 3:
                scheduler.stop()

        monkeypatch.setattr(scheduler, "run_once", run_once)

        await scheduler.run_forever()

        assert len(runs) == 3
        assert runs[-1] - runs[0] == timedelta(minutes=20)
