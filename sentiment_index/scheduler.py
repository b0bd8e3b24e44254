"""
Sentiment Index - Scheduler.

============================================================
PURPOSE
============================================================
Periodic trigger for compute-and-record.

- Runs on interval boundaries (every 10 minutes by default:
  :00, :10, :20 ... in market time)
- Skips runs outside trading sessions (Mon-Fri 09:30-11:30,
  13:00-15:00 market time)
- A failed run is logged and the loop continues
- stop() ends the loop at the next wake-up

============================================================
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from core.clock import ClockProtocol, SystemClock


logger = logging.getLogger(__name__)


class SentimentScheduler:
    """
    Async loop calling a synchronous job on a fixed cadence.

    The job runs in a worker thread so the event loop (and a
    co-hosted API) is not blocked by database work.
    """

    def __init__(
        self,
        job: Callable[[], Any],
        clock: Optional[ClockProtocol] = None,
        interval_minutes: int = 10,
        trading_hours_only: bool = True,
    ) -> None:
        if interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be > 0, got {interval_minutes}")
        self._job = job
        self._clock = clock or SystemClock()
        self._interval = timedelta(minutes=interval_minutes)
        self._trading_hours_only = trading_hours_only
        self._stop_event = asyncio.Event()

        self._runs = 0
        self._skipped = 0
        self._failures = 0

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        logger.info("Scheduler stop requested")
        self._stop_event.set()

    def seconds_until_next_run(self) -> float:
        """Seconds until the next interval boundary (market time)."""
        now = self._clock.market_now()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        elapsed = now - midnight
        intervals = elapsed // self._interval + 1
        next_run = midnight + intervals * self._interval
        return (next_run - now).total_seconds()

    async def run_once(self) -> Optional[Any]:
        """
        Run the job once, honoring the trading-hours gate.

        Returns:
            The job's return value, or None if skipped or failed
        """
        if self._trading_hours_only and not self._clock.is_trading_hours():
            self._skipped += 1
            logger.debug("Outside trading hours, skipping sentiment run")
            return None

        try:
            result = await asyncio.to_thread(self._job)
        except Exception as e:
            self._failures += 1
            logger.error(f"Scheduled sentiment run failed: {e}", exc_info=True)
            return None

        self._runs += 1
        return result

    async def run_forever(self) -> None:
        """Loop until stop() is called."""
        logger.info(f"Scheduler started | interval={self._interval}")

        while not self._stop_event.is_set():
            wait_seconds = self.seconds_until_next_run()
            logger.debug(f"Waiting {wait_seconds:.1f}s until next run")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=wait_seconds)
            except asyncio.TimeoutError:
                await self.run_once()

        logger.info("Scheduler stopped")

    def get_stats(self) -> Dict[str, int]:
        return {
            "runs": self._runs,
            "skipped": self._skipped,
            "failures": self._failures,
        }
