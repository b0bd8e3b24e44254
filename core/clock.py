"""
Core Module - Market Clock.

============================================================
RESPONSIBILITY
============================================================
Provides a testable clock abstraction for the sentiment service.

- Every component that reads time receives a clock instance
- Enables deterministic tests (freshness, history windows)
- Knows the market timezone and trading sessions
- Derives the trading date used to bucket history records

============================================================
DESIGN PRINCIPLES
============================================================
- now() is always timezone-aware UTC
- Market-local time is derived, never stored
- No global clock instance: callers inject one

============================================================
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta, timezone
from typing import Generator, Optional, Tuple
from zoneinfo import ZoneInfo
import threading


DEFAULT_MARKET_TIMEZONE = "Asia/Shanghai"

# Continuous auction sessions (market-local, inclusive)
TRADING_SESSIONS: Tuple[Tuple[time, time], ...] = (
    (time(9, 30), time(11, 30)),
    (time(13, 0), time(15, 0)),
)


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the market clock."""

    market_timezone: str = DEFAULT_MARKET_TIMEZONE

    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass

    def market_now(self) -> datetime:
        """Get current time in the market timezone."""
        return self.now().astimezone(ZoneInfo(self.market_timezone))

    def trading_date(self, at: Optional[datetime] = None) -> str:
        """
        Trading date bucket (YYYY-MM-DD) in the market timezone.

        Args:
            at: Instant to bucket (defaults to now)
        """
        at = ensure_utc(at) if at else self.now()
        return at.astimezone(ZoneInfo(self.market_timezone)).date().isoformat()

    def is_trading_hours(self, at: Optional[datetime] = None) -> bool:
        """
        Check whether an instant falls inside a trading session.

        Weekends are closed. Exchange holidays are not modelled.
        """
        at = ensure_utc(at) if at else self.now()
        local = at.astimezone(ZoneInfo(self.market_timezone))

        if local.weekday() >= 5:
            return False

        current = local.time().replace(second=0, microsecond=0)
        return any(start <= current <= end for start, end in TRADING_SESSIONS)

    def minutes_since(self, earlier: datetime) -> int:
        """Whole minutes elapsed since an earlier instant."""
        delta = self.now() - ensure_utc(earlier)
        return int(delta.total_seconds() // 60)


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """Production clock using actual system time."""

    def __init__(self, market_timezone: str = DEFAULT_MARKET_TIMEZONE):
        self.market_timezone = market_timezone

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


# ============================================================
# MOCK CLOCK (TESTING)
# ============================================================

class MockClock(ClockProtocol):
    """
    Mock clock for testing.

    Allows time manipulation for deterministic tests.
    """

    def __init__(
        self,
        initial_time: Optional[datetime] = None,
        market_timezone: str = DEFAULT_MARKET_TIMEZONE,
    ):
        """
        Initialize mock clock.

        Args:
            initial_time: Starting time (naive values are taken as UTC)
            market_timezone: IANA name of the market timezone
        """
        self._time = ensure_utc(initial_time) if initial_time else datetime.now(timezone.utc)
        self._lock = threading.Lock()
        self.market_timezone = market_timezone

    def now(self) -> datetime:
        with self._lock:
            return self._time

    def set_time(self, new_time: datetime) -> None:
        """Set the current time."""
        with self._lock:
            self._time = ensure_utc(new_time)

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.

        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, etc.)
        """
        with self._lock:
            self._time = self._time + timedelta(seconds=seconds, **kwargs)

    @contextmanager
    def freeze(self, at_time: datetime) -> Generator[None, None, None]:
        """Temporarily pin the clock to a given instant."""
        with self._lock:
            original_time = self._time
            self._time = ensure_utc(at_time)

        try:
            yield
        finally:
            with self._lock:
                self._time = original_time


# ============================================================
# TIMESTAMP UTILITIES
# ============================================================

def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso8601(dt: datetime) -> str:
    """Convert datetime to ISO 8601 string (UTC)."""
    return ensure_utc(dt).isoformat()


def from_iso8601(iso_string: str) -> datetime:
    """Parse ISO 8601 string (or a bare YYYY-MM-DD date) to UTC datetime."""
    parsed = datetime.fromisoformat(iso_string)
    return ensure_utc(parsed)


def start_of_day(day: date) -> datetime:
    """Midnight UTC at the start of a calendar date."""
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


__all__ = [
    "DEFAULT_MARKET_TIMEZONE",
    "TRADING_SESSIONS",
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ensure_utc",
    "to_iso8601",
    "from_iso8601",
    "start_of_day",
]
