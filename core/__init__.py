"""
Core Package.

Shared, domain-independent building blocks:
- clock: injectable market clock (UTC, trading sessions, trading date)
- cache: TTL cache measured on that clock
"""

from .clock import (
    DEFAULT_MARKET_TIMEZONE,
    ClockProtocol,
    SystemClock,
    MockClock,
    ensure_utc,
    to_iso8601,
    from_iso8601,
)
from .cache import TTLCache


__all__ = [
    "DEFAULT_MARKET_TIMEZONE",
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ensure_utc",
    "to_iso8601",
    "from_iso8601",
    "TTLCache",
]
