"""
Core Module - TTL Cache.

============================================================
RESPONSIBILITY
============================================================
Explicit cache component for slow-changing reference values
(e.g. the total number of listed stocks used by breadth).

- Expiry is measured on an injected clock
- No module-level state: each owner holds its own instance
- Loader failures can fall back to a default that is cached
  for the same TTL, so a broken upstream is not hammered

============================================================
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

from .clock import ClockProtocol


logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the instant it was stored."""

    value: V
    stored_at: datetime


class TTLCache(Generic[V]):
    """
    Time-to-live cache keyed by any hashable value.

    An entry is valid while ``now - stored_at < ttl``.
    """

    def __init__(self, clock: ClockProtocol, ttl: timedelta = timedelta(hours=24)):
        if ttl <= timedelta(0):
            raise ValueError(f"TTL must be positive, got {ttl}")
        self._clock = clock
        self._ttl = ttl
        self._entries: Dict[Hashable, CacheEntry[V]] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def get(self, key: Hashable) -> Optional[V]:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock.now() - entry.stored_at >= self._ttl:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: Hashable, value: V) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock.now())

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one key, or everything when key is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def get_or_load(
        self,
        key: Hashable,
        loader: Callable[[], V],
        default: Optional[V] = None,
    ) -> V:
        """
        Return a cached value, loading it on a miss.

        Args:
            key: Cache key
            loader: Zero-argument callable producing the value
            default: Value to cache and return if the loader fails.
                     When None, loader errors propagate.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key!r}")
            return cached

        try:
            value = loader()
        except Exception as e:
            if default is None:
                raise
            logger.warning(f"Loader for {key!r} failed ({e}); caching default {default!r}")
            value = default

        self.set(key, value)
        return value

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
