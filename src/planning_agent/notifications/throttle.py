"""
ThrottleGate — sliding-window rate limiting per (category, dedup key).

A window opens on the first attempt for a key. Up to ``max_per_window``
attempts pass inside the window; later ones are suppressed until
``window_seconds`` have elapsed since the window opened, at which point
the window restarts. The gate has no notion of severity: critical bypass
is decided by the caller.

Entries live in an LRU-ordered map capped at ``max_entries``; stale
entries (window already elapsed) can be dropped with ``evict_stale()``.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class ThrottleEntry:
    key: str
    count: int
    window_start: float


class ThrottleGate:
    """In-memory fixed-window limiter keyed by ``category:key``."""

    def __init__(
        self,
        window_seconds: float = 60.0,
        max_per_window: int = 5,
        *,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_per_window = max_per_window
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, ThrottleEntry] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def make_key(category: str, key: str) -> str:
        return f"{category}:{key}"

    def should_throttle(self, category: str, key: str) -> bool:
        """Record an attempt and return True if it must be suppressed."""
        throttle_key = self.make_key(category, key)
        now = self._clock()

        with self._lock:
            entry = self._entries.get(throttle_key)

            if entry is None:
                self._entries[throttle_key] = ThrottleEntry(throttle_key, 1, now)
                self._enforce_capacity()
                return False

            self._entries.move_to_end(throttle_key)

            if now - entry.window_start >= self.window_seconds:
                entry.count = 1
                entry.window_start = now
                return False

            if entry.count >= self.max_per_window:
                return True

            entry.count += 1
            return False

    def configure(self, window_seconds: float, max_per_window: int) -> None:
        """Apply new policy. Existing windows are kept."""
        with self._lock:
            self.window_seconds = window_seconds
            self.max_per_window = max_per_window

    def evict_stale(self) -> int:
        """Drop entries whose window has elapsed. Returns how many were dropped."""
        now = self._clock()
        with self._lock:
            stale = [
                k for k, e in self._entries.items()
                if now - e.window_start >= self.window_seconds
            ]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.debug("Evicted %d stale throttle entries", len(stale))
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_entry(self, category: str, key: str) -> ThrottleEntry | None:
        """Snapshot of one entry; later attempts do not change the returned copy."""
        with self._lock:
            entry = self._entries.get(self.make_key(category, key))
            return replace(entry) if entry is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _enforce_capacity(self) -> None:
        # Caller holds the lock.
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Throttle cache full, evicted %s", evicted)
