"""CounterWindow — an ordered deque of timestamps inside a trailing window.

Pruned lazily: every read or write first drops timestamps older than
now - window. Length is bounded by max_events so a flood cannot grow the
deque without limit; the bound only needs to exceed the threshold being
checked.
"""

from __future__ import annotations

import bisect
from collections import deque
from datetime import datetime, timedelta


class CounterWindow:
    __slots__ = ("window", "_events")

    def __init__(self, window_seconds: int, max_events: int = 1000) -> None:
        self.window = timedelta(seconds=window_seconds)
        self._events: deque[datetime] = deque(maxlen=max_events)

    def add(self, now: datetime) -> int:
        """Record one occurrence at `now`; return the count inside the window."""
        self._prune(now)
        if self._events and now < self._events[-1]:
            # late arrival from a concurrent caller: keep the deque ordered
            if len(self._events) == self._events.maxlen:
                self._events.popleft()
            self._events.insert(bisect.bisect_right(self._events, now), now)
        else:
            self._events.append(now)
        return len(self._events)

    def count(self, now: datetime) -> int:
        self._prune(now)
        return len(self._events)

    def is_exceeded(self, threshold: int, now: datetime) -> bool:
        """Strictly more than `threshold` occurrences inside the window."""
        return self.count(now) > threshold

    def is_empty(self, now: datetime) -> bool:
        return self.count(now) == 0

    def clear(self) -> None:
        self._events.clear()

    def _prune(self, now: datetime) -> None:
        cutoff = now - self.window
        # Evict stale entries from the left
        while self._events and self._events[0] < cutoff:
            self._events.popleft()

    def __len__(self) -> int:
        return len(self._events)
