# medsafe/utils/search_cache.py
from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, Tuple


def _norm(key: str) -> str:
    return (key or "").strip().lower()


class SearchCache:
    """
    Query-string keyed memo with a time-to-live.

    Holds at most ``max_items`` entries; inserting past the bound drops
    expired entries first, then the oldest ones. Otherwise expired entries
    are dropped when read.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_items: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_items < 1:
            raise ValueError("max_items must be >= 1")
        self.ttl_seconds = ttl_seconds
        self.max_items = max_items
        self._clock = clock
        # insertion order == age order; set() re-inserts refreshed keys
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at >= self.ttl_seconds

    def get(self, key: str) -> Optional[Any]:
        k = _norm(key)
        entry = self._entries.get(k)
        if entry is None:
            return None

        data, stored_at = entry
        if self._expired(stored_at, self._clock()):
            del self._entries[k]
            return None
        return data

    def set(self, key: str, value: Any) -> None:
        k = _norm(key)
        now = self._clock()
        self._entries.pop(k, None)
        if len(self._entries) >= self.max_items:
            self._evict(now)
        self._entries[k] = (value, now)

    def _evict(self, now: float) -> None:
        for k in [k for k, (_, ts) in self._entries.items() if self._expired(ts, now)]:
            del self._entries[k]
        while len(self._entries) >= self.max_items:
            del self._entries[next(iter(self._entries))]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
