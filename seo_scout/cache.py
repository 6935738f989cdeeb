# File: seo_scout/cache.py
"""seo_scout.cache: latest audit and audit history per URL, with TTL and LRU bounds."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

from cachetools import LRUCache, TTLCache

__all__ = ["CacheEntry", "AuditCache"]


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One computed audit and the time (epoch seconds) it was produced."""

    timestamp: float
    data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "data": self.data}


class _HistoryMap(LRUCache):
    """Per-URL history deques; evicting a URL also drops its latest entry."""

    def __init__(self, maxsize: int, on_evict: Callable[[str], None]) -> None:
        super().__init__(maxsize=maxsize)
        self._on_evict = on_evict

    def popitem(self):
        url, history = super().popitem()
        self._on_evict(url)
        return url, history


class AuditCache:
    """
    In-process store injected into the engine.

    * :meth:`get` returns the latest entry only while it is younger than *ttl*
      (a ``TTLCache`` driven by *clock*).
    * At most *max_entries* URLs are tracked; the least recently used URL is
      evicted together with its history.
    * Each URL keeps at most *history_max_entries* history entries, oldest
      dropped first.

    cachetools containers are not thread-safe, so every access happens under
    one lock and concurrent requests cannot lose history appends.
    """

    def __init__(
        self,
        ttl: float = 3600.0,
        max_entries: int = 512,
        history_max_entries: int = 100,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_entries < 1 or history_max_entries < 1:
            raise ValueError("cache bounds must be >= 1")
        self.ttl = ttl
        self.max_entries = max_entries
        self.history_max_entries = history_max_entries
        self._clock = clock
        self._latest: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl, timer=clock)
        self._history = _HistoryMap(max_entries, on_evict=self._drop_latest)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._history

    def get(self, url: str) -> Optional[CacheEntry]:
        """Latest entry for *url* if still fresh, else None."""
        with self._lock:
            entry = self._latest.get(url)
            if entry is not None:
                self._history.get(url)
            return entry

    def set(self, url: str, data: Dict[str, Any], timestamp: Optional[float] = None) -> CacheEntry:
        """Store *data* as the latest audit of *url* and append it to the history."""
        entry = CacheEntry(self._clock() if timestamp is None else timestamp, data)
        with self._lock:
            self._append_locked(url, entry)
            self._latest[url] = entry
        return entry

    def append(self, url: str, entry: CacheEntry) -> None:
        """Append *entry* to the history of *url* without touching the latest entry."""
        with self._lock:
            self._append_locked(url, entry)

    def history(self, url: str) -> List[CacheEntry]:
        """All retained entries for *url*, oldest first."""
        with self._lock:
            entries = list(self._history.get(url, ()))
        return sorted(entries, key=lambda e: e.timestamp)

    def clear(self) -> None:
        with self._lock:
            self._latest.clear()
            self._history.clear()

    def _append_locked(self, url: str, entry: CacheEntry) -> None:
        history: Optional[Deque[CacheEntry]] = self._history.get(url)
        if history is None:
            history = deque(maxlen=self.history_max_entries)
            self._history[url] = history
        history.append(entry)

    def _drop_latest(self, url: str) -> None:
        self._latest.pop(url, None)
