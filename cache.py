"""Keyed cache with per-entry expiry.

The cache is injected wherever it is used so tests can hand in a
process-local instance with a fake clock and deployments can swap in a
shared store.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class Cache(ABC):
    """Abstract keyed store with TTL expiry."""

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Get a live entry, or None when missing or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: float) -> CacheEntry:
        """Store a value that expires ``ttl_seconds`` from now."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete one key. Returns True if it was present."""

    @abstractmethod
    def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``. Returns the count."""

    @abstractmethod
    def purge_expired(self) -> int:
        """Drop expired entries. Returns the count."""


class MemoryCache(Cache):
    """Process-local cache backed by a dict.

    Nothing is shared between processes and a new instance starts empty,
    so callers must treat every entry as optional. All access holds the
    instance lock, so API worker threads can share one cache.

    Args:
        clock: Returns the current time in seconds; defaults to time.time.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            return entry

    def set(self, key: str, value: Any, ttl_seconds: float) -> CacheEntry:
        with self._lock:
            entry = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
            self._entries[key] = entry
            return entry

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def purge_expired(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items() if now >= entry.expires_at
            ]
            for key in expired:
                del self._entries[key]
            return len(expired)
