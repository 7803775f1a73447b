"""Bounded caches for note bodies."""

from collections import OrderedDict
from collections.abc import Hashable, Sized
from threading import RLock
from typing import Any, Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


class LRUCache(Sized, Generic[K, V]):
    """Thread-safe least-recently-used mapping with a fixed capacity."""

    def __init__(self, max_size: int = 512):
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self._entries: OrderedDict[K, V] = OrderedDict()
        self._max_size = max_size
        self._lock = RLock()
        self.evictions = 0

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return the value for ``key`` and mark it most recently used."""
        with self._lock:
            value = self._entries.get(key, _MISSING)
            if value is _MISSING:
                return default
            self._entries.move_to_end(key)
            return value  # type: ignore[return-value]

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)
                self.evictions += 1

    def delete(self, key: K) -> bool:
        """Remove ``key``; True if it was present."""
        with self._lock:
            return self._entries.pop(key, _MISSING) is not _MISSING

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self._max_size,
                "usage_ratio": len(self._entries) / self._max_size,
                "evictions": self.evictions,
            }


class VersionedCache(LRUCache[tuple[str, float], V]):
    """Per-note values keyed by ``(path, mtime)`` with hit/miss tracking.

    An edited note gets a new key, so it is re-read on the next search
    without explicit invalidation; storing the new version drops the old one.
    """

    def __init__(self, max_size: int = 512):
        super().__init__(max_size)
        self._hit_count = 0
        self._miss_count = 0

    def lookup(self, path: str, mtime: float) -> V | None:
        """Return the cached value for ``path`` at ``mtime``, if any."""
        value = self.get((path, mtime))
        if value is None:
            self._miss_count += 1
        else:
            self._hit_count += 1
        return value

    def store(self, path: str, mtime: float, value: V) -> None:
        with self._lock:
            stale = [key for key in self._entries if key[0] == path and key[1] != mtime]
            for key in stale:
                del self._entries[key]
            self.put((path, mtime), value)

    def get_performance_stats(self) -> dict[str, Any]:
        """Cache statistics including hit ratio."""
        total_requests = self._hit_count + self._miss_count
        stats = self.get_stats()
        stats.update(
            {
                "hits": self._hit_count,
                "misses": self._miss_count,
                "hit_ratio": self._hit_count / total_requests if total_requests else 0.0,
                "total_requests": total_requests,
            }
        )
        return stats
