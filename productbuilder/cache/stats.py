"""Hit/miss statistics for cache keys.

Counters are diagnostic only. Concurrent increments may be lost and
nothing in the read path depends on them.
"""

from dataclasses import dataclass
from typing import Any, Protocol


class CacheStatsCollector(Protocol):
    """Interface the cache service reports hits and misses to."""

    def record_hit(self, key: str) -> None: ...

    def record_miss(self, key: str) -> None: ...

    def hit_rate(self, key: str) -> float: ...

    def snapshot(self) -> dict[str, dict[str, Any]]: ...

    def clear(self, prefix: str = "") -> None: ...


@dataclass
class KeyStats:
    """Counters for one ``shop:dataType`` key."""

    hits: int = 0
    misses: int = 0

    @property
    def total(self) -> int:
        """Total lookups."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hit rate in percent, 0 when the key was never read."""
        if self.total == 0:
            return 0.0
        return self.hits / self.total * 100


class InMemoryCacheStats:
    """Process-local statistics, reset on restart."""

    def __init__(self) -> None:
        self._stats: dict[str, KeyStats] = {}

    def _get(self, key: str) -> KeyStats:
        stats = self._stats.get(key)
        if stats is None:
            stats = self._stats[key] = KeyStats()
        return stats

    def record_hit(self, key: str) -> None:
        self._get(key).hits += 1

    def record_miss(self, key: str) -> None:
        self._get(key).misses += 1

    def hit_rate(self, key: str) -> float:
        stats = self._stats.get(key)
        return stats.hit_rate if stats else 0.0

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Get counters for every key seen so far.

        Returns:
            Mapping of key to hits, misses, total and hit_rate.
        """
        return {
            key: {
                "hits": stats.hits,
                "misses": stats.misses,
                "total": stats.total,
                "hit_rate": stats.hit_rate,
            }
            for key, stats in self._stats.items()
        }

    def clear(self, prefix: str = "") -> None:
        """Drop counters of keys starting with ``prefix`` (all by default)."""
        if not prefix:
            self._stats.clear()
            return
        for key in [k for k in self._stats if k.startswith(prefix)]:
            del self._stats[key]


class NullCacheStats:
    """Collector that records nothing."""

    def record_hit(self, key: str) -> None:
        pass

    def record_miss(self, key: str) -> None:
        pass

    def hit_rate(self, key: str) -> float:
        return 0.0

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {}

    def clear(self, prefix: str = "") -> None:
        pass
