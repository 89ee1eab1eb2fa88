"""Shop-scoped cache service with stale-while-revalidate reads.

Provides:
- TTL-bounded caching of catalog aggregates per shop
- Stale-while-revalidate with bounded background refreshes
- Hit/miss statistics for observability
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone
from typing import Any

import structlog

from productbuilder.cache.codec import decode_entry, encode_entry
from productbuilder.cache.stats import CacheStatsCollector, InMemoryCacheStats
from productbuilder.cache.store import CacheStore, InMemoryCacheStore, SqlCacheStore
from productbuilder.cache.types import (
    CacheableDataType,
    CacheMetadata,
    CacheResult,
    stats_key,
    stats_prefix,
)
from productbuilder.domain.exceptions import CacheDecodeError
from productbuilder.infrastructure.config import settings

logger = structlog.get_logger()

DEFAULT_TTL_SECONDS = 15 * 60
STALE_THRESHOLD = 0.8

RefreshCallback = Callable[[], Awaitable[Any]]
Loader = Callable[[], Awaitable[Any]]


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _to_ms(value: datetime) -> int:
    return round(value.timestamp() * 1000)


def _from_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class CacheService:
    """Cache for slow, shop-wide catalog aggregates.

    Entries never cross shops: every read and write is keyed by
    ``(shop, data_type)``. Reads never raise for missing, expired or
    corrupt entries; they report a miss instead.

    Example usage:
        cache = CacheService(InMemoryCacheStore())

        result = await cache.get(
            shop,
            CacheableDataType.VENDORS,
            stale_while_revalidate=True,
            on_stale_data=lambda: refresh_vendors(shop),
        )
        if result.data is None:
            vendors = await refresh_vendors(shop)
    """

    def __init__(
        self,
        store: CacheStore,
        stats: CacheStatsCollector | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        stale_threshold: float = STALE_THRESHOLD,
        refresh_timeout_seconds: float | None = 30.0,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        """Initialize cache service.

        Args:
            store: Persisted cache store.
            stats: Hit/miss collector. Defaults to an in-memory one.
            ttl_seconds: Default time-to-live for writes.
            stale_threshold: Fraction of an entry's lifetime after which
                it is reported stale.
            refresh_timeout_seconds: Upper bound for one background
                refresh; None disables the bound.
            clock: Returns the current time in epoch milliseconds.
        """
        self.store = store
        self.stats = stats if stats is not None else InMemoryCacheStats()
        self.ttl_seconds = ttl_seconds
        self.stale_threshold = stale_threshold
        self.refresh_timeout_seconds = refresh_timeout_seconds
        self.clock = clock
        self._refresh_tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(
        self,
        shop: str,
        data_type: CacheableDataType,
        stale_while_revalidate: bool = False,
        on_stale_data: RefreshCallback | None = None,
    ) -> CacheResult:
        """Get cached data for a shop.

        Args:
            shop: Shop domain.
            data_type: Cached aggregate.
            stale_while_revalidate: Serve expired entries instead of
                reporting a miss.
            on_stale_data: Refresh started in the background when the
                served entry is stale or expired. Never awaited here.

        Returns:
            CacheResult with data (None on miss) and freshness metadata.
        """
        key = stats_key(shop, data_type)
        entry = await self.store.fetch(shop, data_type)

        if entry is None:
            self.stats.record_miss(key)
            logger.debug(
                "Cache miss",
                shop=shop,
                data_type=data_type.value,
                hit_rate=self.stats.hit_rate(key),
            )
            return CacheResult(data=None)

        try:
            envelope = decode_entry(entry.data)
        except CacheDecodeError as e:
            self.stats.record_miss(key)
            logger.error(
                "Failed to parse cached data",
                shop=shop,
                data_type=data_type.value,
                error=e.message,
            )
            return CacheResult(data=None)

        now = self.clock()
        expires_at = _to_ms(entry.expires_at)
        age = now - envelope.timestamp
        is_expired = now > expires_at
        is_stale = age > envelope.lifetime * self.stale_threshold

        if is_expired and not stale_while_revalidate:
            self.stats.record_miss(key)
            metadata = self._metadata(key, is_stale, is_expired, age, expires_at - now)
            logger.debug(
                "Cache expired",
                shop=shop,
                data_type=data_type.value,
                age=age,
            )
            return CacheResult(data=None, metadata=metadata)

        self.stats.record_hit(key)
        metadata = self._metadata(key, is_stale, is_expired, age, expires_at - now)

        if (is_stale or is_expired) and on_stale_data is not None:
            logger.info(
                "Serving stale cache, refreshing in background",
                shop=shop,
                data_type=data_type.value,
                age=age,
                is_expired=is_expired,
            )
            self._spawn_refresh(shop, data_type, on_stale_data)

        logger.debug(
            "Cache hit",
            shop=shop,
            data_type=data_type.value,
            is_stale=is_stale,
            age=age,
        )
        return CacheResult(data=envelope.data, metadata=metadata)

    async def get_data(self, shop: str, data_type: CacheableDataType) -> Any | None:
        """Get only the cached payload, without metadata."""
        result = await self.get(shop, data_type)
        return result.data

    def _metadata(
        self,
        key: str,
        is_stale: bool,
        is_expired: bool,
        age: int,
        remaining: int,
    ) -> CacheMetadata:
        return CacheMetadata(
            is_stale=is_stale,
            is_expired=is_expired,
            age=age,
            remaining_ttl=max(0, remaining),
            hit_rate=self.stats.hit_rate(key),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set(
        self,
        shop: str,
        data_type: CacheableDataType,
        data: Any,
        ttl_seconds: float | None = None,
    ) -> None:
        """Store data for a shop, replacing any previous entry.

        Args:
            shop: Shop domain.
            data_type: Cached aggregate.
            data: JSON-compatible payload.
            ttl_seconds: Time-to-live; defaults to the service TTL.
        """
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self.clock()
        expires_at = now + int(ttl * 1000)

        await self.store.upsert(
            shop,
            data_type,
            encode_entry(data, now, expires_at),
            _from_ms(expires_at),
        )
        logger.debug("Cache set", shop=shop, data_type=data_type.value, ttl=ttl)

    async def refresh(
        self,
        shop: str,
        data_type: CacheableDataType,
        loader: Loader,
        ttl_seconds: float | None = None,
    ) -> Any:
        """Recompute an entry and store it.

        The loader runs to completion before anything is written, so a
        failing loader leaves the previous entry in place.

        Args:
            shop: Shop domain.
            data_type: Cached aggregate.
            loader: Coroutine function producing the payload.
            ttl_seconds: Optional TTL override.

        Returns:
            The freshly loaded payload.
        """
        data = await loader()
        await self.set(shop, data_type, data, ttl_seconds)
        return data

    async def get_or_refresh(
        self,
        shop: str,
        data_type: CacheableDataType,
        loader: Loader,
        ttl_seconds: float | None = None,
    ) -> Any:
        """Serve from cache, refreshing stale entries in the background.

        On a miss the loader is awaited and its result cached; loader
        errors propagate to the caller.

        Args:
            shop: Shop domain.
            data_type: Cached aggregate.
            loader: Coroutine function producing the payload.
            ttl_seconds: Optional TTL override.

        Returns:
            Cached or freshly loaded payload.
        """
        result = await self.get(
            shop,
            data_type,
            stale_while_revalidate=True,
            on_stale_data=lambda: self.refresh(shop, data_type, loader, ttl_seconds),
        )
        if result.data is not None:
            return result.data
        return await self.refresh(shop, data_type, loader, ttl_seconds)

    # ------------------------------------------------------------------
    # Invalidation and maintenance
    # ------------------------------------------------------------------

    async def invalidate(self, shop: str, data_type: CacheableDataType) -> bool:
        """Delete an entry. Missing entries are ignored.

        Returns:
            True if an entry was removed.
        """
        removed = await self.store.delete(shop, data_type)
        logger.debug(
            "Cache invalidated",
            shop=shop,
            data_type=data_type.value,
            removed=removed,
        )
        return removed

    async def invalidate_many(
        self, shop: str, data_types: Iterable[CacheableDataType]
    ) -> list[CacheableDataType]:
        """Delete several entries for one shop.

        Returns:
            Data types that had an entry.
        """
        removed = []
        for data_type in data_types:
            if await self.invalidate(shop, data_type):
                removed.append(data_type)
        return removed

    async def purge_shop(self, shop: str) -> int:
        """Delete every entry for a shop (e.g. after uninstall)."""
        count = await self.store.delete_for_shop(shop)
        logger.info("Cache purged for shop", shop=shop, entries=count)
        return count

    async def purge_expired(self) -> int:
        """Delete every expired entry across shops."""
        count = await self.store.delete_expired(_from_ms(self.clock()))
        logger.info("Expired cache entries purged", entries=count)
        return count

    async def describe_entries(self, shop: str) -> dict[str, Any]:
        """Summarize freshness of every entry stored for a shop.

        Ages and remaining TTLs are reported in seconds.

        Returns:
            Dict with per-entry details and a summary of counts.
        """
        now = self.clock()
        entries = []
        for entry in await self.store.list_for_shop(shop):
            expires_at = _to_ms(entry.expires_at)
            try:
                written_at = decode_entry(entry.data).timestamp
            except CacheDecodeError:
                written_at = _to_ms(entry.updated_at)
            age = now - written_at
            remaining = expires_at - now
            entries.append(
                {
                    "data_type": entry.data_type.value,
                    "created_at": entry.created_at.isoformat(),
                    "updated_at": entry.updated_at.isoformat(),
                    "expires_at": entry.expires_at.isoformat(),
                    "age": round(age / 1000),
                    "remaining_ttl": round(remaining / 1000),
                    "is_expired": remaining <= 0,
                    "is_stale": age > (expires_at - written_at) * self.stale_threshold,
                }
            )

        return {
            "entries": entries,
            "summary": {
                "total_entries": len(entries),
                "expired_entries": sum(1 for e in entries if e["is_expired"]),
                "stale_entries": sum(
                    1 for e in entries if e["is_stale"] and not e["is_expired"]
                ),
                "fresh_entries": sum(
                    1 for e in entries if not e["is_stale"] and not e["is_expired"]
                ),
            },
        }

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_all_stats(self, shop: str | None = None) -> dict[str, dict[str, Any]]:
        """Get hit/miss counters for every key read so far.

        Args:
            shop: Limit to this shop's keys; all shops when omitted.
        """
        snapshot = self.stats.snapshot()
        if shop is None:
            return snapshot
        prefix = stats_prefix(shop)
        return {k: v for k, v in snapshot.items() if k.startswith(prefix)}

    def clear_stats(self, shop: str | None = None) -> None:
        """Reset hit/miss counters, of one shop or of all shops."""
        self.stats.clear(stats_prefix(shop) if shop is not None else "")

    # ------------------------------------------------------------------
    # Background refreshes
    # ------------------------------------------------------------------

    def _spawn_refresh(
        self,
        shop: str,
        data_type: CacheableDataType,
        refresh: RefreshCallback,
    ) -> None:
        task = asyncio.create_task(self._run_refresh(shop, data_type, refresh))
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def _run_refresh(
        self,
        shop: str,
        data_type: CacheableDataType,
        refresh: RefreshCallback,
    ) -> None:
        try:
            await asyncio.wait_for(refresh(), timeout=self.refresh_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                "Background cache refresh timed out",
                shop=shop,
                data_type=data_type.value,
                timeout=self.refresh_timeout_seconds,
            )
        except Exception as e:
            logger.error(
                "Background cache refresh failed",
                shop=shop,
                data_type=data_type.value,
                error=str(e),
            )

    @property
    def pending_refreshes(self) -> int:
        """Number of background refreshes still running."""
        return len(self._refresh_tasks)

    async def drain(self) -> None:
        """Wait for all in-flight background refreshes to finish."""
        while self._refresh_tasks:
            await asyncio.gather(*list(self._refresh_tasks), return_exceptions=True)


# Global service instance
_cache_service: CacheService | None = None


def build_cache_store() -> CacheStore:
    """Create the store selected by ``settings.cache_backend``."""
    if settings.cache_backend == "memory":
        return InMemoryCacheStore()

    from productbuilder.infrastructure.database import get_session_factory

    return SqlCacheStore(get_session_factory())


def get_cache_service() -> CacheService:
    """Get or create the cache service instance.

    Returns:
        CacheService configured from settings.
    """
    global _cache_service
    if _cache_service is None:
        _cache_service = CacheService(
            store=build_cache_store(),
            ttl_seconds=settings.cache_ttl_seconds,
            stale_threshold=settings.cache_stale_threshold,
            refresh_timeout_seconds=settings.cache_refresh_timeout_seconds,
        )
    return _cache_service


async def shutdown_cache_service() -> None:
    """Wait for background refreshes and drop the global instance."""
    global _cache_service
    if _cache_service is not None:
        await _cache_service.drain()
    _cache_service = None
