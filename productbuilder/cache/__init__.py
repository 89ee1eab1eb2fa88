"""Shop-scoped cache for slow catalog aggregates.

Provides a TTL cache with stale-while-revalidate reads, a pluggable
persisted store and hit/miss statistics.
"""

from productbuilder.cache.codec import decode_entry, encode_entry
from productbuilder.cache.service import CacheService, get_cache_service, shutdown_cache_service
from productbuilder.cache.stats import (
    CacheStatsCollector,
    InMemoryCacheStats,
    NullCacheStats,
)
from productbuilder.cache.store import CacheStore, InMemoryCacheStore, SqlCacheStore
from productbuilder.cache.types import (
    CATALOG_DATA_TYPES,
    CacheableDataType,
    CacheEnvelope,
    CacheMetadata,
    CacheResult,
    StoredCacheEntry,
)

__all__ = [
    # Types
    "CATALOG_DATA_TYPES",
    "CacheableDataType",
    "CacheEnvelope",
    "CacheMetadata",
    "CacheResult",
    "StoredCacheEntry",
    # Codec
    "decode_entry",
    "encode_entry",
    # Stats
    "CacheStatsCollector",
    "InMemoryCacheStats",
    "NullCacheStats",
    # Stores
    "CacheStore",
    "InMemoryCacheStore",
    "SqlCacheStore",
    # Service
    "CacheService",
    "get_cache_service",
    "shutdown_cache_service",
]
