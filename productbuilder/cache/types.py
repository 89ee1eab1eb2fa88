"""Cache data types.

Closed set of cacheable aggregates plus the records passed between the
cache service, its store and its callers.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class CacheableDataType(str, Enum):
    """Aggregates that may be cached per shop.

    Values are the storage tags written to ``store_cache.data_type``.
    """

    PRODUCT_TYPES = "productTypes"
    VENDORS = "vendors"
    CATEGORIES = "categories"
    STORE_SETTINGS = "storeSettings"
    SCOPE_CHECK = "scopeCheck"


# Aggregates derived from the product catalog; a catalog change makes them outdated.
CATALOG_DATA_TYPES = (
    CacheableDataType.VENDORS,
    CacheableDataType.PRODUCT_TYPES,
)


def stats_key(shop: str, data_type: CacheableDataType) -> str:
    """Build the hit/miss statistics key for a cache entry."""
    return f"{stats_prefix(shop)}{data_type.value}"


def stats_prefix(shop: str) -> str:
    """Prefix shared by every statistics key of a shop."""
    return f"{shop}:"


@dataclass(frozen=True)
class CacheEnvelope:
    """Decoded cache payload with its write time and expiry.

    Attributes:
        data: Cached payload (JSON-compatible).
        timestamp: Write time in epoch milliseconds.
        expires_at: Expiry in epoch milliseconds.
    """

    data: Any
    timestamp: int
    expires_at: int

    @property
    def lifetime(self) -> int:
        """Total time-to-live this entry was written with, in ms."""
        return self.expires_at - self.timestamp


@dataclass(frozen=True)
class StoredCacheEntry:
    """Raw row as held by a cache store.

    Attributes:
        shop: Shop domain.
        data_type: Cached aggregate tag.
        data: Serialized envelope text.
        expires_at: Expiry timestamp (duplicated from the envelope).
        created_at: First write time.
        updated_at: Last write time.
    """

    shop: str
    data_type: CacheableDataType
    data: str
    expires_at: datetime
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class CacheMetadata:
    """Freshness information reported alongside a cache read.

    Attributes:
        is_stale: Entry is older than the staleness threshold.
        is_expired: Entry is past its expiry.
        age: Milliseconds since the entry was written.
        remaining_ttl: Milliseconds until expiry, floored at zero.
        hit_rate: Running hit rate for the key, in percent.
    """

    is_stale: bool
    is_expired: bool
    age: int
    remaining_ttl: int
    hit_rate: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "is_stale": self.is_stale,
            "is_expired": self.is_expired,
            "age": self.age,
            "remaining_ttl": self.remaining_ttl,
            "hit_rate": self.hit_rate,
        }


@dataclass(frozen=True)
class CacheResult:
    """Outcome of a cache read.

    ``data`` is None on every kind of miss: absent, corrupt, or expired
    without stale-while-revalidate.
    """

    data: Any | None
    metadata: CacheMetadata | None = None

    @property
    def is_hit(self) -> bool:
        """Check if the read produced usable data."""
        return self.data is not None
