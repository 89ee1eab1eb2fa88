"""Persisted cache stores.

Both stores keep at most one entry per ``(shop, data_type)`` and
overwrite it on every write.
"""

from datetime import datetime, timezone
from typing import Protocol

import structlog
from sqlalchemy import and_, delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from productbuilder.cache.types import CacheableDataType, StoredCacheEntry
from productbuilder.infrastructure.models import StoreCacheModel

logger = structlog.get_logger()


class CacheStore(Protocol):
    """Keyed storage the cache service reads and writes through."""

    async def fetch(
        self, shop: str, data_type: CacheableDataType
    ) -> StoredCacheEntry | None: ...

    async def upsert(
        self,
        shop: str,
        data_type: CacheableDataType,
        data: str,
        expires_at: datetime,
    ) -> None: ...

    async def delete(self, shop: str, data_type: CacheableDataType) -> bool: ...

    async def list_for_shop(self, shop: str) -> list[StoredCacheEntry]: ...

    async def delete_for_shop(self, shop: str) -> int: ...

    async def delete_expired(self, now: datetime) -> int: ...


def _aware(value: datetime) -> datetime:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InMemoryCacheStore:
    """In-memory cache store.

    Used for tests and single-process deployments running with
    ``cache_backend = "memory"``. Expired rows stay until they are
    overwritten or purged, like rows in the database table.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, CacheableDataType], StoredCacheEntry] = {}

    async def fetch(
        self, shop: str, data_type: CacheableDataType
    ) -> StoredCacheEntry | None:
        return self._entries.get((shop, data_type))

    async def upsert(
        self,
        shop: str,
        data_type: CacheableDataType,
        data: str,
        expires_at: datetime,
    ) -> None:
        now = datetime.now(timezone.utc)
        previous = self._entries.get((shop, data_type))
        self._entries[(shop, data_type)] = StoredCacheEntry(
            shop=shop,
            data_type=data_type,
            data=data,
            expires_at=expires_at,
            created_at=previous.created_at if previous else now,
            updated_at=now,
        )

    async def delete(self, shop: str, data_type: CacheableDataType) -> bool:
        return self._entries.pop((shop, data_type), None) is not None

    async def list_for_shop(self, shop: str) -> list[StoredCacheEntry]:
        return [entry for (entry_shop, _), entry in self._entries.items() if entry_shop == shop]

    async def delete_for_shop(self, shop: str) -> int:
        keys = [key for key in self._entries if key[0] == shop]
        for key in keys:
            del self._entries[key]
        return len(keys)

    async def delete_expired(self, now: datetime) -> int:
        expired_keys = [
            key for key, entry in self._entries.items() if now > entry.expires_at
        ]
        for key in expired_keys:
            del self._entries[key]
        return len(expired_keys)


class SqlCacheStore:
    """Cache store backed by the ``store_cache`` table.

    Each operation runs in its own short session so that background
    refreshes never share a session with the request that spawned them.

    Example usage:
        store = SqlCacheStore(get_session_factory())
        await store.upsert("shop.myshopify.com", CacheableDataType.VENDORS, raw, expires_at)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize store with a session factory.

        Args:
            session_factory: Factory producing async sessions.
        """
        self.session_factory = session_factory

    @staticmethod
    def _to_entry(row: StoreCacheModel) -> StoredCacheEntry:
        return StoredCacheEntry(
            shop=row.shop,
            data_type=CacheableDataType(row.data_type),
            data=row.data,
            expires_at=_aware(row.expires_at),
            created_at=_aware(row.created_at),
            updated_at=_aware(row.updated_at),
        )

    @staticmethod
    def _key_filter(shop: str, data_type: CacheableDataType):
        return and_(
            StoreCacheModel.shop == shop,
            StoreCacheModel.data_type == data_type.value,
        )

    async def fetch(
        self, shop: str, data_type: CacheableDataType
    ) -> StoredCacheEntry | None:
        """Get the entry for a shop and data type.

        Args:
            shop: Shop domain.
            data_type: Cached aggregate tag.

        Returns:
            Stored entry if present, None otherwise.
        """
        async with self.session_factory() as session:
            result = await session.execute(
                select(StoreCacheModel).where(self._key_filter(shop, data_type))
            )
            row = result.scalar_one_or_none()
            return self._to_entry(row) if row else None

    async def upsert(
        self,
        shop: str,
        data_type: CacheableDataType,
        data: str,
        expires_at: datetime,
    ) -> None:
        """Insert or overwrite the entry for a shop and data type.

        Args:
            shop: Shop domain.
            data_type: Cached aggregate tag.
            data: Serialized envelope.
            expires_at: Expiry timestamp.
        """
        now = datetime.now(timezone.utc)
        async with self.session_factory() as session:
            dialect = session.get_bind().dialect.name
            insert = sqlite_insert if dialect == "sqlite" else pg_insert

            stmt = insert(StoreCacheModel).values(
                shop=shop,
                data_type=data_type.value,
                data=data,
                expires_at=expires_at,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[StoreCacheModel.shop, StoreCacheModel.data_type],
                set_={
                    "data": stmt.excluded.data,
                    "expires_at": stmt.excluded.expires_at,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            await session.execute(stmt)
            await session.commit()

    async def delete(self, shop: str, data_type: CacheableDataType) -> bool:
        """Delete the entry for a shop and data type.

        Returns:
            True if a row was deleted.
        """
        async with self.session_factory() as session:
            result = await session.execute(
                delete(StoreCacheModel).where(self._key_filter(shop, data_type))
            )
            await session.commit()
            return result.rowcount > 0

    async def list_for_shop(self, shop: str) -> list[StoredCacheEntry]:
        """Get every entry stored for a shop, ordered by data type."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(StoreCacheModel)
                .where(StoreCacheModel.shop == shop)
                .order_by(StoreCacheModel.data_type)
            )
            rows = result.scalars().all()

        entries = []
        for row in rows:
            try:
                entries.append(self._to_entry(row))
            except ValueError:
                # Rows written with a tag this build no longer knows.
                logger.warning(
                    "Skipping cache row with unknown data type",
                    shop=shop,
                    data_type=row.data_type,
                )
        return entries

    async def delete_for_shop(self, shop: str) -> int:
        """Delete every entry for a shop.

        Returns:
            Number of deleted rows.
        """
        async with self.session_factory() as session:
            result = await session.execute(
                delete(StoreCacheModel).where(StoreCacheModel.shop == shop)
            )
            await session.commit()
            return result.rowcount

    async def delete_expired(self, now: datetime) -> int:
        """Delete entries that expired before ``now``.

        Returns:
            Number of deleted rows.
        """
        async with self.session_factory() as session:
            result = await session.execute(
                delete(StoreCacheModel).where(StoreCacheModel.expires_at < now)
            )
            await session.commit()
            return result.rowcount
