"""SQLAlchemy models for database tables.

Provides the ORM model for the shop-scoped ``store_cache`` table.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Text, UniqueConstraint

from productbuilder.infrastructure.database import Base


class StoreCacheModel(Base):
    """Cached catalog aggregate for one shop and data type.

    At most one row exists per ``(shop, data_type)``; writes upsert on
    that pair. ``data`` holds the serialized cache envelope and
    ``expires_at`` duplicates the envelope expiry for range queries.
    """

    __tablename__ = "store_cache"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    shop = Column(String(255), nullable=False, index=True)
    data_type = Column(String(50), nullable=False)
    data = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("shop", "data_type", name="uq_store_cache_shop_data_type"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<StoreCacheModel(shop={self.shop}, data_type={self.data_type})>"
