"""Catalog service for shop-wide aggregates.

Combines the Admin API client with the cache: every aggregate is
served through ``CacheService.get_or_refresh`` so slow catalog scans
run once per TTL and stale entries refresh in the background.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from productbuilder.cache import CATALOG_DATA_TYPES, CacheableDataType, CacheService
from productbuilder.catalog.aggregates import (
    FALLBACK_CATEGORIES,
    CategoriesData,
    ProductTypesData,
    TaxonomyCategory,
    VendorsData,
    suggest_categories,
)
from productbuilder.infrastructure.config import settings
from productbuilder.infrastructure.shopify_client import ShopifyAdminClient, ShopifyAdminError

logger = structlog.get_logger()


@dataclass
class ScopeCheck:
    """Result of comparing granted access scopes with required ones."""

    granted_scopes: list[str]
    missing_scopes: list[str]

    @property
    def is_valid(self) -> bool:
        return not self.missing_scopes

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "isValid": self.is_valid,
            "grantedScopes": self.granted_scopes,
            "missingScopes": self.missing_scopes,
        }


class CatalogService:
    """Service for cached catalog aggregates of one shop.

    Example usage:
        service = CatalogService(get_cache_service(), client)
        vendors = await service.get_vendors()
    """

    def __init__(self, cache: CacheService, client: ShopifyAdminClient) -> None:
        """Initialize catalog service.

        Args:
            cache: Shop-scoped cache.
            client: Admin API client bound to the shop.
        """
        self.cache = cache
        self.client = client
        self.shop = client.shop

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------

    async def _load_vendors(self) -> dict[str, Any]:
        vendors = [v async for v in self.client.iter_vendors()]
        data = VendorsData.build(vendors, last_updated=self.cache.clock())
        logger.info("Vendors loaded", shop=self.shop, vendors=data.total_vendors)
        return data.to_dict()

    async def _load_product_types(self) -> dict[str, Any]:
        products = [p async for p in self.client.iter_products()]
        data = ProductTypesData.build(products, last_updated=self.cache.clock())
        logger.info(
            "Product types loaded",
            shop=self.shop,
            vendors=len(data.by_vendor),
            products=data.total_products,
        )
        return data.to_dict()

    async def _load_categories(self) -> dict[str, Any]:
        nodes = [n async for n in self.client.iter_taxonomy_categories()]
        data = CategoriesData(
            categories=[TaxonomyCategory.from_api(n) for n in nodes],
            last_updated=self.cache.clock(),
        )
        logger.info("Taxonomy categories loaded", shop=self.shop, categories=len(nodes))
        return data.to_dict()

    async def _load_store_settings(self) -> dict[str, Any]:
        shop = await self.client.get_shop_settings()
        return {
            "defaultWeightUnit": shop.get("weightUnit"),
            "currencyCode": shop.get("currencyCode"),
            "name": shop.get("name"),
        }

    async def _load_scope_check(self, required: list[str]) -> dict[str, Any]:
        granted = await self.client.get_access_scopes()
        check = ScopeCheck(
            granted_scopes=granted,
            missing_scopes=[s for s in required if s not in granted],
        )
        if not check.is_valid:
            logger.warning(
                "Shop has missing scopes",
                shop=self.shop,
                missing_scopes=check.missing_scopes,
            )
        return check.to_dict()

    def _loader(self, data_type: CacheableDataType):
        loaders = {
            CacheableDataType.VENDORS: self._load_vendors,
            CacheableDataType.PRODUCT_TYPES: self._load_product_types,
            CacheableDataType.CATEGORIES: self._load_categories,
            CacheableDataType.STORE_SETTINGS: self._load_store_settings,
            CacheableDataType.SCOPE_CHECK: lambda: self._load_scope_check(
                list(settings.required_scopes)
            ),
        }
        return loaders[data_type]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_vendors(self) -> VendorsData:
        """Get all vendors of the shop."""
        data = await self.cache.get_or_refresh(
            self.shop, CacheableDataType.VENDORS, self._load_vendors
        )
        return VendorsData.from_dict(data)

    async def get_product_types(self) -> ProductTypesData:
        """Get product types grouped by vendor."""
        data = await self.cache.get_or_refresh(
            self.shop, CacheableDataType.PRODUCT_TYPES, self._load_product_types
        )
        return ProductTypesData.from_dict(data)

    async def get_product_types_for_vendor(self, vendor: str) -> list[str]:
        """Get the product types used by one vendor.

        Args:
            vendor: Vendor name (exact match).

        Returns:
            Sorted product types; empty for unknown vendors.
        """
        product_types = await self.get_product_types()
        return product_types.for_vendor(vendor)

    async def get_categories(self, product_type: str | None = None) -> list[TaxonomyCategory]:
        """Get taxonomy categories relevant to a product type.

        When the taxonomy cannot be loaded a fixed list of top-level
        categories is returned instead of an error.

        Args:
            product_type: Optional product type to match.

        Returns:
            Categories ordered by level then name.
        """
        try:
            data = await self.cache.get_or_refresh(
                self.shop, CacheableDataType.CATEGORIES, self._load_categories
            )
        except ShopifyAdminError as e:
            logger.error(
                "Failed to fetch taxonomy categories, serving fallback",
                shop=self.shop,
                error=e.message,
            )
            return list(FALLBACK_CATEGORIES)

        return suggest_categories(CategoriesData.from_dict(data).categories, product_type)

    async def get_store_settings(self) -> dict[str, Any]:
        """Get shop settings used by the product wizard."""
        return await self.cache.get_or_refresh(
            self.shop, CacheableDataType.STORE_SETTINGS, self._load_store_settings
        )

    async def check_scopes(self, required: list[str] | None = None) -> ScopeCheck:
        """Check granted access scopes against the required ones.

        Args:
            required: Required scopes; defaults to settings.

        Returns:
            ScopeCheck with granted and missing scopes.
        """
        required = list(required if required is not None else settings.required_scopes)
        data = await self.cache.get_or_refresh(
            self.shop,
            CacheableDataType.SCOPE_CHECK,
            lambda: self._load_scope_check(required),
        )
        granted = list(data.get("grantedScopes", []))
        return ScopeCheck(
            granted_scopes=granted,
            missing_scopes=[s for s in required if s not in granted],
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def refresh(self, data_type: CacheableDataType) -> Any:
        """Recompute one aggregate now, replacing the cached entry."""
        return await self.cache.refresh(self.shop, data_type, self._loader(data_type))

    async def warm_cache(self) -> dict[str, bool]:
        """Precompute the catalog aggregates.

        Failures are logged per aggregate and never raised.

        Returns:
            Mapping of data type tag to whether it was refreshed.
        """
        results: dict[str, bool] = {}
        for data_type in CATALOG_DATA_TYPES:
            try:
                await self.refresh(data_type)
                results[data_type.value] = True
            except Exception as e:
                logger.error(
                    "Cache warming failed",
                    shop=self.shop,
                    data_type=data_type.value,
                    error=str(e),
                )
                results[data_type.value] = False

        logger.info("Cache warming complete", shop=self.shop, results=results)
        return results
