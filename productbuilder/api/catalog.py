"""Catalog API endpoints.

Provides cached, shop-wide aggregates for the product wizard and the
cache maintenance endpoints around them.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from productbuilder.api.dependencies import (
    ShopContext,
    get_cache,
    get_catalog_service,
    get_shop_context,
)
from productbuilder.api.schemas import (
    CacheInvalidateResponse,
    CacheStatsResponse,
    CacheWarmResponse,
    CategoriesResponse,
    CategorySchema,
    ErrorResponse,
    ProductTypesResponse,
    ScopeCheckResponse,
    StoreSettingsResponse,
    VendorsResponse,
)
from productbuilder.cache import CacheableDataType, CacheService
from productbuilder.catalog import CatalogService

router = APIRouter(
    prefix="/catalog",
    tags=["Catalog"],
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)

CatalogDep = Annotated[CatalogService, Depends(get_catalog_service)]


# ============================================================================
# Aggregates
# ============================================================================


@router.get("/vendors", response_model=VendorsResponse)
async def list_vendors(service: CatalogDep) -> VendorsResponse:
    """List every vendor of the shop, sorted for display."""
    vendors = await service.get_vendors()
    return VendorsResponse(
        vendors=vendors.vendors,
        total_vendors=vendors.total_vendors,
        last_updated=vendors.last_updated,
    )


@router.get("/product-types", response_model=ProductTypesResponse)
async def list_product_types(
    service: CatalogDep,
    vendor: Annotated[str | None, Query(description="Only this vendor's types")] = None,
) -> ProductTypesResponse:
    """List product types, for one vendor or grouped by vendor.

    Args:
        service: Catalog service.
        vendor: Optional vendor filter.

    Returns:
        Product types of the vendor, or every vendor's types.
    """
    if vendor is not None:
        return ProductTypesResponse(
            vendor=vendor,
            product_types=await service.get_product_types_for_vendor(vendor),
        )

    data = await service.get_product_types()
    return ProductTypesResponse(
        product_types=data.all_product_types,
        product_types_by_vendor=data.by_vendor,
        total_products=data.total_products,
        last_updated=data.last_updated,
    )


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories(
    service: CatalogDep,
    product_type: Annotated[str | None, Query(description="Product type to match")] = None,
) -> CategoriesResponse:
    """List taxonomy categories relevant to a product type."""
    categories = await service.get_categories(product_type)
    return CategoriesResponse(
        product_type=product_type,
        categories=[
            CategorySchema(
                id=c.id,
                name=c.name,
                full_name=c.full_name,
                level=c.level,
                is_leaf=c.is_leaf,
            )
            for c in categories
        ],
    )


@router.get("/store-settings", response_model=StoreSettingsResponse)
async def get_store_settings(service: CatalogDep) -> StoreSettingsResponse:
    """Get shop settings such as the default weight unit."""
    data = await service.get_store_settings()
    return StoreSettingsResponse(
        default_weight_unit=data.get("defaultWeightUnit"),
        currency_code=data.get("currencyCode"),
        name=data.get("name"),
    )


@router.get("/scopes", response_model=ScopeCheckResponse)
async def check_scopes(service: CatalogDep) -> ScopeCheckResponse:
    """Compare the app's granted scopes with the required ones."""
    check = await service.check_scopes()
    return ScopeCheckResponse(
        is_valid=check.is_valid,
        granted_scopes=check.granted_scopes,
        missing_scopes=check.missing_scopes,
    )


# ============================================================================
# Cache Maintenance
# ============================================================================


@router.post("/cache/warm", response_model=CacheWarmResponse)
async def warm_cache(service: CatalogDep) -> CacheWarmResponse:
    """Recompute vendors and product types now."""
    results = await service.warm_cache()
    return CacheWarmResponse(shop=service.shop, results=results)


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def get_cache_stats(
    context: Annotated[ShopContext, Depends(get_shop_context)],
    cache: Annotated[CacheService, Depends(get_cache)],
) -> CacheStatsResponse:
    """Get hit/miss counters and entry freshness for the shop."""
    described = await cache.describe_entries(context.shop)
    return CacheStatsResponse(
        shop=context.shop,
        stats=cache.get_all_stats(context.shop),
        entries=described["entries"],
        summary=described["summary"],
    )


@router.delete("/cache/stats", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cache_stats(
    context: Annotated[ShopContext, Depends(get_shop_context)],
    cache: Annotated[CacheService, Depends(get_cache)],
) -> None:
    """Reset the shop's hit/miss counters."""
    cache.clear_stats(context.shop)


@router.delete("/cache/{data_type}", response_model=CacheInvalidateResponse)
async def invalidate_cache_entry(
    data_type: str,
    context: Annotated[ShopContext, Depends(get_shop_context)],
    cache: Annotated[CacheService, Depends(get_cache)],
) -> CacheInvalidateResponse:
    """Delete one cached aggregate of the shop.

    Args:
        data_type: Storage tag, e.g. ``vendors`` or ``productTypes``.
        context: Shop context.
        cache: Cache service.

    Returns:
        Whether an entry was removed.

    Raises:
        HTTPException: If the data type is unknown.
    """
    try:
        cacheable = CacheableDataType(data_type)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error_code": "UNKNOWN_DATA_TYPE",
                "message": f"Unknown cache data type: {data_type}",
                "details": {"allowed": [t.value for t in CacheableDataType]},
            },
        )

    removed = await cache.invalidate(context.shop, cacheable)
    return CacheInvalidateResponse(shop=context.shop, data_type=cacheable.value, removed=removed)
