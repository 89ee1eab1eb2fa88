"""Shared route dependencies.

Session handling happens in front of this service: callers pass the
shop domain and its Admin API access token as headers.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Request

from productbuilder.application.variant_service import VariantSyncService
from productbuilder.cache import CacheService, get_cache_service
from productbuilder.catalog import CatalogService
from productbuilder.domain.exceptions import MissingShopContextError
from productbuilder.infrastructure.shopify_client import ShopifyAdminClient


@dataclass(frozen=True)
class ShopContext:
    """Shop a request acts on."""

    shop: str
    access_token: str


def get_shop_context(
    x_shopify_shop_domain: Annotated[str | None, Header()] = None,
    x_shopify_access_token: Annotated[str | None, Header()] = None,
) -> ShopContext:
    """Read the shop context headers.

    Raises:
        MissingShopContextError: If either header is missing or blank.
    """
    missing = []
    if not (x_shopify_shop_domain or "").strip():
        missing.append("X-Shopify-Shop-Domain")
    if not (x_shopify_access_token or "").strip():
        missing.append("X-Shopify-Access-Token")
    if missing:
        raise MissingShopContextError(missing)

    return ShopContext(
        shop=x_shopify_shop_domain.strip().lower(),
        access_token=x_shopify_access_token.strip(),
    )


def get_cache() -> CacheService:
    """Get cache service."""
    return get_cache_service()


def get_admin_client(
    request: Request,
    context: Annotated[ShopContext, Depends(get_shop_context)],
) -> ShopifyAdminClient:
    """Get an Admin API client for the request's shop."""
    return ShopifyAdminClient(
        context.shop,
        context.access_token,
        request_id=getattr(request.state, "request_id", None),
    )


def get_catalog_service(
    cache: Annotated[CacheService, Depends(get_cache)],
    client: Annotated[ShopifyAdminClient, Depends(get_admin_client)],
) -> CatalogService:
    """Get catalog service bound to the request's shop."""
    return CatalogService(cache, client)


def get_variant_service(
    client: Annotated[ShopifyAdminClient, Depends(get_admin_client)],
) -> VariantSyncService:
    """Get variant sync service bound to the request's shop."""
    return VariantSyncService(client)
