"""Tests for catalog endpoints.

The Admin API is served by an httpx mock transport keyed on the
GraphQL operation name.
"""

import json
from typing import Annotated

import httpx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from productbuilder.api.dependencies import ShopContext, get_admin_client, get_shop_context
from productbuilder.infrastructure.shopify_client import ShopifyAdminClient
from productbuilder.main import app

SHOP = "demo-store.myshopify.com"


def page(nodes: list) -> dict:
    return {"edges": [{"node": n} for n in nodes], "pageInfo": {"hasNextPage": False}}


RESPONSES = {
    "getVendors": {"productVendors": page(["Nike", "adidas", "Acme"])},
    "getProductTypes": {
        "products": page(
            [
                {"vendor": "Nike", "productType": "Shoes"},
                {"vendor": "Nike", "productType": "Apparel"},
                {"vendor": "adidas", "productType": "Shoes"},
            ]
        )
    },
    "getTaxonomyCategories": {
        "taxonomy": {
            "categories": page(
                [
                    {"id": "gid://c/aa", "name": "Apparel", "fullName": "Apparel", "level": 0, "isLeaf": False},
                    {"id": "gid://c/sh", "name": "Shoes", "fullName": "Apparel > Shoes", "level": 1, "isLeaf": True},
                ]
            )
        }
    },
    "getStoreSettings": {
        "shop": {
            "name": "Demo Store",
            "myshopifyDomain": SHOP,
            "weightUnit": "GRAMS",
            "currencyCode": "USD",
        }
    },
    "getAccessScopes": {"currentAppInstallation": {"accessScopes": [{"handle": "read_products"}]}},
}


class FakeShopify:
    """Mock Admin API answering by operation name."""

    def __init__(self) -> None:
        self.failing: set[str] = set()
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        query = json.loads(request.content)["query"]
        operation = next(name for name in RESPONSES if name in query)
        self.requests.append(operation)
        if operation in self.failing:
            return httpx.Response(503, text="Service Unavailable")
        return httpx.Response(200, json={"data": RESPONSES[operation]})


@pytest.fixture
def shopify(app_client: TestClient):
    """Route Admin API calls of every request to the fake."""
    fake = FakeShopify()

    def admin_client(
        context: Annotated[ShopContext, Depends(get_shop_context)],
    ) -> ShopifyAdminClient:
        return ShopifyAdminClient(
            context.shop, context.access_token, transport=httpx.MockTransport(fake)
        )

    app.dependency_overrides[get_admin_client] = admin_client
    yield fake


# ============================================================================
# Aggregate Tests
# ============================================================================


class TestCatalogAggregates:
    """Tests for aggregate endpoints."""

    def test_list_vendors(self, app_client, api_headers, shopify) -> None:
        """Vendors come back sorted and counted."""
        response = app_client.get("/catalog/vendors", headers=api_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["vendors"] == ["Acme", "adidas", "Nike"]
        assert data["total_vendors"] == 3

    def test_vendors_cached(self, app_client, api_headers, shopify) -> None:
        """A second request is served from cache."""
        app_client.get("/catalog/vendors", headers=api_headers)
        app_client.get("/catalog/vendors", headers=api_headers)

        assert shopify.requests.count("getVendors") == 1

    def test_product_types_grouped(self, app_client, api_headers, shopify) -> None:
        """Without a vendor, types are grouped by vendor."""
        data = app_client.get("/catalog/product-types", headers=api_headers).json()

        assert data["product_types_by_vendor"] == {
            "adidas": ["Shoes"],
            "Nike": ["Apparel", "Shoes"],
        }
        assert data["product_types"] == ["Apparel", "Shoes"]
        assert data["total_products"] == 3

    def test_product_types_for_vendor(self, app_client, api_headers, shopify) -> None:
        """A vendor filter returns only that vendor's types."""
        data = app_client.get(
            "/catalog/product-types", params={"vendor": "Nike"}, headers=api_headers
        ).json()

        assert data["vendor"] == "Nike"
        assert data["product_types"] == ["Apparel", "Shoes"]
        assert data["product_types_by_vendor"] is None

    def test_categories(self, app_client, api_headers, shopify) -> None:
        """Categories are matched against the product type."""
        data = app_client.get(
            "/catalog/categories", params={"product_type": "Shoes"}, headers=api_headers
        ).json()

        assert data["product_type"] == "Shoes"
        assert data["categories"] == [
            {
                "id": "gid://c/sh",
                "name": "Shoes",
                "full_name": "Apparel > Shoes",
                "level": 1,
                "is_leaf": True,
            }
        ]

    def test_categories_fallback(self, app_client, api_headers, shopify) -> None:
        """Taxonomy failures serve the fallback categories."""
        shopify.failing.add("getTaxonomyCategories")

        response = app_client.get("/catalog/categories", headers=api_headers)

        assert response.status_code == 200
        assert [c["name"] for c in response.json()["categories"]][0] == "Apparel & Accessories"
        assert len(response.json()["categories"]) == 5

    def test_store_settings(self, app_client, api_headers, shopify) -> None:
        """Store settings expose the default weight unit."""
        data = app_client.get("/catalog/store-settings", headers=api_headers).json()

        assert data == {
            "default_weight_unit": "GRAMS",
            "currency_code": "USD",
            "name": "Demo Store",
        }

    def test_scopes(self, app_client, api_headers, shopify) -> None:
        """Missing required scopes are reported."""
        data = app_client.get("/catalog/scopes", headers=api_headers).json()

        assert data["is_valid"] is False
        assert data["granted_scopes"] == ["read_products"]
        assert data["missing_scopes"] == ["write_products"]

    def test_shopify_failure_is_bad_gateway(self, app_client, api_headers, shopify) -> None:
        """Admin API errors map to 502."""
        shopify.failing.add("getVendors")

        response = app_client.get("/catalog/vendors", headers=api_headers)

        assert response.status_code == 502
        data = response.json()
        assert data["error_code"] == "SHOPIFY_API_ERROR"
        assert data["details"]["status_code"] == 503
        assert data["details"]["shop"] == SHOP

    def test_missing_shop_context(self, app_client, api_headers, shopify) -> None:
        """Requests without an access token are rejected."""
        headers = {k: v for k, v in api_headers.items() if k != "X-Shopify-Access-Token"}

        response = app_client.get("/catalog/vendors", headers=headers)

        assert response.status_code == 401
        assert response.json()["details"]["missing"] == ["X-Shopify-Access-Token"]

    def test_shop_domain_normalized(self, app_client, api_headers, shopify) -> None:
        """Shop domains are matched case-insensitively."""
        headers = {**api_headers, "X-Shopify-Shop-Domain": "Demo-Store.MyShopify.com"}
        app_client.get("/catalog/vendors", headers=headers)

        app_client.get("/catalog/vendors", headers=api_headers)

        assert shopify.requests.count("getVendors") == 1


# ============================================================================
# Cache Maintenance Tests
# ============================================================================


class TestCacheMaintenance:
    """Tests for cache maintenance endpoints."""

    def test_warm(self, app_client, api_headers, shopify) -> None:
        """Warming reports each catalog aggregate."""
        response = app_client.post("/catalog/cache/warm", headers=api_headers)

        assert response.status_code == 200
        assert response.json() == {
            "shop": SHOP,
            "results": {"vendors": True, "productTypes": True},
        }

    def test_warm_partial_failure(self, app_client, api_headers, shopify) -> None:
        """A failing aggregate is reported, not raised."""
        shopify.failing.add("getProductTypes")

        results = app_client.post("/catalog/cache/warm", headers=api_headers).json()["results"]

        assert results == {"vendors": True, "productTypes": False}

    def test_stats(self, app_client, api_headers, shopify) -> None:
        """Stats cover this shop's keys and entries."""
        app_client.get("/catalog/vendors", headers=api_headers)
        app_client.get("/catalog/vendors", headers=api_headers)

        data = app_client.get("/catalog/cache/stats", headers=api_headers).json()

        assert data["shop"] == SHOP
        assert data["stats"][f"{SHOP}:vendors"]["hits"] == 1
        assert data["stats"][f"{SHOP}:vendors"]["misses"] == 1
        assert [e["data_type"] for e in data["entries"]] == ["vendors"]
        assert data["summary"]["fresh_entries"] == 1

    def test_clear_stats(self, app_client, api_headers, shopify) -> None:
        """Counters can be reset."""
        app_client.get("/catalog/vendors", headers=api_headers)

        response = app_client.delete("/catalog/cache/stats", headers=api_headers)

        assert response.status_code == 204
        assert app_client.get("/catalog/cache/stats", headers=api_headers).json()["stats"] == {}

    def test_clear_stats_keeps_other_shops(self, app_client, api_headers, shopify, cache) -> None:
        """A shop can only reset its own counters."""
        other_key = "other-store.myshopify.com:vendors"
        cache.stats.record_miss(other_key)
        app_client.get("/catalog/vendors", headers=api_headers)

        app_client.delete("/catalog/cache/stats", headers=api_headers)

        assert cache.get_all_stats(SHOP) == {}
        assert cache.get_all_stats()[other_key]["misses"] == 1

    def test_invalidate(self, app_client, api_headers, shopify) -> None:
        """Invalidation removes the entry once."""
        app_client.get("/catalog/vendors", headers=api_headers)

        first = app_client.delete("/catalog/cache/vendors", headers=api_headers).json()
        second = app_client.delete("/catalog/cache/vendors", headers=api_headers).json()

        assert first == {"shop": SHOP, "data_type": "vendors", "removed": True}
        assert second["removed"] is False

    def test_invalidate_unknown_type(self, app_client, api_headers, shopify) -> None:
        """Unknown data types are 404."""
        response = app_client.delete("/catalog/cache/orders", headers=api_headers)

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "UNKNOWN_DATA_TYPE"
        assert "vendors" in data["details"]["allowed"]
