"""Tests for the Shopify Admin GraphQL client over a mock transport."""

import json

import httpx
import pytest

from productbuilder.infrastructure.shopify_client import ShopifyAdminClient, ShopifyAdminError

SHOP = "demo-store.myshopify.com"
TOKEN = "shpat_test"


def make_client(handler, **kwargs) -> ShopifyAdminClient:
    return ShopifyAdminClient(
        SHOP,
        TOKEN,
        api_version="2025-01",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def connection(nodes: list, has_next: bool, cursor: str | None = None) -> dict:
    return {
        "edges": [{"node": node} for node in nodes],
        "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
    }


class TestTransport:
    """Tests for request building and error mapping."""

    @pytest.mark.asyncio
    async def test_request_shape(self) -> None:
        """Requests go to the versioned endpoint with the shop's token."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"shop": {"name": "Demo"}}})

        client = make_client(handler, request_id="req-1")
        shop = await client.get_shop_settings()

        assert shop == {"name": "Demo"}
        request = seen[0]
        assert str(request.url) == f"https://{SHOP}/admin/api/2025-01/graphql.json"
        assert request.headers["X-Shopify-Access-Token"] == TOKEN
        assert request.headers["X-Request-ID"] == "req-1"
        assert "query getStoreSettings" in json.loads(request.content)["query"]

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        """Non-200 responses raise with the status code."""
        client = make_client(lambda request: httpx.Response(401, text="Invalid API key"))

        with pytest.raises(ShopifyAdminError) as exc_info:
            await client.execute("{ shop { name } }")

        assert exc_info.value.status_code == 401
        assert exc_info.value.shop == SHOP

    @pytest.mark.asyncio
    async def test_graphql_errors(self) -> None:
        """Top-level GraphQL errors raise with the error list."""
        errors = [{"message": "Throttled"}]
        client = make_client(lambda request: httpx.Response(200, json={"errors": errors}))

        with pytest.raises(ShopifyAdminError) as exc_info:
            await client.execute("{ shop { name } }")

        assert exc_info.value.errors == errors

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        """Unparseable bodies raise."""
        client = make_client(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(ShopifyAdminError):
            await client.execute("{ shop { name } }")

    @pytest.mark.asyncio
    async def test_connection_failure(self) -> None:
        """Transport errors are wrapped."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ShopifyAdminError, match="Request failed"):
            await make_client(handler).execute("{ shop { name } }")


class TestPagination:
    """Tests for cursor pagination."""

    @pytest.mark.asyncio
    async def test_follows_cursors(self) -> None:
        """Pages are requested until hasNextPage is false."""
        pages = {
            None: connection([{"vendor": "A", "productType": "X"}], True, "c1"),
            "c1": connection([{"vendor": "B", "productType": "Y"}], False, "c2"),
        }
        variables: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            variables.append(body["variables"])
            return httpx.Response(200, json={"data": {"products": pages[body["variables"]["after"]]}})

        client = make_client(handler, page_size=1)
        products = [p async for p in client.iter_products()]

        assert [p["vendor"] for p in products] == ["A", "B"]
        assert variables == [{"first": 1, "after": None}, {"first": 1, "after": "c1"}]

    @pytest.mark.asyncio
    async def test_nested_connection(self) -> None:
        """Connections below the root are found by path."""

        def handler(request: httpx.Request) -> httpx.Response:
            data = {"taxonomy": {"categories": connection([{"id": "1", "name": "Apparel"}], False)}}
            return httpx.Response(200, json={"data": data})

        nodes = [n async for n in make_client(handler).iter_taxonomy_categories()]

        assert nodes == [{"id": "1", "name": "Apparel"}]

    @pytest.mark.asyncio
    async def test_vendor_nodes_are_strings(self) -> None:
        """Vendor connections yield plain names with their own page size."""
        sizes: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sizes.append(json.loads(request.content)["variables"]["first"])
            return httpx.Response(
                200, json={"data": {"productVendors": connection(["Acme", "Nike"], False)}}
            )

        vendors = [v async for v in make_client(handler).iter_vendors()]

        assert vendors == ["Acme", "Nike"]
        assert sizes == [1000]

    @pytest.mark.asyncio
    async def test_missing_connection_ends_scan(self) -> None:
        """A response without the connection yields nothing."""
        client = make_client(lambda request: httpx.Response(200, json={"data": {}}))

        assert [p async for p in client.iter_products()] == []


class TestVariantCalls:
    """Tests for variant queries and mutations."""

    @pytest.mark.asyncio
    async def test_default_variant_id(self) -> None:
        """The first variant's ID is returned."""
        data = {"product": {"variants": {"edges": [{"node": {"id": "gid://v/1"}}]}}}
        client = make_client(lambda request: httpx.Response(200, json={"data": data}))

        assert await client.get_default_variant_id("gid://p/1") == "gid://v/1"

    @pytest.mark.asyncio
    async def test_default_variant_missing_product(self) -> None:
        """Unknown products have no default variant."""
        client = make_client(lambda request: httpx.Response(200, json={"data": {"product": None}}))

        assert await client.get_default_variant_id("gid://p/404") is None

    @pytest.mark.asyncio
    async def test_create_options_returns_variants(self) -> None:
        """Option creation exposes the product's variants and user errors."""
        payload = {
            "productOptionsCreate": {
                "product": {
                    "id": "gid://p/1",
                    "variants": {
                        "edges": [
                            {"node": {"id": "gid://v/1", "selectedOptions": [{"name": "Size", "value": "S"}]}}
                        ]
                    },
                },
                "userErrors": [],
            }
        }
        client = make_client(lambda request: httpx.Response(200, json={"data": payload}))

        result = await client.create_product_options("gid://p/1", [{"name": "Size"}])

        assert result.ok
        assert result.variants[0]["id"] == "gid://v/1"
        assert result.product["id"] == "gid://p/1"

    @pytest.mark.asyncio
    async def test_bulk_create_user_errors(self) -> None:
        """User errors are returned, not raised."""
        payload = {
            "productVariantsBulkCreate": {
                "productVariants": None,
                "userErrors": [{"field": ["variants", "0"], "message": "SKU taken"}],
            }
        }
        client = make_client(lambda request: httpx.Response(200, json={"data": payload}))

        result = await client.bulk_create_variants("gid://p/1", [{"price": "1.00"}])

        assert not result.ok
        assert result.variants == []
        assert result.user_errors[0]["message"] == "SKU taken"
