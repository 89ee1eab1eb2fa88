"""Shopify Admin GraphQL client.

Provides cursor pagination over catalog connections and the variant
mutations used by the product wizard.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from productbuilder.infrastructure import shopify_queries as queries
from productbuilder.infrastructure.config import settings

logger = structlog.get_logger()


class ShopifyAdminError(Exception):
    """Error from a Shopify Admin API call."""

    def __init__(
        self,
        shop: str,
        message: str,
        status_code: int | None = None,
        errors: list[Any] | None = None,
    ) -> None:
        self.shop = shop
        self.message = message
        self.status_code = status_code
        self.errors = errors or []
        super().__init__(f"[{shop}] {message}")


@dataclass
class MutationResult:
    """Outcome of a mutation.

    Attributes:
        variants: Variant nodes returned by the mutation.
        user_errors: Per-item validation errors.
        product: Product node, when the mutation returns one.
    """

    variants: list[dict[str, Any]] = field(default_factory=list)
    user_errors: list[dict[str, Any]] = field(default_factory=list)
    product: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        """Check if the mutation reported no user errors."""
        return not self.user_errors


def _dig(data: Any, path: tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


class ShopifyAdminClient:
    """HTTP client for one shop's Admin GraphQL endpoint.

    Each call opens its own connection, so a client may be captured by
    background cache refreshes that outlive the request creating it.

    Example usage:
        client = ShopifyAdminClient("shop.myshopify.com", access_token)
        async for node in client.iter_products():
            print(node["vendor"], node["productType"])
    """

    def __init__(
        self,
        shop: str,
        access_token: str,
        api_version: str | None = None,
        timeout: float | None = None,
        page_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize Admin API client.

        Args:
            shop: Shop domain (``<name>.myshopify.com``).
            access_token: Admin API access token for the shop.
            api_version: Admin API version; defaults to settings.
            timeout: Request timeout in seconds.
            page_size: Page size for catalog scans (platform max 250).
            transport: Optional httpx transport (tests).
            request_id: Optional request ID for correlation.
        """
        self.shop = shop
        self.access_token = access_token
        self.api_version = api_version or settings.shopify_api_version
        self.timeout = timeout or settings.shopify_timeout_seconds
        self.page_size = page_size or settings.shopify_page_size
        self.transport = transport
        self.request_id = request_id

    @property
    def endpoint(self) -> str:
        """GraphQL endpoint URL."""
        return f"https://{self.shop}/admin/api/{self.api_version}/graphql.json"

    def _http_client(self) -> httpx.AsyncClient:
        headers = {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }
        if self.request_id:
            headers["X-Request-ID"] = self.request_id
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers=headers,
            transport=self.transport,
        )

    async def _post(
        self,
        client: httpx.AsyncClient,
        query: str,
        variables: dict[str, Any] | None,
    ) -> dict[str, Any]:
        try:
            response = await client.post(
                self.endpoint,
                json={"query": query, "variables": variables or {}},
            )
        except httpx.RequestError as e:
            logger.error(
                "Shopify Admin API request failed",
                shop=self.shop,
                error=str(e),
            )
            raise ShopifyAdminError(self.shop, f"Request failed: {e}") from e

        if response.status_code != 200:
            raise ShopifyAdminError(
                self.shop,
                f"Admin API returned {response.status_code}: {response.text[:200]}",
                response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ShopifyAdminError(
                self.shop, "Admin API returned invalid JSON", response.status_code
            ) from e

        if payload.get("errors"):
            logger.error(
                "Shopify GraphQL errors",
                shop=self.shop,
                errors=payload["errors"],
            )
            raise ShopifyAdminError(
                self.shop,
                "GraphQL errors",
                response.status_code,
                payload["errors"],
            )

        return payload.get("data") or {}

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run a GraphQL document.

        Args:
            query: GraphQL query or mutation.
            variables: Query variables.

        Returns:
            The ``data`` member of the response.

        Raises:
            ShopifyAdminError: On transport failure, non-200 status or
                top-level GraphQL errors.
        """
        async with self._http_client() as client:
            return await self._post(client, query, variables)

    async def paginate(
        self,
        query: str,
        connection_path: tuple[str, ...],
        variables: dict[str, Any] | None = None,
        page_size: int | None = None,
    ) -> AsyncIterator[Any]:
        """Yield every node of a cursor-paginated connection.

        Args:
            query: Query taking ``$first`` and ``$after``.
            connection_path: Keys leading from ``data`` to the connection.
            variables: Extra query variables.
            page_size: Nodes per page.

        Yields:
            Connection nodes in server order.
        """
        cursor: str | None = None
        pages = 0
        async with self._http_client() as client:
            while True:
                data = await self._post(
                    client,
                    query,
                    {**(variables or {}), "first": page_size or self.page_size, "after": cursor},
                )
                connection = _dig(data, connection_path)
                if not connection:
                    break

                pages += 1
                for edge in connection.get("edges", []):
                    yield edge.get("node")

                page_info = connection.get("pageInfo") or {}
                if not page_info.get("hasNextPage"):
                    break
                cursor = page_info.get("endCursor")

        logger.debug(
            "Paginated scan complete",
            shop=self.shop,
            connection=".".join(connection_path),
            pages=pages,
        )

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def iter_products(self) -> AsyncIterator[dict[str, Any]]:
        """Yield ``{vendor, productType}`` for every product."""
        return self.paginate(queries.PRODUCTS_VENDOR_TYPE_QUERY, ("products",))

    def iter_vendors(self) -> AsyncIterator[str]:
        """Yield every vendor name known to the shop."""
        return self.paginate(
            queries.VENDORS_QUERY,
            ("productVendors",),
            page_size=settings.shopify_vendor_page_size,
        )

    def iter_taxonomy_categories(self) -> AsyncIterator[dict[str, Any]]:
        """Yield every standard taxonomy category."""
        return self.paginate(queries.TAXONOMY_CATEGORIES_QUERY, ("taxonomy", "categories"))

    async def get_shop_settings(self) -> dict[str, Any]:
        """Get shop-level settings (weight unit, currency)."""
        data = await self.execute(queries.SHOP_SETTINGS_QUERY)
        return data.get("shop") or {}

    async def get_access_scopes(self) -> list[str]:
        """Get the access scopes granted to the app."""
        data = await self.execute(queries.ACCESS_SCOPES_QUERY)
        scopes = _dig(data, ("currentAppInstallation", "accessScopes")) or []
        return [scope["handle"] for scope in scopes]

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    async def get_default_variant_id(self, product_id: str) -> str | None:
        """Get the first variant of a product, if any."""
        data = await self.execute(queries.DEFAULT_VARIANT_QUERY, {"productId": product_id})
        edges = _dig(data, ("product", "variants", "edges")) or []
        return edges[0]["node"]["id"] if edges else None

    async def create_product_options(
        self,
        product_id: str,
        options: list[dict[str, Any]],
    ) -> MutationResult:
        """Create product options.

        Returns:
            MutationResult whose variants are the product's variants
            after the options were added.
        """
        data = await self.execute(
            queries.PRODUCT_OPTIONS_CREATE_MUTATION,
            {"productId": product_id, "options": options},
        )
        payload = data.get("productOptionsCreate") or {}
        product = payload.get("product")
        edges = _dig(product, ("variants", "edges")) or []
        return MutationResult(
            variants=[edge["node"] for edge in edges],
            user_errors=payload.get("userErrors") or [],
            product=product,
        )

    async def bulk_update_variants(
        self,
        product_id: str,
        variants: list[dict[str, Any]],
    ) -> MutationResult:
        """Update existing variants in one call."""
        data = await self.execute(
            queries.VARIANTS_BULK_UPDATE_MUTATION,
            {"productId": product_id, "variants": variants},
        )
        payload = data.get("productVariantsBulkUpdate") or {}
        return MutationResult(
            variants=payload.get("productVariants") or [],
            user_errors=payload.get("userErrors") or [],
        )

    async def bulk_create_variants(
        self,
        product_id: str,
        variants: list[dict[str, Any]],
    ) -> MutationResult:
        """Create variants in one call."""
        data = await self.execute(
            queries.VARIANTS_BULK_CREATE_MUTATION,
            {"productId": product_id, "variants": variants},
        )
        payload = data.get("productVariantsBulkCreate") or {}
        return MutationResult(
            variants=payload.get("productVariants") or [],
            user_errors=payload.get("userErrors") or [],
        )
