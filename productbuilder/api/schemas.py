"""API schemas for the product builder backend.

Pydantic models for request/response validation and serialization.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

# Prices arrive as strings from the wizard, as numbers from scripts.
Amount = str | float | None


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Any = Field(default_factory=dict, description="Additional error details")
    request_id: str | None = Field(default=None, description="Request ID for correlation")


# ============================================================================
# Catalog Schemas
# ============================================================================


class VendorsResponse(BaseModel):
    """All vendors of the shop."""

    vendors: list[str]
    total_vendors: int
    last_updated: int = Field(..., description="Computation time, epoch ms")


class ProductTypesResponse(BaseModel):
    """Product types, grouped by vendor or for a single vendor."""

    vendor: str | None = None
    product_types: list[str] = Field(default_factory=list)
    product_types_by_vendor: dict[str, list[str]] | None = None
    total_products: int | None = None
    last_updated: int | None = None


class CategorySchema(BaseModel):
    """Standard taxonomy category."""

    id: str
    name: str
    full_name: str
    level: int
    is_leaf: bool


class CategoriesResponse(BaseModel):
    """Taxonomy categories matching a product type."""

    product_type: str | None = None
    categories: list[CategorySchema]


class StoreSettingsResponse(BaseModel):
    """Shop settings used by the wizard."""

    default_weight_unit: str | None = None
    currency_code: str | None = None
    name: str | None = None


class ScopeCheckResponse(BaseModel):
    """Granted versus required access scopes."""

    is_valid: bool
    granted_scopes: list[str]
    missing_scopes: list[str]


class CacheWarmResponse(BaseModel):
    """Outcome of warming the catalog aggregates."""

    shop: str
    results: dict[str, bool]


class CacheInvalidateResponse(BaseModel):
    """Outcome of deleting one cache entry."""

    shop: str
    data_type: str
    removed: bool


class CacheStatsResponse(BaseModel):
    """Hit/miss counters and entry freshness for a shop."""

    shop: str
    stats: dict[str, dict[str, Any]]
    entries: list[dict[str, Any]]
    summary: dict[str, int]


# ============================================================================
# Variant Schemas
# ============================================================================


class OptionSchema(BaseModel):
    """Product option with its values."""

    name: str = Field(..., description="Option name, e.g. Size")
    values: list[str] = Field(..., description="Option values as entered")


class PricingSchema(BaseModel):
    """Legacy per-variant pricing entry."""

    price: Amount = None
    compareAtPrice: Amount = None
    cost: Amount = None


class VariantInputSchema(BaseModel):
    """Merchant-entered fields for one combination."""

    sku: str | None = None
    barcode: str | None = None
    price: Amount = None
    compare_at_price: Amount = None
    cost: Amount = None


class VariantSyncRequest(BaseModel):
    """Request to write a product's variants.

    Per-variant fields come either as ``variants`` records or as the
    legacy parallel ``skus``/``barcodes``/``pricing`` arrays, never both.
    """

    product_id: str = Field(..., description="Product GID")
    options: list[OptionSchema] = Field(default_factory=list)
    variants: list[VariantInputSchema] | None = None
    skus: list[str | None] | None = None
    barcodes: list[str | None] | None = None
    pricing: list[PricingSchema | None] | None = None
    weight: float | None = Field(default=None, gt=0)
    weight_unit: Literal["GRAMS", "KILOGRAMS", "OUNCES", "POUNDS"] | None = None

    @model_validator(mode="after")
    def check_input_shape(self) -> "VariantSyncRequest":
        legacy = any(v is not None for v in (self.skus, self.barcodes, self.pricing))
        if self.variants is not None and legacy:
            raise ValueError("send either 'variants' or 'skus'/'barcodes'/'pricing', not both")
        return self


class VariantSyncResponse(BaseModel):
    """Variants written for the product."""

    success: bool = True
    variants: list[dict[str, Any]]
    updated_count: int
    created_count: int


# ============================================================================
# Webhook Schemas
# ============================================================================


class WebhookResponse(BaseModel):
    """Response to a webhook delivery."""

    success: bool = True
    topic: str
    shop: str
    status: Literal["processed", "duplicate", "ignored"]
    invalidated: list[str] = Field(default_factory=list)
    purged_entries: int = 0
