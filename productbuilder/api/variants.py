"""Variant API endpoints.

Provides:
- POST /products/variants - create options and write all variants
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends

from productbuilder.api.dependencies import get_variant_service
from productbuilder.api.schemas import ErrorResponse, VariantSyncRequest, VariantSyncResponse
from productbuilder.application.variant_service import VariantSyncService
from productbuilder.variants import Option, VariantInput, Weight, zip_variant_inputs

logger = structlog.get_logger()

router = APIRouter(prefix="/products", tags=["Variants"])


# ============================================================================
# Converters
# ============================================================================


def _text(value: str | float | None) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def request_to_inputs(body: VariantSyncRequest) -> list[VariantInput]:
    """Build per-combination inputs from either request shape."""
    if body.variants is not None:
        return [
            VariantInput(
                sku=v.sku,
                barcode=v.barcode,
                price=_text(v.price),
                compare_at_price=_text(v.compare_at_price),
                cost=_text(v.cost),
            )
            for v in body.variants
        ]

    return zip_variant_inputs(
        skus=body.skus or [],
        barcodes=body.barcodes or [],
        pricing=[p.model_dump() if p is not None else None for p in body.pricing or []],
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/variants",
    response_model=VariantSyncResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Write product variants",
)
async def sync_variants(
    body: VariantSyncRequest,
    service: Annotated[VariantSyncService, Depends(get_variant_service)],
) -> VariantSyncResponse:
    """Create the product's options and write every variant.

    Existing variants matching a combination are updated; the rest are
    created. A product without options gets its default variant
    updated from the first input.

    Args:
        body: Options, per-variant inputs and weight.
        service: Variant sync service.

    Returns:
        Updated and created variants.
    """
    options = [Option.of(o.name, o.values) for o in body.options]
    result = await service.sync(
        body.product_id,
        options,
        request_to_inputs(body),
        weight=Weight.maybe(body.weight, body.weight_unit),
    )
    return VariantSyncResponse(**result.to_dict())
