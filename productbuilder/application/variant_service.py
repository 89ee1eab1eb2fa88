"""Variant sync service for the product wizard.

Provides:
- Option validation
- Option creation with size-ordered values
- Reconciliation of the variant matrix against existing variants
- Bulk update and bulk create of variants
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

import structlog

from productbuilder.domain.exceptions import (
    DefaultVariantNotFoundError,
    InvalidVariantOptionsError,
    VariantMutationError,
)
from productbuilder.infrastructure.config import settings
from productbuilder.infrastructure.shopify_client import MutationResult, ShopifyAdminClient
from productbuilder.variants import (
    DEFAULT_SIZE_CHART,
    ExistingVariant,
    Option,
    SizeChart,
    VariantInput,
    Weight,
    default_variant_update,
    generate_combinations,
    reconcile,
)

logger = structlog.get_logger()


@dataclass
class VariantSyncResult:
    """Outcome of a variant sync.

    Attributes:
        updated: Variant nodes (at least ``id``) that were updated.
        created: Variant nodes returned by the bulk create.
    """

    updated: list[dict[str, Any]] = field(default_factory=list)
    created: list[dict[str, Any]] = field(default_factory=list)

    @property
    def variants(self) -> list[dict[str, Any]]:
        """Updated then created variants."""
        return [*self.updated, *self.created]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": True,
            "variants": self.variants,
            "updated_count": len(self.updated),
            "created_count": len(self.created),
        }


def validate_options(options: Sequence[Option]) -> None:
    """Reject options that cannot produce a variant matrix.

    Raises:
        InvalidVariantOptionsError: On a blank or duplicate option
            name, an option without values, or a repeated value.
    """
    seen_names: set[str] = set()
    for option in options:
        name = option.name.strip()
        if not name:
            raise InvalidVariantOptionsError("option name must not be empty")
        if name.casefold() in seen_names:
            raise InvalidVariantOptionsError("duplicate option name", option.name)
        seen_names.add(name.casefold())

        if not option.values:
            raise InvalidVariantOptionsError("option must have at least one value", option.name)
        if any(not value.strip() for value in option.values):
            raise InvalidVariantOptionsError("option values must not be empty", option.name)
        if len(set(option.values)) != len(option.values):
            raise InvalidVariantOptionsError("duplicate option value", option.name)


def _raise_on_user_errors(operation: str, product_id: str, result: MutationResult) -> None:
    if result.user_errors:
        logger.error(
            "Variant mutation rejected",
            operation=operation,
            product_id=product_id,
            user_errors=result.user_errors,
        )
        raise VariantMutationError(operation, result.user_errors)


class VariantSyncService:
    """Service writing a product's variant matrix to Shopify.

    Example usage:
        service = VariantSyncService(client)
        result = await service.sync(
            product_id,
            [Option.of("Size", ["M", "S"]), Option.of("Color", ["Red"])],
            [VariantInput(sku="TS-S-RED", price="19.99")],
        )
    """

    def __init__(self, client: ShopifyAdminClient, chart: SizeChart | None = None) -> None:
        """Initialize variant sync service.

        Args:
            client: Admin API client bound to the shop.
            chart: Size tables; defaults to the configured chart.
        """
        self.client = client
        self.chart = chart or get_size_chart()

    async def sync(
        self,
        product_id: str,
        options: Sequence[Option],
        inputs: Sequence[VariantInput],
        weight: Weight | None = None,
    ) -> VariantSyncResult:
        """Create options and write every variant of a product.

        Args:
            product_id: Product GID.
            options: Options in display order; empty for a product
                without variants.
            inputs: Per-combination inputs aligned with combination
                indices.
            weight: Weight applied to every variant.

        Returns:
            VariantSyncResult with updated and created variants.

        Raises:
            InvalidVariantOptionsError: If options are malformed.
            DefaultVariantNotFoundError: If a product without options
                has no variant.
            VariantMutationError: If Shopify rejects a mutation.
        """
        if not options:
            return await self._sync_default_variant(product_id, inputs, weight)

        validate_options(options)
        logger.info(
            "Syncing product variants",
            product_id=product_id,
            options=[option.name for option in options],
        )

        option_input = [
            {
                "name": option.name,
                "position": position,
                "values": [{"name": v} for v in option.sorted_values(self.chart)],
            }
            for position, option in enumerate(options, start=1)
        ]
        created_options = await self.client.create_product_options(product_id, option_input)
        _raise_on_user_errors("productOptionsCreate", product_id, created_options)

        existing = [ExistingVariant.from_api(node) for node in created_options.variants]
        combinations = generate_combinations(options, self.chart)
        plan = reconcile(combinations, existing, inputs, weight)

        logger.info(
            "Variant reconciliation planned",
            product_id=product_id,
            combinations=len(combinations),
            existing=len(existing),
            to_update=len(plan.to_update),
            to_create=len(plan.to_create),
        )

        result = VariantSyncResult()

        if plan.to_update:
            updated = await self.client.bulk_update_variants(
                product_id, [u.to_bulk_input() for u in plan.to_update]
            )
            _raise_on_user_errors("productVariantsBulkUpdate", product_id, updated)
            result.updated = updated.variants or [{"id": u.id} for u in plan.to_update]

        if plan.to_create:
            created = await self.client.bulk_create_variants(
                product_id, [c.to_bulk_input() for c in plan.to_create]
            )
            _raise_on_user_errors("productVariantsBulkCreate", product_id, created)
            result.created = created.variants

        logger.info(
            "Product variants synced",
            product_id=product_id,
            updated=len(result.updated),
            created=len(result.created),
        )
        return result

    async def _sync_default_variant(
        self,
        product_id: str,
        inputs: Sequence[VariantInput],
        weight: Weight | None,
    ) -> VariantSyncResult:
        logger.info("Updating default variant of product without options", product_id=product_id)

        variant_id = await self.client.get_default_variant_id(product_id)
        if variant_id is None:
            raise DefaultVariantNotFoundError(product_id)

        update = default_variant_update(variant_id, inputs, weight)
        updated = await self.client.bulk_update_variants(product_id, [update.to_bulk_input()])
        _raise_on_user_errors("productVariantsBulkUpdate", product_id, updated)

        return VariantSyncResult(updated=updated.variants or [{"id": variant_id}])


# Global size chart
_size_chart: SizeChart | None = None


def get_size_chart() -> SizeChart:
    """Get the size chart, loading ``settings.size_chart_path`` once.

    Returns:
        Configured SizeChart, or the built-in one.
    """
    global _size_chart
    if _size_chart is None:
        if settings.size_chart_path:
            _size_chart = SizeChart.from_file(settings.size_chart_path)
            logger.info("Size chart loaded", path=settings.size_chart_path)
        else:
            _size_chart = DEFAULT_SIZE_CHART
    return _size_chart
