"""Variant reconciliation.

Splits generated combinations into updates of variants that already
exist and creates of missing ones, resolving per-variant fields with
a fallback to the first (base) input.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from productbuilder.variants.combinations import VariantCombination

WEIGHT_UNITS = ("GRAMS", "KILOGRAMS", "OUNCES", "POUNDS")

DEFAULT_PRICE = "0.00"


# ============================================================================
# Inputs
# ============================================================================


@dataclass(frozen=True)
class Weight:
    """Shipping weight applied to every variant of a product."""

    value: float
    unit: str

    def __post_init__(self) -> None:
        if self.unit not in WEIGHT_UNITS:
            raise ValueError(f"Unknown weight unit {self.unit!r}")

    @classmethod
    def maybe(cls, value: float | None, unit: str | None) -> "Weight | None":
        """Build a weight only when both value and unit are present."""
        if not value or not unit:
            return None
        return cls(value=value, unit=unit)

    def to_measurement(self) -> dict[str, Any]:
        """Render as an inventory item ``measurement`` block."""
        return {"weight": {"value": self.value, "unit": self.unit}}


@dataclass(frozen=True)
class VariantInput:
    """Merchant-entered fields for one combination.

    Empty strings count as missing and fall back like None.
    """

    sku: str | None = None
    barcode: str | None = None
    price: str | None = None
    compare_at_price: str | None = None
    cost: str | None = None


def zip_variant_inputs(
    skus: Sequence[str | None] = (),
    barcodes: Sequence[str | None] = (),
    pricing: Sequence[Mapping[str, Any] | None] = (),
) -> list[VariantInput]:
    """Combine the wizard's parallel arrays into per-variant records.

    Args:
        skus: SKU per combination index.
        barcodes: Barcode per combination index.
        pricing: Dicts with ``price``, ``compareAtPrice`` and ``cost``
            per combination index.

    Returns:
        One VariantInput per index of the longest array.
    """
    inputs = []
    for index in range(max(len(skus), len(barcodes), len(pricing))):
        prices = (pricing[index] if index < len(pricing) else None) or {}
        inputs.append(
            VariantInput(
                sku=skus[index] if index < len(skus) else None,
                barcode=barcodes[index] if index < len(barcodes) else None,
                price=_as_text(prices.get("price")),
                compare_at_price=_as_text(prices.get("compareAtPrice")),
                cost=_as_text(prices.get("cost")),
            )
        )
    return inputs


def _as_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _first(*values: str | None) -> str | None:
    for value in values:
        if value:
            return value
    return None


# ============================================================================
# Existing Variants
# ============================================================================


@dataclass(frozen=True)
class ExistingVariant:
    """Variant already stored on the product; read only."""

    id: str
    selected_options: frozenset[tuple[str, str]]

    @classmethod
    def from_api(cls, node: Mapping[str, Any]) -> "ExistingVariant":
        """Create from an Admin API variant node."""
        return cls(
            id=node["id"],
            selected_options=frozenset(
                (opt["name"], opt["value"]) for opt in node.get("selectedOptions", [])
            ),
        )


# ============================================================================
# Results
# ============================================================================


@dataclass(frozen=True)
class VariantFields:
    """Resolved scalar fields for one variant."""

    price: str
    barcode: str
    sku: str
    compare_at_price: str | None = None
    cost: str | None = None
    weight: Weight | None = None

    def to_bulk_input(self) -> dict[str, Any]:
        """Render the shared part of a ``ProductVariantsBulkInput``."""
        inventory_item: dict[str, Any] = {"tracked": True, "sku": self.sku}
        if self.cost is not None:
            inventory_item["cost"] = self.cost
        if self.weight is not None:
            inventory_item["measurement"] = self.weight.to_measurement()

        payload: dict[str, Any] = {"price": self.price, "barcode": self.barcode}
        if self.compare_at_price is not None:
            payload["compareAtPrice"] = self.compare_at_price
        payload["inventoryItem"] = inventory_item
        return payload


@dataclass(frozen=True)
class VariantUpdate:
    """Update of an existing variant.

    ``combination`` is None for the default variant of a product
    without options.
    """

    id: str
    fields: VariantFields
    combination: VariantCombination | None = None

    def to_bulk_input(self) -> dict[str, Any]:
        return {"id": self.id, **self.fields.to_bulk_input()}


@dataclass(frozen=True)
class VariantCreate:
    """Creation of a variant for a combination that does not exist yet."""

    combination: VariantCombination
    fields: VariantFields

    def to_bulk_input(self) -> dict[str, Any]:
        return {
            "optionValues": self.combination.to_option_values(),
            **self.fields.to_bulk_input(),
        }


@dataclass
class ReconciliationResult:
    """Variants to update and to create, in combination order."""

    to_update: list[VariantUpdate] = field(default_factory=list)
    to_create: list[VariantCreate] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Number of combinations covered."""
        return len(self.to_update) + len(self.to_create)


# ============================================================================
# Reconciliation
# ============================================================================


def resolve_fields(
    index: int,
    inputs: Sequence[VariantInput],
    weight: Weight | None = None,
) -> VariantFields:
    """Resolve the fields for the combination at ``index``.

    Prices fall back to the base input (index 0) and then to defaults;
    SKU and barcode fall back to empty strings only. Missing indices
    are gaps, not errors.

    Args:
        index: Combination index.
        inputs: Per-combination inputs.
        weight: Product weight, if any.

    Returns:
        Resolved fields.
    """
    own = inputs[index] if 0 <= index < len(inputs) else VariantInput()
    base = inputs[0] if inputs else VariantInput()

    return VariantFields(
        price=_first(own.price, base.price) or DEFAULT_PRICE,
        compare_at_price=_first(own.compare_at_price, base.compare_at_price),
        cost=_first(own.cost, base.cost),
        barcode=own.barcode or "",
        sku=own.sku or "",
        weight=weight,
    )


def reconcile(
    combinations: Sequence[VariantCombination],
    existing_variants: Sequence[ExistingVariant],
    inputs: Sequence[VariantInput],
    weight: Weight | None = None,
) -> ReconciliationResult:
    """Diff generated combinations against existing variants.

    A combination matches an existing variant when both carry exactly
    the same set of (option name, value) pairs.

    Args:
        combinations: Output of ``generate_combinations``.
        existing_variants: Variants currently on the product.
        inputs: Per-combination inputs, aligned with ``combinations``.
        weight: Product weight applied to every variant.

    Returns:
        ReconciliationResult covering every combination exactly once.
    """
    by_options: dict[frozenset[tuple[str, str]], ExistingVariant] = {}
    for variant in existing_variants:
        by_options.setdefault(variant.selected_options, variant)

    result = ReconciliationResult()
    for index, combination in enumerate(combinations):
        fields = resolve_fields(index, inputs, weight)
        existing = by_options.get(combination.match_key)
        if existing is not None:
            result.to_update.append(
                VariantUpdate(id=existing.id, fields=fields, combination=combination)
            )
        else:
            result.to_create.append(VariantCreate(combination=combination, fields=fields))
    return result


def default_variant_update(
    variant_id: str,
    inputs: Sequence[VariantInput],
    weight: Weight | None = None,
) -> VariantUpdate:
    """Build the update for the single variant of a product without options."""
    return VariantUpdate(id=variant_id, fields=resolve_fields(0, inputs, weight))
