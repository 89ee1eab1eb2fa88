"""Variant generation and reconciliation.

Pure, synchronous helpers used by the variant sync service:

- ``smart_sort`` orders option values (sizes, numbers, text)
- ``generate_combinations`` expands options into the variant matrix
- ``reconcile`` splits combinations into updates and creates
"""

from productbuilder.variants.combinations import (
    Option,
    OptionValue,
    VariantCombination,
    generate_combinations,
)
from productbuilder.variants.reconcile import (
    WEIGHT_UNITS,
    ExistingVariant,
    ReconciliationResult,
    VariantCreate,
    VariantFields,
    VariantInput,
    VariantUpdate,
    Weight,
    default_variant_update,
    reconcile,
    resolve_fields,
    zip_variant_inputs,
)
from productbuilder.variants.sorting import (
    DEFAULT_SIZE_CHART,
    SizeChart,
    SizeKind,
    classify_values,
    smart_sort,
)

__all__ = [
    # Sorting
    "DEFAULT_SIZE_CHART",
    "SizeChart",
    "SizeKind",
    "classify_values",
    "smart_sort",
    # Combinations
    "Option",
    "OptionValue",
    "VariantCombination",
    "generate_combinations",
    # Reconciliation
    "WEIGHT_UNITS",
    "ExistingVariant",
    "ReconciliationResult",
    "VariantCreate",
    "VariantFields",
    "VariantInput",
    "VariantUpdate",
    "Weight",
    "default_variant_update",
    "reconcile",
    "resolve_fields",
    "zip_variant_inputs",
]
