"""Catalog aggregates cached per shop.

Each aggregate is computed from a full scan of the shop's catalog and
stored in the cache as a JSON dict (``to_dict``); ``from_dict`` reads
the stored form back.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from productbuilder.variants.sorting import collation_key


# ============================================================================
# Vendors
# ============================================================================


@dataclass
class VendorsData:
    """All vendor names of a shop in display order."""

    vendors: list[str] = field(default_factory=list)
    last_updated: int = 0

    @classmethod
    def build(cls, vendors: Iterable[str | None], last_updated: int) -> "VendorsData":
        """Create from raw vendor names, dropping blanks and duplicates."""
        unique = {v for v in vendors if v}
        return cls(vendors=sorted(unique, key=collation_key), last_updated=last_updated)

    @property
    def total_vendors(self) -> int:
        return len(self.vendors)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "vendors": self.vendors,
            "totalVendors": self.total_vendors,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VendorsData":
        return cls(vendors=list(data.get("vendors", [])), last_updated=data.get("lastUpdated", 0))


# ============================================================================
# Product Types
# ============================================================================


@dataclass
class ProductTypesData:
    """Product types grouped by vendor.

    Attributes:
        by_vendor: Sorted, de-duplicated product types per vendor.
        all_product_types: Sorted union of every vendor's types.
        total_products: Products that carried both a vendor and a type.
        last_updated: Computation time in epoch milliseconds.
    """

    by_vendor: dict[str, list[str]] = field(default_factory=dict)
    all_product_types: list[str] = field(default_factory=list)
    total_products: int = 0
    last_updated: int = 0

    @classmethod
    def build(
        cls, products: Iterable[dict[str, Any]], last_updated: int
    ) -> "ProductTypesData":
        """Aggregate ``{vendor, productType}`` product nodes.

        Products missing either field are skipped.
        """
        grouped: dict[str, set[str]] = {}
        total = 0
        for product in products:
            vendor = product.get("vendor")
            product_type = product.get("productType")
            if not vendor or not product_type:
                continue
            total += 1
            grouped.setdefault(vendor, set()).add(product_type)

        by_vendor = {
            vendor: sorted(types, key=collation_key)
            for vendor, types in sorted(grouped.items(), key=lambda item: collation_key(item[0]))
        }
        everything = set().union(*grouped.values()) if grouped else set()
        return cls(
            by_vendor=by_vendor,
            all_product_types=sorted(everything, key=collation_key),
            total_products=total,
            last_updated=last_updated,
        )

    def for_vendor(self, vendor: str) -> list[str]:
        """Get the product types of one vendor; unknown vendors have none."""
        return list(self.by_vendor.get(vendor, []))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "productTypesByVendor": self.by_vendor,
            "allProductTypes": self.all_product_types,
            "totalProducts": self.total_products,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductTypesData":
        return cls(
            by_vendor={k: list(v) for k, v in data.get("productTypesByVendor", {}).items()},
            all_product_types=list(data.get("allProductTypes", [])),
            total_products=data.get("totalProducts", 0),
            last_updated=data.get("lastUpdated", 0),
        )


# ============================================================================
# Categories
# ============================================================================


@dataclass(frozen=True)
class TaxonomyCategory:
    """Node of Shopify's standard product taxonomy."""

    id: str
    name: str
    full_name: str
    level: int
    is_leaf: bool = False

    @classmethod
    def from_api(cls, node: dict[str, Any]) -> "TaxonomyCategory":
        """Create from an Admin API node or a cached dict."""
        return cls(
            id=node["id"],
            name=node["name"],
            full_name=node.get("fullName") or node["name"],
            level=int(node.get("level", 0)),
            is_leaf=bool(node.get("isLeaf", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "fullName": self.full_name,
            "level": self.level,
            "isLeaf": self.is_leaf,
        }


@dataclass
class CategoriesData:
    """Full taxonomy category list of a shop."""

    categories: list[TaxonomyCategory] = field(default_factory=list)
    last_updated: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "categories": [c.to_dict() for c in self.categories],
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CategoriesData":
        return cls(
            categories=[TaxonomyCategory.from_api(c) for c in data.get("categories", [])],
            last_updated=data.get("lastUpdated", 0),
        )


# Served when the taxonomy cannot be read at all.
FALLBACK_CATEGORIES: tuple[TaxonomyCategory, ...] = tuple(
    TaxonomyCategory(
        id=f"gid://shopify/TaxonomyCategory/aa-{index}",
        name=name,
        full_name=name,
        level=0,
    )
    for index, name in enumerate(
        (
            "Apparel & Accessories",
            "Arts & Entertainment",
            "Baby & Toddler",
            "Business & Industrial",
            "Cameras & Optics",
        ),
        start=1,
    )
)


def suggest_categories(
    categories: Iterable[TaxonomyCategory],
    product_type: str | None = None,
) -> list[TaxonomyCategory]:
    """Pick taxonomy categories relevant to a product type.

    Args:
        categories: Candidate categories.
        product_type: Product type to match case-insensitively against
            name and full name. Empty means no filtering.

    Returns:
        Matching categories, or the top two levels when nothing
        matches, ordered by level then name.
    """
    categories = list(categories)
    selected = categories

    if product_type:
        needle = product_type.casefold()
        selected = [
            c
            for c in categories
            if needle in c.name.casefold() or needle in c.full_name.casefold()
        ]
        if not selected:
            selected = [c for c in categories if c.level <= 1]

    return sorted(selected, key=lambda c: (c.level, collation_key(c.name)))
