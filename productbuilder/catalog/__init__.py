"""Catalog aggregates (vendors, product types, categories) and their service."""

from productbuilder.catalog.aggregates import (
    FALLBACK_CATEGORIES,
    CategoriesData,
    ProductTypesData,
    TaxonomyCategory,
    VendorsData,
    suggest_categories,
)
from productbuilder.catalog.service import CatalogService, ScopeCheck

__all__ = [
    "FALLBACK_CATEGORIES",
    "CategoriesData",
    "CatalogService",
    "ProductTypesData",
    "ScopeCheck",
    "TaxonomyCategory",
    "VendorsData",
    "suggest_categories",
]
