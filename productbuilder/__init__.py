"""Product builder backend.

Shop-scoped catalog caching and variant reconciliation for the
Shopify Admin API.
"""
