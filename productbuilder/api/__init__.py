"""API layer module.

Contains FastAPI routers, dependencies and request/response schemas.
"""

from productbuilder.api.catalog import router as catalog_router
from productbuilder.api.health import router as health_router
from productbuilder.api.variants import router as variants_router
from productbuilder.api.webhooks import router as webhooks_router

__all__ = [
    "catalog_router",
    "health_router",
    "variants_router",
    "webhooks_router",
]
