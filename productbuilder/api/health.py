"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

from productbuilder.infrastructure.config import settings

logger = structlog.get_logger()

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(
        status="healthy",
        service="productbuilder-api",
        version=settings.api_version,
    )


@router.get("/ready")
async def readiness_check() -> JSONResponse:
    """Check if the cache backend can serve requests.

    Returns:
        200 when ready, 503 when the cache database is unreachable.
    """
    if settings.cache_backend == "memory":
        return JSONResponse({"status": "ready", "cache_backend": "memory"})

    from productbuilder.infrastructure.database import get_engine

    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Readiness check failed", error=str(e))
        return JSONResponse(
            {"status": "not_ready", "cache_backend": "database"},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return JSONResponse({"status": "ready", "cache_backend": "database"})
