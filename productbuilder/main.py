"""Product builder API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, exception handlers and startup/shutdown
events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from productbuilder.api import catalog_router, health_router, variants_router, webhooks_router
from productbuilder.api.middleware import error_body, setup_middleware
from productbuilder.cache import shutdown_cache_service
from productbuilder.domain.exceptions import (
    DefaultVariantNotFoundError,
    DomainError,
    InvalidVariantOptionsError,
    MissingShopContextError,
    VariantMutationError,
)
from productbuilder.infrastructure.config import settings
from productbuilder.infrastructure.database import dispose_engine
from productbuilder.infrastructure.logging import configure_logging
from productbuilder.infrastructure.shopify_client import ShopifyAdminError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    configure_logging(settings.log_level, settings.log_json)
    logger.info(
        "Starting product builder API",
        version=settings.api_version,
        debug=settings.debug,
        cache_backend=settings.cache_backend,
    )

    yield

    logger.info("Shutting down product builder API")
    await shutdown_cache_service()
    await dispose_engine()


app = FastAPI(
    title="Product Builder API",
    description="Shop-scoped catalog cache and variant engine for a Shopify product wizard",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_middleware(app)

app.include_router(health_router, tags=["Health"])
app.include_router(catalog_router)
app.include_router(variants_router)
app.include_router(webhooks_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


# Most specific first; the first matching class wins.
DOMAIN_ERROR_STATUS: list[tuple[type[DomainError], int, str]] = [
    (MissingShopContextError, status.HTTP_401_UNAUTHORIZED, "MISSING_SHOP_CONTEXT"),
    (InvalidVariantOptionsError, status.HTTP_400_BAD_REQUEST, "INVALID_OPTIONS"),
    (VariantMutationError, status.HTTP_400_BAD_REQUEST, "VARIANT_MUTATION_FAILED"),
    (DefaultVariantNotFoundError, status.HTTP_400_BAD_REQUEST, "DEFAULT_VARIANT_NOT_FOUND"),
]


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Map domain errors onto HTTP responses."""
    status_code, error_code = status.HTTP_400_BAD_REQUEST, "DOMAIN_ERROR"
    for error_type, mapped_status, mapped_code in DOMAIN_ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code, error_code = mapped_status, mapped_code
            break

    logger.warning(
        "Domain error",
        path=request.url.path,
        error_code=error_code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_body(request, error_code, exc.message, exc.details),
    )


@app.exception_handler(ShopifyAdminError)
async def shopify_error_handler(request: Request, exc: ShopifyAdminError) -> JSONResponse:
    """Report Admin API failures as a bad gateway."""
    logger.error(
        "Shopify Admin API error",
        path=request.url.path,
        shop=exc.shop,
        status_code=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=error_body(
            request,
            "SHOPIFY_API_ERROR",
            exc.message,
            {"shop": exc.shop, "status_code": exc.status_code, "errors": exc.errors},
        ),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors with consistent format."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            request,
            "VALIDATION_ERROR",
            "Request validation failed",
            [
                {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
                for err in exc.errors()
            ],
        ),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", {})
    else:
        error_code = "ERROR"
        message = str(detail)
        details = {}

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, error_code, message, details),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent format."""
    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, "INTERNAL_ERROR", "An internal error occurred"),
    )
