"""API middleware for the product builder backend.

Provides:
- Request ID correlation
- Bearer API key authentication
- Error handling
"""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from productbuilder.infrastructure.config import settings

logger = structlog.get_logger()


def error_body(
    request: Request,
    error_code: str,
    message: str,
    details: object = None,
) -> dict[str, object]:
    """Build the uniform JSON error body."""
    return {
        "error_code": error_code,
        "message": message,
        "details": details if details is not None else {},
        "request_id": getattr(request.state, "request_id", None),
    }


# ============================================================================
# Request ID Middleware
# ============================================================================


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Binds a request ID to the log context and the response.

    The ID is taken from ``X-Request-ID`` when the caller sends one.
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
        finally:
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=getattr(response, "status_code", 500),
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.HEADER_NAME] = request_id
        return response


# ============================================================================
# API Key Authentication Middleware
# ============================================================================


# Webhooks are authenticated by their HMAC signature instead.
PUBLIC_PATHS = {
    "/health",
    "/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/webhooks/shopify",
}


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Requires ``Authorization: Bearer <api_key>`` on protected paths."""

    def _reject(self, request: Request, error_code: str, message: str) -> JSONResponse:
        logger.warning(
            "Request rejected by API key check",
            path=request.url.path,
            method=request.method,
            error_code=error_code,
        )
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=error_body(request, error_code, message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Validate API key for protected endpoints.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response or 401 error.
        """
        path = request.url.path.rstrip("/")
        if path in PUBLIC_PATHS or path.startswith(("/docs", "/redoc")):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return self._reject(request, "UNAUTHORIZED", "Missing Authorization header")

        scheme, _, api_key = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not api_key:
            return self._reject(
                request,
                "UNAUTHORIZED",
                "Invalid Authorization header format. Use 'Bearer <api_key>'",
            )

        if api_key != settings.productbuilder_api_key:
            return self._reject(request, "INVALID_API_KEY", "Invalid API key")

        request.state.authenticated = True
        return await call_next(request)


# ============================================================================
# Error Handling Middleware
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turns exceptions escaping the handlers into ``INTERNAL_ERROR``."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error=str(e),
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_body(request, "INTERNAL_ERROR", "An internal error occurred"),
            )


# ============================================================================
# Middleware Setup
# ============================================================================


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application.

    Middleware is added in reverse order (last added = first executed).

    Args:
        app: FastAPI application instance.
    """
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(ApiKeyMiddleware)
    app.add_middleware(RequestIdMiddleware)
