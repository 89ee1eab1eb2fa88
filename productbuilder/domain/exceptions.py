"""Domain exceptions.

Errors raised by the cache, catalog and variant modules. The route
layer maps them onto HTTP responses; the core never lets a cache read
failure escape as one of these.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Cache Errors
# ============================================================================


class CacheDecodeError(DomainError):
    """Raised when a stored cache row cannot be decoded.

    The cache service treats this as a miss; it never reaches callers.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Invalid cache entry: {reason}",
            details={"reason": reason},
        )


# ============================================================================
# Shop Context Errors
# ============================================================================


class MissingShopContextError(DomainError):
    """Raised when a request carries no shop domain or access token."""

    def __init__(self, missing: list[str]) -> None:
        """Initialize missing shop context error.

        Args:
            missing: Names of the missing headers.
        """
        super().__init__(
            f"Missing shop context: {', '.join(missing)}",
            details={"missing": missing},
        )


# ============================================================================
# Variant Errors
# ============================================================================


class VariantError(DomainError):
    """Base class for variant-related errors."""

    pass


class InvalidVariantOptionsError(VariantError):
    """Raised when option definitions cannot produce a variant matrix."""

    def __init__(self, reason: str, option_name: str | None = None) -> None:
        """Initialize invalid options error.

        Args:
            reason: Why the options were rejected.
            option_name: Offending option, if one can be named.
        """
        message = f"Invalid product options: {reason}"
        if option_name is not None:
            message = f"Invalid product option '{option_name}': {reason}"
        super().__init__(
            message,
            details={"reason": reason, "option_name": option_name},
        )


class VariantMutationError(VariantError):
    """Raised when the Admin API rejects a variant mutation.

    The first user error message becomes the error message, matching
    what the product wizard shows to the merchant.
    """

    def __init__(self, operation: str, user_errors: list[dict[str, Any]]) -> None:
        """Initialize variant mutation error.

        Args:
            operation: Mutation name (e.g. "productVariantsBulkCreate").
            user_errors: ``userErrors`` returned by the mutation.
        """
        first = user_errors[0].get("message", "Unknown error") if user_errors else "Unknown error"
        super().__init__(
            first,
            details={"operation": operation, "user_errors": user_errors},
        )
        self.operation = operation
        self.user_errors = user_errors


class DefaultVariantNotFoundError(VariantError):
    """Raised when a product without options has no variant to update."""

    def __init__(self, product_id: str) -> None:
        super().__init__(
            f"Could not find default variant for product '{product_id}'",
            details={"product_id": product_id},
        )
        self.product_id = product_id
