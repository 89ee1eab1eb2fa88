"""Domain layer - errors shared by the cache, catalog and variant modules.

Example usage:
    from productbuilder.domain import DomainError, InvalidVariantOptionsError

    try:
        await service.sync(product_id, options, inputs)
    except InvalidVariantOptionsError as e:
        print(e.details)
"""

from productbuilder.domain.exceptions import (
    CacheDecodeError,
    DefaultVariantNotFoundError,
    DomainError,
    InvalidVariantOptionsError,
    MissingShopContextError,
    VariantError,
    VariantMutationError,
)

__all__ = [
    "CacheDecodeError",
    "DefaultVariantNotFoundError",
    "DomainError",
    "InvalidVariantOptionsError",
    "MissingShopContextError",
    "VariantError",
    "VariantMutationError",
]
