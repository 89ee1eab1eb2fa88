"""Application services - variant sync and webhook processing."""

from productbuilder.application.variant_service import (
    VariantSyncResult,
    VariantSyncService,
    get_size_chart,
    validate_options,
)
from productbuilder.application.webhook_service import (
    InMemoryDeliveryLog,
    WebhookResult,
    WebhookService,
    WebhookSignatureVerifier,
    WebhookTopic,
    get_webhook_service,
)

__all__ = [
    "InMemoryDeliveryLog",
    "VariantSyncResult",
    "VariantSyncService",
    "WebhookResult",
    "WebhookService",
    "WebhookSignatureVerifier",
    "WebhookTopic",
    "get_size_chart",
    "get_webhook_service",
    "validate_options",
]
