"""Shopify webhook processing service.

Handles incoming Shopify webhooks with:
- HMAC signature verification
- Delivery deduplication
- Cache invalidation per topic
"""

import base64
import hashlib
import hmac
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum

import structlog

from productbuilder.cache import (
    CATALOG_DATA_TYPES,
    CacheableDataType,
    CacheService,
    get_cache_service,
)
from productbuilder.infrastructure.config import settings

logger = structlog.get_logger()


class WebhookTopic(str, Enum):
    """Shopify webhook topics the service reacts to."""

    APP_UNINSTALLED = "app/uninstalled"
    APP_SCOPES_UPDATE = "app/scopes_update"
    PRODUCTS_CREATE = "products/create"
    PRODUCTS_UPDATE = "products/update"
    PRODUCTS_DELETE = "products/delete"
    SHOP_UPDATE = "shop/update"


@dataclass
class WebhookResult:
    """Result of webhook processing.

    Attributes:
        topic: Topic header as received.
        shop: Shop domain the webhook is for.
        handled: Whether the topic has a handler.
        duplicate: Whether the delivery was already processed.
        invalidated: Cache data types that were removed.
        purged_entries: Entries removed by a shop purge.
    """

    topic: str
    shop: str
    handled: bool
    duplicate: bool = False
    invalidated: list[str] = field(default_factory=list)
    purged_entries: int = 0


class WebhookSignatureVerifier:
    """Verifies Shopify webhook signatures.

    Shopify sends the base64 HMAC-SHA256 of the raw body in the
    ``X-Shopify-Hmac-Sha256`` header, keyed with the app secret.
    """

    def __init__(self, secret: str | None = None) -> None:
        """Initialize verifier.

        Args:
            secret: App API secret.
        """
        self.secret = secret or settings.shopify_api_secret

    def sign(self, body: bytes) -> str:
        """Compute the signature Shopify would send for a body."""
        digest = hmac.new(self.secret.encode(), body, hashlib.sha256).digest()
        return base64.b64encode(digest).decode()

    def verify(self, body: bytes, signature: str | None, shop: str | None = None) -> bool:
        """Verify the HMAC signature of a webhook body.

        Args:
            body: Raw request body.
            signature: ``X-Shopify-Hmac-Sha256`` header value.
            shop: Shop domain for logging.

        Returns:
            True if signature is valid.
        """
        if not signature:
            logger.warning("Missing webhook signature", shop=shop)
            return False

        if not hmac.compare_digest(self.sign(body), signature):
            logger.warning("Webhook signature mismatch", shop=shop)
            return False

        logger.debug("Webhook signature verified", shop=shop)
        return True


class InMemoryDeliveryLog:
    """Remembers recent webhook delivery IDs.

    Shopify retries deliveries, so the same ``X-Shopify-Webhook-Id``
    can arrive more than once. Oldest IDs are forgotten first.
    """

    def __init__(self, max_size: int = 10_000) -> None:
        self.max_size = max_size
        self._seen: OrderedDict[str, None] = OrderedDict()

    def seen(self, delivery_id: str) -> bool:
        """Record a delivery ID; report whether it was already recorded."""
        if delivery_id in self._seen:
            self._seen.move_to_end(delivery_id)
            return True
        self._seen[delivery_id] = None
        if len(self._seen) > self.max_size:
            self._seen.popitem(last=False)
        return False

    def forget(self, delivery_id: str) -> None:
        """Drop a delivery ID so a retry of it is processed again."""
        self._seen.pop(delivery_id, None)

    def clear(self) -> None:
        self._seen.clear()


class WebhookService:
    """Service for processing Shopify webhooks.

    Keeps cached aggregates in step with the shop: catalog changes
    invalidate vendor and product type aggregates, uninstalls purge
    everything stored for the shop.
    """

    def __init__(
        self,
        cache: CacheService,
        delivery_log: InMemoryDeliveryLog | None = None,
        signature_verifier: WebhookSignatureVerifier | None = None,
    ) -> None:
        """Initialize webhook service.

        Args:
            cache: Shop-scoped cache.
            delivery_log: Delivery log for deduplication.
            signature_verifier: Signature verifier.
        """
        self.cache = cache
        self.delivery_log = delivery_log or InMemoryDeliveryLog()
        self.signature_verifier = signature_verifier or WebhookSignatureVerifier()

    def verify_signature(self, body: bytes, signature: str | None, shop: str | None) -> bool:
        """Verify webhook signature."""
        return self.signature_verifier.verify(body, signature, shop)

    async def process(
        self,
        topic: str,
        shop: str,
        delivery_id: str | None = None,
    ) -> WebhookResult:
        """Process a verified webhook.

        Args:
            topic: ``X-Shopify-Topic`` header value.
            shop: ``X-Shopify-Shop-Domain`` header value.
            delivery_id: ``X-Shopify-Webhook-Id`` header value.

        Returns:
            Processing result. Unknown topics are acknowledged unhandled.
        """
        logger.info("Processing webhook", topic=topic, shop=shop, delivery_id=delivery_id)

        try:
            webhook_topic = WebhookTopic(topic)
        except ValueError:
            logger.debug("No handler for webhook topic", topic=topic, shop=shop)
            return WebhookResult(topic=topic, shop=shop, handled=False)

        if delivery_id and self.delivery_log.seen(delivery_id):
            logger.info("Duplicate webhook delivery", delivery_id=delivery_id, shop=shop)
            return WebhookResult(topic=topic, shop=shop, handled=True, duplicate=True)

        result = WebhookResult(topic=topic, shop=shop, handled=True)

        try:
            if webhook_topic is WebhookTopic.APP_UNINSTALLED:
                result.purged_entries = await self.cache.purge_shop(shop)
            else:
                removed = await self.cache.invalidate_many(
                    shop, _TOPIC_INVALIDATIONS[webhook_topic]
                )
                result.invalidated = [data_type.value for data_type in removed]
        except Exception:
            # Shopify retries failed deliveries; the retry must not be a duplicate.
            if delivery_id:
                self.delivery_log.forget(delivery_id)
            logger.warning(
                "Webhook processing failed",
                topic=topic,
                shop=shop,
                delivery_id=delivery_id,
            )
            raise

        logger.info(
            "Webhook processed",
            topic=topic,
            shop=shop,
            invalidated=result.invalidated,
            purged_entries=result.purged_entries,
        )
        return result


_TOPIC_INVALIDATIONS: dict[WebhookTopic, tuple[CacheableDataType, ...]] = {
    WebhookTopic.APP_SCOPES_UPDATE: (CacheableDataType.SCOPE_CHECK,),
    WebhookTopic.PRODUCTS_CREATE: CATALOG_DATA_TYPES,
    WebhookTopic.PRODUCTS_UPDATE: CATALOG_DATA_TYPES,
    WebhookTopic.PRODUCTS_DELETE: CATALOG_DATA_TYPES,
    WebhookTopic.SHOP_UPDATE: (CacheableDataType.STORE_SETTINGS,),
}


# Global service instance
_webhook_service: WebhookService | None = None


def get_webhook_service() -> WebhookService:
    """Get or create the webhook service instance.

    Returns:
        WebhookService bound to the global cache service.
    """
    global _webhook_service
    if _webhook_service is None:
        _webhook_service = WebhookService(get_cache_service())
    return _webhook_service
