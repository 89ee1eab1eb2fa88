"""Webhook receiver endpoints.

Provides:
- POST /webhooks/shopify - receive Shopify webhooks
- HMAC signature verification over the raw body
- Deduplication by webhook delivery ID
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from productbuilder.api.schemas import ErrorResponse, WebhookResponse
from productbuilder.application.webhook_service import WebhookService, get_webhook_service

logger = structlog.get_logger()

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def get_service() -> WebhookService:
    """Get webhook service."""
    return get_webhook_service()


@router.post(
    "/shopify",
    response_model=WebhookResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Receive Shopify webhook",
)
async def receive_shopify_webhook(
    request: Request,
    service: Annotated[WebhookService, Depends(get_service)],
    x_shopify_topic: Annotated[str | None, Header()] = None,
    x_shopify_shop_domain: Annotated[str | None, Header()] = None,
    x_shopify_hmac_sha256: Annotated[str | None, Header()] = None,
    x_shopify_webhook_id: Annotated[str | None, Header()] = None,
) -> WebhookResponse:
    """Receive and process a webhook from Shopify.

    The body is not parsed: every handled topic acts on the shop named
    by the ``X-Shopify-Shop-Domain`` header.

    Raises:
        HTTPException: 401 on a bad signature, 400 on missing headers.
    """
    body = await request.body()

    if not service.verify_signature(body, x_shopify_hmac_sha256, x_shopify_shop_domain):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error_code": "INVALID_SIGNATURE",
                "message": "Webhook signature verification failed",
            },
        )

    if not x_shopify_topic or not x_shopify_shop_domain:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error_code": "MISSING_WEBHOOK_HEADERS",
                "message": "X-Shopify-Topic and X-Shopify-Shop-Domain are required",
            },
        )

    result = await service.process(
        x_shopify_topic,
        x_shopify_shop_domain.lower(),
        delivery_id=x_shopify_webhook_id,
    )

    if not result.handled:
        webhook_status = "ignored"
    elif result.duplicate:
        webhook_status = "duplicate"
    else:
        webhook_status = "processed"

    return WebhookResponse(
        topic=result.topic,
        shop=result.shop,
        status=webhook_status,
        invalidated=result.invalidated,
        purged_entries=result.purged_entries,
    )
