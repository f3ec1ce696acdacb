"""
Webhook endpoints - receive Eventbrite notifications.

Security layers (in order):
1. Body presence
2. Signature validation (X-Eventbrite-Signature, when a secret is configured)
3. Payload validation
4. Processing (enrich, derive, persist)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from crawlsync.config import get_settings
from crawlsync.database import get_session_factory
from crawlsync.schemas.api_responses import WebhookAck
from crawlsync.services.persistence import TableStore
from crawlsync.services.storage import ObjectStorage
from crawlsync.services.webhook_handler import (
    EventbriteWebhookHandler,
    WebhookClientError,
    WebhookPersistenceError,
)
from crawlsync.utils.webhook_signatures import SIGNATURE_HEADER, compute_payload_hash

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


def get_webhook_handler() -> EventbriteWebhookHandler:
    """FastAPI dependency wiring the handler to the configured collaborators."""
    settings = get_settings()
    storage = ObjectStorage(
        settings.supabase_url,
        settings.supabase_service_key,
        settings.storage_bucket,
    )
    return EventbriteWebhookHandler(
        settings.webhook_config(),
        TableStore(get_session_factory()),
        storage,
    )


@router.post("/eventbrite", response_model=WebhookAck, response_model_exclude_none=True)
async def eventbrite_webhook(
    request: Request,
    handler: EventbriteWebhookHandler = Depends(get_webhook_handler),
):
    """
    Eventbrite webhook - order.* and event.published deliveries.
    Unhandled actions are acknowledged with ``skipped`` so Eventbrite
    does not retry or deactivate the webhook.
    """
    # Raw body: the signature is computed over these exact bytes
    body = await request.body()
    if body:
        logger.debug("Eventbrite webhook received", extra={"payload_sha256": compute_payload_hash(body)})

    try:
        return await handler.handle(body, request.headers.get(SIGNATURE_HEADER))
    except WebhookClientError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except WebhookPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error("Eventbrite webhook processing error: %s", str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Internal processing error")
