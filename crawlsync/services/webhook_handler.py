"""
Eventbrite webhook handler.

One delivery flows straight through:
body present -> signature ok -> JSON parses -> action handled ->
enrich from the Eventbrite API -> derive record -> mirror image (crawls) ->
upsert -> ack.

Client errors (400/401) fail fast. Enrichment and image mirroring only ever
degrade the stored data. Store failures surface as 500 so Eventbrite
redelivers.
"""
import json
import logging
from typing import Optional

from pydantic import ValidationError

from crawlsync.config import WebhookConfig
from crawlsync.models.crawl import Crawl
from crawlsync.models.order import Order
from crawlsync.schemas.api_responses import WebhookAck
from crawlsync.schemas.webhook_payloads import EventbritePayload
from crawlsync.services.eventbrite import EventbriteClient
from crawlsync.services.persistence import StoreError, TableStore, upsert_with_fallback
from crawlsync.services.records import (
    build_crawl_record,
    build_order_record,
    resolve_image_source,
)
from crawlsync.services.storage import ObjectStorage, mirror_image
from crawlsync.utils.webhook_signatures import SignatureError, verify_eventbrite_signature

logger = logging.getLogger(__name__)

ORDER_ACTIONS = frozenset({"order.placed", "order.updated", "order.refunded"})
EVENT_ACTIONS = frozenset({"event.published"})
SUPPORTED_ACTIONS = ORDER_ACTIONS | EVENT_ACTIONS


class WebhookClientError(Exception):
    """Rejected delivery (bad body or signature). Carries the HTTP status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class WebhookPersistenceError(Exception):
    """The derived record could not be stored."""


def parse_payload(body: bytes) -> EventbritePayload:
    """Parse and shallowly validate the JSON body, raising a 400 on failure."""
    try:
        return EventbritePayload.model_validate(json.loads(body))
    except (ValueError, ValidationError) as e:
        logger.error("Failed to parse Eventbrite webhook payload: %s", str(e))
        raise WebhookClientError(400, "Invalid Eventbrite payload.") from e


class EventbriteWebhookHandler:
    """Processes one Eventbrite delivery. Holds no per-request state."""

    def __init__(
        self,
        config: WebhookConfig,
        store: TableStore,
        storage: Optional[ObjectStorage] = None,
        eventbrite: Optional[EventbriteClient] = None,
    ):
        self.config = config
        self.store = store
        self.storage = storage
        self.eventbrite = eventbrite or EventbriteClient(
            config.api_token, timeout=config.timeout_seconds,
        )

    async def handle(self, body: Optional[bytes], signature: Optional[str]) -> WebhookAck:
        if not body:
            raise WebhookClientError(400, "Eventbrite webhook missing body.")

        try:
            verify_eventbrite_signature(body, signature, self.config.webhook_secret)
        except SignatureError as e:
            logger.warning("Rejected Eventbrite webhook: %s", str(e), extra={"source": "eventbrite"})
            raise WebhookClientError(401, str(e)) from e

        payload = parse_payload(body)
        action = payload.resolved_action

        if action not in SUPPORTED_ACTIONS:
            logger.info("Skipping unhandled Eventbrite action", extra={"action": action})
            return WebhookAck(ok=True, skipped=f"Unhandled action {action}")

        if action in EVENT_ACTIONS:
            await self._handle_event_published(payload)
        else:
            await self._handle_order(payload, action)
        return WebhookAck(ok=True)

    async def _handle_order(self, payload: EventbritePayload, action: str) -> None:
        order = await self.eventbrite.fetch_order(payload.api_url)
        record = build_order_record(payload, order)

        try:
            outcome = await upsert_with_fallback(self.store, Order, record, key="order_id")
        except StoreError as e:
            logger.error(
                "Failed to persist Eventbrite ticket sale: %s", str(e),
                exc_info=True, extra={"order_id": record["order_id"]},
            )
            raise WebhookPersistenceError("Unable to store ticket sale.") from e

        logger.info(
            "Stored Eventbrite order (%s, %s)", action, outcome,
            extra={
                "action": action, "outcome": outcome,
                "order_id": record["order_id"], "event_id": record["event_id"],
            },
        )

    async def _handle_event_published(self, payload: EventbritePayload) -> None:
        event = await self.eventbrite.fetch_event(payload.api_url)
        record = build_crawl_record(payload, event)
        record["crawl_image_1"] = await mirror_image(
            self.storage, resolve_image_source(event), record["slug"],
        )

        try:
            outcome = await upsert_with_fallback(self.store, Crawl, record, key="eventbrite_id")
        except StoreError as e:
            logger.error(
                "Failed to persist Eventbrite crawl: %s", str(e),
                exc_info=True, extra={"eventbrite_id": record["eventbrite_id"]},
            )
            raise WebhookPersistenceError("Unable to store crawl.") from e

        logger.info(
            "Stored crawl %s (%s)", record["slug"], outcome,
            extra={"action": "event.published", "outcome": outcome, "eventbrite_id": record["eventbrite_id"]},
        )
