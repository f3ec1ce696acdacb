"""
Record derivation - map a webhook payload plus (optional) Eventbrite API
data onto the rows we store.

Every column is resolved from an ordered list of lookups; the first lookup
returning a non-None value wins. The API response is always the most
authoritative source, the webhook payload comes next, and derived values
(id from URL, "now") come last. Nothing here performs I/O.
"""
import logging
import math
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Optional

from dateutil import parser as date_parser

from crawlsync.models.crawl import CRAWL_STATUS_DRAFT, MARKETING_FIELDS
from crawlsync.schemas.webhook_payloads import EventbritePayload
from crawlsync.services.slugs import generate_slug

logger = logging.getLogger(__name__)

Lookup = Callable[[], Any]

_CENTS = Decimal("0.01")


def first_present(*lookups: Lookup) -> Any:
    """Return the first non-None result of the given lookups, in order."""
    for lookup in lookups:
        value = lookup()
        if value is not None:
            return value
    return None


def dig(data: Any, *path: str) -> Any:
    """Walk nested dicts, returning None as soon as a step is missing."""
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def extract_id_from_url(url: Optional[str]) -> Optional[str]:
    """Last non-empty path segment: .../orders/12345/?expand=x -> "12345"."""
    if not url:
        return None
    parts = [part for part in url.split("?")[0].split("/") if part]
    return parts[-1] if parts else None


def parse_money(money: Any) -> Optional[Decimal]:
    """
    Eventbrite money ({"value": 12345, ...} or a bare number) in minor units
    to a Decimal in major units. Anything non-numeric gives None.
    """
    value = money.get("value") if isinstance(money, dict) else money
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return Decimal(str(value)) / 100


def format_money(money: Any) -> Optional[str]:
    """Minor units to a two-decimal string: 12345 -> "123.45"."""
    amount = parse_money(money)
    if amount is None:
        return None
    return str(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """ISO-8601 string to an aware datetime (naive values are taken as UTC)."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError):
        logger.warning("Ignoring unparseable Eventbrite timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(value: Any) -> Optional[str]:
    """Eventbrite multipart text ({"text": ..., "html": ...}) or a plain string."""
    if isinstance(value, dict):
        value = value.get("text")
    return value if isinstance(value, str) else None


def _resource(payload: EventbritePayload, field: str) -> Optional[str]:
    return getattr(payload.resource, field) if payload.resource is not None else None


def _config(payload: EventbritePayload, field: str) -> Optional[str]:
    return getattr(payload.config, field) if payload.config is not None else None


def build_order_record(
    payload: EventbritePayload,
    order: Optional[dict],
    now: Optional[datetime] = None,
) -> dict:
    """Row for the orders table. ``order`` is the API response, or None."""
    return {
        "order_id": first_present(
            lambda: dig(order, "id"),
            lambda: _resource(payload, "order_id"),
            lambda: extract_id_from_url(payload.api_url),
        ),
        "event_id": first_present(
            lambda: payload.event_id,
            lambda: _resource(payload, "event_id"),
            lambda: dig(order, "event_id"),
        ),
        "first_name": first_present(
            lambda: dig(order, "profile", "first_name"),
            lambda: dig(order, "first_name"),
        ),
        "last_name": first_present(
            lambda: dig(order, "profile", "last_name"),
            lambda: dig(order, "last_name"),
        ),
        "email": first_present(
            lambda: dig(order, "profile", "email"),
            lambda: dig(order, "email"),
        ),
        "gross": format_money(dig(order, "costs", "gross")),
        "created_at": first_present(
            lambda: parse_timestamp(dig(order, "created")),
            lambda: parse_timestamp(dig(order, "changed")),
            lambda: now or datetime.now(timezone.utc),
        ),
    }


def _url(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def resolve_image_source(event: Optional[dict]) -> Optional[str]:
    """Best image URL on an Eventbrite event: original logo, then resized logo."""
    return first_present(
        lambda: _url(dig(event, "logo", "original", "url")),
        lambda: _url(dig(event, "logo", "url")),
    )


def build_crawl_record(
    payload: EventbritePayload,
    event: Optional[dict],
    now: Optional[datetime] = None,
) -> dict:
    """
    Row for the crawls table. ``event`` is the API event detail, or None.
    crawl_image_1 is left empty here; the handler fills it after mirroring.
    """
    eventbrite_id = first_present(
        lambda: dig(event, "id"),
        lambda: _resource(payload, "event_id"),
        lambda: _config(payload, "event_id"),
        lambda: payload.event_id,
        lambda: extract_id_from_url(payload.api_url),
    )
    name = first_present(
        lambda: _text(dig(event, "name")),
        lambda: _config(payload, "event_name"),
    )
    start = first_present(
        lambda: dig(event, "start", "local"),
        lambda: dig(event, "start", "utc"),
    )
    end = first_present(
        lambda: dig(event, "end", "local"),
        lambda: dig(event, "end", "utc"),
    )

    slug = None
    slug_base = name or eventbrite_id
    if slug_base:
        slug = generate_slug(slug_base, start) or None

    record = {
        "eventbrite_id": eventbrite_id,
        "name": name,
        "slug": slug,
        "description": first_present(
            lambda: _text(dig(event, "description")),
            lambda: _text(dig(event, "summary")),
        ),
        "event_date_start": start,
        "event_date_end": end,
        "crawl_image_1": None,
        "status": CRAWL_STATUS_DRAFT,
        "updated_at": now or datetime.now(timezone.utc),
    }
    record.update({field: None for field in MARKETING_FIELDS})
    return record
