"""
Eventbrite REST API client - best-effort enrichment for webhook deliveries.

Auth: Bearer token (private OAuth token).
Docs: https://www.eventbrite.com/platform/api
Every call returns None instead of raising: a webhook is still stored with
payload-only data when the API is unreachable or not configured.
"""
import logging
import re
from typing import Optional
from urllib.parse import urlsplit

import httpx

logger = logging.getLogger(__name__)

TIMEOUT = 10.0
EVENT_EXPAND = "logo"

_SERIES_PATH = re.compile(r"^(?P<base>.*?)/series/(?P<series_id>[^/?#]+)")


def parse_series_url(api_url: str) -> Optional[tuple[str, str]]:
    """
    (api base, series id) when the URL points at an event series,
    e.g. https://www.eventbriteapi.com/v3/series/123/ -> (".../v3", "123").
    """
    parts = urlsplit(api_url)
    match = _SERIES_PATH.match(parts.path)
    if not match:
        return None
    base = f"{parts.scheme}://{parts.netloc}{match.group('base')}"
    return base, match.group("series_id")


class EventbriteClient:
    """Thin async wrapper over the handful of Eventbrite GETs the webhook needs."""

    def __init__(self, api_token: Optional[str], timeout: float = TIMEOUT):
        self.api_token = api_token
        self.timeout = timeout

    @property
    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Accept": "application/json",
        }

    async def _get(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Optional[dict] = None,
    ) -> dict:
        response = await client.get(url, headers=self._headers, params=params)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected Eventbrite response shape from {url}")
        return data

    def _can_fetch(self, api_url: Optional[str], what: str) -> bool:
        if not self.api_token:
            logger.warning("Eventbrite API token is not configured - skipping %s lookup", what)
            return False
        if not api_url:
            logger.warning("Eventbrite webhook has no api_url - skipping %s lookup", what)
            return False
        return True

    async def fetch_order(self, api_url: Optional[str]) -> Optional[dict]:
        """GET the order the webhook points at."""
        if not self._can_fetch(api_url, "order"):
            return None
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await self._get(client, api_url)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Unable to fetch Eventbrite order details: %s", str(e))
            return None

    async def fetch_event(self, api_url: Optional[str]) -> Optional[dict]:
        """
        GET the event detail the webhook points at.
        Series URLs are resolved to their first event.
        """
        if not self._can_fetch(api_url, "event"):
            return None
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                series = parse_series_url(api_url)
                if series:
                    return await self._fetch_first_series_event(client, *series)
                return await self._get(client, api_url, params={"expand": EVENT_EXPAND})
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Unable to fetch Eventbrite event details: %s", str(e))
            return None

    async def _fetch_first_series_event(
        self,
        client: httpx.AsyncClient,
        base: str,
        series_id: str,
    ) -> Optional[dict]:
        series = await self._get(client, f"{base}/series/{series_id}/")
        listed = series.get("events")
        if isinstance(listed, list) and listed:
            first = listed[0]
            event_id = first.get("id") if isinstance(first, dict) else first
            logger.info("Resolved Eventbrite series %s to event %s", series_id, event_id)
            return await self._get(
                client, f"{base}/events/{event_id}/", params={"expand": EVENT_EXPAND},
            )

        # Series detail lists no events - fall back to the series' event collection
        collection = await self._get(
            client, f"{base}/series/{series_id}/events/", params={"expand": EVENT_EXPAND},
        )
        events = collection.get("events")
        if not isinstance(events, list) or not events:
            logger.warning("Eventbrite series %s has no events", series_id)
            return None
        first = events[0]
        return first if isinstance(first, dict) else None
