"""
Object storage - crawl images mirrored into a Supabase Storage bucket.

Eventbrite image URLs are signed CDN links that expire, so the webhook
copies the event image into our own public bucket under ``<slug>.<ext>``.
Mirroring is best-effort: any failure leaves the crawl without an image.
"""
import logging
from typing import Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

TIMEOUT = 15.0

_EXTENSIONS = (
    ("png", "png"),
    ("webp", "webp"),
    ("gif", "gif"),
)


def extension_for_content_type(content_type: Optional[str]) -> str:
    """png, webp or gif from the response content-type; anything else is jpg."""
    lowered = (content_type or "").lower()
    for marker, extension in _EXTENSIONS:
        if marker in lowered:
            return extension
    return "jpg"


class ObjectStorage:
    """Upload and public-URL calls against one Supabase Storage bucket."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        timeout: float = TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.service_key and self.bucket)

    def _object_path(self, key: str) -> str:
        return f"{quote(self.bucket)}/{quote(key)}"

    async def upload(self, key: str, content: bytes, content_type: str) -> None:
        """Upload ``content`` under ``key``, replacing any existing object."""
        url = f"{self.base_url}/storage/v1/object/{self._object_path(key)}"
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
            "Content-Type": content_type,
            "x-upsert": "true",
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(url, headers=headers, content=content)
            response.raise_for_status()

    def get_public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self._object_path(key)}"


async def fetch_image(image_url: str, timeout: float = TIMEOUT) -> tuple[bytes, str]:
    """Download an image, returning (bytes, content-type)."""
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        response = await client.get(image_url)
        response.raise_for_status()
        return response.content, response.headers.get("content-type", "image/jpeg")


async def mirror_image(
    storage: Optional[ObjectStorage],
    image_url: Optional[str],
    slug: Optional[str],
) -> Optional[str]:
    """
    Copy a remote image into storage as ``<slug>.<ext>`` and return its public URL.
    Returns None when there is nothing to mirror or any step fails.
    """
    if not image_url or not slug:
        return None
    if storage is None or not storage.is_configured:
        logger.warning("Object storage is not configured - skipping image mirror for %s", slug)
        return None

    try:
        content, content_type = await fetch_image(image_url, storage.timeout)
        key = f"{slug}.{extension_for_content_type(content_type)}"
        await storage.upload(key, content, content_type)
    except (httpx.HTTPError, httpx.InvalidURL, TypeError, ValueError) as e:
        logger.error("Failed to mirror crawl image %r: %s", image_url, str(e))
        return None

    public_url = storage.get_public_url(key)
    logger.info("Mirrored crawl image to %s", public_url)
    return public_url
