"""
Crawl slug generation.

"Bar Crawl! NYC" starting 2025-03-07 becomes "bar-crawl-nyc-03-07-25".
Slugs are not checked for uniqueness here; the crawls upsert is keyed on
eventbrite_id, not slug.
"""
import logging
import re
from datetime import datetime
from typing import Optional, Union

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

_DISALLOWED = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+", re.ASCII)
_HYPHENS = re.compile(r"-+")


def slugify(name: str) -> str:
    slug = _DISALLOWED.sub("", name.lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def _local_date(start: Union[str, datetime]) -> datetime:
    value = start if isinstance(start, datetime) else date_parser.isoparse(start)
    if value.tzinfo is not None:
        value = value.astimezone()
    return value


def generate_slug(name: str, start: Optional[Union[str, datetime]] = None) -> str:
    """
    Build a URL slug from a crawl name and optional start date.
    An unparseable start date is logged and left out of the slug.
    """
    slug = slugify(name)
    if not start:
        return slug

    try:
        local = _local_date(start)
    except (ValueError, TypeError, OverflowError) as e:
        logger.warning("Could not parse crawl start date %r for slug: %s", start, str(e))
        return slug

    suffix = local.strftime("%m-%d-%y")
    return f"{slug}-{suffix}" if slug else suffix
