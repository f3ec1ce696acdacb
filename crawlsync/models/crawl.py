"""
Crawl model - a published Eventbrite event as shown on the site.

The webhook only fills the Eventbrite-sourced columns (id, name, slug,
description, dates, first image, status). Everything under "Marketing" is
curated in the CMS and written as NULL by the webhook.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Text, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from crawlsync.database import Base

CRAWL_STATUS_DRAFT = "Draft"

MARKETING_FIELDS = (
    "alt_name",
    "checkin_venue_1",
    "city",
    "collection",
    "crawl_image_1_alt",
    "crawl_image_2",
    "crawl_image_2_alt",
    "crawl_image_3",
    "crawl_image_3_alt",
    "crawl_image_4",
    "crawl_image_4_alt",
    "crawl_image_vertical_alt",
    "crawl_image_vertical_url",
    "event_date_start_2",
    "event_date_end_2",
    "event_date_start_3",
    "event_date_end_3",
    "keywords_h2",
    "keywords_paragraph",
    "neighborhood",
    "price",
    "seo_description",
    "seo_title",
    "short_description",
    "theme",
)


class Crawl(Base):
    __tablename__ = "crawls"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    eventbrite_id: Mapped[Optional[str]] = mapped_column(String(64), unique=True)
    name: Mapped[Optional[str]] = mapped_column(Text)
    slug: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    # Event-local wall clock as sent by Eventbrite (no offset)
    event_date_start: Mapped[Optional[str]] = mapped_column(String(64))
    event_date_end: Mapped[Optional[str]] = mapped_column(String(64))
    crawl_image_1: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[Optional[str]] = mapped_column(String(20), default=CRAWL_STATUS_DRAFT)

    # Marketing
    alt_name: Mapped[Optional[str]] = mapped_column(Text)
    checkin_venue_1: Mapped[Optional[str]] = mapped_column(Text)
    city: Mapped[Optional[str]] = mapped_column(Text)
    collection: Mapped[Optional[str]] = mapped_column(Text)
    crawl_image_1_alt: Mapped[Optional[str]] = mapped_column(Text)
    crawl_image_2: Mapped[Optional[str]] = mapped_column(Text)
    crawl_image_2_alt: Mapped[Optional[str]] = mapped_column(Text)
    crawl_image_3: Mapped[Optional[str]] = mapped_column(Text)
    crawl_image_3_alt: Mapped[Optional[str]] = mapped_column(Text)
    crawl_image_4: Mapped[Optional[str]] = mapped_column(Text)
    crawl_image_4_alt: Mapped[Optional[str]] = mapped_column(Text)
    crawl_image_vertical_alt: Mapped[Optional[str]] = mapped_column(Text)
    crawl_image_vertical_url: Mapped[Optional[str]] = mapped_column(Text)
    event_date_start_2: Mapped[Optional[str]] = mapped_column(String(64))
    event_date_end_2: Mapped[Optional[str]] = mapped_column(String(64))
    event_date_start_3: Mapped[Optional[str]] = mapped_column(String(64))
    event_date_end_3: Mapped[Optional[str]] = mapped_column(String(64))
    keywords_h2: Mapped[Optional[str]] = mapped_column(Text)
    keywords_paragraph: Mapped[Optional[str]] = mapped_column(Text)
    neighborhood: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Optional[str]] = mapped_column(Text)
    seo_description: Mapped[Optional[str]] = mapped_column(Text)
    seo_title: Mapped[Optional[str]] = mapped_column(Text)
    short_description: Mapped[Optional[str]] = mapped_column(Text)
    theme: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<Crawl {self.eventbrite_id} slug={self.slug}>"
