"""
Test configuration and fixtures.
Uses SQLite in-memory for fast tests. Mocks all external services.
"""
import hashlib
import hmac
import json
import os

# Settings requires a database URL; crawlsync.main builds the app at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from unittest.mock import AsyncMock
from sqlalchemy import Column, MetaData, Table
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from crawlsync.config import WebhookConfig
from crawlsync.database import Base
from crawlsync.models import Crawl, Order
from crawlsync.services.persistence import TableStore

WEBHOOK_SECRET = "whsec_test_secret"
API_TOKEN = "eb_test_token"


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """X-Eventbrite-Signature header value for ``body``."""
    return "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def encode(payload: dict) -> bytes:
    return json.dumps(payload).encode("utf-8")


async def _session_factory_for(metadata: MetaData):
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session_factory():
    """In-memory SQLite database with the real schema (unique keys in place)."""
    engine, factory = await _session_factory_for(Base.metadata)
    yield factory
    await engine.dispose()


@pytest.fixture
async def unconstrained_session_factory():
    """Same tables, but without the unique constraints on the natural keys."""
    metadata = MetaData()
    for model in (Order, Crawl):
        Table(
            model.__tablename__,
            metadata,
            *[
                Column(column.name, column.type, primary_key=column.primary_key)
                for column in model.__table__.columns
            ],
        )
    engine, factory = await _session_factory_for(metadata)
    yield factory
    await engine.dispose()


@pytest.fixture
def store(session_factory):
    return TableStore(session_factory)


@pytest.fixture
def webhook_config():
    return WebhookConfig(webhook_secret=WEBHOOK_SECRET, api_token=API_TOKEN)


@pytest.fixture
def mock_eventbrite():
    """Stand-in EventbriteClient - prevents real Eventbrite API calls in tests."""
    client = AsyncMock()
    client.fetch_order = AsyncMock(return_value=None)
    client.fetch_event = AsyncMock(return_value=None)
    return client


@pytest.fixture
def sample_order():
    """Eventbrite order detail as returned by GET /v3/orders/:id/."""
    return {
        "id": "1234567890",
        "event_id": "987654321",
        "status": "placed",
        "created": "2025-03-01T15:04:05Z",
        "changed": "2025-03-01T15:10:00Z",
        "name": "Jamie Rivera",
        "first_name": "Jamie",
        "last_name": "Rivera",
        "email": "jamie.flat@example.com",
        "profile": {
            "first_name": "Jamie",
            "last_name": "Rivera",
            "email": "jamie@example.com",
        },
        "costs": {
            "gross": {"currency": "USD", "display": "$123.45", "value": 12345},
        },
    }


@pytest.fixture
def sample_event():
    """Eventbrite event detail as returned by GET /v3/events/:id/?expand=logo."""
    return {
        "id": "987654321",
        "name": {"text": "Bar Crawl! NYC", "html": "Bar Crawl! NYC"},
        "description": {"text": "Five bars, one night.", "html": "<p>Five bars, one night.</p>"},
        "summary": "Five bars",
        "start": {"timezone": "America/New_York", "local": "2025-03-07T18:00:00", "utc": "2025-03-07T23:00:00Z"},
        "end": {"timezone": "America/New_York", "local": "2025-03-07T23:30:00", "utc": "2025-03-08T04:30:00Z"},
        "logo": {
            "url": "https://img.evbuc.com/resized.jpg",
            "original": {"url": "https://img.evbuc.com/original.jpg", "width": 2160, "height": 1080},
        },
    }


@pytest.fixture
def order_payload():
    return {
        "api_url": "https://www.eventbriteapi.com/v3/orders/1234567890/",
        "config": {
            "action": "order.placed",
            "user_id": "111",
            "endpoint_url": "https://example.com/api/webhooks/eventbrite",
            "webhook_id": "222",
        },
    }


@pytest.fixture
def event_payload():
    return {
        "api_url": "https://www.eventbriteapi.com/v3/events/987654321/",
        "config": {
            "action": "event.published",
            "user_id": "111",
            "endpoint_url": "https://example.com/api/webhooks/eventbrite",
            "webhook_id": "222",
        },
    }
