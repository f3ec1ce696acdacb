"""
API response schemas for the webhook and health endpoints.
"""
from typing import Optional
from pydantic import BaseModel


class WebhookAck(BaseModel):
    """Acknowledgement returned to Eventbrite. ``skipped`` only on benign no-ops."""
    ok: bool = True
    skipped: Optional[str] = None
