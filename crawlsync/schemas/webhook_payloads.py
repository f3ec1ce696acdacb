"""
Webhook payload schemas - raw input from Eventbrite.

Only the fields the handler reads are typed. Everything else Eventbrite
sends is kept on the model (extra="allow") so newer provider fields are
never rejected or silently dropped.
"""
from typing import Any, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, TypeAdapter, field_validator

_url_adapter = TypeAdapter(AnyUrl)


class _Passthrough(BaseModel):
    model_config = ConfigDict(extra="allow")

    @property
    def extras(self) -> dict[str, Any]:
        """Unrecognised fields, preserved as received."""
        return dict(self.model_extra or {})


class EventbriteWebhookConfig(_Passthrough):
    """The ``config`` block describing the webhook subscription."""
    action: Optional[str] = None
    endpoint_url: Optional[str] = None
    event_id: Optional[str] = None
    event_name: Optional[str] = None
    organization_id: Optional[str] = None
    user_id: Optional[str] = None
    webhook_id: Optional[str] = None


class EventbriteResource(_Passthrough):
    """The ``resource`` block - present on order/attendee notifications."""
    attendee_id: Optional[str] = None
    event_id: Optional[str] = None
    order_id: Optional[str] = None
    quantity: Optional[float] = None
    status: Optional[str] = None
    ticket_class_id: Optional[str] = None
    ticket_class_name: Optional[str] = None


class EventbritePayload(_Passthrough):
    """Eventbrite webhook notification body."""
    api_url: Optional[str] = None
    action: Optional[str] = None
    event_id: Optional[str] = None
    config: Optional[EventbriteWebhookConfig] = None
    resource: Optional[EventbriteResource] = None

    @field_validator("api_url")
    @classmethod
    def _api_url_is_url(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            _url_adapter.validate_python(value)
        return value

    @property
    def resolved_action(self) -> str:
        """config.action, then the top-level action, then "unknown"."""
        if self.config is not None and self.config.action is not None:
            return self.config.action
        if self.action is not None:
            return self.action
        return "unknown"
