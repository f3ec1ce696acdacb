"""
Application configuration using pydantic-settings.
Only the database URL is required - missing Eventbrite or storage secrets
degrade the webhook (no signature check, no enrichment, no image mirror)
instead of failing startup.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


@dataclass(frozen=True)
class WebhookConfig:
    """Secrets and endpoints handed to the webhook handler at construction."""
    webhook_secret: Optional[str] = None
    api_token: Optional[str] = None
    timeout_seconds: float = 10.0


class Settings(BaseSettings):
    # Application
    app_env: str = "development"
    app_base_url: str = "http://localhost:8000"
    log_level: str = "INFO"

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 5

    # Eventbrite
    eventbrite_webhook_secret: str = ""  # Signature validation disabled until set
    eventbrite_api_token: str = ""
    eventbrite_timeout_seconds: float = 10.0

    # Object storage (Supabase Storage)
    supabase_url: str = ""
    supabase_service_key: str = ""
    storage_bucket: str = "crawl-images"

    # Sentry
    sentry_dsn: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def webhook_config(self) -> WebhookConfig:
        return WebhookConfig(
            webhook_secret=self.eventbrite_webhook_secret or None,
            api_token=self.eventbrite_api_token or None,
            timeout_seconds=self.eventbrite_timeout_seconds,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
