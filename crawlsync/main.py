"""
crawlsync - Eventbrite webhook ingestion for the crawls CMS.
Main FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from crawlsync.config import get_settings
from crawlsync.database import dispose_engine
from crawlsync.api.router import api_router
from crawlsync.api.health import VERSION
from crawlsync.utils.logging import (
    configure_structured_logging,
    generate_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger("crawlsync")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Injects a correlation ID into every request context and response header."""

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        set_correlation_id(cid)
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    settings = get_settings()
    logger.info("crawlsync starting up (env=%s)", settings.app_env)

    # Missing secrets degrade the webhook rather than blocking startup
    if not settings.eventbrite_webhook_secret:
        logger.warning(
            "EVENTBRITE_WEBHOOK_SECRET not set - Eventbrite webhooks are accepted "
            "without signature verification."
        )
    if not settings.eventbrite_api_token:
        logger.warning(
            "EVENTBRITE_API_TOKEN not set - webhooks will be stored from payload data only."
        )
    if not (settings.supabase_url and settings.supabase_service_key):
        logger.warning("SUPABASE_URL/SUPABASE_SERVICE_KEY not set - crawl images will not be mirrored.")

    if settings.sentry_dsn:
        try:
            import sentry_sdk
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                traces_sample_rate=0.1,
                environment=settings.app_env,
            )
            logger.info("Sentry initialized")
        except Exception as e:
            logger.warning("Sentry initialization failed: %s", str(e))

    yield

    await dispose_engine()
    logger.info("crawlsync shutdown complete")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    configure_structured_logging(settings.log_level)

    application = FastAPI(
        title="crawlsync",
        description="Eventbrite webhook ingestion for orders and crawls",
        version=VERSION,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            settings.app_base_url,
        ],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Content-Type", "X-Correlation-ID", "X-Eventbrite-Signature",
            "Accept", "Origin",
        ],
    )

    # Correlation ID middleware (must be added AFTER CORS so it runs on every request)
    application.add_middleware(CorrelationIdMiddleware)

    application.include_router(api_router)

    return application


app = create_app()
