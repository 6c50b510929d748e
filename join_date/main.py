"""
Join date sync service.
Stripe checkout webhooks in, write-once HubSpot join dates out.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from join_date.config import settings
from join_date.infrastructure.observability.logging import get_logger, setup_logging
from join_date.middleware.request_context import RequestContextMiddleware
from join_date.routes import health, stripe_webhook

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup configuration; HubSpot clients are built per request."""
    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        join_date_timezone=settings.JOIN_DATE_TIMEZONE,
        hubspot_configured=bool(settings.HUBSPOT_ACCESS_TOKEN),
        signature_verification="local" if settings.STRIPE_WEBHOOK_SECRET else "delegated",
    )

    if not settings.HUBSPOT_ACCESS_TOKEN:
        logger.warning("HUBSPOT_ACCESS_TOKEN not set; webhooks will fail until configured")

    yield

    logger.info("Application shutting down")


app = FastAPI(
    title="Join Date Sync",
    description="Sets HubSpot contact join dates from Stripe checkout events",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(stripe_webhook.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )

    return response


# Outermost middleware: request_id is bound before log_requests runs
app.add_middleware(RequestContextMiddleware)
