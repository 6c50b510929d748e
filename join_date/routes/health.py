# join_date/routes/health.py
"""
Health check endpoints.
Readiness only inspects configuration; it never calls HubSpot.
"""

import time

from fastapi import APIRouter

from join_date.config import settings

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "join-date-sync"}


@router.get("/readyz")
async def readyz():
    """Readiness check: the handler can only do useful work once configured."""
    config_issues = []

    if not settings.HUBSPOT_ACCESS_TOKEN:
        config_issues.append("HUBSPOT_ACCESS_TOKEN not set")

    try:
        zone = str(settings.join_date_zone())
    except ValueError as e:
        config_issues.append(str(e))
        zone = None

    checks = {
        "configuration": {
            "ok": not config_issues,
            "issues": config_issues if config_issues else None,
            "environment": settings.environment,
        },
        "join_date_policy": {
            "ok": zone is not None,
            "timezone": zone,
        },
        "signature_verification": {
            "ok": True,
            "mode": "local" if settings.STRIPE_WEBHOOK_SECRET else "delegated",
        },
    }

    return {
        "overall_ok": all(check["ok"] for check in checks.values()),
        "checks": checks,
        "timestamp": time.time(),
    }
