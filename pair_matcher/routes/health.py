"""
Health check endpoints with directory cache monitoring.
"""

import time

from fastapi import APIRouter

from pair_matcher.config import settings
from pair_matcher.features.pairing.services.runtime import pairing_runtime

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "pair-matcher"}


@router.get("/readyz")
async def readyz():
    """
    Readiness check: configuration and pairing runtime state.

    The directory is not fetched here; the cache is only reported on.
    """
    checks = {}
    overall_ok = True

    # 1) Configuration checks
    config_issues = []
    if not settings.SLACK_BOT_TOKEN:
        config_issues.append("SLACK_BOT_TOKEN not set")
    if not settings.SLACK_SIGNING_SECRET:
        config_issues.append("SLACK_SIGNING_SECRET not set")

    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues or None,
        "environment": settings.environment,
        "admin_restricted": bool(settings.admin_users()),
    }
    overall_ok = overall_ok and not config_issues

    # 2) Pairing runtime and directory cache
    if pairing_runtime.service is None:
        checks["pairing"] = {"ok": False, "error": "Pairing runtime not initialized"}
        overall_ok = False
    else:
        checks["pairing"] = {
            "ok": True,
            "directory": pairing_runtime.service.directory.stats(),
        }

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}


@router.get("/health/directory")
async def directory_health():
    """Directory snapshot statistics."""
    if pairing_runtime.service is None:
        return {"loaded": False, "error": "Pairing runtime not initialized"}
    return pairing_runtime.service.directory.stats()
