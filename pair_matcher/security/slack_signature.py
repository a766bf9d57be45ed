"""
Slack request signature verification (v0 HMAC-SHA256 scheme).

Slack signs every slash command and interaction request with the app's
signing secret over ``v0:{timestamp}:{raw body}``. Requests older than the
configured window are rejected to block replays.
"""

from __future__ import annotations

import hashlib
import hmac
import time

from fastapi import HTTPException, Request, status

from pair_matcher.config import settings
from pair_matcher.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "x-slack-signature"
TIMESTAMP_HEADER = "x-slack-request-timestamp"
SIGNATURE_VERSION = "v0"

__all__ = ["compute_signature", "verify_signature", "verify_slack_request"]


def compute_signature(secret: str, timestamp: str, body: bytes) -> str:
    """Compute the ``v0=<hex>`` signature Slack sends for a request body."""
    base = f"{SIGNATURE_VERSION}:{timestamp}:".encode() + body
    digest = hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_signature(
    body: bytes,
    timestamp: str | None,
    signature: str | None,
    *,
    secret: str | None = None,
    max_age_s: int | None = None,
    now: float | None = None,
) -> None:
    """
    Raise HTTP 401 unless the request carries a fresh, valid Slack signature.
    """
    secret = secret if secret is not None else settings.SLACK_SIGNING_SECRET
    max_age_s = max_age_s if max_age_s is not None else settings.SLACK_SIGNATURE_MAX_AGE_S

    if not secret:
        logger.error("SLACK_SIGNING_SECRET not configured; rejecting request")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Signing secret missing")

    if not signature or not timestamp:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing signature")

    try:
        sent_at = int(timestamp)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid timestamp"
        ) from None

    current = now if now is not None else time.time()
    if abs(current - sent_at) > max_age_s:
        logger.warning("Stale Slack request rejected", request_timestamp=sent_at)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Request too old")

    expected = compute_signature(secret, timestamp, body)
    if not hmac.compare_digest(expected, signature):
        logger.warning("Invalid Slack signature rejected")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")


async def verify_slack_request(request: Request) -> bytes:
    """FastAPI dependency: verify the request and hand back its raw body."""
    body = await request.body()
    verify_signature(
        body,
        request.headers.get(TIMESTAMP_HEADER),
        request.headers.get(SIGNATURE_HEADER),
    )
    return body
