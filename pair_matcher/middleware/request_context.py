"""
RequestContext Middleware - Adds request tracking to all requests.

Every request gets a request_id that is:
- stored on request.state.request_id
- bound into structlog contextvars, so background pairing logs carry it
- echoed back in the X-Request-ID response header

Slack retries deliveries it believes timed out; the retry number is bound
as well so duplicate runs are easy to spot in the logs.
"""

import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from pair_matcher.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

SLACK_RETRY_HEADER = "x-slack-retry-num"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Add request context to all incoming requests."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            slack_retry_num=request.headers.get(SLACK_RETRY_HEADER),
        )

        logger.debug(
            "Request started",
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response
