"""
FastAPI application for the Slack pair matcher.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from pair_matcher.config import settings
from pair_matcher.features.pairing.api.router import router as pairing_router
from pair_matcher.features.pairing.services.runtime import pairing_runtime
from pair_matcher.infrastructure.observability.logging import get_logger, setup_logging
from pair_matcher.middleware.request_context import RequestContextMiddleware
from pair_matcher.routes import health

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the Slack client and pairing service, close them on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        await pairing_runtime.initialize()
    except Exception as e:
        logger.error("Failed to initialize pairing runtime", error=str(e))
        raise

    yield

    logger.info("Application shutting down")
    try:
        await pairing_runtime.close()
    except Exception as e:
        logger.error("Error closing pairing runtime", error=str(e))
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="Pair Matcher",
    description="Slack bot that pairs people up in private conversations",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

app.include_router(health.router)
app.include_router(pairing_router)


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


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
