"""
FastAPI application entry point for the Sequential Leverage Diagnostic API.

This module configures logging and CORS, registers the API routers under /api,
and starts the ASGI server when run directly.

The service holds no state: there is no database, no session store and no
startup work beyond reading settings.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from leverage import __version__
from leverage.api import api_router
from leverage.core.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ANALYTICS_PATH = "/api/analytics"


class SiteCORSMiddleware(CORSMiddleware):
    """
    CORSMiddleware that passes exempt paths straight through.

    The analytics proxy sets its own Access-Control-* headers and answers every
    OPTIONS request with an empty 200, so the stock middleware must not answer
    its preflights.
    """

    def __init__(self, app: ASGIApp, exempt_paths: Sequence[str] = (), **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.exempt_paths = frozenset(exempt_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].rstrip("/") in self.exempt_paths:
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for application startup and shutdown events.

    Logs whether the analytics proxy is usable so a missing credential shows up
    at boot rather than on the first dashboard request.
    """
    logger.info("Sequential Leverage Diagnostic API starting")
    if not settings.dashboard_password or not settings.plausible_api_key:
        logger.warning("Analytics proxy is not fully configured (DASHBOARD_PASSWORD / PLAUSIBLE_API_KEY)")

    yield

    logger.info("Sequential Leverage Diagnostic API shutting down")


# Create FastAPI application
app = FastAPI(
    title="Sequential Leverage Diagnostic API",
    version=__version__,
    description=(
        "Identifies the single constraint limiting a small business's growth "
        "(cash flow, margin, capacity, conversion or lead volume) and returns "
        "the matching action plans. Also proxies site analytics queries."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    SiteCORSMiddleware,
    exempt_paths=[ANALYTICS_PATH],
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Dashboard-Token", "X-Account-Id"],
)

# Register API routers
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Sequential Leverage Diagnostic API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "leverage.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
