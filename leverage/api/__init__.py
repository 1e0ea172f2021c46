"""
Backend API package initialization.

This package contains FastAPI router modules:
- diagnostic: Constraint diagnostic (single, batch) and catalog browsing
- analytics: Site analytics proxy to Plausible
"""

from fastapi import APIRouter

# Import router modules
from leverage.api.diagnostic import router as diagnostic_router
from leverage.api.analytics import router as analytics_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(diagnostic_router, tags=["diagnostic"])
api_router.include_router(analytics_router, tags=["analytics"])

# Export all routers for selective imports
__all__ = [
    "api_router",
    "diagnostic_router",
    "analytics_router",
]
