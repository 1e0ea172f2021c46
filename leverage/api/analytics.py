"""
FastAPI router module for the site analytics proxy.

Keeps the Plausible API key server-side: the dashboard posts a query here with
its shared-secret token, and this router forwards a normalized query upstream.

Endpoint: /analytics
- OPTIONS: 200 with no body (preflight, answered here rather than by the
  CORS middleware)
- POST: proxied query (below)
- any other method: 405 {"error": "Method not allowed"}

POST responses:
- 401 {"error": "Unauthorized"} when X-Dashboard-Token is missing or wrong
- 500 {"error": "Plausible API key not configured"} when the key is unset
- 400 {"error": "Invalid analytics query", "detail": ...} when the body is not
  a valid query object
- upstream status {"error": "Plausible API error", "status": ..., "detail": ...}
  when the provider answers non-2xx
- 500 {"error": "Internal server error", "detail": ...} on any other failure
- 200 with the upstream JSON unchanged and a 5-minute shared Cache-Control

Every response carries the same fixed Access-Control-* headers (allowed origin
from Settings.analytics_allowed_origin, methods POST and OPTIONS, headers
Content-Type and X-Dashboard-Token), whatever the request Origin.

Every failure is terminal for the request; nothing is retried.
"""

import json
import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Header, Request, Response
from fastapi.responses import JSONResponse

from leverage.core.config import Settings
from leverage.core.dependencies import SettingsDep, is_dashboard_token_valid
from leverage.models.schemas import AnalyticsQueryRequest
from leverage.services.analytics import (
    AnalyticsUpstreamError,
    build_analytics_query,
    fetch_analytics,
)


# =============================================================================
# Module Configuration
# =============================================================================

logger = logging.getLogger(__name__)

router = APIRouter()


def _cors_headers(settings: Settings) -> Dict[str, str]:
    """Fixed CORS headers sent on every /analytics response."""
    return {
        "Access-Control-Allow-Origin": settings.analytics_allowed_origin,
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, X-Dashboard-Token",
    }


def _json_response(
    settings: Settings,
    status_code: int,
    content: Any,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={**_cors_headers(settings), **(headers or {})},
    )


# =============================================================================
# OPTIONS / unsupported methods
# =============================================================================


@router.options("/analytics", include_in_schema=False)
async def analytics_preflight(settings: SettingsDep) -> Response:
    """Answer every OPTIONS request, preflight or not, with an empty 200."""
    return Response(status_code=200, headers=_cors_headers(settings))


@router.api_route(
    "/analytics",
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def analytics_method_not_allowed(settings: SettingsDep) -> JSONResponse:
    """Reject every method other than POST and OPTIONS."""
    return _json_response(
        settings,
        405,
        {"error": "Method not allowed"},
        headers={"Allow": "POST, OPTIONS"},
    )


# =============================================================================
# POST /analytics
# =============================================================================


@router.post("/analytics")
async def query_analytics(
    request: Request,
    settings: SettingsDep,
    x_dashboard_token: Annotated[Optional[str], Header()] = None,
) -> JSONResponse:
    """
    Forward an analytics query to Plausible and relay the result.

    The body is read only after the token and API key checks, so an
    unauthenticated caller learns nothing about query validation.

    Example Request:
        POST /api/analytics
        X-Dashboard-Token: <dashboard password>
        {"metrics": ["visitors"], "date_range": "7d", "dimensions": ["visit:source"]}
    """
    if not is_dashboard_token_valid(x_dashboard_token, settings):
        logger.warning("Rejected analytics request with missing or invalid dashboard token")
        return _json_response(settings, 401, {"error": "Unauthorized"})

    if not settings.plausible_api_key:
        logger.error("Analytics request received but PLAUSIBLE_API_KEY is not configured")
        return _json_response(settings, 500, {"error": "Plausible API key not configured"})

    try:
        raw_body = await request.body()
        payload = json.loads(raw_body) if raw_body.strip() else {}
        query = AnalyticsQueryRequest.model_validate(payload)
    except ValueError as e:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
        return _json_response(settings, 400, {"error": "Invalid analytics query", "detail": str(e)})

    try:
        query_body = build_analytics_query(query, settings)
        data = await fetch_analytics(query_body, settings)
    except AnalyticsUpstreamError as e:
        return _json_response(
            settings,
            e.status_code,
            {"error": "Plausible API error", "status": e.status_code, "detail": e.detail},
        )
    except Exception as e:
        logger.exception("Error proxying analytics query")
        return _json_response(settings, 500, {"error": "Internal server error", "detail": str(e)})

    logger.info(f"Proxied analytics query for site {query_body['site_id']}")
    return _json_response(
        settings,
        200,
        data,
        headers={"Cache-Control": settings.analytics_cache_control},
    )
