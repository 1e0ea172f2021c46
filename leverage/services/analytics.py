"""
Analytics Proxy Service

Builds and forwards site analytics queries to the Plausible Stats API v2 so the
API key never reaches the browser. The router in leverage/api/analytics.py owns
request authentication; this module owns the query shape and the upstream call.

Query normalization:
- site_id defaults to Settings.analytics_default_site_id ("scalyst.digital")
- metrics defaults to Settings.analytics_default_metrics (["visitors", "pageviews"])
- date_range defaults to Settings.analytics_default_date_range ("30d")
- an explicit empty list is a value, not an omission: metrics=[] and
  date_range=[] are forwarded as sent, and so are empty dimensions, filters
  and order_by
- dimensions, filters and order_by are forwarded whenever present; limit only
  when non-zero

Failures are terminal for the request: there is no retry.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from leverage.core.config import Settings
from leverage.models.schemas import AnalyticsQueryRequest


logger = logging.getLogger(__name__)


class AnalyticsUpstreamError(Exception):
    """
    Raised when the analytics provider answers with a non-2xx status.

    Attributes:
        status_code: The upstream HTTP status, relayed to the client as-is.
        detail: The upstream response body text.
    """

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"Analytics provider returned status {status_code}")
        self.status_code = status_code
        self.detail = detail


def build_analytics_query(query: AnalyticsQueryRequest, settings: Settings) -> Dict[str, Any]:
    """
    Normalize a client query into the body sent upstream.

    Args:
        query: Validated client query.
        settings: Application settings holding the defaults.

    Returns:
        Dict ready to be sent as the JSON request body.

    Example:
        >>> build_analytics_query(AnalyticsQueryRequest(), settings)
        {'site_id': 'scalyst.digital', 'metrics': ['visitors', 'pageviews'], 'date_range': '30d'}
    """
    body: Dict[str, Any] = {
        'site_id': query.site_id or settings.analytics_default_site_id,
        'metrics': (
            query.metrics if query.metrics is not None
            else list(settings.analytics_default_metrics)
        ),
        'date_range': (
            query.date_range if query.date_range not in (None, '')
            else settings.analytics_default_date_range
        ),
    }

    # Empty strings and limit=0 fall back or drop out; empty lists are kept
    if query.dimensions is not None:
        body['dimensions'] = query.dimensions
    if query.filters is not None:
        body['filters'] = query.filters
    if query.order_by is not None:
        body['order_by'] = query.order_by
    if query.limit:
        body['limit'] = query.limit

    return body


async def fetch_analytics(
    query_body: Dict[str, Any],
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> Any:
    """
    POST a normalized query to the analytics provider and return its JSON body.

    Args:
        query_body: Output of build_analytics_query.
        settings: Settings holding plausible_api_key, plausible_api_url and the
            request timeout. The key must be set; the router checks this first.
        client: Optional httpx.AsyncClient to use instead of a fresh one
            (lets tests plug in httpx.MockTransport).

    Returns:
        The decoded upstream JSON, unchanged.

    Raises:
        AnalyticsUpstreamError: Upstream answered with a non-2xx status.
        httpx.HTTPError: Transport-level failure (connection, timeout).
    """
    headers = {
        'Authorization': f'Bearer {settings.plausible_api_key}',
        'Content-Type': 'application/json',
    }

    if client is None:
        async with httpx.AsyncClient(timeout=settings.analytics_timeout_seconds) as owned_client:
            response = await owned_client.post(settings.plausible_api_url, json=query_body, headers=headers)
    else:
        response = await client.post(settings.plausible_api_url, json=query_body, headers=headers)

    if not response.is_success:
        logger.warning(f"Analytics provider returned {response.status_code} for site {query_body.get('site_id')}")
        raise AnalyticsUpstreamError(response.status_code, response.text)

    return response.json()


__all__ = [
    "AnalyticsUpstreamError",
    "build_analytics_query",
    "fetch_analytics",
]
