"""
Settings and environment management module for the Sequential Leverage Diagnostic backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- Optional credentials for the analytics proxy (dashboard password, Plausible key)

Environment Variables:
- DASHBOARD_PASSWORD: Shared secret expected in the X-Dashboard-Token header
- PLAUSIBLE_API_KEY: Plausible Stats API key (server-side only)
- PLAUSIBLE_API_URL: Plausible Stats API v2 query endpoint
- CORS_ALLOWED_ORIGINS: JSON list of origins allowed to call the API
- LOG_LEVEL: Root log level (default: INFO)

The diagnostic thresholds are deliberately NOT configurable here; they live as
constants in leverage.services.classification.

Usage:
    from leverage.core.config import get_settings

    settings = get_settings()
    api_key = settings.plausible_api_key
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        dashboard_password: Shared secret for the analytics dashboard. When unset,
            every analytics request is rejected as unauthorized.
        plausible_api_key: Bearer token for the Plausible Stats API. When unset,
            analytics requests fail with a configuration error.
        plausible_api_url: Plausible Stats API v2 query endpoint.
        analytics_default_site_id: Site queried when the client omits site_id.
        analytics_default_metrics: Metrics queried when the client omits metrics.
        analytics_default_date_range: Range queried when the client omits date_range.
        analytics_cache_control: Cache-Control header set on successful responses.
        analytics_timeout_seconds: Timeout for the upstream request.
        analytics_allowed_origin: Origin sent in Access-Control-Allow-Origin by the
            analytics proxy, which answers its own preflights.
        cors_allowed_origins: Origins allowed by the CORS middleware (all
            routes except /api/analytics).
        log_level: Root logging level name.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,  # Allow PLAUSIBLE_API_KEY or plausible_api_key
    )

    # =========================================================================
    # Analytics Proxy Credentials (Optional)
    # =========================================================================

    dashboard_password: Optional[str] = None

    plausible_api_key: Optional[str] = None

    # =========================================================================
    # Analytics Proxy Defaults
    # =========================================================================

    plausible_api_url: str = 'https://plausible.io/api/v2/query'

    analytics_default_site_id: str = 'scalyst.digital'

    analytics_default_metrics: List[str] = ['visitors', 'pageviews']

    analytics_default_date_range: str = '30d'

    # 5 minutes at the shared cache, 1 minute stale-while-revalidate
    analytics_cache_control: str = 's-maxage=300, stale-while-revalidate=60'

    analytics_timeout_seconds: float = 10.0

    # Fixed CORS origin advertised on every /api/analytics response
    analytics_allowed_origin: str = 'https://scalyst.digital'

    # =========================================================================
    # HTTP Server
    # =========================================================================

    cors_allowed_origins: List[str] = ['https://scalyst.digital']

    log_level: str = 'INFO'


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
