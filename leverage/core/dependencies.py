"""
FastAPI dependency injection module for the Sequential Leverage Diagnostic backend.

Reusable dependencies for configuration access and caller identity, so route
handlers stay free of infrastructure concerns and tests can swap any of them
through `app.dependency_overrides`.

Key Dependencies Provided:
- get_settings_dependency / SettingsDep: the cached Settings singleton
- get_account_optional / AccountDep: the caller's account, or None
- is_dashboard_token_valid: shared-secret check for the analytics proxy

Usage Examples:
    @router.post("/diagnostic")
    async def run_diagnostic(account: AccountDep, settings: SettingsDep):
        ...
"""

import secrets
from typing import Annotated, Optional

from fastapi import Depends, Header

from leverage.core.config import Settings, get_settings


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    """
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


# =============================================================================
# Account Dependency
# =============================================================================

async def get_account_optional(
    x_account_id: Annotated[Optional[str], Header()] = None,
) -> Optional[dict]:
    """
    Resolve the caller's account from the X-Account-Id header.

    Detailed action plans are reserved for visitors who created an account.
    Account creation and session handling live in the frontend; the backend only
    needs to know whether the request carries an account id.

    Returns:
        {'id': <account id>} when the header is present and non-blank, else None.
    """
    if x_account_id is None or not x_account_id.strip():
        return None
    return {'id': x_account_id.strip()}


AccountDep = Annotated[Optional[dict], Depends(get_account_optional)]


# =============================================================================
# Dashboard Token Check
# =============================================================================

def is_dashboard_token_valid(token: Optional[str], settings: Settings) -> bool:
    """
    Check an X-Dashboard-Token value against the configured dashboard password.

    An unset password rejects every token. Comparison is constant-time.
    """
    if not token or not settings.dashboard_password:
        return False
    return secrets.compare_digest(token.encode('utf-8'), settings.dashboard_password.encode('utf-8'))
