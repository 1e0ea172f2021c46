"""
Core infrastructure package for the FastAPI backend.

Provides:
- Configuration management via pydantic-settings
- FastAPI dependency injection utilities

Re-exports the key components so other modules can write:

    from leverage.core import get_settings, SettingsDep

instead of importing from the individual submodules.
"""

# =============================================================================
# Re-exports from leverage.core.config
# =============================================================================
from leverage.core.config import Settings, get_settings

# =============================================================================
# Re-exports from leverage.core.dependencies
# =============================================================================
from leverage.core.dependencies import (
    get_settings_dependency,
    get_account_optional,
    is_dashboard_token_valid,
    SettingsDep,
    AccountDep,
)


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # FastAPI dependency injection (from dependencies.py)
    'get_settings_dependency',
    'get_account_optional',
    'is_dashboard_token_valid',
    'SettingsDep',
    'AccountDep',
]
