"""
Pytest Configuration and Shared Fixtures for the Sequential Leverage Diagnostic Tests.

This module provides fixtures and configuration for all backend tests, supporting:
- Async test execution with pytest-asyncio
- Raw-metrics scenarios, one per constraint label
- Test settings with known analytics credentials
- A FastAPI TestClient wired to those settings

Scenario fixtures:
- scenario_cash_flow: runway ~0.53 months
- scenario_margin: 30% gross margin
- scenario_capacity: 90% capacity utilization
- scenario_conversion: 10% conversion
- scenario_lead_volume: every threshold cleared
"""

from typing import Any, Dict, Generator, List

import pytest
from fastapi.testclient import TestClient

from leverage.core.config import Settings
from leverage.core.dependencies import get_settings_dependency


# ============================================================
# PYTEST PLUGINS CONFIGURATION
# ============================================================

pytest_plugins: List[str] = ['pytest_asyncio']


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Register custom markers.

    - parity: batch (pandas) results must match the single-record path exactly
    - scenario: canonical business scenarios with a known constraint
    """
    config.addinivalue_line(
        'markers',
        'parity: marks tests comparing the batch path against the single-record path'
    )
    config.addinivalue_line(
        'markers',
        'scenario: marks tests built on the canonical business scenarios'
    )


# ============================================================
# RAW METRICS SCENARIOS
# ============================================================

@pytest.fixture
def scenario_cash_flow() -> Dict[str, Any]:
    """Burn 9,500/month against 5,000 cash: runway ~0.526 months."""
    return {
        'monthlyRevenue': 10000,
        'costOfDelivery': 9000,
        'fixedExpenses': 500,
        'cashOnHand': 5000,
    }


@pytest.fixture
def scenario_margin() -> Dict[str, Any]:
    """Healthy runway, 30% gross margin."""
    return {
        'monthlyRevenue': 10000,
        'costOfDelivery': 7000,
        'fixedExpenses': 2000,
        'cashOnHand': 50000,
        'averageDaysToCollect': 10,
    }


@pytest.fixture
def scenario_capacity() -> Dict[str, Any]:
    """60% gross, 50% net margin, 90% capacity utilization."""
    return {
        'monthlyRevenue': 10000,
        'costOfDelivery': 4000,
        'fixedExpenses': 1000,
        'cashOnHand': 50000,
        'averageDaysToCollect': 10,
        'maxCapacityPerMonth': 100,
        'currentOutputPerMonth': 90,
    }


@pytest.fixture
def scenario_conversion(scenario_capacity: Dict[str, Any]) -> Dict[str, Any]:
    """Same business at 50% capacity, closing 10 of 100 leads."""
    return {
        **scenario_capacity,
        'currentOutputPerMonth': 50,
        'leadsPerMonth': 100,
        'dealsClosedPerMonth': 10,
    }


@pytest.fixture
def scenario_lead_volume(scenario_conversion: Dict[str, Any]) -> Dict[str, Any]:
    """Same business closing 30 of 100 leads: nothing left but lead volume."""
    return {
        **scenario_conversion,
        'dealsClosedPerMonth': 30,
    }


@pytest.fixture
def all_scenarios(
    scenario_cash_flow: Dict[str, Any],
    scenario_margin: Dict[str, Any],
    scenario_capacity: Dict[str, Any],
    scenario_conversion: Dict[str, Any],
    scenario_lead_volume: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """All five scenarios, in constraint priority order."""
    return [
        scenario_cash_flow,
        scenario_margin,
        scenario_capacity,
        scenario_conversion,
        scenario_lead_volume,
    ]


# ============================================================
# SETTINGS AND CLIENT FIXTURES
# ============================================================

@pytest.fixture
def test_settings() -> Settings:
    """
    Settings with known analytics credentials, isolated from any local .env.

    Usage:
        def test_something(test_settings):
            test_settings.plausible_api_key  # 'test-plausible-key'
    """
    return Settings(
        _env_file=None,
        dashboard_password='dashboard-secret',
        plausible_api_key='test-plausible-key',
        plausible_api_url='https://plausible.test/api/v2/query',
    )


@pytest.fixture
def client(test_settings: Settings) -> Generator[TestClient, None, None]:
    """
    TestClient for the FastAPI app with settings overridden by test_settings.

    Override test_settings attributes before the request to test configuration
    paths (e.g. set plausible_api_key to None).
    """
    from leverage.main import app

    app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
