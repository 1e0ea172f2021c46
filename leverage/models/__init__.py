"""
Package initialization file for backend models.

Re-exports the Pydantic schemas and enumerations so other modules can import
them from leverage.models directly.

Usage:
    from leverage.models import (
        ConstraintLabel,
        RawBusinessMetrics,
        DerivedMetrics,
        DiagnosticResponse,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from leverage.models.enums import ConstraintLabel


# =============================================================================
# Schemas
# =============================================================================

from leverage.models.schemas import (
    # Core domain models
    coerce_metric_value,
    RawBusinessMetrics,
    DerivedMetrics,
    ActionPlan,
    # Diagnostic API models
    DiagnosticResponse,
    ConstraintSummary,
    BatchDiagnosticRow,
    BatchDiagnosticResponse,
    # Analytics proxy models
    AnalyticsQueryRequest,
)


__all__ = [
    'ConstraintLabel',
    'coerce_metric_value',
    'RawBusinessMetrics',
    'DerivedMetrics',
    'ActionPlan',
    'DiagnosticResponse',
    'ConstraintSummary',
    'BatchDiagnosticRow',
    'BatchDiagnosticResponse',
    'AnalyticsQueryRequest',
]
