"""
Backend Services Module

Business logic for the diagnostic. Every service is stateless and free of I/O
except the analytics proxy's upstream call.

Services:
- metrics: raw inputs -> DerivedMetrics
- classification: DerivedMetrics -> ConstraintLabel, plus the full diagnose pipeline
- action_catalog: static previews and detailed plans per constraint
- batch: pandas/numpy version of the pipeline for CSV uploads
- analytics: Plausible query normalization and upstream call

All services are consumed by the API layer (leverage/api/).
"""

# =============================================================================
# Metrics Service Exports
# =============================================================================

from leverage.services.metrics import (
    normalize_raw_metrics,
    derive_metrics,
)

# =============================================================================
# Action Catalog Exports
# =============================================================================

from leverage.services.action_catalog import (
    ACTION_PREVIEWS,
    ACTION_DETAILS,
    get_action_previews,
    get_action_details,
)

# =============================================================================
# Classification Service Exports
# =============================================================================

from leverage.services.classification import (
    classify_constraint,
    determine_constraint,
    build_reason_codes,
    diagnose,
)

# =============================================================================
# Batch Diagnostic Exports
# =============================================================================

from leverage.services.batch import (
    derive_metrics_frame,
    classify_frame,
    diagnose_frame,
    read_metrics_csv,
    diagnose_csv,
)

# =============================================================================
# Analytics Proxy Exports
# =============================================================================

from leverage.services.analytics import (
    AnalyticsUpstreamError,
    build_analytics_query,
    fetch_analytics,
)


__all__ = [
    # Metrics
    "normalize_raw_metrics",
    "derive_metrics",
    # Action catalog
    "ACTION_PREVIEWS",
    "ACTION_DETAILS",
    "get_action_previews",
    "get_action_details",
    # Classification
    "classify_constraint",
    "determine_constraint",
    "build_reason_codes",
    "diagnose",
    # Batch
    "derive_metrics_frame",
    "classify_frame",
    "diagnose_frame",
    "read_metrics_csv",
    "diagnose_csv",
    # Analytics
    "AnalyticsUpstreamError",
    "build_analytics_query",
    "fetch_analytics",
]
