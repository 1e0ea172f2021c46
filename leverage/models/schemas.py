"""
Pydantic request/response models for the Sequential Leverage Diagnostic backend.

This module provides type-safe validation and serialization for the diagnostic
core (raw inputs, derived metrics, action plans) and for the API contracts built
on top of it (single and batch diagnostics, catalog browsing, analytics queries).

Numeric coercion:
    Raw business inputs are self-reported and arrive in every shape imaginable
    (empty strings, "12,000", null, booleans). RawBusinessMetrics never rejects a
    value: anything that does not parse to a finite number falls back to the
    field default (0, or 1 for maxCapacityPerMonth). This is the only place the
    coercion rule lives; the batch path mirrors it column-wise.

All models use Pydantic v2 syntax.
"""

import math
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)

from leverage.models.enums import ConstraintLabel


# =============================================================================
# Numeric Coercion
# =============================================================================


def coerce_metric_value(value: Any, default: float) -> float:
    """
    Parse a self-reported value into a finite float, falling back to `default`.

    Accepted: int and float (bool excluded), and strings that `float()` can parse
    after stripping whitespace, except underscore digit separators ("1_000").
    Everything else, including NaN and infinities, yields `default`. Never
    raises.

    Example:
        >>> coerce_metric_value("2500", 0.0)
        2500.0
        >>> coerce_metric_value("n/a", 0.0)
        0.0
        >>> coerce_metric_value(None, 1.0)
        1.0
    """
    if value is None or isinstance(value, bool):
        return default

    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            # float() also reads digit separators ("1_000"); browsers do not
            if '_' in value:
                return default
            number = float(value.strip())
        else:
            return default
    except (ValueError, OverflowError):
        return default

    if not math.isfinite(number):
        return default
    return number


# =============================================================================
# Core Domain Models
# =============================================================================


class RawBusinessMetrics(BaseModel):
    """
    Self-reported monthly business figures submitted to the diagnostic.

    Every field is optional. Missing or malformed values coerce to 0, except
    maxCapacityPerMonth which defaults to 1 so capacity utilization always has a
    usable denominator. An explicit 0 capacity is kept as 0.

    averageDealValue is accepted and coerced but does not feed any derived
    metric; it is reserved for future use.
    """
    model_config = ConfigDict(
        extra='ignore',
        json_schema_extra={
            "example": {
                "monthlyRevenue": 10000,
                "costOfDelivery": 4000,
                "fixedExpenses": 1000,
                "leadsPerMonth": 100,
                "dealsClosedPerMonth": 30,
                "averageDealValue": 350,
                "maxCapacityPerMonth": 100,
                "currentOutputPerMonth": 50,
                "cashOnHand": 50000,
                "averageDaysToCollect": 10,
            }
        }
    )

    monthlyRevenue: float = Field(default=0.0, description="Revenue per month")
    costOfDelivery: float = Field(default=0.0, description="Direct cost of delivering the work per month")
    fixedExpenses: float = Field(default=0.0, description="Fixed overhead per month")
    leadsPerMonth: float = Field(default=0.0, description="New leads per month")
    dealsClosedPerMonth: float = Field(default=0.0, description="Deals closed per month")
    averageDealValue: float = Field(default=0.0, description="Average deal value (reserved)")
    maxCapacityPerMonth: float = Field(default=1.0, description="Maximum deliverable units per month")
    currentOutputPerMonth: float = Field(default=0.0, description="Units currently delivered per month")
    cashOnHand: float = Field(default=0.0, description="Cash available today")
    averageDaysToCollect: float = Field(default=0.0, description="Average days from invoice to payment")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_numeric(cls, value: Any, info: ValidationInfo) -> float:
        default = cls.model_fields[info.field_name].default
        return coerce_metric_value(value, default)


class DerivedMetrics(BaseModel):
    """
    Canonical metrics computed from RawBusinessMetrics.

    Ratio fields are 0 when their denominator is not positive. runwayMonths is
    the only field that may be infinite (no burn means unbounded runway); it is
    rendered as null in JSON.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "grossMargin": 0.6,
                "netProfit": 5000.0,
                "netMargin": 0.5,
                "conversionRate": 0.3,
                "capacityUtilization": 0.5,
                "monthlyBurn": 5000.0,
                "runwayMonths": 10.0,
                "averageDaysToCollect": 10.0,
            }
        }
    )

    grossMargin: float = Field(..., description="(revenue - costOfDelivery) / revenue")
    netProfit: float = Field(..., description="revenue - costOfDelivery - fixedExpenses")
    netMargin: float = Field(..., description="netProfit / revenue")
    conversionRate: float = Field(..., description="dealsClosed / leads")
    capacityUtilization: float = Field(..., description="currentOutput / maxCapacity")
    monthlyBurn: float = Field(..., description="fixedExpenses + costOfDelivery")
    runwayMonths: float = Field(..., description="cashOnHand / monthlyBurn; null when burn is zero")
    averageDaysToCollect: float = Field(..., description="Passed through from input")

    @field_serializer("runwayMonths", when_used="json")
    def _serialize_runway(self, value: float) -> Optional[float]:
        return value if math.isfinite(value) else None


class ActionPlan(BaseModel):
    """
    Detailed remediation plan for a constraint.

    summary always matches one of the constraint's previews (with a closing
    period). steps are ordered.
    """
    model_config = ConfigDict(frozen=True)

    title: str
    summary: str
    steps: Tuple[str, ...]
    metric: str = Field(..., description="The metric to watch and its target")


# =============================================================================
# Diagnostic API Models
# =============================================================================


class DiagnosticResponse(BaseModel):
    """
    Response for POST /api/diagnostic.

    details is withheld (null, detailsLocked=true) unless the caller has an
    account.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "constraint": "Capacity",
                "derived": DerivedMetrics.model_config["json_schema_extra"]["example"],
                "previews": [
                    "Systematize delivery with SOPs to increase throughput without hiring",
                    "Identify and eliminate bottleneck tasks consuming the most capacity",
                    "Evaluate selective outsourcing for non-core delivery functions",
                ],
                "details": None,
                "detailsLocked": True,
                "reasons": ["CAPACITY_OVER_LIMIT: 90.0% of capacity in use (max 85%)"],
            }
        }
    )

    constraint: ConstraintLabel
    derived: DerivedMetrics
    previews: List[str]
    details: Optional[List[ActionPlan]] = None
    detailsLocked: bool = True
    reasons: List[str] = Field(default_factory=list)


class ConstraintSummary(BaseModel):
    """Catalog entry as listed by GET /api/constraints."""
    constraint: ConstraintLabel
    previews: List[str]


class BatchDiagnosticRow(BaseModel):
    """One classified row of a batch upload. row is the 0-based CSV data row."""
    row: int
    constraint: ConstraintLabel
    derived: DerivedMetrics


class BatchDiagnosticResponse(BaseModel):
    """Response for POST /api/diagnostic/batch."""
    total: int
    counts: Dict[str, int]
    results: List[BatchDiagnosticRow]


# =============================================================================
# Analytics Proxy Models
# =============================================================================


class AnalyticsQueryRequest(BaseModel):
    """
    Query accepted by POST /api/analytics.

    All fields are optional; defaults for site_id, metrics and date_range are
    filled from Settings when the query is forwarded.
    """
    model_config = ConfigDict(
        extra='ignore',
        json_schema_extra={
            "example": {
                "metrics": ["visitors", "pageviews", "bounce_rate"],
                "date_range": "7d",
                "dimensions": ["visit:source"],
                "limit": 10,
            }
        }
    )

    site_id: Optional[str] = None
    metrics: Optional[List[str]] = None
    date_range: Optional[Union[str, List[str]]] = None
    dimensions: Optional[List[str]] = None
    filters: Optional[List[Any]] = None
    order_by: Optional[List[Any]] = None
    limit: Optional[int] = None
