"""
Constraint Classification Service

This module identifies the single constraint limiting a business's growth from
its derived metrics. Classification is deterministic threshold logic: no model,
no external call, no state.

Decision tree (first match wins, order encodes severity):
1. runwayMonths < 2 OR averageDaysToCollect > 45     -> Cash Flow
2. grossMargin < 0.40 OR netMargin < 0.10            -> Margin
3. capacityUtilization > 0.85                        -> Capacity
4. conversionRate < 0.20                             -> Conversion
5. otherwise                                         -> Lead Volume

The rules overlap on purpose. Cash-flow risk is existential so it is checked
first; lead volume is only the constraint once every healthier-sounding
threshold is cleared.

The thresholds are business-calibrated constants. They are not settings and
changing any of them changes product behavior.

An infinite runway (zero burn) never satisfies `runwayMonths < 2`, so a business
with no burn can only be classified Cash Flow through slow collections.
"""

import logging
from typing import Any, List, Mapping, Optional, Tuple, Union

from leverage.models.enums import ConstraintLabel
from leverage.models.schemas import (
    DerivedMetrics,
    DiagnosticResponse,
    RawBusinessMetrics,
)
from leverage.services.action_catalog import get_action_details, get_action_previews
from leverage.services.metrics import derive_metrics


logger = logging.getLogger(__name__)


# =============================================================================
# Thresholds
# =============================================================================

# Cash Flow: fewer than this many months of runway
MIN_RUNWAY_MONTHS: float = 2

# Cash Flow: collections slower than this many days
MAX_DAYS_TO_COLLECT: float = 45

# Margin: gross margin below 40%
MIN_GROSS_MARGIN: float = 0.40

# Margin: net margin below 10%
MIN_NET_MARGIN: float = 0.10

# Capacity: utilization above 85%
MAX_CAPACITY_UTILIZATION: float = 0.85

# Conversion: fewer than 20% of leads close
MIN_CONVERSION_RATE: float = 0.20


# =============================================================================
# Classification
# =============================================================================


def classify_constraint(derived: DerivedMetrics) -> ConstraintLabel:
    """
    Apply the ordered decision tree to derived metrics.

    Args:
        derived: Output of derive_metrics.

    Returns:
        Exactly one ConstraintLabel.
    """
    if derived.runwayMonths < MIN_RUNWAY_MONTHS or derived.averageDaysToCollect > MAX_DAYS_TO_COLLECT:
        return ConstraintLabel.CASH_FLOW
    elif derived.grossMargin < MIN_GROSS_MARGIN or derived.netMargin < MIN_NET_MARGIN:
        return ConstraintLabel.MARGIN
    elif derived.capacityUtilization > MAX_CAPACITY_UTILIZATION:
        return ConstraintLabel.CAPACITY
    elif derived.conversionRate < MIN_CONVERSION_RATE:
        return ConstraintLabel.CONVERSION
    else:
        return ConstraintLabel.LEAD_VOLUME


def determine_constraint(
    raw: Union[RawBusinessMetrics, Mapping[str, Any], None]
) -> Tuple[ConstraintLabel, DerivedMetrics]:
    """
    Derive metrics from raw inputs and classify them in one step.

    Args:
        raw: Raw business figures (model or plain mapping of any values).

    Returns:
        Tuple of (constraint label, derived metrics).
    """
    derived = derive_metrics(raw)
    return classify_constraint(derived), derived


def build_reason_codes(derived: DerivedMetrics, constraint: ConstraintLabel) -> List[str]:
    """
    Explain which threshold(s) produced the constraint.

    Only conditions belonging to the rule that fired are reported; a Margin
    result says nothing about capacity even if capacity is also stretched.

    Args:
        derived: Derived metrics that were classified.
        constraint: The label classify_constraint returned for them.

    Returns:
        List of "CODE: description" strings.
    """
    reasons: List[str] = []

    if constraint == ConstraintLabel.CASH_FLOW:
        if derived.runwayMonths < MIN_RUNWAY_MONTHS:
            reasons.append(
                f"RUNWAY_BELOW_MINIMUM: {derived.runwayMonths:.1f} months of runway "
                f"(min {MIN_RUNWAY_MONTHS:g})"
            )
        if derived.averageDaysToCollect > MAX_DAYS_TO_COLLECT:
            reasons.append(
                f"SLOW_COLLECTIONS: {derived.averageDaysToCollect:g} days to collect "
                f"(max {MAX_DAYS_TO_COLLECT:g})"
            )

    elif constraint == ConstraintLabel.MARGIN:
        if derived.grossMargin < MIN_GROSS_MARGIN:
            reasons.append(
                f"GROSS_MARGIN_BELOW_MINIMUM: {derived.grossMargin:.1%} gross margin "
                f"(min {MIN_GROSS_MARGIN:.0%})"
            )
        if derived.netMargin < MIN_NET_MARGIN:
            reasons.append(
                f"NET_MARGIN_BELOW_MINIMUM: {derived.netMargin:.1%} net margin "
                f"(min {MIN_NET_MARGIN:.0%})"
            )

    elif constraint == ConstraintLabel.CAPACITY:
        reasons.append(
            f"CAPACITY_OVER_LIMIT: {derived.capacityUtilization:.1%} of capacity in use "
            f"(max {MAX_CAPACITY_UTILIZATION:.0%})"
        )

    elif constraint == ConstraintLabel.CONVERSION:
        reasons.append(
            f"CONVERSION_BELOW_MINIMUM: {derived.conversionRate:.1%} of leads close "
            f"(min {MIN_CONVERSION_RATE:.0%})"
        )

    else:
        reasons.append("ALL_THRESHOLDS_CLEARED: Cash flow, margin, capacity and conversion are healthy")

    return reasons


def diagnose(
    raw: Union[RawBusinessMetrics, Mapping[str, Any], None],
    include_details: bool = False,
) -> DiagnosticResponse:
    """
    Run the full diagnostic pipeline: derive, classify, look up actions.

    Args:
        raw: Raw business figures (model or plain mapping of any values).
        include_details: Whether to attach the detailed action plans. The caller
            decides this; the pipeline itself applies no access control.

    Returns:
        DiagnosticResponse with previews always populated and details either
        populated or withheld (details=None, detailsLocked=True).
    """
    constraint, derived = determine_constraint(raw)

    details: Optional[list] = None
    if include_details:
        details = list(get_action_details(constraint))

    logger.debug(f"Classified constraint {constraint.value} (details={'on' if include_details else 'off'})")

    return DiagnosticResponse(
        constraint=constraint,
        derived=derived,
        previews=list(get_action_previews(constraint)),
        details=details,
        detailsLocked=not include_details,
        reasons=build_reason_codes(derived, constraint),
    )


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "MIN_RUNWAY_MONTHS",
    "MAX_DAYS_TO_COLLECT",
    "MIN_GROSS_MARGIN",
    "MIN_NET_MARGIN",
    "MAX_CAPACITY_UTILIZATION",
    "MIN_CONVERSION_RATE",
    "classify_constraint",
    "determine_constraint",
    "build_reason_codes",
    "diagnose",
]
