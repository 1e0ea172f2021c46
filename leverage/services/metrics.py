"""
Derived Metrics Service

Normalizes raw self-reported business figures into the canonical DerivedMetrics
record consumed by the constraint classifier.

Derived Metrics:
- grossMargin: (revenue - costOfDelivery) / revenue, 0 when revenue <= 0
- netProfit: revenue - costOfDelivery - fixedExpenses (may be negative)
- netMargin: netProfit / revenue, 0 when revenue <= 0
- conversionRate: dealsClosed / leads, 0 when leads <= 0
- capacityUtilization: currentOutput / maxCapacity, 0 when maxCapacity <= 0
- monthlyBurn: fixedExpenses + costOfDelivery
- runwayMonths: cashOnHand / monthlyBurn, infinity when monthlyBurn <= 0
- averageDaysToCollect: passed through

The derivation is pure: identical input always yields bit-identical output.
"""

import math
from typing import Any, Mapping, Union

from leverage.models.schemas import DerivedMetrics, RawBusinessMetrics


def _ratio(numerator: float, denominator: float) -> float:
    """Divide, returning 0 when the denominator is not positive."""
    return numerator / denominator if denominator > 0 else 0.0


def normalize_raw_metrics(
    raw: Union[RawBusinessMetrics, Mapping[str, Any], None]
) -> RawBusinessMetrics:
    """
    Coerce any mapping of raw inputs into a RawBusinessMetrics record.

    Args:
        raw: A RawBusinessMetrics instance, a mapping of field names to values
            of any type, or None (treated as an empty submission).

    Returns:
        RawBusinessMetrics with every field a finite float.
    """
    if isinstance(raw, RawBusinessMetrics):
        return raw
    if raw is None:
        return RawBusinessMetrics()
    return RawBusinessMetrics.model_validate(dict(raw))


def derive_metrics(
    raw: Union[RawBusinessMetrics, Mapping[str, Any], None]
) -> DerivedMetrics:
    """
    Compute the derived metrics for one business.

    Never raises: malformed or missing inputs have already been coerced to
    their defaults by RawBusinessMetrics.

    Args:
        raw: Raw business figures (model or plain mapping).

    Returns:
        Immutable DerivedMetrics.

    Example:
        >>> derived = derive_metrics({
        ...     "monthlyRevenue": 10000, "costOfDelivery": 9000,
        ...     "fixedExpenses": 500, "cashOnHand": 5000,
        ... })
        >>> derived.monthlyBurn
        9500.0
        >>> round(derived.runwayMonths, 3)
        0.526
    """
    metrics = normalize_raw_metrics(raw)

    revenue = metrics.monthlyRevenue
    cost_of_delivery = metrics.costOfDelivery
    fixed_expenses = metrics.fixedExpenses

    net_profit = revenue - cost_of_delivery - fixed_expenses
    monthly_burn = fixed_expenses + cost_of_delivery

    return DerivedMetrics(
        grossMargin=_ratio(revenue - cost_of_delivery, revenue),
        netProfit=net_profit,
        netMargin=_ratio(net_profit, revenue),
        conversionRate=_ratio(metrics.dealsClosedPerMonth, metrics.leadsPerMonth),
        capacityUtilization=_ratio(metrics.currentOutputPerMonth, metrics.maxCapacityPerMonth),
        monthlyBurn=monthly_burn,
        # No burn means the cash never runs out
        runwayMonths=metrics.cashOnHand / monthly_burn if monthly_burn > 0 else math.inf,
        averageDaysToCollect=metrics.averageDaysToCollect,
    )


__all__ = [
    "normalize_raw_metrics",
    "derive_metrics",
]
