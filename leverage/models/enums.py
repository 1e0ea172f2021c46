"""
Enumeration definitions for the Sequential Leverage Diagnostic backend.

All enums inherit from both `str` and `Enum` so they serialize as plain strings
in Pydantic models and JSON responses. The values are the labels the frontend
renders and stores, so they must not change.
"""

from enum import Enum


class ConstraintLabel(str, Enum):
    """
    The single business function identified as the current limit on growth.

    Values: 'Cash Flow' | 'Margin' | 'Capacity' | 'Conversion' | 'Lead Volume'

    Declaration order matches classification priority:
    - Cash Flow: runway under 2 months or collections slower than 45 days
    - Margin: gross margin under 40% or net margin under 10%
    - Capacity: more than 85% of maximum output already in use
    - Conversion: fewer than 20% of leads close
    - Lead Volume: fallback once every other threshold is cleared
    """
    CASH_FLOW = "Cash Flow"
    MARGIN = "Margin"
    CAPACITY = "Capacity"
    CONVERSION = "Conversion"
    LEAD_VOLUME = "Lead Volume"
