"""
Batch Diagnostic Service

Vectorized version of the diagnostic pipeline for many businesses at once,
typically an uploaded CSV with one business per row and RawBusinessMetrics
field names as column headers.

Parity with the single-record path:
- the same coercion rule per cell (missing column, blank cell, text, bool,
  NaN or infinity -> field default; maxCapacityPerMonth defaults to 1)
- CSV cells are read as text and parsed by coerce_metric_value itself, so a
  long decimal rounds exactly as float() rounds it
- the same formulas evaluated in the same order, so derived values are
  bit-identical to derive_metrics
- the same decision tree, expressed with numpy.select in rule order

Unknown columns are ignored. CSV uploads whose headers collide after
whitespace stripping are rejected.
"""

import io
import logging
from collections import Counter
from typing import BinaryIO, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from leverage.models.enums import ConstraintLabel
from leverage.models.schemas import (
    BatchDiagnosticResponse,
    BatchDiagnosticRow,
    DerivedMetrics,
    RawBusinessMetrics,
    coerce_metric_value,
)
from leverage.services.classification import (
    MAX_CAPACITY_UTILIZATION,
    MAX_DAYS_TO_COLLECT,
    MIN_CONVERSION_RATE,
    MIN_GROSS_MARGIN,
    MIN_NET_MARGIN,
    MIN_RUNWAY_MONTHS,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Column Definitions
# =============================================================================

# Raw input column -> default used when the cell does not coerce
RAW_METRIC_DEFAULTS: Dict[str, float] = {
    name: field.default for name, field in RawBusinessMetrics.model_fields.items()
}

# Derived output columns, in DerivedMetrics field order
DERIVED_COLUMNS: List[str] = list(DerivedMetrics.model_fields.keys())

# Upper bound on rows accepted in one upload
MAX_BATCH_ROWS: int = 10000


# =============================================================================
# Coercion
# =============================================================================


def _coerce_column(df: pd.DataFrame, column: str, default: float) -> pd.Series:
    """
    Coerce one raw input column to float64 using the single-record rule.

    Args:
        df: Raw input frame.
        column: Column name (a RawBusinessMetrics field).
        default: Fallback for cells that do not coerce.

    Returns:
        float64 Series aligned to df.index with no NaN or infinite values.
    """
    if column not in df.columns:
        return pd.Series(default, index=df.index, dtype='float64')

    series = df[column]

    if pd.api.types.is_bool_dtype(series):
        return pd.Series(default, index=df.index, dtype='float64')

    if pd.api.types.is_numeric_dtype(series):
        numeric = pd.to_numeric(series, errors='coerce').astype('float64')
        return numeric.replace([np.inf, -np.inf], np.nan).fillna(default)

    # Mixed/text columns: defer to the scalar rule cell by cell
    return series.map(lambda value: coerce_metric_value(value, default)).astype('float64')


def normalize_metrics_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Build a frame of coerced raw inputs with exactly the RawBusinessMetrics columns.

    Column headers are matched after stripping surrounding whitespace; when two
    headers strip to the same name only the first column is used.
    """
    df_normalized = df.copy()
    df_normalized.columns = [str(col).strip() for col in df_normalized.columns]
    df_normalized = df_normalized.loc[:, ~df_normalized.columns.duplicated()]

    return pd.DataFrame(
        {
            column: _coerce_column(df_normalized, column, default)
            for column, default in RAW_METRIC_DEFAULTS.items()
        },
        index=df_normalized.index,
    )


# =============================================================================
# Derivation and Classification
# =============================================================================


def derive_metrics_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Compute DerivedMetrics columns for every row of a raw input frame.

    Args:
        df: Raw input frame (any dtypes, any subset of input columns).

    Returns:
        DataFrame with DERIVED_COLUMNS, indexed like df. runwayMonths is
        numpy.inf where monthly burn is zero.
    """
    raw = normalize_metrics_frame(df)

    revenue = raw['monthlyRevenue']
    cost_of_delivery = raw['costOfDelivery']
    fixed_expenses = raw['fixedExpenses']
    leads = raw['leadsPerMonth']
    max_capacity = raw['maxCapacityPerMonth']

    net_profit = revenue - cost_of_delivery - fixed_expenses
    monthly_burn = fixed_expenses + cost_of_delivery

    # np.where evaluates both branches; the guarded-off side is discarded
    with np.errstate(divide='ignore', invalid='ignore'):
        derived = pd.DataFrame(
            {
                'grossMargin': np.where(revenue > 0, (revenue - cost_of_delivery) / revenue, 0.0),
                'netProfit': net_profit,
                'netMargin': np.where(revenue > 0, net_profit / revenue, 0.0),
                'conversionRate': np.where(leads > 0, raw['dealsClosedPerMonth'] / leads, 0.0),
                'capacityUtilization': np.where(
                    max_capacity > 0, raw['currentOutputPerMonth'] / max_capacity, 0.0
                ),
                'monthlyBurn': monthly_burn,
                'runwayMonths': np.where(monthly_burn > 0, raw['cashOnHand'] / monthly_burn, np.inf),
                'averageDaysToCollect': raw['averageDaysToCollect'],
            },
            index=raw.index,
        )

    return derived[DERIVED_COLUMNS]


def classify_frame(derived: pd.DataFrame) -> pd.Series:
    """
    Apply the constraint decision tree to every row of a derived frame.

    Args:
        derived: Output of derive_metrics_frame.

    Returns:
        Series named 'constraint' holding ConstraintLabel values.
    """
    conditions = [
        (derived['runwayMonths'] < MIN_RUNWAY_MONTHS) | (derived['averageDaysToCollect'] > MAX_DAYS_TO_COLLECT),
        (derived['grossMargin'] < MIN_GROSS_MARGIN) | (derived['netMargin'] < MIN_NET_MARGIN),
        derived['capacityUtilization'] > MAX_CAPACITY_UTILIZATION,
        derived['conversionRate'] < MIN_CONVERSION_RATE,
    ]
    choices = [
        ConstraintLabel.CASH_FLOW.value,
        ConstraintLabel.MARGIN.value,
        ConstraintLabel.CAPACITY.value,
        ConstraintLabel.CONVERSION.value,
    ]

    labels = np.select(conditions, choices, default=ConstraintLabel.LEAD_VOLUME.value)
    return pd.Series(labels, index=derived.index, name='constraint', dtype='object')


def diagnose_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Derive and classify every row; returns derived columns plus 'constraint'."""
    derived = derive_metrics_frame(df)
    return derived.assign(constraint=classify_frame(derived))


def count_constraints(constraints: pd.Series) -> Dict[str, int]:
    """Count rows per label, listing every label (zero counts included) in priority order."""
    observed = Counter(constraints.tolist())
    return {label.value: int(observed.get(label.value, 0)) for label in ConstraintLabel}


# =============================================================================
# CSV Ingestion
# =============================================================================


def read_metrics_csv(
    file: Union[bytes, str, BinaryIO]
) -> Tuple[Optional[pd.DataFrame], List[str]]:
    """
    Parse an uploaded CSV of raw business metrics.

    Args:
        file: CSV content as bytes, text, or a binary file object.

    Returns:
        Tuple of (DataFrame or None, list of error messages). The frame is None
        whenever errors is non-empty.
    """
    errors: List[str] = []

    try:
        if isinstance(file, bytes):
            file_like = io.BytesIO(file)
        elif isinstance(file, str):
            file_like = io.StringIO(file)
        else:
            file_like = file

        # Cells stay text so every value goes through coerce_metric_value,
        # exactly as a single submission would
        df = pd.read_csv(file_like, dtype=str)
    except pd.errors.EmptyDataError:
        errors.append('CSV file is empty')
        return None, errors
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        errors.append(f'Failed to parse CSV file: {str(e)}')
        return None, errors

    if df.empty:
        errors.append('CSV file contains no data rows')
        return None, errors

    if len(df) > MAX_BATCH_ROWS:
        errors.append(f'CSV file has {len(df)} rows (max {MAX_BATCH_ROWS})')
        return None, errors

    recognized = [col for col in df.columns if str(col).strip() in RAW_METRIC_DEFAULTS]
    duplicated = sorted({
        name for name, count in Counter(str(col).strip() for col in recognized).items() if count > 1
    })
    if duplicated:
        errors.append('CSV file has duplicate metric columns: ' + ', '.join(duplicated))
        return None, errors

    if not recognized:
        errors.append(
            'CSV file has no recognized metric columns. Expected any of: '
            + ', '.join(RAW_METRIC_DEFAULTS)
        )
        return None, errors

    logger.info(f"Parsed metrics CSV with {len(df)} rows and {len(df.columns)} columns")
    return df, errors


def diagnose_csv(
    file: Union[bytes, str, BinaryIO]
) -> Tuple[Optional[BatchDiagnosticResponse], List[str]]:
    """
    Parse a CSV upload and diagnose every row.

    Returns:
        Tuple of (BatchDiagnosticResponse or None, list of error messages).
    """
    df, errors = read_metrics_csv(file)
    if df is None:
        return None, errors

    result = diagnose_frame(df).reset_index(drop=True)

    rows = [
        BatchDiagnosticRow(
            row=row_number,
            constraint=ConstraintLabel(record['constraint']),
            derived=DerivedMetrics(**{column: record[column] for column in DERIVED_COLUMNS}),
        )
        for row_number, record in enumerate(result.to_dict(orient='records'))
    ]

    counts = count_constraints(result['constraint'])
    logger.info(f"Diagnosed {len(rows)} businesses: {counts}")

    return BatchDiagnosticResponse(total=len(rows), counts=counts, results=rows), errors


__all__ = [
    "RAW_METRIC_DEFAULTS",
    "DERIVED_COLUMNS",
    "MAX_BATCH_ROWS",
    "normalize_metrics_frame",
    "derive_metrics_frame",
    "classify_frame",
    "diagnose_frame",
    "count_constraints",
    "read_metrics_csv",
    "diagnose_csv",
]
