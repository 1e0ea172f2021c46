"""
Batch Diagnostic Test Module

Tests for the pandas/numpy pipeline in leverage/services/batch.py.

Test Coverage:
- Parity: every derived value and label matches the single-record path exactly
- Column-wise coercion (missing columns, blanks, text, bools, infinities)
- CSV ingestion errors (empty, header only, no recognized columns)
- diagnose_csv response shape and per-label counts
"""

import io
import math

import numpy as np
import pandas as pd
import pytest

from leverage.models import ConstraintLabel
from leverage.services.batch import (
    DERIVED_COLUMNS,
    classify_frame,
    count_constraints,
    derive_metrics_frame,
    diagnose_csv,
    diagnose_frame,
    normalize_metrics_frame,
    read_metrics_csv,
)
from leverage.services.classification import determine_constraint


def assert_matches_single_record(records):
    """Diagnose records both ways and require identical results."""
    result = diagnose_frame(pd.DataFrame(records))

    for position, raw in enumerate(records):
        expected_label, expected = determine_constraint(raw)
        row = result.iloc[position]

        assert row['constraint'] == expected_label.value
        for column in DERIVED_COLUMNS:
            actual = row[column]
            wanted = getattr(expected, column)
            if math.isinf(wanted):
                assert math.isinf(actual)
            else:
                assert actual == wanted, column


@pytest.mark.parity
class TestParity:
    """Batch and single-record results are identical."""

    def test_scenarios(self, all_scenarios):
        assert_matches_single_record(all_scenarios)

    def test_scenario_labels_in_order(self, all_scenarios):
        result = diagnose_frame(pd.DataFrame(all_scenarios))

        assert result['constraint'].tolist() == [label.value for label in ConstraintLabel]

    def test_malformed_cells(self):
        records = [
            {'monthlyRevenue': 'abc', 'costOfDelivery': 100, 'maxCapacityPerMonth': 'x'},
            {'monthlyRevenue': 5000, 'costOfDelivery': None, 'maxCapacityPerMonth': 0},
            {'monthlyRevenue': ' 8000 ', 'costOfDelivery': True, 'currentOutputPerMonth': 3},
            {'monthlyRevenue': float('inf'), 'cashOnHand': 1000, 'averageDaysToCollect': 60},
            {},
        ]
        assert_matches_single_record(records)

    def test_boundaries(self):
        records = [
            {'monthlyRevenue': 10000, 'costOfDelivery': 6000, 'cashOnHand': 12000,
             'leadsPerMonth': 10, 'dealsClosedPerMonth': 2,
             'maxCapacityPerMonth': 100, 'currentOutputPerMonth': 85},
            {'monthlyRevenue': 10000, 'costOfDelivery': 4000, 'fixedExpenses': 5000,
             'cashOnHand': 18000, 'averageDaysToCollect': 45},
        ]
        assert_matches_single_record(records)


class TestNormalization:
    """Column-wise coercion."""

    def test_missing_columns_take_defaults(self):
        raw = normalize_metrics_frame(pd.DataFrame({'monthlyRevenue': [100, 200]}))

        assert raw['costOfDelivery'].tolist() == [0.0, 0.0]
        assert raw['maxCapacityPerMonth'].tolist() == [1.0, 1.0]
        assert raw['monthlyRevenue'].dtype == np.float64

    def test_bool_column_takes_default(self):
        raw = normalize_metrics_frame(pd.DataFrame({'leadsPerMonth': [True, False]}))

        assert raw['leadsPerMonth'].tolist() == [0.0, 0.0]

    def test_headers_are_stripped_and_unknown_columns_dropped(self):
        raw = normalize_metrics_frame(pd.DataFrame({' cashOnHand ': [10], 'notes': ['hi']}))

        assert raw['cashOnHand'].tolist() == [10.0]
        assert 'notes' not in raw.columns

    def test_infinite_runway_for_zero_burn(self):
        derived = derive_metrics_frame(pd.DataFrame({'monthlyRevenue': [1000]}))

        assert np.isinf(derived['runwayMonths'].iloc[0])
        assert list(derived.columns) == DERIVED_COLUMNS

    def test_classify_frame_preserves_index(self):
        derived = derive_metrics_frame(pd.DataFrame({'monthlyRevenue': [1, 2]}, index=[7, 9]))
        labels = classify_frame(derived)

        assert labels.index.tolist() == [7, 9]
        assert labels.name == 'constraint'


class TestCsvIngestion:
    """read_metrics_csv and diagnose_csv."""

    def test_empty_file(self):
        df, errors = read_metrics_csv(b"")

        assert df is None
        assert errors == ['CSV file is empty']

    def test_header_only(self):
        df, errors = read_metrics_csv("monthlyRevenue,costOfDelivery\n")

        assert df is None
        assert errors == ['CSV file contains no data rows']

    def test_no_recognized_columns(self):
        df, errors = read_metrics_csv(b"foo,bar\n1,2\n")

        assert df is None
        assert errors[0].startswith('CSV file has no recognized metric columns')

    def test_reads_file_objects(self, scenario_capacity):
        csv_text = pd.DataFrame([scenario_capacity]).to_csv(index=False)
        df, errors = read_metrics_csv(io.BytesIO(csv_text.encode('utf-8')))

        assert errors == []
        assert len(df) == 1

    def test_diagnose_csv_counts_every_label(self, all_scenarios):
        csv_bytes = pd.DataFrame(all_scenarios).to_csv(index=False).encode('utf-8')

        response, errors = diagnose_csv(csv_bytes)

        assert errors == []
        assert response.total == 5
        assert response.counts == {label.value: 1 for label in ConstraintLabel}
        assert [row.row for row in response.results] == [0, 1, 2, 3, 4]
        assert response.results[2].constraint == ConstraintLabel.CAPACITY
        assert response.results[2].derived.capacityUtilization == pytest.approx(0.90)

    def test_diagnose_csv_with_blank_cells(self):
        csv_text = "monthlyRevenue,costOfDelivery,cashOnHand\n10000,,\n,500,abc\n"

        response, errors = diagnose_csv(csv_text)

        assert errors == []
        assert response.total == 2
        # First row has no burn at all
        assert math.isinf(response.results[0].derived.runwayMonths)
        assert response.results[1].derived.runwayMonths == 0.0
        assert response.results[1].constraint == ConstraintLabel.CASH_FLOW

    def test_count_constraints_includes_zero_counts(self):
        counts = count_constraints(pd.Series(['Margin', 'Margin', 'Capacity']))

        assert list(counts) == [label.value for label in ConstraintLabel]
        assert counts['Margin'] == 2
        assert counts['Capacity'] == 1
        assert counts['Cash Flow'] == 0


@pytest.mark.parity
class TestCsvParity:
    """CSV uploads round long decimals exactly like a single submission."""

    LONG_DECIMAL_ROWS = [
        {
            'monthlyRevenue': '144272509.930157647946841235',
            'costOfDelivery': '57709003.972063059178736494',
            'fixedExpenses': '1234567.8901234567890123456',
            'cashOnHand': '98765432.101234567890123456789',
            'leadsPerMonth': '333.33333333333333333333',
            'dealsClosedPerMonth': '77.777777777777777777777',
            'maxCapacityPerMonth': '0.30000000000000000000001',
            'currentOutputPerMonth': '0.1000000000000000055511151231257827',
            'averageDaysToCollect': '44.999999999999999999999',
        },
        {
            'monthlyRevenue': '9007199254740993.0000000001',
            'costOfDelivery': '2.2250738585072011e-308',
            'fixedExpenses': '1.7976931348623157e308',
            'cashOnHand': '0.1234567890123456789012345',
            'leadsPerMonth': '12_000',
            'dealsClosedPerMonth': ' 5 ',
            'maxCapacityPerMonth': '',
            'currentOutputPerMonth': 'NA',
            'averageDaysToCollect': '45.000000000000000000001',
        },
    ]

    def test_long_decimals_match_single_record(self):
        csv_text = pd.DataFrame(self.LONG_DECIMAL_ROWS).to_csv(index=False)

        response, errors = diagnose_csv(csv_text)

        assert errors == []
        for result, raw in zip(response.results, self.LONG_DECIMAL_ROWS):
            expected_label, expected = determine_constraint(raw)

            assert result.constraint == expected_label
            for column in DERIVED_COLUMNS:
                actual = getattr(result.derived, column)
                wanted = getattr(expected, column)
                if math.isinf(wanted):
                    assert math.isinf(actual)
                else:
                    assert actual == wanted, column

    def test_csv_cells_are_read_as_text(self):
        df, errors = read_metrics_csv("monthlyRevenue,costOfDelivery\n144272509.930157647946841235,1_000\n")

        assert errors == []
        raw = normalize_metrics_frame(df)
        assert raw['monthlyRevenue'].iloc[0] == float('144272509.930157647946841235')
        assert raw['costOfDelivery'].iloc[0] == 0.0


class TestDuplicateHeaders:
    """Headers that collide once whitespace is stripped."""

    def test_csv_with_colliding_headers_is_rejected(self):
        df, errors = read_metrics_csv(b"monthlyRevenue, monthlyRevenue\n100,200\n")

        assert df is None
        assert errors == ['CSV file has duplicate metric columns: monthlyRevenue']

    def test_diagnose_csv_reports_the_collision(self):
        response, errors = diagnose_csv(b"cashOnHand ,costOfDelivery, cashOnHand\n1,2,3\n")

        assert response is None
        assert errors == ['CSV file has duplicate metric columns: cashOnHand']

    def test_frame_with_colliding_headers_uses_first_column(self):
        df = pd.DataFrame([[100, 200]], columns=['monthlyRevenue', ' monthlyRevenue'])

        raw = normalize_metrics_frame(df)

        assert raw['monthlyRevenue'].tolist() == [100.0]
