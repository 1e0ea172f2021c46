'''
Sequential Leverage Diagnostic Test Suite

Test Modules:
-------------
- test_metrics.py: Derived metric formulas
  - Zero-denominator guards
  - Infinite runway for zero burn
  - Input coercion (text, null, bool, non-finite, explicit zero capacity)

- test_classification.py: Constraint classification
  - Scenarios A-E, one per label
  - Rule priority and strict threshold boundaries
  - Reason codes and the diagnose pipeline

- test_action_catalog.py: Static action catalog
  - Exact key set, three previews and three plans per label
  - Summary/preview agreement, read-only data

- test_batch.py: pandas/numpy batch path
  - Parity with the single-record path
  - CSV ingestion errors

- test_api.py: Diagnostic HTTP contract
  - Preview/detail access boundary
  - Batch upload, catalog listing, health

- test_analytics.py: Analytics proxy
  - Query normalization and upstream call (httpx.MockTransport)
  - Status codes for auth, configuration, upstream and internal failures

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
