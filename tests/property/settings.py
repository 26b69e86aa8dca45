# tests/property/settings.py
"""Standardized Hypothesis settings profiles for property tests.

Provides consistent test intensity across all property test modules.
Import these instead of using inline @settings(max_examples=...).

Usage:
    from tests.property.settings import STANDARD_SETTINGS

    @given(records=record_lists)
    @STANDARD_SETTINGS
    def test_something(records):
        ...

Tiers:
- RECONCILIATION_SETTINGS: 300 examples - Ledger/integrity guarantees (no loss, no duplication)
- STANDARD_SETTINGS: 100 examples - Regular property tests
- LOOP_SETTINGS: 50 examples - Tests that drive an event loop per example
"""

from hypothesis import settings

# Core guarantee: a lossless transfer always reconciles and a corrupted one never does
RECONCILIATION_SETTINGS = settings(max_examples=300)

# Standard property tests - good balance of coverage and speed
STANDARD_SETTINGS = settings(max_examples=100)

# One asyncio.run() per example; fewer examples keep the suite fast
LOOP_SETTINGS = settings(max_examples=50)
