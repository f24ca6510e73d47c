"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os
from datetime import date

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from portfolio.calculations.projection import LoanParams


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture
def make_params():
    """Build LoanParams for a $500k, 6%, 30 year monthly P&I loan with overrides."""

    def _make(**overrides):
        values = dict(
            principal=50_000_000,
            interest_rate=600,
            term_years=30,
            start_date=date(2025, 1, 1),
            property_value=80_000_000,
        )
        values.update(overrides)
        return LoanParams(**values)

    return _make
