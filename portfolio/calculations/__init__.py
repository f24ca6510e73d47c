"""
Financial Calculation Engine

Loan repayment, amortization, property value and portfolio projection
modules. All money is in integer cents and all rates in basis points.
"""

from portfolio.calculations import (
    aggregation,
    cashflow,
    equity,
    forecasts,
    money,
    portfolio,
    projection,
    purchase_costs,
    repayment,
)
from portfolio.calculations.errors import InvalidInputError

__all__ = [
    "aggregation",
    "cashflow",
    "equity",
    "forecasts",
    "money",
    "portfolio",
    "projection",
    "purchase_costs",
    "repayment",
    "InvalidInputError",
]
