"""
Projection Aggregation

Rolls period-level projection rows up into calendar-year summaries for
charting and reporting.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from portfolio.calculations.projection import ProjectionRow


@dataclass
class YearlyAggregate:
    """Calendar-year totals and year-end balances, in cents."""

    year: int
    total_interest: int = 0
    total_principal: int = 0
    total_payment: int = 0
    end_balance: int = 0
    end_property_value: int = 0
    end_equity: int = 0
    end_lvr: float = 0.0


@dataclass
class ScheduleSummary:
    """Whole-of-life totals for a projection."""

    periods: int
    total_interest: int
    total_principal: int
    total_paid: int
    final_balance: int
    payoff_date: Optional[date]


def aggregate_by_year(rows: Sequence[ProjectionRow]) -> List[YearlyAggregate]:
    """
    Group projection rows by calendar year.

    Interest, principal and payments are summed; balance, property value,
    equity and LVR are taken from the last row of each year.
    """
    yearly: List[YearlyAggregate] = []
    current: Optional[YearlyAggregate] = None

    for row in sorted(rows, key=lambda r: r.date):
        if current is None or row.year != current.year:
            current = YearlyAggregate(year=row.year)
            yearly.append(current)

        current.total_interest += row.interest
        current.total_principal += row.principal
        current.total_payment += row.total_payment
        current.end_balance = row.balance
        current.end_property_value = row.property_value
        current.end_equity = row.equity
        current.end_lvr = row.lvr

    return yearly


def summarize_schedule(rows: Sequence[ProjectionRow]) -> ScheduleSummary:
    """Total interest, principal and payments over a projection."""
    final_balance = rows[-1].balance if rows else 0
    return ScheduleSummary(
        periods=len(rows),
        total_interest=sum(row.interest for row in rows),
        total_principal=sum(row.principal for row in rows),
        total_paid=sum(row.total_payment for row in rows),
        final_balance=final_balance,
        payoff_date=rows[-1].date if rows and final_balance == 0 else None,
    )
