"""
Loan Projection Engine

Walks a loan period by period across its remaining term, applying
interest rate forecasts, an offset balance, recurring extra payments and
lump sums, and tracks the secured property's projected value alongside.
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from portfolio.calculations.equity import calculate_lvr, project_property_value
from portfolio.calculations.errors import InvalidInputError
from portfolio.calculations.forecasts import (
    InterestRateForecast,
    PropertyGrowthForecast,
    StepForecast,
)
from portfolio.calculations.money import money_context
from portfolio.calculations.repayment import (
    Frequency,
    Loan,
    LoanStructure,
    amortizing_payment,
    calculate_io_repayment,
    payments_per_year,
    period_rate,
    repayment_frequency,
)

logger = logging.getLogger(__name__)

DEFAULT_GROWTH_RATE_BP = 400


def shift_date(start: date, frequency: Frequency, count: int) -> date:
    """Date of the count-th occurrence of a schedule starting on start."""
    if frequency is Frequency.WEEKLY:
        return start + relativedelta(days=7 * count)
    elif frequency is Frequency.FORTNIGHTLY:
        return start + relativedelta(days=14 * count)
    elif frequency is Frequency.MONTHLY:
        return start + relativedelta(months=count)
    elif frequency is Frequency.QUARTERLY:
        return start + relativedelta(months=3 * count)
    elif frequency is Frequency.ANNUALLY:
        return start + relativedelta(years=count)
    raise InvalidInputError(f"Unsupported frequency: {frequency!r}")


@dataclass
class ExtraPayment:
    """Recurring additional repayment, applied entirely to principal."""

    amount: int
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None

    def __post_init__(self):
        self.frequency = Frequency.parse(self.frequency)
        if self.amount < 0:
            raise InvalidInputError("Extra payment amount cannot be negative")
        if self.end_date is not None and self.end_date < self.start_date:
            raise InvalidInputError("Extra payment ends before it starts")


@dataclass
class LumpSum:
    """One-off additional repayment on a specific date."""

    amount: int
    date: date

    def __post_init__(self):
        if self.amount < 0:
            raise InvalidInputError("Lump sum amount cannot be negative")


@dataclass
class LoanParams:
    """Inputs for a loan projection. Money in cents, rates in basis points."""

    principal: int
    interest_rate: int
    term_years: int
    start_date: date
    loan_structure: LoanStructure = LoanStructure.PRINCIPAL_AND_INTEREST
    repayment_frequency: Frequency = Frequency.MONTHLY
    offset_balance: int = 0
    io_period_years: int = 0
    property_value: int = 0
    base_growth_rate: int = DEFAULT_GROWTH_RATE_BP

    def __post_init__(self):
        self.loan_structure = LoanStructure.parse(self.loan_structure)
        self.repayment_frequency = repayment_frequency(self.repayment_frequency)
        if self.principal < 0:
            raise InvalidInputError("Principal cannot be negative")
        if self.interest_rate < 0:
            raise InvalidInputError("Interest rate cannot be negative")
        if self.term_years <= 0:
            raise InvalidInputError("Loan term must be positive")
        if self.io_period_years < 0:
            raise InvalidInputError("Interest-only period cannot be negative")
        if self.offset_balance < 0:
            raise InvalidInputError("Offset balance cannot be negative")
        if self.property_value < 0:
            raise InvalidInputError("Property value cannot be negative")

    @property
    def payments_per_year(self) -> int:
        return payments_per_year(self.repayment_frequency)

    @property
    def total_periods(self) -> int:
        return int(self.term_years * self.payments_per_year)

    @property
    def io_periods(self) -> int:
        if self.loan_structure is LoanStructure.INTEREST_ONLY:
            return self.total_periods
        return min(int(self.io_period_years * self.payments_per_year), self.total_periods)


def loan_params_from_loan(
    loan: Loan,
    property_value: int = 0,
    rate_offset: int = 0,
    base_growth_rate: int = DEFAULT_GROWTH_RATE_BP,
) -> LoanParams:
    """Build projection inputs from a recorded loan."""
    return LoanParams(
        principal=loan.current_amount,
        interest_rate=max(loan.interest_rate + rate_offset, 0),
        term_years=loan.remaining_term_years,
        start_date=loan.start_date,
        loan_structure=loan.loan_structure,
        repayment_frequency=loan.repayment_frequency,
        offset_balance=loan.offset_balance,
        io_period_years=loan.remaining_io_period_years,
        property_value=property_value,
        base_growth_rate=base_growth_rate,
    )


@dataclass
class ProjectionRow:
    """One repayment period of a projection. Money in cents."""

    period: int
    date: date
    rate: int
    payment: int
    extra_payment: int
    interest: int
    principal: int
    balance: int
    property_value: int
    equity: int
    lvr: float
    year: int = field(init=False)

    def __post_init__(self):
        self.year = self.date.year

    @property
    def total_payment(self) -> int:
        return self.payment + self.extra_payment


def _extras_by_period(
    period_starts: List[date],
    extra_payments: Sequence[ExtraPayment],
    lump_sums: Sequence[LumpSum],
) -> Dict[int, int]:
    """
    Total extra principal falling inside each period.

    period_starts holds one more date than there are periods; period i
    covers [period_starts[i], period_starts[i + 1]).
    """
    horizon = period_starts[-1]
    last_period = len(period_starts) - 2
    totals: Dict[int, int] = {}

    def add(on: date, amount: int) -> None:
        index = bisect_right(period_starts, on) - 1
        if 0 <= index <= last_period:
            totals[index] = totals.get(index, 0) + amount

    for extra in extra_payments:
        count = 0
        occurrence = extra.start_date
        while occurrence < horizon and (
            extra.end_date is None or occurrence <= extra.end_date
        ):
            add(occurrence, extra.amount)
            count += 1
            occurrence = shift_date(extra.start_date, extra.frequency, count)

    for lump in lump_sums:
        add(lump.date, lump.amount)

    return totals


def _check_forecasts(
    interest_forecasts: Sequence[InterestRateForecast],
    growth_forecasts: Sequence[PropertyGrowthForecast],
) -> None:
    for forecast in interest_forecasts:
        if forecast.rate < 0:
            raise InvalidInputError(f"Negative interest rate forecast for {forecast.year}")
    for forecast in growth_forecasts:
        if forecast.growth_rate <= -10000:
            raise InvalidInputError(f"Growth rate forecast for {forecast.year} is -100% or lower")


def project_loan(
    params: LoanParams,
    interest_forecasts: Sequence[InterestRateForecast] = (),
    growth_forecasts: Sequence[PropertyGrowthForecast] = (),
    extra_payments: Sequence[ExtraPayment] = (),
    lump_sums: Sequence[LumpSum] = (),
) -> List[ProjectionRow]:
    """
    Generate a period-by-period projection of a loan.

    Each period's rate is the forecast in effect for its calendar year,
    falling back to the loan's own rate. Interest accrues on the balance
    net of the offset. During the interest-only period the scheduled
    payment is the interest alone; afterwards a level payment is set for
    the remaining periods and reset whenever the rate changes. Extra
    payments and lump sums go entirely to principal. The projection stops
    early once the balance reaches zero.

    Args:
        params: Loan and property inputs
        interest_forecasts: Rate breakpoints by calendar year
        growth_forecasts: Property growth breakpoints by calendar year
        extra_payments: Recurring extra repayments
        lump_sums: One-off extra repayments

    Returns:
        List of projection rows, one per period

    Raises:
        InvalidInputError: If any input is out of range
    """
    _check_forecasts(interest_forecasts, growth_forecasts)

    per_year = params.payments_per_year
    total_periods = params.total_periods
    io_periods = params.io_periods
    start_year = params.start_date.year

    rates = StepForecast.from_rate_forecasts(interest_forecasts, params.interest_rate)
    growth = StepForecast.from_growth_forecasts(growth_forecasts, params.base_growth_rate)

    period_starts = [
        shift_date(params.start_date, params.repayment_frequency, i)
        for i in range(total_periods + 1)
    ]
    extras = _extras_by_period(period_starts, extra_payments, lump_sums)
    property_values: Dict[int, int] = {}

    rows: List[ProjectionRow] = []
    balance = params.principal
    level_payment = None
    level_payment_rate = None

    with money_context():
        for i in range(total_periods):
            if balance <= 0:
                break

            period_date = period_starts[i]
            rate = rates.value_at(period_date.year)
            interest = calculate_io_repayment(
                max(balance - params.offset_balance, 0), rate, per_year
            )

            if i < io_periods:
                payment = interest
            elif i == total_periods - 1:
                # Final period clears any rounding residual.
                payment = balance + interest
            else:
                if level_payment is None or rate != level_payment_rate:
                    level_payment = amortizing_payment(
                        balance, period_rate(rate, per_year), total_periods - i
                    )
                    level_payment_rate = rate
                payment = min(level_payment, balance + interest)

            extra = min(extras.get(i, 0), max(balance - (payment - interest), 0))
            principal = payment + extra - interest
            balance = max(balance - principal, 0)

            year = period_date.year
            if year not in property_values:
                property_values[year] = project_property_value(
                    params.property_value, start_year, year, growth
                )
            property_value = property_values[year]

            rows.append(
                ProjectionRow(
                    period=i + 1,
                    date=period_date,
                    rate=rate,
                    payment=payment,
                    extra_payment=extra,
                    interest=interest,
                    principal=principal,
                    balance=balance,
                    property_value=property_value,
                    equity=property_value - balance,
                    lvr=calculate_lvr(balance, property_value),
                )
            )

    logger.debug("Projected %d of %d periods", len(rows), total_periods)
    return rows
