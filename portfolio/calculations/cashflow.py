"""
Property Cashflow Calculations

Annual rental income, expenses and depreciation for a property, with
per-item growth escalation. All money in cents, growth rates in basis
points unless noted.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence, Union

from portfolio.calculations.errors import InvalidInputError
from portfolio.calculations.money import bp_to_rate, money_context, round_cents, to_decimal
from portfolio.calculations.repayment import Frequency, payments_per_year

ONE_TIME = "OneTime"


@dataclass
class RentalIncome:
    """A rental income stream."""

    amount: int  # Per payment
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    growth_rate: int = 0

    def __post_init__(self):
        self.frequency = Frequency.parse(self.frequency)
        if self.amount < 0:
            raise InvalidInputError("Rental income cannot be negative")


@dataclass
class ExpenseLog:
    """A recurring or one-off property expense."""

    total_amount: int  # Per occurrence
    frequency: Union[Frequency, str]
    date: date
    growth_rate: int = 0

    def __post_init__(self):
        if self.frequency != ONE_TIME:
            self.frequency = Frequency.parse(self.frequency)
        if self.total_amount < 0:
            raise InvalidInputError("Expense amount cannot be negative")


@dataclass
class DepreciationSchedule:
    """Annual depreciation claimable from a given date."""

    annual_amount: int
    as_at_date: date


@dataclass
class PropertyCashflow:
    """Annual cashflow of a property, in cents."""

    rental_income: int
    loan_repayments: int
    expenses: int
    depreciation: int
    net_cashflow: int


def _escalate(amount: int, annual_rate, years: int) -> int:
    with money_context():
        return round_cents(amount * (1 + annual_rate) ** years)


def calculate_rental_income_for_year(
    rental_incomes: Sequence[RentalIncome], target_year: int
) -> int:
    """
    Total annual rental income for a year.

    A stream counts when the year falls between its start and end years.
    Its amount escalates by its growth rate for each year since it started.
    """
    total = 0
    for income in rental_incomes:
        start_year = income.start_date.year
        end_year = income.end_date.year if income.end_date else None
        if target_year < start_year or (end_year is not None and target_year > end_year):
            continue

        amount = _escalate(income.amount, bp_to_rate(income.growth_rate), target_year - start_year)
        total += amount * payments_per_year(income.frequency)

    return total


def calculate_expenses_for_year(
    expenses: Sequence[ExpenseLog],
    target_year: int,
    expense_growth_override: Optional[float] = None,
) -> int:
    """
    Total annual expenses for a year.

    Args:
        expenses: Expense items
        target_year: Calendar year
        expense_growth_override: Growth rate as a percentage (e.g. 3 for 3%)
            replacing every item's own growth rate

    Returns:
        Annual expenses in cents
    """
    total = 0
    for expense in expenses:
        years_elapsed = target_year - expense.date.year
        if years_elapsed < 0:
            continue

        if expense_growth_override is not None:
            with money_context():
                growth = to_decimal(expense_growth_override) / 100
        else:
            growth = bp_to_rate(expense.growth_rate)
        amount = _escalate(expense.total_amount, growth, years_elapsed)

        if expense.frequency == ONE_TIME:
            if years_elapsed == 0:
                total += amount
        else:
            total += amount * payments_per_year(expense.frequency)

    return total


def depreciation_for_year(
    schedules: Sequence[DepreciationSchedule], target_year: int
) -> int:
    """Annual depreciation from the latest schedule at or before the year."""
    applicable = [s for s in schedules if s.as_at_date.year <= target_year]
    if not applicable:
        return 0
    return max(applicable, key=lambda s: s.as_at_date).annual_amount


def calculate_property_cashflow(
    rental_incomes: Sequence[RentalIncome],
    expenses: Sequence[ExpenseLog],
    depreciation: Sequence[DepreciationSchedule],
    loan_repayments: int,
    target_year: int,
    expense_growth_override: Optional[float] = None,
) -> PropertyCashflow:
    """
    Calculate a property's cashflow for a year.

    loan_repayments is the total repaid across the property's loans in the
    year. Depreciation is reported but does not reduce the net cashflow.
    """
    rental_income = calculate_rental_income_for_year(rental_incomes, target_year)
    expenses_amount = calculate_expenses_for_year(
        expenses, target_year, expense_growth_override
    )

    return PropertyCashflow(
        rental_income=rental_income,
        loan_repayments=loan_repayments,
        expenses=expenses_amount,
        depreciation=depreciation_for_year(depreciation, target_year),
        net_cashflow=rental_income - loan_repayments - expenses_amount,
    )
