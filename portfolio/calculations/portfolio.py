"""
Portfolio Calculations

Combines property values, loan projections and cashflows into
portfolio-level summaries and multi-year projections.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from portfolio.calculations.aggregation import YearlyAggregate, aggregate_by_year
from portfolio.calculations.cashflow import (
    DepreciationSchedule,
    ExpenseLog,
    RentalIncome,
    calculate_property_cashflow,
)
from portfolio.calculations.equity import (
    PropertyValuation,
    calculate_equity,
    calculate_property_value,
)
from portfolio.calculations.errors import InvalidInputError
from portfolio.calculations.forecasts import GrowthRatePeriod, StepForecast
from portfolio.calculations.money import money_context, round_cents, to_decimal
from portfolio.calculations.projection import loan_params_from_loan, project_loan
from portfolio.calculations.repayment import Loan

logger = logging.getLogger(__name__)

DEFAULT_SHARE_RETURN = 7.0


@dataclass
class Property:
    """An investment property."""

    name: str
    purchase_price: int
    purchase_date: date
    id: Optional[int] = None


@dataclass
class PropertyData:
    """A property together with everything recorded against it."""

    property: Property
    loans: List[Loan] = field(default_factory=list)
    valuations: List[PropertyValuation] = field(default_factory=list)
    growth_periods: List[GrowthRatePeriod] = field(default_factory=list)
    rental_incomes: List[RentalIncome] = field(default_factory=list)
    expenses: List[ExpenseLog] = field(default_factory=list)
    depreciation: List[DepreciationSchedule] = field(default_factory=list)


@dataclass
class PropertyProjection:
    """One property's position in a given year."""

    property_id: Optional[int]
    property_name: str
    year: int
    value: int
    debt: int
    equity: int
    lvr: float
    cashflow: int
    rental_income: int
    expenses: int
    loan_repayments: int
    depreciation: int


@dataclass
class PortfolioSummary:
    """Portfolio totals for a year."""

    total_properties: int
    total_value: int
    total_debt: int
    total_equity: int
    average_lvr: float
    total_annual_income: int
    total_annual_expenses: int  # Includes loan repayments
    total_annual_cashflow: int


@dataclass
class PortfolioProjection:
    """Portfolio totals for a year with the per-property breakdown."""

    year: int
    total_value: int
    total_debt: int
    total_equity: int
    total_cashflow: int
    total_rental_income: int
    total_expenses: int
    total_loan_repayments: int
    properties: List[PropertyProjection]


@dataclass
class InvestmentComparison:
    """Property equity against a share portfolio funded the same way."""

    year: int
    property_equity: int
    share_equity: int
    difference: int


class LoanForecast:
    """A loan projected once over its remaining term, queried by year."""

    def __init__(self, loan: Loan, rate_offset: int = 0):
        self.loan = loan
        self.start_year = loan.start_date.year
        rows = project_loan(loan_params_from_loan(loan, rate_offset=rate_offset))
        self.yearly: Dict[int, YearlyAggregate] = {
            aggregate.year: aggregate for aggregate in aggregate_by_year(rows)
        }

    def is_active(self, year: int) -> bool:
        return year >= self.start_year

    def balance_at(self, year: int) -> int:
        """Balance outstanding at the start of a year (0 before the loan starts)."""
        if not self.is_active(year):
            return 0
        balance = self.loan.current_amount
        for aggregate_year in sorted(self.yearly):
            if aggregate_year >= year:
                break
            balance = self.yearly[aggregate_year].end_balance
        return balance

    def repayments_in(self, year: int) -> int:
        aggregate = self.yearly.get(year)
        return aggregate.total_payment if aggregate else 0


class PropertyModel:
    """Evaluates one property's value, debt and cashflow year by year."""

    def __init__(
        self,
        data: PropertyData,
        interest_rate_offset: int = 0,
        expense_growth_override: Optional[float] = None,
    ):
        self.data = data
        self.expense_growth_override = expense_growth_override
        self.growth = StepForecast.from_periods(data.growth_periods, default=0)
        self.loans = [LoanForecast(loan, interest_rate_offset) for loan in data.loans]

    def project(self, year: int) -> PropertyProjection:
        prop = self.data.property
        value = calculate_property_value(
            prop.purchase_price, prop.purchase_date, self.data.valuations, self.growth, year
        )
        debt = sum(loan.balance_at(year) for loan in self.loans)
        equity = calculate_equity(value, debt)

        repayments = sum(loan.repayments_in(year) for loan in self.loans)
        cashflow = calculate_property_cashflow(
            self.data.rental_incomes,
            self.data.expenses,
            self.data.depreciation,
            repayments,
            year,
            self.expense_growth_override,
        )

        return PropertyProjection(
            property_id=prop.id,
            property_name=prop.name,
            year=year,
            value=value,
            debt=debt,
            equity=equity.equity,
            lvr=equity.lvr,
            cashflow=cashflow.net_cashflow,
            rental_income=cashflow.rental_income,
            expenses=cashflow.expenses,
            loan_repayments=cashflow.loan_repayments,
            depreciation=cashflow.depreciation,
        )


def _summarize(projections: Sequence[PropertyProjection]) -> PortfolioSummary:
    count = len(projections)
    average_lvr = round(sum(p.lvr for p in projections) / count, 2) if count else 0.0
    return PortfolioSummary(
        total_properties=count,
        total_value=sum(p.value for p in projections),
        total_debt=sum(p.debt for p in projections),
        total_equity=sum(p.equity for p in projections),
        average_lvr=average_lvr,
        total_annual_income=sum(p.rental_income for p in projections),
        total_annual_expenses=sum(p.expenses + p.loan_repayments for p in projections),
        total_annual_cashflow=sum(p.cashflow for p in projections),
    )


def calculate_portfolio_summary(
    properties: Sequence[PropertyData],
    target_year: int,
    interest_rate_offset: int = 0,
) -> PortfolioSummary:
    """
    Calculate portfolio totals for a year.

    Args:
        properties: Properties with their loans and records
        target_year: Calendar year
        interest_rate_offset: Basis points added to every loan rate

    Returns:
        Portfolio summary
    """
    models = [PropertyModel(data, interest_rate_offset) for data in properties]
    return _summarize([model.project(target_year) for model in models])


def generate_portfolio_projections(
    properties: Sequence[PropertyData],
    start_year: int,
    end_year: int,
    expense_growth_override: Optional[float] = None,
    interest_rate_offset: int = 0,
) -> List[PortfolioProjection]:
    """
    Project the portfolio year by year.

    Args:
        properties: Properties with their loans and records
        start_year: First calendar year
        end_year: Last calendar year (inclusive)
        expense_growth_override: Expense growth as a percentage, replacing
            each expense's own rate
        interest_rate_offset: Basis points added to every loan rate

    Returns:
        One projection per year
    """
    if end_year < start_year:
        raise InvalidInputError("End year must not be before start year")

    models = [
        PropertyModel(data, interest_rate_offset, expense_growth_override)
        for data in properties
    ]
    projections = []

    for year in range(start_year, end_year + 1):
        rows = [model.project(year) for model in models]
        projections.append(
            PortfolioProjection(
                year=year,
                total_value=sum(p.value for p in rows),
                total_debt=sum(p.debt for p in rows),
                total_equity=sum(p.equity for p in rows),
                total_cashflow=sum(p.cashflow for p in rows),
                total_rental_income=sum(p.rental_income for p in rows),
                total_expenses=sum(p.expenses for p in rows),
                total_loan_repayments=sum(p.loan_repayments for p in rows),
                properties=rows,
            )
        )

    logger.debug(
        "Projected %d properties over %d years", len(models), len(projections)
    )
    return projections


def calculate_share_strategy(
    initial_investment: int,
    annual_contribution: int,
    annual_return: float,
    years: int,
) -> int:
    """
    Balance of a share portfolio with annual compounding and contributions.

    Args:
        initial_investment: Starting balance in cents
        annual_contribution: Added at the end of each year, in cents
        annual_return: Annual return as a percentage (e.g. 7 for 7%)
        years: Number of years

    Returns:
        Final balance in cents
    """
    with money_context():
        growth = 1 + to_decimal(annual_return) / 100
        balance = to_decimal(initial_investment)
        for _ in range(years):
            balance = balance * growth + annual_contribution
        return round_cents(balance)


def generate_investment_comparison(
    properties: Sequence[PropertyData],
    start_year: int,
    end_year: int,
    share_annual_return: float = DEFAULT_SHARE_RETURN,
) -> List[InvestmentComparison]:
    """
    Compare portfolio equity with investing the same equity in shares.

    The share portfolio starts with the portfolio's equity in start_year
    and receives each year's net property cashflow as its contribution.
    """
    projections = generate_portfolio_projections(properties, start_year, end_year)
    initial_investment = projections[0].total_equity
    comparisons = []

    for projection in projections:
        share_equity = calculate_share_strategy(
            initial_investment,
            projection.total_cashflow,
            share_annual_return,
            projection.year - start_year,
        )
        comparisons.append(
            InvestmentComparison(
                year=projection.year,
                property_equity=projection.total_equity,
                share_equity=share_equity,
                difference=projection.total_equity - share_equity,
            )
        )

    return comparisons
