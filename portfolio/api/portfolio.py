"""
Portfolio summary and projection API endpoints.

Callers send each property with its loans, valuations, growth periods,
rental income, expenses and depreciation already loaded.
"""

import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from portfolio.config import get_settings
from portfolio.calculations.cashflow import DepreciationSchedule, ExpenseLog, RentalIncome
from portfolio.calculations.equity import PropertyValuation
from portfolio.calculations.forecasts import GrowthRatePeriod
from portfolio.calculations.portfolio import (
    Property,
    PropertyData,
    calculate_portfolio_summary,
    generate_investment_comparison,
    generate_portfolio_projections,
)
from portfolio.calculations.repayment import Frequency, Loan, LoanStructure
from portfolio.api.calculations import GrowthPeriodInput, ValuationInput

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


class LoanInput(BaseModel):
    """Loan schema."""

    original_amount: int
    current_amount: int
    interest_rate: int
    remaining_term_years: int
    start_date: date
    loan_structure: LoanStructure = LoanStructure.PRINCIPAL_AND_INTEREST
    repayment_frequency: Frequency = Frequency.MONTHLY
    remaining_io_period_years: int = 0
    offset_balance: int = 0


class RentalIncomeInput(BaseModel):
    amount: int
    frequency: Frequency = Frequency.WEEKLY
    start_date: date
    end_date: Optional[date] = None
    growth_rate: int = 0


class ExpenseInput(BaseModel):
    total_amount: int
    frequency: str = "Annually"
    date: date
    growth_rate: int = 0


class DepreciationInput(BaseModel):
    annual_amount: int
    as_at_date: date


class PropertyInput(BaseModel):
    """A property with everything recorded against it."""

    id: Optional[int] = None
    name: str
    purchase_price: int
    purchase_date: date
    loans: List[LoanInput] = []
    valuations: List[ValuationInput] = []
    growth_periods: List[GrowthPeriodInput] = []
    rental_incomes: List[RentalIncomeInput] = []
    expenses: List[ExpenseInput] = []
    depreciation: List[DepreciationInput] = []


class SummaryInput(BaseModel):
    properties: List[PropertyInput]
    year: int
    interest_rate_offset: int = 0


class ProjectionsInput(BaseModel):
    properties: List[PropertyInput]
    start_year: int
    end_year: int
    expense_growth_override: Optional[float] = None
    interest_rate_offset: int = 0


class ComparisonInput(BaseModel):
    properties: List[PropertyInput]
    start_year: int
    end_year: int
    share_annual_return: Optional[float] = None


def to_property_data(item: PropertyInput) -> PropertyData:
    """Convert a request property to engine inputs."""
    return PropertyData(
        property=Property(
            id=item.id,
            name=item.name,
            purchase_price=item.purchase_price,
            purchase_date=item.purchase_date,
        ),
        loans=[Loan(**loan.model_dump()) for loan in item.loans],
        valuations=[PropertyValuation(**v.model_dump()) for v in item.valuations],
        growth_periods=[GrowthRatePeriod(**p.model_dump()) for p in item.growth_periods],
        rental_incomes=[RentalIncome(**r.model_dump()) for r in item.rental_incomes],
        expenses=[ExpenseLog(**e.model_dump()) for e in item.expenses],
        depreciation=[DepreciationSchedule(**d.model_dump()) for d in item.depreciation],
    )


def check_year_range(start_year: int, end_year: int) -> None:
    """Reject ranges that are reversed or longer than the configured maximum."""
    if end_year < start_year:
        raise HTTPException(status_code=400, detail="end_year must not be before start_year")
    if end_year - start_year + 1 > settings.max_projection_years:
        raise HTTPException(
            status_code=400,
            detail=f"Projections are limited to {settings.max_projection_years} years",
        )


@router.post("/summary")
async def portfolio_summary(inputs: SummaryInput):
    """Calculate portfolio totals for a year."""
    try:
        properties = [to_property_data(item) for item in inputs.properties]
        summary = calculate_portfolio_summary(
            properties, inputs.year, inputs.interest_rate_offset
        )
    except ValueError as e:
        logger.warning("Rejected portfolio summary request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return asdict(summary)


@router.post("/projections")
async def portfolio_projections(inputs: ProjectionsInput):
    """Project the portfolio year by year."""
    check_year_range(inputs.start_year, inputs.end_year)

    try:
        properties = [to_property_data(item) for item in inputs.properties]
        projections = generate_portfolio_projections(
            properties,
            inputs.start_year,
            inputs.end_year,
            expense_growth_override=inputs.expense_growth_override,
            interest_rate_offset=inputs.interest_rate_offset,
        )
    except ValueError as e:
        logger.warning("Rejected portfolio projection request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return {"projections": [asdict(p) for p in projections]}


@router.post("/comparison")
async def investment_comparison(inputs: ComparisonInput):
    """Compare portfolio equity with a share investment."""
    check_year_range(inputs.start_year, inputs.end_year)
    share_return = inputs.share_annual_return
    if share_return is None:
        share_return = settings.share_annual_return

    try:
        properties = [to_property_data(item) for item in inputs.properties]
        comparisons = generate_investment_comparison(
            properties, inputs.start_year, inputs.end_year, share_return
        )
    except ValueError as e:
        logger.warning("Rejected comparison request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return {"comparisons": [asdict(c) for c in comparisons]}
