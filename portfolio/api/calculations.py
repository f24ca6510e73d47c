"""
Loan and property calculation API endpoints.

These endpoints accept inputs in cents and basis points and return
calculated results. Used by the interactive loan calculator.
"""

import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from portfolio.config import get_settings
from portfolio.calculations.aggregation import aggregate_by_year, summarize_schedule
from portfolio.calculations.equity import (
    PropertyValuation,
    calculate_equity,
    calculate_property_value,
    usable_equity,
)
from portfolio.calculations.forecasts import (
    GrowthRatePeriod,
    InterestRateForecast,
    PropertyGrowthForecast,
    StepForecast,
)
from portfolio.calculations.money import to_decimal
from portfolio.calculations.projection import (
    ExtraPayment,
    LoanParams,
    LumpSum,
    project_loan,
)
from portfolio.calculations.purchase_costs import (
    assess_lending,
    calculate_purchase_costs,
    get_max_loan_amount,
    state_code,
)
from portfolio.calculations.repayment import (
    Frequency,
    LoanStructure,
    calculate_io_repayment,
    calculate_pi_repayment,
    payments_per_year,
    repayment_frequency,
)

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


class RepaymentInput(BaseModel):
    """Input for a repayment calculation."""

    principal: int
    interest_rate: int
    term_years: int
    loan_structure: LoanStructure = LoanStructure.PRINCIPAL_AND_INTEREST
    repayment_frequency: Frequency = Frequency.MONTHLY


class RepaymentResponse(BaseModel):
    """Repayment per period and per year, in cents."""

    payment: int
    annual_payment: int
    payments_per_year: int
    interest_portion: int
    principal_portion: int


@router.post("/repayment", response_model=RepaymentResponse)
async def calculate_repayment(inputs: RepaymentInput):
    """Calculate the repayment for a loan."""
    try:
        per_year = payments_per_year(repayment_frequency(inputs.repayment_frequency))
        interest = calculate_io_repayment(inputs.principal, inputs.interest_rate, per_year)
        if inputs.loan_structure is LoanStructure.INTEREST_ONLY:
            payment = interest
        else:
            payment = calculate_pi_repayment(
                inputs.principal, inputs.interest_rate, inputs.term_years, per_year
            )
    except ValueError as e:
        logger.warning("Rejected repayment request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return RepaymentResponse(
        payment=payment,
        annual_payment=payment * per_year,
        payments_per_year=per_year,
        interest_portion=interest,
        principal_portion=payment - interest,
    )


class RateForecastInput(BaseModel):
    year: int
    rate: int


class GrowthForecastInput(BaseModel):
    year: int
    growth_rate: int


class ExtraPaymentInput(BaseModel):
    amount: int
    frequency: Frequency = Frequency.MONTHLY
    start_date: date
    end_date: Optional[date] = None


class LumpSumInput(BaseModel):
    amount: int
    date: date


class ProjectionInput(BaseModel):
    """Input for a loan projection."""

    principal: int
    interest_rate: int
    term_years: int
    start_date: date
    loan_structure: LoanStructure = LoanStructure.PRINCIPAL_AND_INTEREST
    repayment_frequency: Frequency = Frequency.MONTHLY
    offset_balance: int = 0
    io_period_years: int = 0
    property_value: int = 0
    base_growth_rate: Optional[int] = None

    interest_forecasts: List[RateForecastInput] = []
    growth_forecasts: List[GrowthForecastInput] = []
    extra_payments: List[ExtraPaymentInput] = []
    lump_sums: List[LumpSumInput] = []


@router.post("/projection")
async def calculate_projection(inputs: ProjectionInput):
    """Generate a loan projection with yearly totals."""
    growth_rate = inputs.base_growth_rate
    if growth_rate is None:
        growth_rate = settings.default_growth_rate_bp

    try:
        params = LoanParams(
            principal=inputs.principal,
            interest_rate=inputs.interest_rate,
            term_years=inputs.term_years,
            start_date=inputs.start_date,
            loan_structure=inputs.loan_structure,
            repayment_frequency=inputs.repayment_frequency,
            offset_balance=inputs.offset_balance,
            io_period_years=inputs.io_period_years,
            property_value=inputs.property_value,
            base_growth_rate=growth_rate,
        )
        rows = project_loan(
            params,
            interest_forecasts=[
                InterestRateForecast(f.year, f.rate) for f in inputs.interest_forecasts
            ],
            growth_forecasts=[
                PropertyGrowthForecast(f.year, f.growth_rate) for f in inputs.growth_forecasts
            ],
            extra_payments=[ExtraPayment(**e.model_dump()) for e in inputs.extra_payments],
            lump_sums=[LumpSum(**s.model_dump()) for s in inputs.lump_sums],
        )
    except ValueError as e:
        logger.warning("Rejected projection request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "schedule": [dict(asdict(row), total_payment=row.total_payment) for row in rows],
        "yearly": [asdict(year) for year in aggregate_by_year(rows)],
        "summary": asdict(summarize_schedule(rows)),
    }


class ValuationInput(BaseModel):
    value: int
    valuation_date: date


class GrowthPeriodInput(BaseModel):
    start_year: int
    growth_rate: int
    end_year: Optional[int] = None


class PropertyValueInput(BaseModel):
    """Input for a property value projection."""

    purchase_price: int
    purchase_date: date
    target_year: int
    valuations: List[ValuationInput] = []
    growth_periods: List[GrowthPeriodInput] = []
    total_debt: int = 0


@router.post("/property-value")
async def calculate_property_value_endpoint(inputs: PropertyValueInput):
    """Project a property's value and equity to a target year."""
    try:
        growth = StepForecast.from_periods(
            [GrowthRatePeriod(**p.model_dump()) for p in inputs.growth_periods]
        )
        value = calculate_property_value(
            inputs.purchase_price,
            inputs.purchase_date,
            [PropertyValuation(**v.model_dump()) for v in inputs.valuations],
            growth,
            inputs.target_year,
        )
    except ValueError as e:
        logger.warning("Rejected property value request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return {"year": inputs.target_year, **asdict(calculate_equity(value, inputs.total_debt))}


class UsableEquityInput(BaseModel):
    """Input for a usable equity calculation."""

    property_value: int
    total_debt: int
    max_lvr: Optional[float] = None


class UsableEquityResponse(BaseModel):
    usable_equity: int
    max_lvr: float
    equity: int
    lvr: float


@router.post("/usable-equity", response_model=UsableEquityResponse)
async def calculate_usable_equity(inputs: UsableEquityInput):
    """Calculate how much equity could be drawn up to a maximum LVR."""
    max_lvr = inputs.max_lvr if inputs.max_lvr is not None else settings.default_max_lvr

    try:
        drawable = usable_equity(inputs.property_value, inputs.total_debt, max_lvr)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    position = calculate_equity(inputs.property_value, inputs.total_debt)
    return UsableEquityResponse(
        usable_equity=drawable,
        max_lvr=max_lvr,
        equity=position.equity,
        lvr=position.lvr,
    )


class PurchaseCostsInput(BaseModel):
    purchase_price: int
    state: str


@router.post("/purchase-costs")
async def calculate_purchase_costs_endpoint(inputs: PurchaseCostsInput):
    """Estimate stamp duty and fees for a purchase."""
    try:
        costs = calculate_purchase_costs(inputs.purchase_price, inputs.state)
    except ValueError as e:
        logger.warning("Rejected purchase costs request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return {"state": state_code(inputs.state), **asdict(costs)}


class LendingInput(BaseModel):
    """Input for a lending assessment. target_lvr is a percentage."""

    loan_amount: int
    property_value: int
    target_lvr: Optional[float] = None


@router.post("/lending")
async def calculate_lending(inputs: LendingInput):
    """Calculate LVR, LMI and the maximum loan at a target LVR."""
    target_lvr = inputs.target_lvr
    if target_lvr is None:
        target_lvr = to_decimal(settings.default_max_lvr) * 100

    try:
        assessment = assess_lending(inputs.loan_amount, inputs.property_value)
        max_loan = get_max_loan_amount(inputs.property_value, target_lvr)
    except ValueError as e:
        logger.warning("Rejected lending request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return {
        **asdict(assessment),
        "target_lvr": float(target_lvr),
        "max_loan_amount": max_loan,
    }
