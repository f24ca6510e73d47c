"""
Property Value and Equity Calculations

Projects property values forward with year-by-year growth forecasts and
nets them against outstanding debt.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence, Union

from portfolio.calculations.errors import InvalidInputError
from portfolio.calculations.forecasts import StepForecast
from portfolio.calculations.money import (
    bp_to_rate,
    floor_cents,
    money_context,
    round_cents,
    to_decimal,
)

DEFAULT_MAX_LVR = Decimal("0.80")


@dataclass
class PropertyValuation:
    """A recorded valuation of a property, in cents."""

    value: int
    valuation_date: date


@dataclass
class PropertyEquity:
    """Equity position of a property. Money in cents, LVR as a percentage."""

    property_value: int
    total_debt: int
    equity: int
    lvr: float


def project_property_value(
    base_value: int, base_year: int, target_year: int, growth: StepForecast
) -> int:
    """
    Project a property value to a target year.

    Growth compounds annually: value(y + 1) = value(y) * (1 + g(y)), where
    g(y) is the forecast growth rate in effect for year y. The value is
    rounded to the cent after each year.

    Args:
        base_value: Value in cents as at base_year
        base_year: Calendar year of base_value
        target_year: Year to project to
        growth: Growth rates (basis points) by calendar year

    Returns:
        Projected value in cents
    """
    if target_year <= base_year:
        return base_value

    value = base_value
    with money_context():
        for year in range(base_year, target_year):
            value = round_cents(value * (1 + bp_to_rate(growth.value_at(year))))
    return value


def calculate_property_value(
    purchase_price: int,
    purchase_date: date,
    valuations: Sequence[PropertyValuation],
    growth: StepForecast,
    target_year: int,
) -> int:
    """
    Calculate a property's value at a target year.

    Starts from the most recent valuation at or before the target year,
    or the purchase price when there is none, and applies growth from there.
    A valuation dated before the purchase still counts.
    """
    base_value = purchase_price
    base_year = purchase_date.year

    latest: Optional[PropertyValuation] = None
    for valuation in valuations:
        year = valuation.valuation_date.year
        if year <= target_year and (
            latest is None or valuation.valuation_date >= latest.valuation_date
        ):
            latest = valuation

    if latest is not None:
        base_value = latest.value
        base_year = latest.valuation_date.year

    return project_property_value(base_value, base_year, target_year, growth)


def calculate_lvr(debt: int, property_value: int) -> float:
    """Loan-to-value ratio as a percentage, to two decimal places."""
    if property_value <= 0 or debt <= 0:
        return 0.0
    with money_context():
        lvr = to_decimal(debt) / to_decimal(property_value) * 100
    return float(lvr.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def calculate_equity(property_value: int, total_debt: int) -> PropertyEquity:
    """
    Net a property value against the total debt secured on it.

    Equity may be negative when the property is worth less than the debt.
    """
    return PropertyEquity(
        property_value=property_value,
        total_debt=total_debt,
        equity=property_value - total_debt,
        lvr=calculate_lvr(total_debt, property_value),
    )


def usable_equity(
    property_value: int,
    total_debt: int,
    max_lvr: Union[Decimal, float, str] = DEFAULT_MAX_LVR,
) -> int:
    """
    Equity that could be drawn by borrowing up to a maximum LVR.

    Args:
        property_value: Property value in cents
        total_debt: Existing debt in cents
        max_lvr: Maximum LVR as a fraction (default 0.80)

    Returns:
        max(property_value * max_lvr - total_debt, 0) in cents, with the
        borrowing limit rounded down to the cent
    """
    if property_value < 0 or total_debt < 0:
        raise InvalidInputError("Property value and debt cannot be negative")
    ceiling = to_decimal(max_lvr)
    if ceiling < 0:
        raise InvalidInputError("Maximum LVR cannot be negative")

    with money_context():
        borrowing_limit = floor_cents(to_decimal(property_value) * ceiling)
    return max(borrowing_limit - total_debt, 0)
