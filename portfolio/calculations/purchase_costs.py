"""
Purchase Cost and Lending Calculations

Stamp duty by Australian state or territory, typical acquisition fees,
lenders mortgage insurance (LMI) by LVR band and maximum loan amounts.
All money in cents.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Union

from portfolio.calculations.errors import InvalidInputError
from portfolio.calculations.equity import calculate_lvr
from portfolio.calculations.money import (
    BASIS_POINTS,
    floor_cents,
    money_context,
    round_cents,
    to_decimal,
)

logger = logging.getLogger(__name__)

# Typical professional fees
LEGAL_FEE = 200_000
INSPECTION_FEE = 50_000
CONVEYANCING_FEE = 150_000

# LMI applies above this LVR (percent)
LMI_THRESHOLD_LVR = 80

# LMI premium as basis points of the loan, keyed by the top of each LVR band
LMI_RATES = {
    85: 150,
    90: 250,
    95: 400,
}


@dataclass(frozen=True)
class DutyBracket:
    """Duty of base + (price - threshold) * rate for prices up to upper."""

    upper: Optional[int]
    base: int
    threshold: int
    rate: Decimal


def _brackets(*rows) -> List[DutyBracket]:
    return [
        DutyBracket(upper, base, threshold, Decimal(rate))
        for upper, base, threshold, rate in rows
    ]


STAMP_DUTY_BRACKETS: Dict[str, List[DutyBracket]] = {
    "QLD": _brackets(
        (500_000, 0, 0, "0"),
        (7_500_000, 0, 0, "0.015"),
        (54_000_000, 112_500, 7_500_000, "0.035"),
        (100_000_000, 1_740_000, 54_000_000, "0.045"),
        (None, 3_810_000, 100_000_000, "0.0575"),
    ),
    "NSW": _brackets(
        (1_400_000, 0, 0, "0.0125"),
        (3_200_000, 17_500, 1_400_000, "0.015"),
        (8_500_000, 44_500, 3_200_000, "0.0175"),
        (31_900_000, 137_250, 8_500_000, "0.035"),
        (106_400_000, 956_250, 31_900_000, "0.045"),
        (None, 4_308_750, 106_400_000, "0.055"),
    ),
    "VIC": _brackets(
        (2_500_000, 0, 0, "0.014"),
        (13_000_000, 35_000, 2_500_000, "0.024"),
        (96_000_000, 287_000, 13_000_000, "0.06"),
        (200_000_000, 5_267_000, 96_000_000, "0.055"),
        (None, 10_987_000, 200_000_000, "0.065"),
    ),
    "SA": _brackets(
        (1_200_000, 0, 0, "0.01"),
        (3_000_000, 12_000, 1_200_000, "0.02"),
        (5_000_000, 48_000, 3_000_000, "0.03"),
        (10_000_000, 108_000, 5_000_000, "0.035"),
        (20_000_000, 283_000, 10_000_000, "0.04"),
        (25_000_000, 683_000, 20_000_000, "0.0425"),
        (30_000_000, 895_500, 25_000_000, "0.045"),
        (50_000_000, 1_120_500, 30_000_000, "0.0475"),
        (None, 2_070_500, 50_000_000, "0.055"),
    ),
    "WA": _brackets(
        (8_000_000, 0, 0, "0.019"),
        (10_000_000, 152_000, 8_000_000, "0.029"),
        (25_000_000, 210_000, 10_000_000, "0.038"),
        (50_000_000, 780_000, 25_000_000, "0.049"),
        (None, 2_005_000, 50_000_000, "0.051"),
    ),
    "TAS": _brackets(
        (300_000, 0, 0, "0.0175"),
        (2_500_000, 5_250, 300_000, "0.0225"),
        (7_500_000, 54_750, 2_500_000, "0.035"),
        (20_000_000, 229_750, 7_500_000, "0.04"),
        (37_500_000, 729_750, 20_000_000, "0.0425"),
        (72_500_000, 1_473_500, 37_500_000, "0.045"),
        (None, 3_048_500, 72_500_000, "0.045"),
    ),
    # Simplified; the ACT charges on a different basis
    "ACT": _brackets(
        (20_000_000, 0, 0, "0.0118"),
        (30_000_000, 236_000, 20_000_000, "0.0304"),
        (50_000_000, 540_000, 30_000_000, "0.046"),
        (75_000_000, 1_460_000, 50_000_000, "0.0625"),
        (100_000_000, 3_022_500, 75_000_000, "0.0670"),
        (145_500_000, 4_697_500, 100_000_000, "0.0685"),
        (None, 7_814_250, 145_500_000, "0.064"),
    ),
    "NT": _brackets(
        (52_500_000, 0, 0, "0"),
        (300_000_000, 0, 52_500_000, "0.0495"),
        (500_000_000, 12_251_300, 300_000_000, "0.0575"),
        (None, 23_751_300, 500_000_000, "0.0595"),
    ),
}

STATE_NAMES = {
    "QUEENSLAND": "QLD",
    "NEW SOUTH WALES": "NSW",
    "VICTORIA": "VIC",
    "SOUTH AUSTRALIA": "SA",
    "WESTERN AUSTRALIA": "WA",
    "TASMANIA": "TAS",
    "AUSTRALIAN CAPITAL TERRITORY": "ACT",
    "NORTHERN TERRITORY": "NT",
}


@dataclass
class PurchaseCosts:
    """Up-front costs of buying a property, in cents."""

    stamp_duty: int
    legal_fee: int
    inspection_fee: int
    conveyancing: int
    total_costs: int


@dataclass
class LendingAssessment:
    """LVR, equity and LMI for a proposed loan."""

    loan_amount: int
    property_value: int
    lvr: float
    equity: int
    lmi: int
    requires_lmi: bool


def state_code(state: str) -> Optional[str]:
    """Normalise a state name or code to its code, or None if unknown."""
    key = state.strip().upper()
    key = STATE_NAMES.get(key, key)
    return key if key in STAMP_DUTY_BRACKETS else None


def calculate_stamp_duty(purchase_price: int, state: str) -> int:
    """
    Calculate stamp duty on a purchase.

    Args:
        purchase_price: Purchase price in cents
        state: State or territory code or name, any case (e.g. "QLD", "Victoria")

    Returns:
        Stamp duty in cents, or 0 for an unknown state
    """
    if purchase_price < 0:
        raise InvalidInputError("Purchase price cannot be negative")

    code = state_code(state)
    if code is None:
        logger.warning("Unknown state %r, no stamp duty applied", state)
        return 0

    for bracket in STAMP_DUTY_BRACKETS[code]:
        if bracket.upper is None or purchase_price <= bracket.upper:
            with money_context():
                return round_cents(
                    bracket.base + (purchase_price - bracket.threshold) * bracket.rate
                )
    return 0


def calculate_purchase_costs(purchase_price: int, state: str) -> PurchaseCosts:
    """Stamp duty plus typical legal, inspection and conveyancing fees."""
    stamp_duty = calculate_stamp_duty(purchase_price, state)
    return PurchaseCosts(
        stamp_duty=stamp_duty,
        legal_fee=LEGAL_FEE,
        inspection_fee=INSPECTION_FEE,
        conveyancing=CONVEYANCING_FEE,
        total_costs=stamp_duty + LEGAL_FEE + INSPECTION_FEE + CONVEYANCING_FEE,
    )


def lmi_rate(lvr: Union[Decimal, float]) -> int:
    """LMI premium in basis points for an LVR percentage."""
    if lvr <= LMI_THRESHOLD_LVR:
        return 0
    for band_top in sorted(LMI_RATES):
        if lvr <= band_top:
            return LMI_RATES[band_top]
    return LMI_RATES[max(LMI_RATES)]


def calculate_lmi(loan_amount: int, lvr: Union[Decimal, float]) -> int:
    """
    Calculate lenders mortgage insurance.

    Args:
        loan_amount: Loan amount in cents
        lvr: Loan-to-value ratio as a percentage

    Returns:
        LMI premium in cents, rounded down
    """
    if loan_amount < 0:
        raise InvalidInputError("Loan amount cannot be negative")
    rate = lmi_rate(to_decimal(lvr))
    with money_context():
        return floor_cents(loan_amount * rate / BASIS_POINTS)


def get_max_loan_amount(property_value: int, target_lvr: Union[Decimal, float, int]) -> int:
    """Largest loan in cents keeping the LVR (percent) at or below target_lvr."""
    if property_value < 0:
        raise InvalidInputError("Property value cannot be negative")
    with money_context():
        return floor_cents(property_value * to_decimal(target_lvr) / 100)


def assess_lending(loan_amount: int, property_value: int) -> LendingAssessment:
    """
    Work out the LVR, equity and any LMI on a proposed loan.

    LMI bands are matched against the unrounded LVR.
    """
    if property_value <= 0:
        raise InvalidInputError("Property value must be positive")
    if loan_amount < 0:
        raise InvalidInputError("Loan amount cannot be negative")

    with money_context():
        exact_lvr = to_decimal(loan_amount) / to_decimal(property_value) * 100

    return LendingAssessment(
        loan_amount=loan_amount,
        property_value=property_value,
        lvr=calculate_lvr(loan_amount, property_value),
        equity=property_value - loan_amount,
        lmi=calculate_lmi(loan_amount, exact_lvr),
        requires_lmi=exact_lvr > LMI_THRESHOLD_LVR,
    )
