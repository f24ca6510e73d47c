"""
Loan Repayment Calculations

Periodic repayment amounts for interest-only and principal-and-interest
loans. All amounts are in cents, all rates in basis points.
"""

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Union

from portfolio.calculations.errors import InvalidInputError
from portfolio.calculations.money import (
    BASIS_POINTS,
    money_context,
    round_cents,
    to_decimal,
)


class Frequency(str, enum.Enum):
    """How often a repayment, extra payment or income item recurs."""

    WEEKLY = "Weekly"
    FORTNIGHTLY = "Fortnightly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUALLY = "Annually"

    @classmethod
    def parse(cls, value: Union["Frequency", str]) -> "Frequency":
        if isinstance(value, cls):
            return value
        if value == "Annual":
            return cls.ANNUALLY
        try:
            return cls(value)
        except ValueError:
            raise InvalidInputError(f"Unsupported frequency: {value!r}")


REPAYMENT_FREQUENCIES = (Frequency.WEEKLY, Frequency.FORTNIGHTLY, Frequency.MONTHLY)


class LoanStructure(str, enum.Enum):
    """Repayment structure of a loan."""

    INTEREST_ONLY = "InterestOnly"
    PRINCIPAL_AND_INTEREST = "PrincipalAndInterest"

    @classmethod
    def parse(cls, value: Union["LoanStructure", str]) -> "LoanStructure":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidInputError(f"Unsupported loan structure: {value!r}")


def payments_per_year(frequency: Union[Frequency, str]) -> int:
    """Number of payments per year for a frequency."""
    frequency = Frequency.parse(frequency)
    if frequency is Frequency.WEEKLY:
        return 52
    elif frequency is Frequency.FORTNIGHTLY:
        return 26
    elif frequency is Frequency.MONTHLY:
        return 12
    elif frequency is Frequency.QUARTERLY:
        return 4
    elif frequency is Frequency.ANNUALLY:
        return 1
    raise InvalidInputError(f"Unsupported frequency: {frequency!r}")


def repayment_frequency(value: Union[Frequency, str]) -> Frequency:
    """Parse a loan repayment frequency (weekly, fortnightly or monthly only)."""
    frequency = Frequency.parse(value)
    if frequency not in REPAYMENT_FREQUENCIES:
        raise InvalidInputError(f"Unsupported repayment frequency: {frequency.value}")
    return frequency


def _check_principal_and_rate(principal, annual_rate) -> None:
    if principal < 0:
        raise InvalidInputError("Principal cannot be negative")
    if annual_rate < 0:
        raise InvalidInputError("Interest rate cannot be negative")


def period_rate(annual_rate_bp: Union[int, Decimal], per_year: int) -> Decimal:
    """Interest rate per repayment period as a decimal fraction."""
    if per_year <= 0:
        raise InvalidInputError("Payments per year must be positive")
    with money_context():
        return to_decimal(annual_rate_bp) / BASIS_POINTS / per_year


def calculate_io_repayment(
    principal: int, annual_rate_bp: Union[int, Decimal], per_year: int
) -> int:
    """
    Calculate an interest-only repayment.

    Args:
        principal: Loan balance in cents
        annual_rate_bp: Annual interest rate in basis points
        per_year: Repayments per year

    Returns:
        Repayment per period in cents
    """
    _check_principal_and_rate(principal, annual_rate_bp)
    rate = period_rate(annual_rate_bp, per_year)
    with money_context():
        return round_cents(to_decimal(principal) * rate)


def amortizing_payment(principal: Union[int, Decimal], rate: Decimal, periods: int) -> int:
    """
    Level payment that repays principal over the given number of periods.

    M = P * r(1+r)^n / ((1+r)^n - 1), or P / n when r is zero.
    """
    if periods <= 0:
        raise InvalidInputError("Number of payments must be positive")
    with money_context():
        p = to_decimal(principal)
        if rate == 0:
            return round_cents(p / periods)
        factor = (1 + rate) ** periods
        return round_cents(p * rate * factor / (factor - 1))


def calculate_pi_repayment(
    principal: int,
    annual_rate_bp: Union[int, Decimal],
    term_years: int,
    per_year: int,
) -> int:
    """
    Calculate a principal-and-interest repayment.

    Args:
        principal: Loan balance in cents
        annual_rate_bp: Annual interest rate in basis points
        term_years: Remaining term in years
        per_year: Repayments per year

    Returns:
        Level repayment per period in cents
    """
    _check_principal_and_rate(principal, annual_rate_bp)
    if term_years <= 0:
        raise InvalidInputError("Loan term must be positive")
    rate = period_rate(annual_rate_bp, per_year)
    return amortizing_payment(principal, rate, int(term_years * per_year))


@dataclass
class Loan:
    """A loan as recorded against a property."""

    original_amount: int
    current_amount: int
    interest_rate: int
    remaining_term_years: int
    start_date: date
    loan_structure: LoanStructure = LoanStructure.PRINCIPAL_AND_INTEREST
    repayment_frequency: Frequency = Frequency.MONTHLY
    remaining_io_period_years: int = 0
    offset_balance: int = 0

    def __post_init__(self):
        self.loan_structure = LoanStructure.parse(self.loan_structure)
        self.repayment_frequency = repayment_frequency(self.repayment_frequency)
        _check_principal_and_rate(self.current_amount, self.interest_rate)
        if self.remaining_term_years <= 0:
            raise InvalidInputError("Remaining term must be positive")
        if self.remaining_io_period_years < 0:
            raise InvalidInputError("Interest-only period cannot be negative")
        if self.offset_balance < 0:
            raise InvalidInputError("Offset balance cannot be negative")

    @property
    def payments_per_year(self) -> int:
        return payments_per_year(self.repayment_frequency)

    @property
    def is_interest_only(self) -> bool:
        return (
            self.loan_structure is LoanStructure.INTEREST_ONLY
            or self.remaining_io_period_years > 0
        )


@dataclass
class LoanRepayment:
    """Current repayment for a loan, in cents."""

    payment: int
    annual_payment: int
    principal_portion: int
    interest_portion: int
    payments_per_year: int


def calculate_loan_repayment(loan: Loan, rate_offset: int = 0) -> LoanRepayment:
    """
    Calculate a loan's current repayment based on its structure.

    Loans still inside an interest-only period repay interest only. Interest
    is charged on the balance net of any offset account.

    Args:
        loan: The loan
        rate_offset: Basis points added to the loan rate (stress testing)
    """
    per_year = loan.payments_per_year
    annual_rate = max(loan.interest_rate + rate_offset, 0)
    interest_bearing = max(loan.current_amount - loan.offset_balance, 0)
    interest = calculate_io_repayment(interest_bearing, annual_rate, per_year)

    if loan.is_interest_only:
        payment = interest
    else:
        payment = calculate_pi_repayment(
            loan.current_amount, annual_rate, loan.remaining_term_years, per_year
        )

    return LoanRepayment(
        payment=payment,
        annual_payment=payment * per_year,
        principal_portion=payment - interest,
        interest_portion=interest,
        payments_per_year=per_year,
    )
