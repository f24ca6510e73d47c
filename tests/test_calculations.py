"""
Tests for money helpers, forecast lookups and repayment calculations.
"""

import pytest
from datetime import date
from decimal import Decimal, getcontext

from portfolio.calculations.errors import InvalidInputError
from portfolio.calculations.forecasts import GrowthRatePeriod, StepForecast
from portfolio.calculations.money import (
    bp_to_rate,
    format_currency,
    from_cents,
    floor_cents,
    round_cents,
    to_cents,
    to_decimal,
)
from portfolio.calculations.repayment import (
    Frequency,
    Loan,
    LoanStructure,
    calculate_io_repayment,
    calculate_loan_repayment,
    calculate_pi_repayment,
    payments_per_year,
    repayment_frequency,
)


class TestMoney:
    """Test the Decimal/cents bridge."""

    def test_to_cents_rounds_half_up(self):
        assert to_cents("12.345") == 1235
        assert to_cents(Decimal("0.005")) == 1
        assert to_cents("12.344") == 1234

    def test_to_cents_from_float_uses_decimal_string(self):
        # 1.005 is 1.00499999... in binary
        assert to_cents(1.005) == 101

    def test_from_cents_is_exact(self):
        assert from_cents(12345) == Decimal("123.45")
        assert from_cents(1) == Decimal("0.01")

    def test_to_decimal_is_idempotent(self):
        value = Decimal("42.10")
        assert to_decimal(value) is value
        assert to_decimal(to_decimal("42.10")) == value

    def test_to_decimal_rejects_garbage(self):
        with pytest.raises(InvalidInputError):
            to_decimal("not a number")

    def test_round_cents(self):
        assert round_cents(Decimal("2.5")) == 3
        assert round_cents(Decimal("2.49")) == 2

    def test_floor_cents(self):
        assert floor_cents(Decimal("2.99")) == 2
        assert floor_cents(Decimal("0.8")) == 0
        assert floor_cents(Decimal("5")) == 5

    def test_bp_to_rate(self):
        assert bp_to_rate(550) == Decimal("0.055")
        assert bp_to_rate(0) == 0

    def test_format_currency(self):
        assert format_currency(Decimal("1234.5")) == "1234.50"
        assert format_currency(from_cents(99)) == "0.99"

    def test_global_context_untouched(self):
        before = (getcontext().prec, getcontext().rounding)
        to_cents("1.235")
        calculate_pi_repayment(50_000_000, 600, 30, 12)
        assert (getcontext().prec, getcontext().rounding) == before


class TestStepForecast:
    """Test step-function forecast lookups."""

    def test_default_before_first_breakpoint(self):
        forecast = StepForecast([(2025, 500), (2030, 700)], default=600)
        assert forecast.value_at(2024) == 600

    def test_holds_until_next_breakpoint(self):
        forecast = StepForecast([(2030, 700), (2025, 500)], default=600)
        assert forecast.value_at(2025) == 500
        assert forecast.value_at(2029) == 500
        assert forecast.value_at(2030) == 700
        assert forecast.value_at(2060) == 700

    def test_empty_forecast_uses_default(self):
        forecast = StepForecast([], default=450)
        assert forecast.value_at(2025) == 450
        assert len(forecast) == 0

    def test_duplicate_year_last_wins(self):
        forecast = StepForecast([(2025, 500), (2025, 550)], default=0)
        assert forecast.value_at(2025) == 550
        assert len(forecast) == 1

    def test_from_periods_with_gaps(self):
        forecast = StepForecast.from_periods(
            [GrowthRatePeriod(2020, 500, 2022), GrowthRatePeriod(2025, 300)]
        )
        assert forecast.value_at(2019) == 0
        assert forecast.value_at(2020) == 500
        assert forecast.value_at(2022) == 500
        assert forecast.value_at(2023) == 0
        assert forecast.value_at(2024) == 0
        assert forecast.value_at(2025) == 300
        assert forecast.value_at(2050) == 300

    def test_from_periods_overlap_earliest_start_wins(self):
        forecast = StepForecast.from_periods(
            [GrowthRatePeriod(2021, 300), GrowthRatePeriod(2020, 500, 2022)]
        )
        assert forecast.value_at(2021) == 500
        assert forecast.value_at(2022) == 500
        assert forecast.value_at(2023) == 300


class TestFrequencies:
    """Test frequency parsing and payments per year."""

    def test_payments_per_year(self):
        assert payments_per_year(Frequency.WEEKLY) == 52
        assert payments_per_year("Fortnightly") == 26
        assert payments_per_year("Monthly") == 12
        assert payments_per_year("Quarterly") == 4
        assert payments_per_year("Annual") == 1

    def test_unknown_frequency(self):
        with pytest.raises(InvalidInputError):
            payments_per_year("Daily")

    def test_repayment_frequency_excludes_annual(self):
        assert repayment_frequency("Weekly") is Frequency.WEEKLY
        with pytest.raises(InvalidInputError):
            repayment_frequency("Annually")

    def test_unknown_structure(self):
        with pytest.raises(InvalidInputError):
            LoanStructure.parse("Balloon")


class TestRepayments:
    """Test repayment calculations."""

    def test_pi_standard_loan(self):
        """$500k at 6% over 30 years is about $2,997.75 a month."""
        payment = calculate_pi_repayment(50_000_000, 600, 30, 12)
        assert 299770 < payment < 299780

    def test_pi_zero_rate_is_straight_line(self):
        assert calculate_pi_repayment(120_000, 0, 1, 12) == 10000
        assert calculate_pi_repayment(2_600_000, 0, 1, 26) == 100000

    def test_pi_fortnightly_less_than_monthly(self):
        monthly = calculate_pi_repayment(50_000_000, 600, 30, 12)
        fortnightly = calculate_pi_repayment(50_000_000, 600, 30, 26)
        assert fortnightly < monthly / 2 + 1000

    def test_io_repayment(self):
        assert calculate_io_repayment(50_000_000, 600, 12) == 250000

    def test_io_repayment_zero_rate(self):
        assert calculate_io_repayment(50_000_000, 0, 52) == 0

    def test_io_repayment_rounds_half_up(self):
        # 100 cents at 6% monthly is 0.5 cents
        assert calculate_io_repayment(100, 600, 12) == 1

    def test_invalid_inputs(self):
        with pytest.raises(InvalidInputError):
            calculate_pi_repayment(-1, 600, 30, 12)
        with pytest.raises(InvalidInputError):
            calculate_pi_repayment(1000, 600, 0, 12)
        with pytest.raises(InvalidInputError):
            calculate_pi_repayment(1000, -5, 30, 12)
        with pytest.raises(InvalidInputError):
            calculate_io_repayment(1000, 500, 0)


class TestLoanRepayment:
    """Test structure-aware repayments for recorded loans."""

    def make_loan(self, **overrides):
        values = dict(
            original_amount=50_000_000,
            current_amount=50_000_000,
            interest_rate=600,
            remaining_term_years=30,
            start_date=date(2025, 1, 1),
        )
        values.update(overrides)
        return Loan(**values)

    def test_principal_and_interest(self):
        repayment = calculate_loan_repayment(self.make_loan())
        assert 299770 < repayment.payment < 299780
        assert repayment.interest_portion == 250000
        assert repayment.principal_portion == repayment.payment - 250000
        assert repayment.annual_payment == repayment.payment * 12

    def test_interest_only(self):
        loan = self.make_loan(loan_structure="InterestOnly")
        repayment = calculate_loan_repayment(loan)
        assert repayment.payment == 250000
        assert repayment.principal_portion == 0

    def test_io_period_remaining_means_interest_only(self):
        loan = self.make_loan(remaining_io_period_years=2)
        assert loan.is_interest_only
        assert calculate_loan_repayment(loan).payment == 250000

    def test_offset_reduces_interest(self):
        loan = self.make_loan(loan_structure="InterestOnly", offset_balance=10_000_000)
        assert calculate_loan_repayment(loan).interest_portion == 200000

    def test_rate_offset(self):
        loan = self.make_loan(loan_structure="InterestOnly")
        # 50M * 7% / 12 = 291,666.67
        assert calculate_loan_repayment(loan, rate_offset=100).payment == 291667

    def test_weekly_loan(self):
        loan = self.make_loan(repayment_frequency="Weekly", loan_structure="InterestOnly")
        repayment = calculate_loan_repayment(loan)
        assert repayment.payments_per_year == 52
        # 50M * 6% / 52 = 57,692.31
        assert repayment.payment == 57692

    def test_loan_validation(self):
        with pytest.raises(InvalidInputError):
            self.make_loan(remaining_term_years=0)
        with pytest.raises(InvalidInputError):
            self.make_loan(interest_rate=-1)
        with pytest.raises(InvalidInputError):
            self.make_loan(repayment_frequency="Daily")
