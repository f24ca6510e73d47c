"""
Tests for stamp duty, purchase costs and LMI calculations.
"""

import pytest
from decimal import Decimal

from portfolio.calculations.errors import InvalidInputError
from portfolio.calculations.purchase_costs import (
    assess_lending,
    calculate_lmi,
    calculate_purchase_costs,
    calculate_stamp_duty,
    get_max_loan_amount,
    state_code,
)


class TestStampDuty:
    """Test stamp duty by state."""

    def test_qld(self):
        assert calculate_stamp_duty(400_000, "QLD") == 0
        # 1125 + (500000 - 75000) * 3.5% = $16,000
        assert calculate_stamp_duty(50_000_000, "QLD") == 1_600_000

    def test_nsw(self):
        # 9562.5 + (500000 - 319000) * 4.5% = $17,707.50
        assert calculate_stamp_duty(50_000_000, "NSW") == 1_770_750

    def test_vic(self):
        # 2870 + (500000 - 130000) * 6% = $25,070
        assert calculate_stamp_duty(50_000_000, "VIC") == 2_507_000

    def test_bracket_boundaries(self):
        assert calculate_stamp_duty(7_500_000, "QLD") == 112_500
        assert calculate_stamp_duty(7_500_100, "QLD") == 112_504
        assert calculate_stamp_duty(500_000, "QLD") == 0

    def test_nt_exempt_below_threshold(self):
        assert calculate_stamp_duty(52_500_000, "NT") == 0
        # (600000 - 525000) * 4.95% = $3,712.50
        assert calculate_stamp_duty(60_000_000, "NT") == 371_250

    def test_unknown_state(self):
        assert calculate_stamp_duty(50_000_000, "UNKNOWN") == 0

    def test_case_and_full_names(self):
        assert calculate_stamp_duty(50_000_000, "qld") == 1_600_000
        assert calculate_stamp_duty(50_000_000, " Queensland ") == 1_600_000
        assert state_code("new south wales") == "NSW"
        assert state_code("Atlantis") is None

    def test_negative_price(self):
        with pytest.raises(InvalidInputError):
            calculate_stamp_duty(-1, "QLD")


class TestPurchaseCosts:
    """Test auto-calculated purchase costs."""

    def test_sums_all_costs(self):
        costs = calculate_purchase_costs(50_000_000, "QLD")
        assert costs.stamp_duty == 1_600_000
        assert costs.legal_fee == 200_000
        assert costs.inspection_fee == 50_000
        assert costs.conveyancing == 150_000
        assert costs.total_costs == 1_600_000 + 200_000 + 50_000 + 150_000

    def test_unknown_state_fees_only(self):
        assert calculate_purchase_costs(50_000_000, "XX").total_costs == 400_000


class TestLMI:
    """Test LMI bands, maximum loans and lending assessments."""

    def test_no_lmi_at_or_below_80(self):
        assert calculate_lmi(40_000_000, 80) == 0
        assert calculate_lmi(40_000_000, 75.5) == 0

    def test_lmi_bands(self):
        assert calculate_lmi(42_500_000, 85) == 637_500
        assert calculate_lmi(45_000_000, 90) == 1_125_000
        assert calculate_lmi(47_500_000, 95) == 1_900_000
        assert calculate_lmi(50_000_000, 100) == 2_000_000

    def test_lmi_rounds_down(self):
        # 1.5% of 333 cents is 4.995 cents
        assert calculate_lmi(333, 82) == 4

    def test_max_loan_amount(self):
        assert get_max_loan_amount(50_000_000, 80) == 40_000_000
        assert get_max_loan_amount(333, 80) == 266
        assert get_max_loan_amount(50_000_000, Decimal("95")) == 47_500_000

    def test_assess_lending(self):
        result = assess_lending(45_000_000, 50_000_000)
        assert result.lvr == 90.0
        assert result.equity == 5_000_000
        assert result.requires_lmi
        assert result.lmi == 1_125_000

    def test_assess_lending_at_threshold(self):
        result = assess_lending(40_000_000, 50_000_000)
        assert result.lvr == 80.0
        assert not result.requires_lmi
        assert result.lmi == 0

    def test_assess_lending_just_over_threshold(self):
        result = assess_lending(40_001_000, 50_000_000)
        assert result.requires_lmi
        assert result.lmi == 600_015

    def test_assess_lending_invalid(self):
        with pytest.raises(InvalidInputError):
            assess_lending(1_000, 0)
        with pytest.raises(InvalidInputError):
            assess_lending(-1, 1_000)
