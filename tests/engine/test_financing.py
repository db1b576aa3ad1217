from datetime import date
from decimal import Decimal

from stoneverse.engine.financing import (
    LoanPosition,
    analyze_refinancing,
    breakeven_months,
    is_refinancing_recommended,
    optimize_ltv,
    savings_npv,
)


class TestBreakeven:
    def test_exact_breakeven(self):
        """EUR 3000 closing costs at EUR 50/month savings."""
        assert breakeven_months(Decimal("3000"), Decimal("50")) == 60

    def test_rounds_up(self):
        assert breakeven_months(Decimal("3001"), Decimal("50")) == 61

    def test_no_savings_never_breaks_even(self):
        assert breakeven_months(Decimal("3000"), Decimal("0")) is None
        assert breakeven_months(Decimal("3000"), Decimal("-10")) is None


class TestRecommendation:
    def test_sixty_months_is_recommended(self):
        npv = savings_npv(Decimal("50"), Decimal("3000"), Decimal("0.03"), 240)
        assert npv > 0
        assert is_refinancing_recommended(npv, 60)

    def test_slow_breakeven_rejected(self):
        assert not is_refinancing_recommended(Decimal("1000"), 61)

    def test_negative_npv_rejected(self):
        assert not is_refinancing_recommended(Decimal("-1"), 12)

    def test_never_breaking_even_rejected(self):
        assert not is_refinancing_recommended(Decimal("1000"), None)


class TestSavingsNPV:
    def test_zero_discount_rate(self):
        npv = savings_npv(Decimal("100"), Decimal("1000"), Decimal("0"), 24)
        assert npv == Decimal("1400.00")

    def test_discounting_reduces_value(self):
        undiscounted = savings_npv(Decimal("100"), Decimal("0"), Decimal("0"), 120)
        discounted = savings_npv(Decimal("100"), Decimal("0"), Decimal("0.05"), 120)
        assert discounted < undiscounted


class TestAnalyzeRefinancing:
    def test_lower_rate(self):
        position = LoanPosition(Decimal("200000"), Decimal("0.05"), 240)
        analysis = analyze_refinancing(position, Decimal("0.035"), closing_costs=Decimal("3000"))
        assert analysis.monthly_savings > 0
        assert analysis.breakeven_months is not None
        assert analysis.breakeven_months <= 60
        assert analysis.total_interest_savings > 0
        assert analysis.recommended

    def test_higher_rate(self):
        position = LoanPosition(Decimal("200000"), Decimal("0.035"), 240)
        analysis = analyze_refinancing(position, Decimal("0.05"), closing_costs=Decimal("3000"))
        assert analysis.monthly_savings < 0
        assert analysis.breakeven_months is None
        assert not analysis.recommended

    def test_term_defaults_to_remaining(self):
        position = LoanPosition(Decimal("150000"), Decimal("0.04"), 180)
        analysis = analyze_refinancing(position, Decimal("0.04"))
        assert analysis.monthly_savings == Decimal("0")
        assert analysis.breakeven_months is None

    def test_position_from_loan(self, lyon_loan):
        position = LoanPosition.from_loan(lyon_loan, date(2024, 4, 1))
        assert position.balance == Decimal("120000")
        assert position.remaining_months == 132


class TestOptimizeLTV:
    def test_skips_unaffordable_options(self):
        options = optimize_ltv(Decimal("300000"), Decimal("60000"), Decimal("0.035"), 240)
        assert [o.ltv for o in options] == [
            Decimal("0.80"), Decimal("0.85"), Decimal("0.90"),
        ]

    def test_leverage_raises_risk(self):
        options = optimize_ltv(Decimal("300000"), Decimal("300000"), Decimal("0.035"), 240)
        risks = [o.risk_score for o in options]
        assert risks == sorted(risks)
        assert options[0].risk_score == Decimal("0.95")  # 0.60 + 0.35

    def test_long_term_penalty(self):
        short = optimize_ltv(Decimal("300000"), Decimal("300000"), Decimal("0.035"), 300)
        long = optimize_ltv(Decimal("300000"), Decimal("300000"), Decimal("0.035"), 420)
        assert long[0].risk_score - short[0].risk_score == Decimal("0.20")

    def test_down_payment_and_loan(self):
        options = optimize_ltv(Decimal("300000"), Decimal("60000"), Decimal("0.035"), 240)
        first = options[0]
        assert first.loan_amount == Decimal("240000.00")
        assert first.down_payment == Decimal("60000.00")
