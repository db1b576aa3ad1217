import warnings
from decimal import Decimal

from stoneverse.engine.irr import compute_equity_multiple, compute_irr, npv


class TestIRR:
    def test_simple_irr(self):
        """Invest 1000, get 1100 after 1 year = 10% IRR."""
        irr = compute_irr([Decimal("-1000"), Decimal("1100")])
        assert irr == Decimal("0.1000")

    def test_two_year(self):
        irr = compute_irr([Decimal("-1000"), Decimal("0"), Decimal("1210")])
        assert irr == Decimal("0.1000")

    def test_multi_year(self):
        """10% coupon with a 30% kicker at exit."""
        cfs = [Decimal("-100000"), Decimal("10000"), Decimal("10000"),
               Decimal("10000"), Decimal("10000"), Decimal("130000")]
        irr = compute_irr(cfs)
        assert Decimal("0.10") < irr < Decimal("0.20")

    def test_npv_zero_at_irr(self):
        cfs = [Decimal("-100000"), Decimal("10000"), Decimal("10000"),
               Decimal("10000"), Decimal("10000"), Decimal("130000")]
        irr = compute_irr(cfs)
        assert abs(npv(irr, cfs)) < Decimal("50")

    def test_losing_investment(self):
        """Newton leaves the bracket from 10%; Brent's method finds -50% quietly."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            irr = compute_irr([Decimal("-1000"), Decimal("500")])
        assert irr == Decimal("-0.5000")

    def test_negative_returns(self):
        """All-negative cash flows should return 0."""
        irr = compute_irr([Decimal("-100"), Decimal("-10"), Decimal("-10")])
        assert irr == Decimal("0")

    def test_all_positive(self):
        assert compute_irr([Decimal("100"), Decimal("10")]) == Decimal("0")

    def test_empty_cash_flows(self):
        assert compute_irr([]) == Decimal("0")
        assert compute_irr([Decimal("-100")]) == Decimal("0")


class TestNPV:
    def test_discounting(self):
        assert npv(Decimal("0.1"), [Decimal("-1000"), Decimal("1100")]) == Decimal("0")

    def test_zero_rate_sums(self):
        assert npv(Decimal("0"), [Decimal("-100"), Decimal("60"), Decimal("60")]) == Decimal("20")


class TestEquityMultiple:
    def test_basic(self):
        em = compute_equity_multiple(Decimal("200000"), Decimal("100000"))
        assert em == Decimal("2.0000")

    def test_zero_investment(self):
        em = compute_equity_multiple(Decimal("100000"), Decimal("0"))
        assert em == Decimal("0")
