from datetime import date
from decimal import Decimal

from stoneverse.engine.debt import (
    add_months,
    amortization_schedule,
    extra_payment_impact,
    loan_status,
    loan_summary,
    monthly_payment,
    months_elapsed,
    remaining_balance,
    yearly_debt_summary,
)
from stoneverse.models.property import LoanStatus


class TestMonthlyPayment:
    def test_standard_mortgage(self):
        """EUR 400K loan at 7% over 360 months."""
        pmt = monthly_payment(Decimal("400000"), Decimal("0.07"), 360)
        assert pmt == Decimal("2661.21")

    def test_zero_rate(self):
        pmt = monthly_payment(Decimal("360000"), Decimal("0"), 360)
        assert pmt == Decimal("1000.00")

    def test_zero_principal(self):
        pmt = monthly_payment(Decimal("0"), Decimal("0.07"), 360)
        assert pmt == Decimal("0")

    def test_zero_term(self):
        assert monthly_payment(Decimal("100000"), Decimal("0.03"), 0) == Decimal("0")


class TestAmortizationSchedule:
    def test_payment_count(self):
        schedule = amortization_schedule(Decimal("400000"), Decimal("0.07"), 360)
        assert len(schedule.payments) == 360

    def test_partial_schedule(self):
        schedule = amortization_schedule(
            Decimal("400000"), Decimal("0.07"), 360, periods=84
        )
        assert len(schedule.payments) == 84

    def test_first_payment_mostly_interest(self):
        schedule = amortization_schedule(Decimal("400000"), Decimal("0.07"), 360)
        first = schedule.payments[0]
        # 400000 * 0.07/12 = 2333.33
        assert first.interest == Decimal("2333.33")
        assert first.principal == Decimal("327.88")

    def test_balance_decreases(self):
        schedule = amortization_schedule(Decimal("400000"), Decimal("0.07"), 360)
        for i in range(1, len(schedule.payments)):
            assert schedule.payments[i].balance < schedule.payments[i - 1].balance

    def test_fully_amortized(self):
        schedule = amortization_schedule(Decimal("200000"), Decimal("0.035"), 240)
        assert schedule.payments[-1].balance == Decimal("0")
        assert abs(schedule.total_principal - Decimal("200000")) <= Decimal("0.01")

    def test_payment_dates(self):
        schedule = amortization_schedule(
            Decimal("100000"), Decimal("0.03"), 12, start_date=date(2024, 1, 31)
        )
        assert schedule.payments[0].payment_date == date(2024, 2, 29)
        assert schedule.payments[-1].payment_date == date(2025, 1, 31)

    def test_empty_when_no_principal(self):
        schedule = amortization_schedule(Decimal("0"), Decimal("0.03"), 120)
        assert schedule.payments == []
        assert schedule.total_interest == Decimal("0")


class TestRemainingBalance:
    def test_matches_schedule(self):
        """Closed form agrees with the month-by-month schedule."""
        principal, rate, term = Decimal("200000"), Decimal("0.035"), 240
        schedule = amortization_schedule(principal, rate, term)
        for k in (1, 12, 60, 120, 239):
            closed = remaining_balance(principal, rate, term, k)
            assert abs(closed - schedule.payments[k - 1].balance) <= Decimal("0.01")

    def test_no_payments(self):
        assert remaining_balance(
            Decimal("200000"), Decimal("0.035"), 240, 0
        ) == Decimal("200000.00")

    def test_after_term(self):
        assert remaining_balance(Decimal("200000"), Decimal("0.035"), 240, 240) == Decimal("0")
        assert remaining_balance(Decimal("200000"), Decimal("0.035"), 240, 300) == Decimal("0")

    def test_zero_rate(self):
        balance = remaining_balance(Decimal("120000"), Decimal("0"), 120, 60)
        assert balance == Decimal("60000.00")


class TestYearlyDebtSummary:
    def test_year_count(self):
        schedule = amortization_schedule(Decimal("200000"), Decimal("0.035"), 240)
        assert len(yearly_debt_summary(schedule)) == 20

    def test_partial_year_closes_summary(self):
        schedule = amortization_schedule(
            Decimal("200000"), Decimal("0.035"), 240, periods=30
        )
        yearly = yearly_debt_summary(schedule)
        assert len(yearly) == 3
        assert yearly[-1].ending_balance == schedule.payments[-1].balance

    def test_debt_service_equals_12_payments(self):
        schedule = amortization_schedule(
            Decimal("200000"), Decimal("0.035"), 240, periods=84
        )
        for y in yearly_debt_summary(schedule):
            assert y.debt_service == schedule.monthly_payment * 12

    def test_yearly_interest_close_to_total(self):
        schedule = amortization_schedule(Decimal("200000"), Decimal("0.035"), 240)
        yearly_interest = sum(y.interest for y in yearly_debt_summary(schedule))
        # Per-month rounding drifts by at most a few cents
        assert abs(yearly_interest - schedule.total_interest) < Decimal("1.00")


class TestLoanSummary:
    def test_totals(self):
        summary = loan_summary(Decimal("200000"), Decimal("0.035"), 240)
        assert summary.monthly_payment == monthly_payment(
            Decimal("200000"), Decimal("0.035"), 240
        )
        assert summary.total_interest > 0
        assert abs(
            summary.total_payments - Decimal("200000") - summary.total_interest
        ) < Decimal("1.00")

    def test_zero_rate_has_no_interest(self):
        summary = loan_summary(Decimal("120000"), Decimal("0"), 120)
        assert summary.total_interest == Decimal("0")
        assert summary.interest_to_principal == Decimal("0")


class TestExtraPayment:
    def test_extra_payment_shortens_loan(self):
        impact = extra_payment_impact(
            Decimal("200000"), Decimal("0.035"), 240, Decimal("200")
        )
        assert impact.new_term_months < 240
        assert impact.months_saved == 240 - impact.new_term_months
        assert impact.interest_saved > 0

    def test_no_extra_payment(self):
        impact = extra_payment_impact(
            Decimal("200000"), Decimal("0.035"), 240, Decimal("0")
        )
        assert abs(impact.months_saved) <= 1
        assert abs(impact.interest_saved) < Decimal("1.00")


class TestLoanStatus:
    def test_paid_off_at_term(self, lyon_loan):
        report = loan_status(lyon_loan, 240)
        assert report.status == LoanStatus.PAID_OFF
        assert report.remaining_balance == Decimal("0")
        assert report.payments_remaining == 0
        assert report.percent_paid_off == Decimal("1.0000")

    def test_before_first_payment(self, lyon_loan):
        report = loan_status(lyon_loan, 0)
        assert report.status == LoanStatus.ACTIVE
        assert report.remaining_balance == Decimal("200000.00")
        assert report.interest_paid == Decimal("0")

    def test_midway(self, lyon_loan):
        report = loan_status(lyon_loan, 120)
        assert report.payments_remaining == 120
        assert Decimal("0") < report.remaining_balance < Decimal("200000")
        assert report.principal_paid + report.remaining_balance == Decimal("200000")

    def test_payments_capped_at_term(self, lyon_loan):
        report = loan_status(lyon_loan, 500)
        assert report.payments_made == 240


class TestDateHelpers:
    def test_add_months_clamps_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_add_months_across_years(self):
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
        assert add_months(date(2024, 1, 1), -1) == date(2023, 12, 1)

    def test_months_elapsed(self):
        assert months_elapsed(date(2020, 1, 15), date(2020, 3, 14)) == 1
        assert months_elapsed(date(2020, 1, 15), date(2020, 3, 15)) == 2
        assert months_elapsed(date(2020, 1, 15), date(2019, 12, 1)) == 0
