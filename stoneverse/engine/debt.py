"""Loan amortization: payments, schedules, balances and loan status.

Rates are annual fractions (0.035 for 3.5%), terms are in months.
Running balances keep full precision; outputs are rounded to cents.

Pure functions: Decimal in, dataclass out. No I/O.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from stoneverse.models.property import Loan, LoanStatus

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")

# Safety stop for payoff simulations with tiny payments
MAX_SIMULATED_MONTHS = 1200


@dataclass(frozen=True)
class AmortizationPayment:
    period: int
    payment_date: date | None
    payment: Decimal
    principal: Decimal
    interest: Decimal
    balance: Decimal
    cumulative_principal: Decimal
    cumulative_interest: Decimal


@dataclass(frozen=True)
class AmortizationSchedule:
    payments: list[AmortizationPayment]
    monthly_payment: Decimal
    total_interest: Decimal
    total_principal: Decimal


@dataclass(frozen=True)
class YearlyDebtService:
    year: int
    principal: Decimal
    interest: Decimal
    debt_service: Decimal
    ending_balance: Decimal


@dataclass(frozen=True)
class LoanSummary:
    principal: Decimal
    annual_rate: Decimal
    term_months: int
    monthly_payment: Decimal
    total_payments: Decimal
    total_interest: Decimal
    interest_to_principal: Decimal


@dataclass(frozen=True)
class ExtraPaymentImpact:
    extra_payment: Decimal
    original_term_months: int
    new_term_months: int
    months_saved: int
    original_total_interest: Decimal
    new_total_interest: Decimal
    interest_saved: Decimal


@dataclass(frozen=True)
class LoanStatusReport:
    loan_id: str
    status: LoanStatus
    payments_made: int
    payments_remaining: int
    remaining_balance: Decimal
    principal_paid: Decimal
    interest_paid: Decimal
    percent_paid_off: Decimal


def _q(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping to the end of the month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_elapsed(start: date, as_of: date) -> int:
    """Whole monthly payments due between start and as_of."""
    months = (as_of.year - start.year) * 12 + (as_of.month - start.month)
    if as_of.day < start.day:
        months -= 1
    return max(months, 0)


def monthly_payment(principal: Decimal, annual_rate: Decimal, term_months: int) -> Decimal:
    """Fixed monthly payment of a fully amortizing loan."""
    if principal <= 0 or term_months <= 0:
        return Decimal("0")
    if annual_rate <= 0:
        return _q(principal / term_months)

    r = annual_rate / 12
    # M = P * [r(1+r)^n] / [(1+r)^n - 1]
    factor = (1 + r) ** term_months
    return _q(principal * (r * factor) / (factor - 1))


def amortization_schedule(
    principal: Decimal,
    annual_rate: Decimal,
    term_months: int,
    start_date: date | None = None,
    periods: int | None = None,
) -> AmortizationSchedule:
    """Month-by-month schedule.

    Args:
        principal: Loan amount
        annual_rate: Annual interest rate (e.g. 0.035 for 3.5%)
        term_months: Loan term in months
        start_date: If provided, payment k falls k months after it
        periods: If provided, only generate this many months
    """
    pmt = monthly_payment(principal, annual_rate, term_months)
    if pmt <= 0:
        return AmortizationSchedule([], Decimal("0"), Decimal("0"), Decimal("0"))

    r = max(annual_rate, Decimal("0")) / 12
    n_periods = term_months if periods is None else min(periods, term_months)

    payments: list[AmortizationPayment] = []
    balance = principal
    total_interest = Decimal("0")
    total_principal = Decimal("0")

    for period in range(1, n_periods + 1):
        interest = balance * r
        principal_paid = pmt - interest

        # Final month retires whatever remains
        if period == term_months or principal_paid > balance:
            principal_paid = balance
            actual_payment = interest + principal_paid
        else:
            actual_payment = pmt

        balance -= principal_paid
        total_interest += interest
        total_principal += principal_paid

        payments.append(AmortizationPayment(
            period=period,
            payment_date=add_months(start_date, period) if start_date else None,
            payment=_q(actual_payment),
            principal=_q(principal_paid),
            interest=_q(interest),
            balance=_q(max(balance, Decimal("0"))),
            cumulative_principal=_q(total_principal),
            cumulative_interest=_q(total_interest),
        ))

        if balance <= 0:
            break

    return AmortizationSchedule(
        payments=payments,
        monthly_payment=pmt,
        total_interest=_q(total_interest),
        total_principal=_q(total_principal),
    )


def remaining_balance(
    principal: Decimal,
    annual_rate: Decimal,
    term_months: int,
    payments_completed: int,
) -> Decimal:
    """Closed-form outstanding balance after `payments_completed` payments."""
    if principal <= 0 or payments_completed >= term_months:
        return Decimal("0")
    if payments_completed <= 0:
        return _q(principal)

    pmt = monthly_payment(principal, annual_rate, term_months)
    if annual_rate <= 0:
        return _q(max(principal - pmt * payments_completed, Decimal("0")))

    r = annual_rate / 12
    growth = (1 + r) ** payments_completed
    balance = principal * growth - pmt * (growth - 1) / r
    return _q(max(balance, Decimal("0")))


def yearly_debt_summary(schedule: AmortizationSchedule) -> list[YearlyDebtService]:
    """Aggregate an amortization schedule by loan year."""
    yearly: list[YearlyDebtService] = []
    year_principal = Decimal("0")
    year_interest = Decimal("0")
    year_debt_service = Decimal("0")

    for p in schedule.payments:
        year_principal += p.principal
        year_interest += p.interest
        year_debt_service += p.payment

        if p.period % 12 == 0 or p.period == len(schedule.payments):
            yearly.append(YearlyDebtService(
                year=(p.period - 1) // 12 + 1,
                principal=year_principal,
                interest=year_interest,
                debt_service=year_debt_service,
                ending_balance=p.balance,
            ))
            year_principal = Decimal("0")
            year_interest = Decimal("0")
            year_debt_service = Decimal("0")

    return yearly


def loan_summary(principal: Decimal, annual_rate: Decimal, term_months: int) -> LoanSummary:
    schedule = amortization_schedule(principal, annual_rate, term_months)
    total_payments = sum((p.payment for p in schedule.payments), Decimal("0"))
    ratio = (
        (schedule.total_interest / principal).quantize(FOUR_PLACES, ROUND_HALF_UP)
        if principal > 0 else Decimal("0")
    )
    return LoanSummary(
        principal=principal,
        annual_rate=annual_rate,
        term_months=term_months,
        monthly_payment=schedule.monthly_payment,
        total_payments=total_payments,
        total_interest=schedule.total_interest,
        interest_to_principal=ratio,
    )


def extra_payment_impact(
    principal: Decimal,
    annual_rate: Decimal,
    term_months: int,
    extra_payment: Decimal,
) -> ExtraPaymentImpact:
    """Effect of paying `extra_payment` on top of every monthly payment."""
    base = amortization_schedule(principal, annual_rate, term_months)
    payment = base.monthly_payment + max(extra_payment, Decimal("0"))
    r = max(annual_rate, Decimal("0")) / 12

    balance = principal
    months = 0
    total_interest = Decimal("0")
    while balance > 0 and months < MAX_SIMULATED_MONTHS:
        interest = balance * r
        total_interest += interest
        balance -= min(payment - interest, balance)
        months += 1

    new_interest = _q(total_interest)
    return ExtraPaymentImpact(
        extra_payment=extra_payment,
        original_term_months=len(base.payments),
        new_term_months=months,
        months_saved=len(base.payments) - months,
        original_total_interest=base.total_interest,
        new_total_interest=new_interest,
        interest_saved=base.total_interest - new_interest,
    )


def loan_status(loan: Loan, payments_to_date: int) -> LoanStatusReport:
    """Position of a loan after `payments_to_date` payments.

    Use months_elapsed(loan.start_date, as_of) to derive the count from a date.
    """
    payments_made = min(max(payments_to_date, 0), loan.term_months)
    schedule = amortization_schedule(
        loan.principal, loan.annual_rate, loan.term_months, periods=payments_made
    )

    if payments_made >= loan.term_months:
        status = LoanStatus.PAID_OFF
        balance = Decimal("0")
    else:
        status = loan.status
        balance = remaining_balance(
            loan.principal, loan.annual_rate, loan.term_months, payments_made
        )

    last = schedule.payments[-1] if schedule.payments else None
    principal_paid = loan.principal - balance
    percent = (
        (principal_paid / loan.principal).quantize(FOUR_PLACES, ROUND_HALF_UP)
        if loan.principal > 0 else Decimal("0")
    )
    return LoanStatusReport(
        loan_id=loan.id,
        status=status,
        payments_made=payments_made,
        payments_remaining=loan.term_months - payments_made,
        remaining_balance=balance,
        principal_paid=principal_paid,
        interest_paid=last.cumulative_interest if last else Decimal("0"),
        percent_paid_off=percent,
    )
