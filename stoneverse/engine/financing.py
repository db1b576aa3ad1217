"""Refinancing and leverage analysis.

Pure functions: Decimal in, dataclass out. No I/O.
"""

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from stoneverse.engine.debt import monthly_payment, months_elapsed
from stoneverse.models.property import Loan

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")

MAX_BREAKEVEN_MONTHS = 60
LTV_OPTIONS = (
    Decimal("0.60"), Decimal("0.65"), Decimal("0.70"), Decimal("0.75"),
    Decimal("0.80"), Decimal("0.85"), Decimal("0.90"),
)


@dataclass(frozen=True)
class LoanPosition:
    """Outstanding part of a loan, the starting point of a refinancing."""
    balance: Decimal
    annual_rate: Decimal
    remaining_months: int

    @classmethod
    def from_loan(cls, loan: Loan, as_of: date) -> "LoanPosition":
        elapsed = months_elapsed(loan.start_date, as_of)
        return cls(
            balance=loan.current_balance,
            annual_rate=loan.annual_rate,
            remaining_months=max(loan.term_months - elapsed, 0),
        )


@dataclass(frozen=True)
class RefinancingAnalysis:
    current_payment: Decimal
    new_payment: Decimal
    monthly_savings: Decimal
    closing_costs: Decimal
    breakeven_months: int | None  # None: never breaks even
    current_remaining_interest: Decimal
    new_total_interest: Decimal
    total_interest_savings: Decimal
    npv: Decimal
    recommended: bool


@dataclass(frozen=True)
class LeverageOption:
    ltv: Decimal
    loan_amount: Decimal
    down_payment: Decimal
    monthly_payment: Decimal
    cash_on_cash: Decimal
    leveraged_return: Decimal
    risk_score: Decimal


def breakeven_months(closing_costs: Decimal, monthly_savings: Decimal) -> int | None:
    """Months of savings needed to recover closing costs."""
    if monthly_savings <= 0:
        return None
    return math.ceil(closing_costs / monthly_savings)


def savings_npv(
    monthly_savings: Decimal,
    closing_costs: Decimal,
    discount_rate: Decimal,
    term_months: int,
) -> Decimal:
    """NPV of a monthly savings stream net of upfront closing costs."""
    i = discount_rate / 12
    if i == 0:
        pv = monthly_savings * term_months
    else:
        pv = monthly_savings * (1 - (1 + i) ** -term_months) / i
    return (pv - closing_costs).quantize(TWO_PLACES, ROUND_HALF_UP)


def is_refinancing_recommended(npv: Decimal, breakeven: int | None) -> bool:
    return npv > 0 and breakeven is not None and breakeven <= MAX_BREAKEVEN_MONTHS


def analyze_refinancing(
    position: LoanPosition,
    new_rate: Decimal,
    new_term_months: int | None = None,
    closing_costs: Decimal = Decimal("0"),
    discount_rate: Decimal = Decimal("0.03"),
) -> RefinancingAnalysis:
    """Compare the current loan against a new one on the same balance.

    new_term_months defaults to the months left on the current loan.
    """
    term = new_term_months if new_term_months is not None else position.remaining_months
    current_payment = monthly_payment(
        position.balance, position.annual_rate, position.remaining_months
    )
    new_payment = monthly_payment(position.balance, new_rate, term)
    savings = current_payment - new_payment

    current_interest = max(
        current_payment * position.remaining_months - position.balance, Decimal("0")
    )
    new_interest = max(new_payment * term - position.balance, Decimal("0"))

    breakeven = breakeven_months(closing_costs, savings)
    npv = savings_npv(savings, closing_costs, discount_rate, term)

    return RefinancingAnalysis(
        current_payment=current_payment,
        new_payment=new_payment,
        monthly_savings=savings,
        closing_costs=closing_costs,
        breakeven_months=breakeven,
        current_remaining_interest=current_interest,
        new_total_interest=new_interest,
        total_interest_savings=current_interest - new_interest,
        npv=npv,
        recommended=is_refinancing_recommended(npv, breakeven),
    )


def optimize_ltv(
    property_value: Decimal,
    available_down_payment: Decimal,
    annual_rate: Decimal,
    term_months: int,
    expected_appreciation: Decimal = Decimal("0.02"),
    expected_rental_yield: Decimal = Decimal("0.05"),
) -> list[LeverageOption]:
    """Returns for each standard LTV the buyer can fund.

    Options whose down payment exceeds available funds are skipped.
    """
    options: list[LeverageOption] = []
    annual_rent = property_value * expected_rental_yield
    appreciation = property_value * expected_appreciation

    for ltv in LTV_OPTIONS:
        loan_amount = (property_value * ltv).quantize(TWO_PLACES, ROUND_HALF_UP)
        down_payment = property_value - loan_amount
        if down_payment > available_down_payment:
            continue

        pmt = monthly_payment(loan_amount, annual_rate, term_months)
        cash_flow = annual_rent - pmt * 12
        if down_payment > 0:
            coc = (cash_flow / down_payment).quantize(FOUR_PLACES, ROUND_HALF_UP)
            leveraged = ((cash_flow + appreciation) / down_payment).quantize(
                FOUR_PLACES, ROUND_HALF_UP
            )
        else:
            coc = leveraged = Decimal("0")

        # Higher leverage, rate and term mean more risk
        risk = ltv + annual_rate * 10 + (Decimal("0.2") if term_months > 360 else Decimal("0"))

        options.append(LeverageOption(
            ltv=ltv,
            loan_amount=loan_amount,
            down_payment=down_payment,
            monthly_payment=pmt,
            cash_on_cash=coc,
            leveraged_return=leveraged,
            risk_score=risk.quantize(TWO_PLACES, ROUND_HALF_UP),
        ))

    return options
