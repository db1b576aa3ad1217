"""Property and portfolio KPIs: LTV, DSCR, yields, weighted rate, cash flow.

Property KPIs use a trailing 12-month transaction window. Portfolio KPIs
are built only from property KPIs, so portfolio totals always equal the sum
of the property figures.

Pure functions: Decimal in, dataclass out. No I/O.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from stoneverse.engine.cashflow import (
    CATEGORIES,
    CATEGORY_CAPEX,
    CATEGORY_OPERATING,
    CATEGORY_RENTAL_INCOME,
    cash_flow_by_category,
    for_property,
    trailing_window,
)
from stoneverse.engine.debt import add_months, monthly_payment
from stoneverse.models.property import Loan, Property, Transaction
from stoneverse.models.results import MonthlyPerformance, PortfolioKPI, PropertyKPI

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")


def _ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator <= 0:
        return Decimal("0")
    return (numerator / denominator).quantize(FOUR_PLACES, ROUND_HALF_UP)


def ltv(total_debt: Decimal, value: Decimal) -> Decimal:
    """Loan-to-value. 0 when the value is not positive."""
    return _ratio(total_debt, value)


def dscr(noi: Decimal, annual_debt_service: Decimal) -> Decimal | None:
    """Debt service coverage ratio. None when there is no debt service."""
    if annual_debt_service <= 0:
        return None
    return (noi / annual_debt_service).quantize(FOUR_PLACES, ROUND_HALF_UP)


def rental_yield(annual_income: Decimal, value: Decimal) -> Decimal:
    return _ratio(annual_income, value)


def capital_gain_pct(current_value: Decimal, acquisition_price: Decimal) -> Decimal:
    return _ratio(current_value - acquisition_price, acquisition_price)


def weighted_average_rate(loans: list[Loan]) -> Decimal:
    """Balance-weighted interest rate across active loans."""
    active = [loan for loan in loans if loan.is_active and loan.current_balance > 0]
    total = sum((loan.current_balance for loan in active), Decimal("0"))
    if total <= 0:
        return Decimal("0")
    weighted = sum((loan.annual_rate * loan.current_balance for loan in active), Decimal("0"))
    return (weighted / total).quantize(FOUR_PLACES, ROUND_HALF_UP)


def annual_debt_service(loans: list[Loan]) -> Decimal:
    total = Decimal("0")
    for loan in loans:
        if not loan.is_active:
            continue
        pmt = loan.monthly_payment
        if pmt is None:
            pmt = monthly_payment(loan.principal, loan.annual_rate, loan.term_months)
        total += pmt * 12
    return total


def compute_property_kpis(
    property: Property,
    loans: list[Loan],
    transactions: list[Transaction],
    as_of: date | None = None,
) -> PropertyKPI:
    """KPIs of one property over the 12 months ending at as_of (default today)."""
    as_of = as_of or date.today()
    txs = trailing_window(for_property(transactions, property.id), as_of)
    categories = cash_flow_by_category(txs)

    property_loans = [loan for loan in loans if loan.property_id == property.id]
    active_loans = [loan for loan in property_loans if loan.is_active]
    total_debt = sum((loan.current_balance for loan in active_loans), Decimal("0"))
    debt_service = annual_debt_service(active_loans)

    rental_income = categories[CATEGORY_RENTAL_INCOME]
    operating = -categories[CATEGORY_OPERATING]
    capex = -categories[CATEGORY_CAPEX]
    noi = rental_income - operating

    return PropertyKPI(
        property_id=property.id,
        current_value=property.current_value,
        acquisition_price=property.acquisition_price,
        total_debt=total_debt,
        annual_rental_income=rental_income,
        annual_operating_expenses=operating,
        annual_capex=capex,
        annual_debt_service=debt_service,
        noi=noi,
        annual_cash_flow=noi - capex - debt_service,
        ltv=ltv(total_debt, property.current_value),
        dscr=dscr(noi, debt_service),
        gross_yield=rental_yield(rental_income, property.current_value),
        net_yield=rental_yield(noi, property.current_value),
        capital_gain_pct=capital_gain_pct(property.current_value, property.acquisition_price),
        weighted_average_rate=weighted_average_rate(active_loans),
        cash_flow_by_category=categories,
    )


def compute_portfolio_kpis(property_kpis: list[PropertyKPI]) -> PortfolioKPI:
    """Aggregate property KPIs; ratios are recomputed from the summed totals."""
    def total(attr: str) -> Decimal:
        return sum((getattr(k, attr) for k in property_kpis), Decimal("0"))

    portfolio = PortfolioKPI(
        property_count=len(property_kpis),
        total_value=total("current_value"),
        total_acquisition_price=total("acquisition_price"),
        total_debt=total("total_debt"),
        total_rental_income=total("annual_rental_income"),
        total_operating_expenses=total("annual_operating_expenses"),
        total_capex=total("annual_capex"),
        total_debt_service=total("annual_debt_service"),
        total_noi=total("noi"),
        total_cash_flow=total("annual_cash_flow"),
        cash_flow_by_category={
            category: sum(
                (k.cash_flow_by_category.get(category, Decimal("0")) for k in property_kpis),
                Decimal("0"),
            )
            for category in CATEGORIES
        },
    )

    portfolio.ltv = ltv(portfolio.total_debt, portfolio.total_value)
    portfolio.dscr = dscr(portfolio.total_noi, portfolio.total_debt_service)
    portfolio.gross_yield = rental_yield(portfolio.total_rental_income, portfolio.total_value)
    portfolio.net_yield = rental_yield(portfolio.total_noi, portfolio.total_value)
    portfolio.capital_gain_pct = capital_gain_pct(
        portfolio.total_value, portfolio.total_acquisition_price
    )
    if portfolio.total_debt > 0:
        weighted = sum((k.weighted_average_rate * k.total_debt for k in property_kpis), Decimal("0"))
        portfolio.weighted_average_rate = (weighted / portfolio.total_debt).quantize(
            FOUR_PLACES, ROUND_HALF_UP
        )
    return portfolio


def monthly_performance(
    transactions: list[Transaction],
    as_of: date | None = None,
    months: int = 12,
) -> list[MonthlyPerformance]:
    """Income, expenses and net cash flow per calendar month, oldest first."""
    as_of = as_of or date.today()
    first = add_months(date(as_of.year, as_of.month, 1), -(months - 1))

    buckets: dict[str, list[Decimal]] = {}
    for i in range(months):
        month = add_months(first, i)
        buckets[f"{month.year:04d}-{month.month:02d}"] = [Decimal("0"), Decimal("0")]

    for t in transactions:
        key = f"{t.transaction_date.year:04d}-{t.transaction_date.month:02d}"
        if key not in buckets or t.transaction_date > as_of:
            continue
        if t.amount >= 0:
            buckets[key][0] += t.amount
        else:
            buckets[key][1] -= t.amount

    return [
        MonthlyPerformance(month=key, income=income, expenses=expenses, net_cash_flow=income - expenses)
        for key, (income, expenses) in buckets.items()
    ]
