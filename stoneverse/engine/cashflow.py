"""Transaction ledger helpers: windows, classification, category totals.

Pure functions: transactions in, Decimal out. No I/O.
"""

from datetime import date, timedelta
from decimal import Decimal

from stoneverse.models.property import Transaction, TransactionType

INCOME_TYPES = frozenset({TransactionType.RENTAL_INCOME})

DEDUCTIBLE_TYPES = frozenset({
    TransactionType.OPERATING_EXPENSE,
    TransactionType.INSURANCE_PAYMENT,
    TransactionType.MANAGEMENT_FEE,
    TransactionType.REPAIR_MAINTENANCE,
    TransactionType.UTILITY_PAYMENT,
    TransactionType.TAX_PAYMENT,
    TransactionType.LOAN_INTEREST,
    TransactionType.OTHER_EXPENSE,
})

OPERATING_TYPES = frozenset({
    TransactionType.OPERATING_EXPENSE,
    TransactionType.INSURANCE_PAYMENT,
    TransactionType.MANAGEMENT_FEE,
    TransactionType.REPAIR_MAINTENANCE,
    TransactionType.UTILITY_PAYMENT,
})

# Reporting buckets for cash flow by category
CATEGORY_RENTAL_INCOME = "rental_income"
CATEGORY_OPERATING = "operating"
CATEGORY_CAPEX = "capex"
CATEGORY_DEBT_SERVICE = "debt_service"
CATEGORY_OTHER = "other"
CATEGORIES = (
    CATEGORY_RENTAL_INCOME,
    CATEGORY_OPERATING,
    CATEGORY_CAPEX,
    CATEGORY_DEBT_SERVICE,
    CATEGORY_OTHER,
)


def category_of(transaction_type: TransactionType) -> str:
    if transaction_type == TransactionType.RENTAL_INCOME:
        return CATEGORY_RENTAL_INCOME
    if transaction_type in OPERATING_TYPES:
        return CATEGORY_OPERATING
    if transaction_type == TransactionType.CAPEX:
        return CATEGORY_CAPEX
    if transaction_type in (TransactionType.LOAN_PAYMENT, TransactionType.LOAN_INTEREST):
        return CATEGORY_DEBT_SERVICE
    return CATEGORY_OTHER


def for_property(transactions: list[Transaction], property_id: str) -> list[Transaction]:
    return [t for t in transactions if t.property_id == property_id]


def in_year(transactions: list[Transaction], year: int) -> list[Transaction]:
    return [t for t in transactions if t.transaction_date.year == year]


def trailing_window(
    transactions: list[Transaction], as_of: date, days: int = 365
) -> list[Transaction]:
    """Transactions dated in (as_of - days, as_of]."""
    start = as_of - timedelta(days=days)
    return [t for t in transactions if start < t.transaction_date <= as_of]


def gross_income(transactions: list[Transaction]) -> Decimal:
    return sum(
        (t.amount for t in transactions if t.transaction_type in INCOME_TYPES),
        Decimal("0"),
    )


def deductible_expenses(transactions: list[Transaction]) -> Decimal:
    """Positive total of deductible outflows.

    Amounts flagged non-deductible are excluded even when negative.
    """
    return sum(
        (
            -t.amount
            for t in transactions
            if t.transaction_type in DEDUCTIBLE_TYPES and t.tax_deductible and t.amount < 0
        ),
        Decimal("0"),
    )


def cash_flow_by_category(transactions: list[Transaction]) -> dict[str, Decimal]:
    """Signed totals per reporting category, every category present."""
    totals = {category: Decimal("0") for category in CATEGORIES}
    for t in transactions:
        totals[category_of(t.transaction_type)] += t.amount
    return totals
