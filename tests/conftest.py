"""Canonical test fixtures used across all engine tests.

Fixture: EUR 300K furnished apartment in Lyon bought March 2015, EUR 10K
of furniture, EUR 22K notary fees, EUR 200K loan at 3.5% over 20 years.
Ledger: calendar 2024, EUR 14.4K rent, EUR 3.9K deductible expenses.
"""

from datetime import date
from decimal import Decimal

import pytest

from stoneverse.models.entity import (
    LegalEntity,
    LMNPSettings,
    PersonalSettings,
    SCIISSettings,
)
from stoneverse.models.property import (
    Loan,
    Property,
    PropertyType,
    Transaction,
    TransactionType,
)


def make_transaction(
    tx_id: str,
    property_id: str,
    transaction_type: TransactionType,
    amount: str,
    when: date,
    tax_deductible: bool = True,
) -> Transaction:
    return Transaction(
        id=tx_id,
        property_id=property_id,
        transaction_type=transaction_type,
        amount=Decimal(amount),
        transaction_date=when,
        tax_deductible=tax_deductible,
    )


@pytest.fixture
def lyon_apartment() -> Property:
    """EUR 300K furnished apartment, now worth EUR 360K."""
    return Property(
        id="lyon-1",
        acquisition_price=Decimal("300000"),
        acquisition_date=date(2015, 3, 15),
        current_value=Decimal("360000"),
        surface_area=Decimal("60"),
        monthly_rent=Decimal("1200"),
        city="Lyon",
        property_type=PropertyType.APARTMENT,
        acquisition_costs=Decimal("22000"),
        furnishing_value=Decimal("10000"),
    )


@pytest.fixture
def paris_studio() -> Property:
    return Property(
        id="paris-1",
        acquisition_price=Decimal("250000"),
        acquisition_date=date(2019, 9, 1),
        current_value=Decimal("280000"),
        surface_area=Decimal("25"),
        monthly_rent=Decimal("1100"),
        city="Paris",
        property_type=PropertyType.APARTMENT,
    )


@pytest.fixture
def lyon_loan() -> Loan:
    """EUR 200K, 3.5%, 20yr, about EUR 120K still owed."""
    return Loan(
        id="loan-1",
        property_id="lyon-1",
        principal=Decimal("200000"),
        annual_rate=Decimal("0.035"),
        term_months=240,
        start_date=date(2015, 4, 1),
        current_balance=Decimal("120000"),
    )


@pytest.fixture
def year_transactions() -> list[Transaction]:
    """Calendar 2024 ledger for lyon-1.

    Deductible: insurance 400, management 1200, repairs 800, property tax 1500.
    Not deductible: capex 5000, loan payments, a flagged 300 expense.
    """
    txs = [
        make_transaction(
            f"rent-{m}", "lyon-1", TransactionType.RENTAL_INCOME, "1200", date(2024, m, 5)
        )
        for m in range(1, 13)
    ]
    txs += [
        make_transaction(
            f"loan-{m}", "lyon-1", TransactionType.LOAN_PAYMENT, "-1000", date(2024, m, 10)
        )
        for m in range(1, 13)
    ]
    txs += [
        make_transaction("ins", "lyon-1", TransactionType.INSURANCE_PAYMENT, "-400",
                         date(2024, 2, 15)),
        make_transaction("mgmt", "lyon-1", TransactionType.MANAGEMENT_FEE, "-1200",
                         date(2024, 6, 30)),
        make_transaction("repair", "lyon-1", TransactionType.REPAIR_MAINTENANCE, "-800",
                         date(2024, 11, 20)),
        make_transaction("fonciere", "lyon-1", TransactionType.TAX_PAYMENT, "-1500",
                         date(2024, 10, 15)),
        make_transaction("kitchen", "lyon-1", TransactionType.CAPEX, "-5000",
                         date(2024, 4, 18)),
        make_transaction("misc", "lyon-1", TransactionType.OTHER_EXPENSE, "-300",
                         date(2024, 8, 1), tax_deductible=False),
    ]
    return txs


@pytest.fixture
def lmnp_entity() -> LegalEntity:
    return LegalEntity(id="lmnp", name="Furnished rental", settings=LMNPSettings())


@pytest.fixture
def sci_entity() -> LegalEntity:
    return LegalEntity(id="sci", name="SCI Stoneverse", settings=SCIISSettings())


@pytest.fixture
def personal_entity() -> LegalEntity:
    return LegalEntity(id="personal", name="Household", settings=PersonalSettings())
