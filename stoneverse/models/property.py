from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class PropertyType(Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    COMMERCIAL = "commercial"
    PARKING = "parking"
    LAND = "land"
    OFFICE = "office"
    RETAIL = "retail"
    WAREHOUSE = "warehouse"


class LoanStatus(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    PAID_OFF = "paid_off"
    REFINANCED = "refinanced"
    DEFAULTED = "defaulted"


class TransactionType(Enum):
    RENTAL_INCOME = "rental_income"
    OTHER_INCOME = "other_income"
    OPERATING_EXPENSE = "operating_expense"
    CAPEX = "capex"
    LOAN_PAYMENT = "loan_payment"
    LOAN_INTEREST = "loan_interest"
    TAX_PAYMENT = "tax_payment"
    INSURANCE_PAYMENT = "insurance_payment"
    MANAGEMENT_FEE = "management_fee"
    REPAIR_MAINTENANCE = "repair_maintenance"
    UTILITY_PAYMENT = "utility_payment"
    OTHER_EXPENSE = "other_expense"


@dataclass(frozen=True)
class Property:
    id: str
    acquisition_price: Decimal
    acquisition_date: date
    current_value: Decimal
    surface_area: Decimal
    monthly_rent: Decimal
    city: str
    property_type: PropertyType = PropertyType.APARTMENT
    legal_entity_id: str | None = None
    address: str = ""

    # Notary and agency fees paid on purchase (frais d'acquisition)
    acquisition_costs: Decimal = Decimal("0")

    # Depreciable bases for the non-building components
    furnishing_value: Decimal = Decimal("0")
    equipment_value: Decimal = Decimal("0")
    works_value: Decimal = Decimal("0")


@dataclass(frozen=True)
class Loan:
    id: str
    property_id: str
    principal: Decimal
    annual_rate: Decimal  # e.g. 0.035 for 3.5%
    term_months: int
    start_date: date
    current_balance: Decimal
    monthly_payment: Decimal | None = None
    status: LoanStatus = LoanStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == LoanStatus.ACTIVE


@dataclass(frozen=True)
class Transaction:
    id: str
    property_id: str
    transaction_type: TransactionType
    amount: Decimal  # Positive = inflow, negative = outflow
    transaction_date: date
    tax_deductible: bool = True
    legal_entity_id: str | None = None
    description: str = ""
