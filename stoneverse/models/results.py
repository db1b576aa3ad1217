from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from stoneverse.models.entity import DepreciationComponent, FiscalRegime


class PersonalSubRegime(Enum):
    FLAT_ALLOWANCE = "flat_allowance"  # micro-foncier
    REAL_EXPENSES = "real_expenses"  # regime reel


@dataclass(frozen=True)
class DepreciationLine:
    component: DepreciationComponent
    depreciable_base: Decimal
    annual_amount: Decimal
    accumulated: Decimal  # Through the target year, inclusive
    remaining_base: Decimal
    years_held: int


@dataclass
class TaxCalculationResult:
    regime: FiscalRegime
    year: int
    gross_income: Decimal = Decimal("0")
    deductible_expenses: Decimal = Decimal("0")
    depreciation_total: Decimal = Decimal("0")  # Amount actually applied
    taxable_result: Decimal = Decimal("0")
    tax_due: Decimal = Decimal("0")
    effective_rate: Decimal = Decimal("0")
    depreciation_detail: list[DepreciationLine] = field(default_factory=list)

    # Personal regime only
    personal_sub_regime: PersonalSubRegime | None = None

    # LMNP only: depreciation computed but not usable this year
    depreciation_deferred: Decimal = Decimal("0")

    # SCI-IS only
    deficit_used: Decimal = Decimal("0")
    deficit_carried_forward: Decimal = Decimal("0")


@dataclass
class CapitalGainsResult:
    regime: FiscalRegime
    sale_price: Decimal = Decimal("0")
    sale_costs: Decimal = Decimal("0")
    acquisition_price: Decimal = Decimal("0")
    acquisition_costs: Decimal = Decimal("0")
    book_value: Decimal = Decimal("0")  # SCI-IS only
    years_held: int = 0
    gross_gain: Decimal = Decimal("0")

    # Holding-period allowances (fractions, 0..1)
    income_tax_allowance: Decimal = Decimal("0")
    social_charges_allowance: Decimal = Decimal("0")
    taxable_gain_income_tax: Decimal = Decimal("0")
    taxable_gain_social_charges: Decimal = Decimal("0")

    income_tax: Decimal = Decimal("0")
    social_charges: Decimal = Decimal("0")
    surcharge: Decimal = Decimal("0")
    corporate_tax: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    net_proceeds: Decimal = Decimal("0")


@dataclass
class PropertyKPI:
    property_id: str
    current_value: Decimal = Decimal("0")
    acquisition_price: Decimal = Decimal("0")
    total_debt: Decimal = Decimal("0")
    annual_rental_income: Decimal = Decimal("0")
    annual_operating_expenses: Decimal = Decimal("0")
    annual_capex: Decimal = Decimal("0")
    annual_debt_service: Decimal = Decimal("0")
    noi: Decimal = Decimal("0")
    annual_cash_flow: Decimal = Decimal("0")
    ltv: Decimal = Decimal("0")
    dscr: Decimal | None = None  # None when there is no debt service
    gross_yield: Decimal = Decimal("0")
    net_yield: Decimal = Decimal("0")
    capital_gain_pct: Decimal = Decimal("0")
    weighted_average_rate: Decimal = Decimal("0")
    cash_flow_by_category: dict[str, Decimal] = field(default_factory=dict)


@dataclass
class PortfolioKPI:
    property_count: int = 0
    total_value: Decimal = Decimal("0")
    total_acquisition_price: Decimal = Decimal("0")
    total_debt: Decimal = Decimal("0")
    total_rental_income: Decimal = Decimal("0")
    total_operating_expenses: Decimal = Decimal("0")
    total_capex: Decimal = Decimal("0")
    total_debt_service: Decimal = Decimal("0")
    total_noi: Decimal = Decimal("0")
    total_cash_flow: Decimal = Decimal("0")
    ltv: Decimal = Decimal("0")
    dscr: Decimal | None = None
    gross_yield: Decimal = Decimal("0")
    net_yield: Decimal = Decimal("0")
    capital_gain_pct: Decimal = Decimal("0")
    weighted_average_rate: Decimal = Decimal("0")
    cash_flow_by_category: dict[str, Decimal] = field(default_factory=dict)

    @property
    def equity(self) -> Decimal:
        return self.total_value - self.total_debt


@dataclass(frozen=True)
class MonthlyPerformance:
    month: str  # YYYY-MM
    income: Decimal
    expenses: Decimal
    net_cash_flow: Decimal
