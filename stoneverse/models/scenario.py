from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from stoneverse.models.entity import FiscalRegime, LegalEntity
from stoneverse.models.property import Property


class ScenarioEventType(Enum):
    ACQUISITION = "acquisition"
    DISPOSAL = "disposal"
    RENT_INCREASE = "rent_increase"
    REFINANCING = "refinancing"
    RENOVATION = "renovation"
    MARKET_ADJUSTMENT = "market_adjustment"


@dataclass(frozen=True)
class ProjectionParameters:
    appreciation_rate: Decimal = Decimal("0.03")
    rent_growth_rate: Decimal = Decimal("0.025")
    inflation_rate: Decimal = Decimal("0.02")  # Expense escalation
    debt_reduction_rate: Decimal = Decimal("0.04")
    financing_cost_rate: Decimal = Decimal("0.035")
    discount_rate: Decimal = Decimal("0.04")
    marginal_tax_rate: Decimal = Decimal("0.30")
    operating_expense_ratio: Decimal = Decimal("0.20")  # Of rent, for acquired/sold assets
    tax_regime: FiscalRegime = FiscalRegime.PERSONAL
    annual_depreciation: Decimal = Decimal("0")


# Event payloads. Each variant is one kind of scenario event.

@dataclass(frozen=True)
class Acquisition:
    purchase_price: Decimal
    monthly_rent: Decimal
    financing_amount: Decimal = Decimal("0")
    annual_rate: Decimal = Decimal("0.035")
    term_months: int = 240
    annual_expenses: Decimal | None = None  # Defaults to operating_expense_ratio of rent
    event_type: ScenarioEventType = field(default=ScenarioEventType.ACQUISITION, init=False)


@dataclass(frozen=True)
class Disposal:
    sale_price: Decimal
    outstanding_debt: Decimal = Decimal("0")
    annual_rent: Decimal = Decimal("0")
    transaction_costs: Decimal = Decimal("0")
    capital_gains_tax: Decimal | None = None
    # When capital_gains_tax is None and both are set, the tax is computed
    sold_property: Property | None = None
    entity: LegalEntity | None = None
    event_type: ScenarioEventType = field(default=ScenarioEventType.DISPOSAL, init=False)


@dataclass(frozen=True)
class RentIncrease:
    increase_rate: Decimal  # 0.05 = +5%
    event_type: ScenarioEventType = field(default=ScenarioEventType.RENT_INCREASE, init=False)


@dataclass(frozen=True)
class Refinancing:
    loan_balance: Decimal
    old_rate: Decimal
    new_rate: Decimal
    closing_costs: Decimal = Decimal("0")
    event_type: ScenarioEventType = field(default=ScenarioEventType.REFINANCING, init=False)


@dataclass(frozen=True)
class Renovation:
    cost: Decimal
    value_increase: Decimal = Decimal("0")
    monthly_rent_increase: Decimal = Decimal("0")
    event_type: ScenarioEventType = field(default=ScenarioEventType.RENOVATION, init=False)


@dataclass(frozen=True)
class MarketAdjustment:
    value_change_rate: Decimal = Decimal("0")  # -0.10 = 10% drop
    rent_change_rate: Decimal = Decimal("0")
    event_type: ScenarioEventType = field(
        default=ScenarioEventType.MARKET_ADJUSTMENT, init=False
    )


EventPayload = Acquisition | Disposal | RentIncrease | Refinancing | Renovation | MarketAdjustment


@dataclass(frozen=True)
class ScenarioEvent:
    event_date: date
    payload: EventPayload
    description: str = ""

    @property
    def event_type(self) -> ScenarioEventType:
        return self.payload.event_type


@dataclass(frozen=True)
class Scenario:
    name: str
    base_year: int
    horizon_years: int
    events: tuple[ScenarioEvent, ...] = ()
    parameters: ProjectionParameters = ProjectionParameters()


@dataclass(frozen=True)
class YearlyProjection:
    year: int
    property_value: Decimal = Decimal("0")
    total_debt: Decimal = Decimal("0")
    rental_income: Decimal = Decimal("0")
    operating_expenses: Decimal = Decimal("0")
    financing_costs: Decimal = Decimal("0")
    one_time_cash_flow: Decimal = Decimal("0")  # Sale proceeds (+)
    gross_cash_flow: Decimal = Decimal("0")
    tax_impact: Decimal = Decimal("0")
    net_cash_flow: Decimal = Decimal("0")
    cumulative_cash_flow: Decimal = Decimal("0")
    net_worth: Decimal = Decimal("0")
    roi: Decimal = Decimal("0")  # Net worth growth vs year 0


@dataclass
class ScenarioSummary:
    total_cash_invested: Decimal = Decimal("0")
    total_rental_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    cumulative_cash_flow: Decimal = Decimal("0")
    final_property_value: Decimal = Decimal("0")
    final_net_worth: Decimal = Decimal("0")
    total_return: Decimal = Decimal("0")
    roi: Decimal = Decimal("0")
    irr: Decimal = Decimal("0")
    npv: Decimal = Decimal("0")  # At the scenario discount rate
    equity_multiple: Decimal = Decimal("0")
    cash_on_cash: Decimal = Decimal("0")
    break_even_year: int | None = None


@dataclass
class SensitivityAnalysis:
    optimistic: ScenarioSummary
    realistic: ScenarioSummary
    pessimistic: ScenarioSummary


@dataclass
class ScenarioResults:
    scenario_name: str
    projections: list[YearlyProjection]
    summary: ScenarioSummary
    sensitivity: SensitivityAnalysis | None = None


@dataclass
class ScenarioComparison:
    baseline_name: str
    test_name: str
    value_difference: Decimal = Decimal("0")
    cash_flow_difference: Decimal = Decimal("0")
    roi_difference: Decimal = Decimal("0")
    irr_difference: Decimal = Decimal("0")
    recommendation: str = ""


@dataclass
class BuyVsHoldAnalysis:
    hold: ScenarioSummary
    buy: ScenarioSummary
    irr_difference: Decimal = Decimal("0")
    cash_flow_difference: Decimal = Decimal("0")
    recommendation: str = "hold"  # "buy" | "hold"
