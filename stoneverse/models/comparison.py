from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from stoneverse.models.entity import FiscalRegime
from stoneverse.models.property import PropertyType


class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class SuggestionType(Enum):
    REGIME_CHANGE = "regime_change"
    DEPRECIATION_OPTIMIZATION = "depreciation_optimization"
    TRANSACTION_TIMING = "transaction_timing"
    ENTITY_RESTRUCTURING = "entity_restructuring"


# Regime comparison / tax optimization

@dataclass
class RegimeComparison:
    regime: FiscalRegime
    gross_income: Decimal = Decimal("0")
    taxable_result: Decimal = Decimal("0")
    estimated_tax_burden: Decimal = Decimal("0")
    effective_rate: Decimal = Decimal("0")
    depreciation_benefit: Decimal = Decimal("0")
    cash_flow_impact: Decimal = Decimal("0")
    exit_tax_estimate: Decimal = Decimal("0")
    flexibility_score: Decimal = Decimal("0")
    overall_score: Decimal = Decimal("0")
    pros: list[str] = field(default_factory=list)
    cons: list[str] = field(default_factory=list)


@dataclass
class OptimizationSuggestion:
    id: str
    suggestion_type: SuggestionType
    priority: Priority
    title: str
    description: str
    potential_savings: Decimal
    implementation_effort: Priority
    applicable_properties: list[str] = field(default_factory=list)
    current_situation: str = ""
    proposed_changes: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)
    timeline: str = ""

    @property
    def ranking_value(self) -> Decimal:
        return self.priority.weight * self.potential_savings


# Property comparator

class SortKey(Enum):
    OVERALL = "overall"
    FINANCIAL = "financial"
    RISK = "risk"
    LOCATION = "location"
    YIELD = "yield"
    CASH_FLOW = "cash_flow"
    PRICE = "price"


class RecommendationType(Enum):
    HOLD = "hold"
    SELL = "sell"
    IMPROVE = "improve"


class MarketTrend(Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class ComparisonCriteria:
    min_yield: Decimal | None = None
    max_price: Decimal | None = None
    min_surface: Decimal | None = None
    max_surface: Decimal | None = None
    cities: tuple[str, ...] = ()
    property_types: tuple[PropertyType, ...] = ()
    sort_by: SortKey = SortKey.OVERALL
    descending: bool = True


@dataclass
class PropertyMetrics:
    acquisition_price: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    surface_area: Decimal = Decimal("0")
    price_per_sqm: Decimal = Decimal("0")
    monthly_rent: Decimal = Decimal("0")
    annual_rent: Decimal = Decimal("0")
    annual_expenses: Decimal = Decimal("0")
    rental_yield: Decimal = Decimal("0")
    cap_rate: Decimal = Decimal("0")
    monthly_cash_flow: Decimal = Decimal("0")
    annual_cash_flow: Decimal = Decimal("0")
    cash_on_cash: Decimal = Decimal("0")
    irr: Decimal = Decimal("0")
    vacancy_risk: Decimal = Decimal("0")
    market_volatility: Decimal = Decimal("0")
    liquidity_score: Decimal = Decimal("0")
    neighborhood_score: Decimal = Decimal("0")
    transport_score: Decimal = Decimal("0")
    amenities_score: Decimal = Decimal("0")
    market_growth: Decimal = Decimal("0")


@dataclass
class PropertyScores:
    financial: Decimal = Decimal("0")
    risk: Decimal = Decimal("0")
    location: Decimal = Decimal("0")
    overall: Decimal = Decimal("0")


@dataclass
class BenchmarkDeltas:
    """Relative differences (fractions) against a reference."""
    price_per_sqm: Decimal = Decimal("0")
    rental_yield: Decimal = Decimal("0")
    cash_flow: Decimal = Decimal("0")
    market_growth: Decimal = Decimal("0")


@dataclass
class PropertyComparison:
    property_id: str
    city: str
    property_type: PropertyType
    metrics: PropertyMetrics
    scores: PropertyScores
    vs_portfolio: BenchmarkDeltas = field(default_factory=BenchmarkDeltas)
    vs_market: BenchmarkDeltas = field(default_factory=BenchmarkDeltas)


@dataclass(frozen=True)
class BestPerformers:
    overall: str | None = None
    financial: str | None = None
    risk_adjusted: str | None = None
    location: str | None = None


@dataclass(frozen=True)
class PortfolioInsights:
    average_yield: Decimal = Decimal("0")
    average_monthly_cash_flow: Decimal = Decimal("0")
    total_value: Decimal = Decimal("0")
    diversification_score: Decimal = Decimal("0")


@dataclass(frozen=True)
class PropertyRecommendation:
    property_id: str
    recommendation_type: RecommendationType
    priority: Priority
    reason: str
    impact: Decimal


@dataclass(frozen=True)
class MarketContext:
    trend: MarketTrend
    average_growth: Decimal
    best_market: str | None = None
    insights: tuple[str, ...] = ()


@dataclass
class ComparisonReport:
    properties: list[PropertyComparison]
    best_performers: BestPerformers
    insights: PortfolioInsights
    recommendations: list[PropertyRecommendation]
    market_context: MarketContext
