"""Multi-criteria property comparison.

Composite scores (each 0-100):
  Financial: yield 25%, cap rate 20%, cash-on-cash 20%, 5-year IRR 20%,
             monthly cash flow 15%
  Risk:      vacancy 40%, volatility 30%, liquidity 30% (higher = safer)
  Location:  market growth 40%, neighborhood 30%, transport 20%, amenities 10%
  Overall:   financial 50%, risk 30%, location 20%
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from stoneverse.engine.cashflow import for_property, trailing_window
from stoneverse.engine.location import location_profile, market_volatility, vacancy_risk
from stoneverse.models.comparison import (
    BenchmarkDeltas,
    BestPerformers,
    ComparisonCriteria,
    ComparisonReport,
    MarketContext,
    MarketTrend,
    PortfolioInsights,
    Priority,
    PropertyComparison,
    PropertyMetrics,
    PropertyRecommendation,
    PropertyScores,
    RecommendationType,
    SortKey,
)
from stoneverse.models.property import Property, Transaction

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
HUNDRED = Decimal("100")

# Simplified projection used for the per-property IRR
DOWN_PAYMENT_RATIO = Decimal("0.2")
IRR_YEARS = 5
IRR_APPRECIATION = Decimal("0.025")

# Market benchmarks
MARKET_PRICE_PER_SQM = Decimal("5500")
MARKET_YIELD = Decimal("0.045")
MARKET_GROWTH = Decimal("0.025")

BULLISH_GROWTH = Decimal("0.03")
BEARISH_GROWTH = Decimal("0.02")


def _q2(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def _q4(value: Decimal) -> Decimal:
    return value.quantize(FOUR_PLACES, ROUND_HALF_UP)


def _clamp_score(value: Decimal) -> Decimal:
    return min(max(value, Decimal("0")), HUNDRED)


def _relative(value: Decimal, reference: Decimal, floor: Decimal | None = None) -> Decimal:
    """(value - reference) / reference, 0 when the reference is not positive."""
    denominator = max(reference, floor) if floor is not None else reference
    if denominator <= 0:
        return Decimal("0")
    return _q4((value - reference) / denominator)


def simplified_irr(
    current_value: Decimal, annual_cash_flow: Decimal, total_investment: Decimal
) -> Decimal:
    """Annualized return of holding five years at 2.5% appreciation."""
    if total_investment <= 0:
        return Decimal("0")
    projected_value = current_value * (1 + IRR_APPRECIATION) ** IRR_YEARS
    total_return = (
        projected_value + annual_cash_flow * IRR_YEARS - total_investment
    ) / total_investment
    growth = 1 + total_return
    if growth <= 0:
        return Decimal("-1")
    return _q4(growth ** (Decimal("1") / IRR_YEARS) - 1)


def compute_metrics(
    property: Property, transactions: list[Transaction], as_of: date
) -> PropertyMetrics:
    txs = trailing_window(for_property(transactions, property.id), as_of)
    annual_rent = property.monthly_rent * 12
    annual_expenses = sum((-t.amount for t in txs if t.amount < 0), Decimal("0"))
    net_income = annual_rent - annual_expenses
    monthly_cash_flow = property.monthly_rent - annual_expenses / 12
    annual_cash_flow = monthly_cash_flow * 12

    price = property.acquisition_price
    down_payment = price * DOWN_PAYMENT_RATIO
    profile = location_profile(property.city)

    return PropertyMetrics(
        acquisition_price=price,
        current_value=property.current_value,
        surface_area=property.surface_area,
        price_per_sqm=_q2(property.current_value / property.surface_area)
        if property.surface_area > 0 else Decimal("0"),
        monthly_rent=property.monthly_rent,
        annual_rent=annual_rent,
        annual_expenses=annual_expenses,
        rental_yield=_q4(annual_rent / price) if price > 0 else Decimal("0"),
        cap_rate=_q4(net_income / property.current_value)
        if property.current_value > 0 else Decimal("0"),
        monthly_cash_flow=_q2(monthly_cash_flow),
        annual_cash_flow=_q2(annual_cash_flow),
        cash_on_cash=_q4(annual_cash_flow / down_payment) if down_payment > 0 else Decimal("0"),
        irr=simplified_irr(property.current_value, annual_cash_flow, price + annual_expenses),
        vacancy_risk=_q4(vacancy_risk(property.city, property.property_type)),
        market_volatility=market_volatility(property.city, property.property_type),
        liquidity_score=profile.liquidity_score,
        neighborhood_score=profile.neighborhood_score,
        transport_score=profile.transport_score,
        amenities_score=profile.amenities_score,
        market_growth=profile.market_growth,
    )


def financial_score(m: PropertyMetrics) -> Decimal:
    yield_score = _clamp_score(m.rental_yield * 1000)  # 10% yield = 100
    cap_rate_score = _clamp_score(m.cap_rate * 1666)  # 6% cap rate = 100
    coc_score = _clamp_score(m.cash_on_cash * 1000)
    irr_score = _clamp_score(m.irr * 1000)
    cash_flow_score = _clamp_score(m.monthly_cash_flow / 10)
    return _q2(
        yield_score * Decimal("0.25")
        + cap_rate_score * Decimal("0.2")
        + coc_score * Decimal("0.2")
        + irr_score * Decimal("0.2")
        + cash_flow_score * Decimal("0.15")
    )


def risk_score(m: PropertyMetrics) -> Decimal:
    vacancy = (1 - m.vacancy_risk) * HUNDRED
    volatility = (1 - m.market_volatility) * HUNDRED
    return _q2(
        vacancy * Decimal("0.4") + volatility * Decimal("0.3") + m.liquidity_score * Decimal("0.3")
    )


def location_score(m: PropertyMetrics) -> Decimal:
    growth = _clamp_score(m.market_growth * 2500)
    return _q2(
        growth * Decimal("0.4")
        + m.neighborhood_score * Decimal("0.3")
        + m.transport_score * Decimal("0.2")
        + m.amenities_score * Decimal("0.1")
    )


def score_property(
    property: Property, transactions: list[Transaction], as_of: date
) -> PropertyComparison:
    metrics = compute_metrics(property, transactions, as_of)
    financial = financial_score(metrics)
    risk = risk_score(metrics)
    location = location_score(metrics)
    return PropertyComparison(
        property_id=property.id,
        city=property.city,
        property_type=property.property_type,
        metrics=metrics,
        scores=PropertyScores(
            financial=financial,
            risk=risk,
            location=location,
            overall=_q2(financial * Decimal("0.5") + risk * Decimal("0.3") + location * Decimal("0.2")),
        ),
    )


def _average(values: list[Decimal]) -> Decimal:
    if not values:
        return Decimal("0")
    return sum(values, Decimal("0")) / len(values)


def apply_benchmarks(comparisons: list[PropertyComparison]) -> None:
    """Fill each property's deltas against the portfolio mean and the market."""
    avg_price = _average([c.metrics.price_per_sqm for c in comparisons])
    avg_yield = _average([c.metrics.rental_yield for c in comparisons])
    avg_cash_flow = _average([c.metrics.monthly_cash_flow for c in comparisons])
    avg_growth = _average([c.metrics.market_growth for c in comparisons])

    for c in comparisons:
        m = c.metrics
        c.vs_portfolio = BenchmarkDeltas(
            price_per_sqm=_relative(m.price_per_sqm, avg_price),
            rental_yield=_relative(m.rental_yield, avg_yield),
            cash_flow=_relative(m.monthly_cash_flow, avg_cash_flow, floor=Decimal("1")),
            market_growth=_relative(m.market_growth, avg_growth),
        )
        c.vs_market = BenchmarkDeltas(
            price_per_sqm=_relative(m.price_per_sqm, MARKET_PRICE_PER_SQM),
            rental_yield=_relative(m.rental_yield, MARKET_YIELD),
            market_growth=_relative(m.market_growth, MARKET_GROWTH),
        )


def matches(c: PropertyComparison, criteria: ComparisonCriteria) -> bool:
    m = c.metrics
    if criteria.min_yield is not None and m.rental_yield < criteria.min_yield:
        return False
    if criteria.max_price is not None and m.current_value > criteria.max_price:
        return False
    if criteria.min_surface is not None and m.surface_area < criteria.min_surface:
        return False
    if criteria.max_surface is not None and m.surface_area > criteria.max_surface:
        return False
    if criteria.cities and c.city not in criteria.cities:
        return False
    if criteria.property_types and c.property_type not in criteria.property_types:
        return False
    return True


def sort_value(c: PropertyComparison, key: SortKey) -> Decimal:
    return {
        SortKey.OVERALL: c.scores.overall,
        SortKey.FINANCIAL: c.scores.financial,
        SortKey.RISK: c.scores.risk,
        SortKey.LOCATION: c.scores.location,
        SortKey.YIELD: c.metrics.rental_yield,
        SortKey.CASH_FLOW: c.metrics.monthly_cash_flow,
        SortKey.PRICE: c.metrics.current_value,
    }[key]


def _best(comparisons: list[PropertyComparison], value) -> str | None:
    best: PropertyComparison | None = None
    for c in comparisons:
        if best is None or value(c) > value(best):
            best = c
    return best.property_id if best else None


def best_performers(comparisons: list[PropertyComparison]) -> BestPerformers:
    return BestPerformers(
        overall=_best(comparisons, lambda c: c.scores.overall),
        financial=_best(comparisons, lambda c: c.scores.financial),
        risk_adjusted=_best(comparisons, lambda c: c.scores.financial * c.scores.risk / HUNDRED),
        location=_best(comparisons, lambda c: c.scores.location),
    )


def portfolio_insights(comparisons: list[PropertyComparison]) -> PortfolioInsights:
    if not comparisons:
        return PortfolioInsights()
    cities = {c.city for c in comparisons}
    types = {c.property_type for c in comparisons}
    return PortfolioInsights(
        average_yield=_q4(_average([c.metrics.rental_yield for c in comparisons])),
        average_monthly_cash_flow=_q2(_average([c.metrics.monthly_cash_flow for c in comparisons])),
        total_value=sum((c.metrics.current_value for c in comparisons), Decimal("0")),
        diversification_score=min(Decimal(len(cities) * 20 + len(types) * 15), HUNDRED),
    )


def recommendations(comparisons: list[PropertyComparison]) -> list[PropertyRecommendation]:
    """Sell/hold/improve advice, highest priority first."""
    recs: list[PropertyRecommendation] = []
    for c in comparisons:
        s, m = c.scores, c.metrics
        if s.overall < 40 and m.monthly_cash_flow < 0:
            recs.append(PropertyRecommendation(
                property_id=c.property_id,
                recommendation_type=RecommendationType.SELL,
                priority=Priority.HIGH,
                reason=f"Weak overall score ({s.overall:.0f}/100) and negative cash flow",
                impact=_q2(abs(m.monthly_cash_flow) * 12),
            ))
        if s.overall >= 60 and m.monthly_cash_flow > 200:
            recs.append(PropertyRecommendation(
                property_id=c.property_id,
                recommendation_type=RecommendationType.HOLD,
                priority=Priority.LOW,
                reason=f"Solid performer with overall score {s.overall:.0f}/100",
                impact=m.annual_cash_flow,
            ))
        if s.location > 70 and s.financial < 50:
            recs.append(PropertyRecommendation(
                property_id=c.property_id,
                recommendation_type=RecommendationType.IMPROVE,
                priority=Priority.MEDIUM,
                reason="Strong location but financial performance lags",
                # 20% rent improvement potential
                impact=_q2(m.monthly_rent * Decimal("0.2") * 12),
            ))
    return sorted(recs, key=lambda r: r.priority.weight, reverse=True)


def market_context(comparisons: list[PropertyComparison]) -> MarketContext:
    if not comparisons:
        return MarketContext(trend=MarketTrend.NEUTRAL, average_growth=Decimal("0"))

    growth = _q4(_average([c.metrics.market_growth for c in comparisons]))
    if growth > BULLISH_GROWTH:
        trend = MarketTrend.BULLISH
    elif growth < BEARISH_GROWTH:
        trend = MarketTrend.BEARISH
    else:
        trend = MarketTrend.NEUTRAL

    best_market = None
    best_growth = None
    for c in comparisons:
        if best_growth is None or c.metrics.market_growth > best_growth:
            best_market, best_growth = c.city, c.metrics.market_growth

    insights = []
    above_market = [c for c in comparisons if c.metrics.rental_yield > MARKET_YIELD]
    if above_market:
        insights.append(f"{len(above_market)} of {len(comparisons)} properties yield above market")
    if trend == MarketTrend.BEARISH:
        insights.append("Local markets grow below inflation; favour yield over appreciation")

    return MarketContext(
        trend=trend, average_growth=growth, best_market=best_market, insights=tuple(insights)
    )


def compare_properties(
    properties: list[Property],
    transactions: list[Transaction],
    criteria: ComparisonCriteria | None = None,
    as_of: date | None = None,
) -> ComparisonReport:
    """Score, benchmark, filter and rank properties.

    Benchmarks use the full property list; filters then narrow the report.
    """
    criteria = criteria or ComparisonCriteria()
    as_of = as_of or date.today()

    scored = [score_property(p, transactions, as_of) for p in properties]
    apply_benchmarks(scored)

    selected = [c for c in scored if matches(c, criteria)]
    ranked = sorted(
        selected, key=lambda c: sort_value(c, criteria.sort_by), reverse=criteria.descending
    )

    return ComparisonReport(
        properties=ranked,
        best_performers=best_performers(ranked),
        insights=portfolio_insights(ranked),
        recommendations=recommendations(ranked),
        market_context=market_context(ranked),
    )
