"""Multi-year scenario projection.

A baseline is extrapolated from current portfolio KPIs, then scenario events
are applied in date order. Each event is a pure transform over the yearly
records from its trigger year forward. A final pass recomputes cash flows,
tax, net worth and ROI, and IRR is solved once for the whole series.

Pure functions: dataclasses in, dataclasses out. No I/O.
"""

import logging
from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

from stoneverse.engine.debt import amortization_schedule, yearly_debt_summary
from stoneverse.engine.depreciation import cap_lmnp_depreciation
from stoneverse.engine.disposition import compute_capital_gains
from stoneverse.engine.irr import compute_equity_multiple, compute_irr, npv
from stoneverse.engine.tax import corporate_tax
from stoneverse.models.entity import FiscalRegime, SCIISSettings
from stoneverse.models.results import PortfolioKPI
from stoneverse.models.scenario import (
    Acquisition,
    BuyVsHoldAnalysis,
    Disposal,
    MarketAdjustment,
    ProjectionParameters,
    Refinancing,
    Renovation,
    RentIncrease,
    Scenario,
    ScenarioComparison,
    ScenarioEvent,
    ScenarioResults,
    ScenarioSummary,
    SensitivityAnalysis,
    YearlyProjection,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")

# Buy only when the acquisition lifts IRR by more than this
BUY_IRR_THRESHOLD = Decimal("0.02")

Projection = list[YearlyProjection]


def _q(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def _floor0(value: Decimal) -> Decimal:
    return max(value, Decimal("0"))


def build_baseline(
    portfolio: PortfolioKPI,
    parameters: ProjectionParameters,
    base_year: int,
    horizon_years: int,
) -> Projection:
    """Extrapolate today's portfolio. Index 0 is the base year, no growth yet."""
    projection: Projection = []
    for i in range(max(horizon_years, 0)):
        debt = portfolio.total_debt * (1 - parameters.debt_reduction_rate) ** i
        projection.append(YearlyProjection(
            year=base_year + i,
            property_value=_q(portfolio.total_value * (1 + parameters.appreciation_rate) ** i),
            total_debt=_q(debt),
            rental_income=_q(
                portfolio.total_rental_income * (1 + parameters.rent_growth_rate) ** i
            ),
            operating_expenses=_q(
                portfolio.total_operating_expenses * (1 + parameters.inflation_rate) ** i
            ),
            financing_costs=_q(debt * parameters.financing_cost_rate),
        ))
    return projection


# Event transforms: (projection, trigger index, event, parameters) -> projection

def _apply_acquisition(
    projection: Projection, start: int, event: ScenarioEvent, parameters: ProjectionParameters
) -> Projection:
    payload: Acquisition = event.payload
    loan_years = yearly_debt_summary(amortization_schedule(
        payload.financing_amount, payload.annual_rate, payload.term_months
    ))
    equity = payload.purchase_price - payload.financing_amount

    result = projection[:start]
    for k, p in enumerate(projection[start:]):
        rent = payload.monthly_rent * 12 * (1 + parameters.rent_growth_rate) ** k
        if payload.annual_expenses is not None:
            expenses = payload.annual_expenses * (1 + parameters.inflation_rate) ** k
        else:
            expenses = rent * parameters.operating_expense_ratio
        loan_year = loan_years[k] if k < len(loan_years) else None

        result.append(replace(
            p,
            property_value=p.property_value + payload.purchase_price,
            total_debt=p.total_debt + (loan_year.ending_balance if loan_year else Decimal("0")),
            rental_income=_q(p.rental_income + rent),
            operating_expenses=_q(p.operating_expenses + expenses),
            financing_costs=_q(
                p.financing_costs + (loan_year.interest if loan_year else Decimal("0"))
            ),
            # Down payment leaves the portfolio in the purchase year
            one_time_cash_flow=p.one_time_cash_flow - (equity if k == 0 else Decimal("0")),
        ))
    return result


def _apply_disposal(
    projection: Projection, start: int, event: ScenarioEvent, parameters: ProjectionParameters
) -> Projection:
    payload: Disposal = event.payload
    tax = payload.capital_gains_tax
    if tax is None and payload.sold_property is not None and payload.entity is not None:
        tax = compute_capital_gains(
            payload.sold_property,
            payload.entity,
            payload.sale_price,
            event.event_date,
            payload.transaction_costs,
        ).total_tax
    tax = tax or Decimal("0")
    net_proceeds = payload.sale_price - payload.transaction_costs - tax - payload.outstanding_debt

    result = projection[:start]
    for k, p in enumerate(projection[start:]):
        value = payload.sale_price * (1 + parameters.appreciation_rate) ** k
        debt = payload.outstanding_debt * (1 - parameters.debt_reduction_rate) ** k
        rent = payload.annual_rent * (1 + parameters.rent_growth_rate) ** k
        result.append(replace(
            p,
            property_value=_q(_floor0(p.property_value - value)),
            total_debt=_q(_floor0(p.total_debt - debt)),
            rental_income=_q(_floor0(p.rental_income - rent)),
            operating_expenses=_q(
                _floor0(p.operating_expenses - rent * parameters.operating_expense_ratio)
            ),
            financing_costs=_q(
                _floor0(p.financing_costs - debt * parameters.financing_cost_rate)
            ),
            one_time_cash_flow=p.one_time_cash_flow + (net_proceeds if k == 0 else Decimal("0")),
        ))
    return result


def _apply_rent_increase(
    projection: Projection, start: int, event: ScenarioEvent, parameters: ProjectionParameters
) -> Projection:
    payload: RentIncrease = event.payload
    factor = 1 + payload.increase_rate
    return projection[:start] + [
        replace(p, rental_income=_q(p.rental_income * factor)) for p in projection[start:]
    ]


def _apply_refinancing(
    projection: Projection, start: int, event: ScenarioEvent, parameters: ProjectionParameters
) -> Projection:
    payload: Refinancing = event.payload
    saving = payload.loan_balance * (payload.old_rate - payload.new_rate)
    result = projection[:start]
    for k, p in enumerate(projection[start:]):
        result.append(replace(
            p,
            operating_expenses=p.operating_expenses + (payload.closing_costs if k == 0 else 0),
            financing_costs=_q(_floor0(p.financing_costs - saving)),
        ))
    return result


def _apply_renovation(
    projection: Projection, start: int, event: ScenarioEvent, parameters: ProjectionParameters
) -> Projection:
    payload: Renovation = event.payload
    result = projection[:start]
    for k, p in enumerate(projection[start:]):
        result.append(replace(
            p,
            property_value=p.property_value + payload.value_increase,
            rental_income=p.rental_income + payload.monthly_rent_increase * 12,
            operating_expenses=p.operating_expenses + (payload.cost if k == 0 else 0),
        ))
    return result


def _apply_market_adjustment(
    projection: Projection, start: int, event: ScenarioEvent, parameters: ProjectionParameters
) -> Projection:
    payload: MarketAdjustment = event.payload
    return projection[:start] + [
        replace(
            p,
            property_value=_q(p.property_value * (1 + payload.value_change_rate)),
            rental_income=_q(p.rental_income * (1 + payload.rent_change_rate)),
        )
        for p in projection[start:]
    ]


EVENT_TRANSFORMS: dict[type, Callable[..., Projection]] = {
    Acquisition: _apply_acquisition,
    Disposal: _apply_disposal,
    RentIncrease: _apply_rent_increase,
    Refinancing: _apply_refinancing,
    Renovation: _apply_renovation,
    MarketAdjustment: _apply_market_adjustment,
}


def apply_events(
    projection: Projection,
    events: tuple[ScenarioEvent, ...] | list[ScenarioEvent],
    parameters: ProjectionParameters,
    base_year: int,
) -> Projection:
    """Apply events in date order. Events outside the horizon are skipped."""
    for event in sorted(events, key=lambda e: e.event_date):
        start = event.event_date.year - base_year
        if start < 0 or start >= len(projection):
            logger.debug("Skipping %s event dated %s outside horizon",
                         event.event_type.value, event.event_date)
            continue
        transform = EVENT_TRANSFORMS.get(type(event.payload))
        if transform is None:
            raise TypeError(f"Unsupported event payload: {type(event.payload).__name__}")
        projection = transform(projection, start, event, parameters)
    return projection


def tax_impact(
    gross_cash_flow: Decimal,
    parameters: ProjectionParameters,
    prior_deficit: Decimal = Decimal("0"),
) -> Decimal:
    """Annual tax on the projected operating result, never negative.

    prior_deficit is the SCI-IS loss carried from earlier projected years.
    """
    if parameters.tax_regime == FiscalRegime.SCI_IS:
        return corporate_tax(
            gross_cash_flow - parameters.annual_depreciation - prior_deficit, SCIISSettings()
        )
    if parameters.tax_regime == FiscalRegime.LMNP:
        applied = cap_lmnp_depreciation(parameters.annual_depreciation, gross_cash_flow)
        return _q(_floor0(gross_cash_flow - applied) * parameters.marginal_tax_rate)
    return _q(_floor0(gross_cash_flow) * parameters.marginal_tax_rate)


def carried_deficit(
    gross_cash_flow: Decimal,
    parameters: ProjectionParameters,
    prior_deficit: Decimal = Decimal("0"),
) -> Decimal:
    """SCI-IS loss still unused after this year, with no time limit."""
    if parameters.tax_regime != FiscalRegime.SCI_IS or not SCIISSettings().deficit_carryforward:
        return Decimal("0")
    return _floor0(prior_deficit - (gross_cash_flow - parameters.annual_depreciation))


def recompute_metrics(projection: Projection, parameters: ProjectionParameters) -> Projection:
    """Single pass deriving cash flows, cumulative totals, net worth and ROI.

    SCI-IS losses carry forward into later projected years.
    """
    result: Projection = []
    cumulative = Decimal("0")
    initial_net_worth: Decimal | None = None
    deficit = Decimal("0")

    for p in projection:
        gross = p.rental_income - p.operating_expenses - p.financing_costs
        tax = tax_impact(gross, parameters, deficit)
        deficit = carried_deficit(gross, parameters, deficit)
        net = gross - tax + p.one_time_cash_flow
        cumulative += net
        net_worth = p.property_value - p.total_debt
        if initial_net_worth is None:
            initial_net_worth = net_worth
        roi = (
            ((net_worth - initial_net_worth) / initial_net_worth).quantize(
                FOUR_PLACES, ROUND_HALF_UP
            )
            if initial_net_worth > 0 else Decimal("0")
        )
        result.append(replace(
            p,
            gross_cash_flow=_q(gross),
            tax_impact=tax,
            net_cash_flow=_q(net),
            cumulative_cash_flow=_q(cumulative),
            net_worth=_q(net_worth),
            roi=roi,
        ))
    return result


def project(scenario: Scenario, portfolio: PortfolioKPI,
            parameters: ProjectionParameters | None = None) -> Projection:
    parameters = parameters or scenario.parameters
    baseline = build_baseline(portfolio, parameters, scenario.base_year, scenario.horizon_years)
    with_events = apply_events(baseline, scenario.events, parameters, scenario.base_year)
    return recompute_metrics(with_events, parameters)


def irr_cash_flows(projection: Projection, initial_equity: Decimal) -> list[Decimal]:
    """Equity in at year 0, yearly net cash flows, equity out with the last year."""
    if not projection:
        return []
    flows = [-initial_equity] + [p.net_cash_flow for p in projection]
    flows[-1] += projection[-1].net_worth
    return flows


def summarize(
    projection: Projection,
    initial_equity: Decimal,
    discount_rate: Decimal = Decimal("0.04"),
) -> ScenarioSummary:
    """Summary metrics. initial_equity is the portfolio equity before any event."""
    if not projection:
        return ScenarioSummary()

    invested = _floor0(initial_equity)
    final = projection[-1]
    total_return = final.net_worth + final.cumulative_cash_flow - invested
    flows = irr_cash_flows(projection, invested)

    break_even = None
    for p in projection:
        if p.cumulative_cash_flow - invested >= 0:
            break_even = p.year
            break

    return ScenarioSummary(
        total_cash_invested=invested,
        total_rental_income=sum((p.rental_income for p in projection), Decimal("0")),
        total_expenses=sum(
            (p.operating_expenses + p.financing_costs for p in projection), Decimal("0")
        ),
        total_tax=sum((p.tax_impact for p in projection), Decimal("0")),
        cumulative_cash_flow=final.cumulative_cash_flow,
        final_property_value=final.property_value,
        final_net_worth=final.net_worth,
        total_return=total_return,
        roi=(total_return / invested).quantize(FOUR_PLACES, ROUND_HALF_UP)
        if invested > 0 else Decimal("0"),
        irr=compute_irr(flows) if invested > 0 else Decimal("0"),
        npv=_q(npv(discount_rate, flows)),
        equity_multiple=compute_equity_multiple(
            final.net_worth + final.cumulative_cash_flow, invested
        ),
        cash_on_cash=(final.net_cash_flow / invested).quantize(FOUR_PLACES, ROUND_HALF_UP)
        if invested > 0 else Decimal("0"),
        break_even_year=break_even,
    )


def sensitivity_parameters(
    parameters: ProjectionParameters,
) -> tuple[ProjectionParameters, ProjectionParameters]:
    """(optimistic, pessimistic) variants; the input is left untouched."""
    optimistic = replace(
        parameters,
        rent_growth_rate=parameters.rent_growth_rate * Decimal("1.2"),
        appreciation_rate=parameters.appreciation_rate * Decimal("1.5"),
        inflation_rate=parameters.inflation_rate * Decimal("0.8"),
    )
    pessimistic = replace(
        parameters,
        rent_growth_rate=parameters.rent_growth_rate * Decimal("0.8"),
        appreciation_rate=parameters.appreciation_rate * Decimal("0.5"),
        inflation_rate=parameters.inflation_rate * Decimal("1.2"),
    )
    return optimistic, pessimistic


def simulate_scenario(
    scenario: Scenario,
    portfolio: PortfolioKPI,
    include_sensitivity: bool = True,
) -> ScenarioResults:
    discount_rate = scenario.parameters.discount_rate
    projection = project(scenario, portfolio)
    summary = summarize(projection, portfolio.equity, discount_rate)

    sensitivity = None
    if include_sensitivity:
        optimistic, pessimistic = sensitivity_parameters(scenario.parameters)
        sensitivity = SensitivityAnalysis(
            optimistic=summarize(
                project(scenario, portfolio, optimistic), portfolio.equity, discount_rate
            ),
            realistic=summary,
            pessimistic=summarize(
                project(scenario, portfolio, pessimistic), portfolio.equity, discount_rate
            ),
        )

    return ScenarioResults(
        scenario_name=scenario.name,
        projections=projection,
        summary=summary,
        sensitivity=sensitivity,
    )


def compare_projections(baseline: ScenarioResults, test: ScenarioResults) -> ScenarioComparison:
    value_diff = test.summary.final_net_worth - baseline.summary.final_net_worth
    cash_diff = test.summary.cumulative_cash_flow - baseline.summary.cumulative_cash_flow

    if value_diff > 0 and cash_diff > 0:
        recommendation = "Strongly recommended: improves both cash flow and total return"
    elif value_diff > 0:
        recommendation = "Recommended: improves total return"
    elif cash_diff > 0:
        recommendation = "Consider: improves cash flow but may reduce total return"
    else:
        recommendation = "Not recommended: reduces both cash flow and total return"

    return ScenarioComparison(
        baseline_name=baseline.scenario_name,
        test_name=test.scenario_name,
        value_difference=value_diff,
        cash_flow_difference=cash_diff,
        roi_difference=test.summary.roi - baseline.summary.roi,
        irr_difference=test.summary.irr - baseline.summary.irr,
        recommendation=recommendation,
    )


def rank_scenarios(scenarios: list[Scenario], portfolio: PortfolioKPI) -> list[ScenarioResults]:
    """Simulate each scenario, best IRR first."""
    results = [simulate_scenario(s, portfolio, include_sensitivity=False) for s in scenarios]
    return sorted(results, key=lambda r: r.summary.irr, reverse=True)


def analyze_buy_vs_hold(scenario: Scenario, portfolio: PortfolioKPI) -> BuyVsHoldAnalysis:
    """Scenario as given (buy) against the same scenario without acquisitions (hold)."""
    hold_events = tuple(e for e in scenario.events if not isinstance(e.payload, Acquisition))
    buy = simulate_scenario(scenario, portfolio, include_sensitivity=False).summary
    hold = simulate_scenario(
        replace(scenario, name=f"{scenario.name} (hold)", events=hold_events),
        portfolio,
        include_sensitivity=False,
    ).summary

    irr_diff = buy.irr - hold.irr
    cash_diff = buy.cumulative_cash_flow - hold.cumulative_cash_flow
    return BuyVsHoldAnalysis(
        hold=hold,
        buy=buy,
        irr_difference=irr_diff,
        cash_flow_difference=cash_diff,
        recommendation="buy" if irr_diff > BUY_IRR_THRESHOLD and cash_diff > 0 else "hold",
    )
