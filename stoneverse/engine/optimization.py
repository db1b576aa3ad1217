"""Regime comparison and tax optimization advice.

Each candidate regime is evaluated on the same properties with default
settings. Scores (0-100):
  Tax:         max(0, 100 - annual tax burden / 1000)
  Flexibility: static per regime (personal 90, LMNP 70, SCI-IS 50)
  Exit:        max(0, 100 - exit tax / 1000)
  Overall:     0.4 x tax + 0.3 x flexibility + 0.3 x exit
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from stoneverse.engine.cashflow import DEDUCTIBLE_TYPES, in_year
from stoneverse.engine.depreciation import (
    accumulated_depreciation,
    compute_depreciation,
    total_depreciation,
)
from stoneverse.engine.disposition import compute_capital_gains
from stoneverse.engine.tax import compute_tax_result
from stoneverse.models.comparison import (
    OptimizationSuggestion,
    Priority,
    RegimeComparison,
    SuggestionType,
)
from stoneverse.models.entity import (
    FiscalRegime,
    LegalEntity,
    LMNPSettings,
    PersonalSettings,
    SCIISSettings,
    default_settings,
)
from stoneverse.models.property import Property, Transaction

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")

FLEXIBILITY_SCORES = {
    FiscalRegime.PERSONAL: Decimal("90"),
    FiscalRegime.LMNP: Decimal("70"),
    FiscalRegime.SCI_IS: Decimal("50"),
}
SCORE_SCALE = Decimal("1000")  # Euros per score point

REGIME_NAMES = {
    FiscalRegime.PERSONAL: "personal property income",
    FiscalRegime.LMNP: "LMNP",
    FiscalRegime.SCI_IS: "SCI at corporate tax",
}
REGIME_PROS = {
    FiscalRegime.PERSONAL: [
        "Simple administration", "No bookkeeping", "Flat allowance available",
    ],
    FiscalRegime.LMNP: [
        "Depreciation is deductible", "Broad deductible expenses", "Private capital gains rules",
    ],
    FiscalRegime.SCI_IS: [
        "Unlimited depreciation", "Unlimited deficit carryforward", "Estate planning options",
    ],
}
REGIME_CONS = {
    FiscalRegime.PERSONAL: [
        "No depreciation", "Limited deductions", "Taxed at the marginal rate",
    ],
    FiscalRegime.LMNP: [
        "Depreciation cannot create a deficit", "Accounting complexity",
        "Furnished letting obligations",
    ],
    FiscalRegime.SCI_IS: [
        "Corporate tax payable", "Mandatory accounting",
        "Gains taxed on depreciated book value",
    ],
}

# Component split target: building plus furniture and equipment
OPTIMIZED_DEPRECIATION_RATE = Decimal("0.035")
MIN_ADDITIONAL_DEPRECIATION = Decimal("1000")
TIMING_SAVING_PER_EXPENSE = Decimal("100")
MIN_TIMING_SAVINGS = Decimal("500")
RESTRUCTURING_SAVING_PER_ENTITY = Decimal("1000")
MIN_RESTRUCTURING_SAVINGS = Decimal("2000")


def _q(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def _normalized(amount: Decimal) -> Decimal:
    return max(Decimal("0"), Decimal("100") - amount / SCORE_SCALE)


def overall_score(tax_burden: Decimal, flexibility: Decimal, exit_tax: Decimal) -> Decimal:
    return _q(
        Decimal("0.4") * _normalized(tax_burden)
        + Decimal("0.3") * flexibility
        + Decimal("0.3") * _normalized(exit_tax)
    )


def exit_tax_estimate(property: Property, entity: LegalEntity, year: int) -> Decimal:
    """Tax due if the property were sold at current value at year end."""
    depreciation = None
    if isinstance(entity.settings, SCIISSettings):
        depreciation = accumulated_depreciation(property, entity.settings.depreciation, year)
    return compute_capital_gains(
        property,
        entity,
        sale_price=property.current_value,
        sale_date=date(year, 12, 31),
        accumulated_depreciation=depreciation,
    ).total_tax


def compare_regimes(
    properties: list[Property],
    transactions: list[Transaction],
    year: int,
    marginal_tax_rate: Decimal | None = None,
) -> list[RegimeComparison]:
    """Evaluate every regime on the same properties, best overall score first.

    LMNP results are taxed with the household, so their burden is estimated
    at the personal marginal rate plus social charges.
    """
    personal = PersonalSettings()
    household_rate = (
        marginal_tax_rate if marginal_tax_rate is not None else personal.marginal_tax_rate
    ) + personal.social_charges_rate

    comparisons: list[RegimeComparison] = []
    for regime in FiscalRegime:
        entity = LegalEntity(
            id=f"simulated-{regime.value}",
            name=REGIME_NAMES[regime],
            settings=default_settings(regime),
        )
        gross = taxable = burden = depreciation = exit_tax = Decimal("0")

        for p in properties:
            result = compute_tax_result(p, entity, transactions, year)
            gross += result.gross_income
            taxable += result.taxable_result
            depreciation += result.depreciation_total
            if regime == FiscalRegime.LMNP:
                burden += _q(max(result.taxable_result, Decimal("0")) * household_rate)
            else:
                burden += result.tax_due
            exit_tax += exit_tax_estimate(p, entity, year)

        flexibility = FLEXIBILITY_SCORES[regime]
        comparisons.append(RegimeComparison(
            regime=regime,
            gross_income=gross,
            taxable_result=taxable,
            estimated_tax_burden=burden,
            effective_rate=(burden / gross).quantize(FOUR_PLACES, ROUND_HALF_UP)
            if gross > 0 else Decimal("0"),
            depreciation_benefit=depreciation,
            cash_flow_impact=gross - burden,
            exit_tax_estimate=exit_tax,
            flexibility_score=flexibility,
            overall_score=overall_score(burden, flexibility, exit_tax),
            pros=list(REGIME_PROS[regime]),
            cons=list(REGIME_CONS[regime]),
        ))

    return sorted(comparisons, key=lambda c: c.overall_score, reverse=True)


def _entity_properties(
    entity: LegalEntity, properties: list[Property], transactions: list[Transaction]
) -> list[Property]:
    linked = {t.property_id for t in transactions if t.legal_entity_id == entity.id}
    return [p for p in properties if p.legal_entity_id == entity.id or p.id in linked]


def _regime_change(
    properties: list[Property],
    entities: list[LegalEntity],
    comparisons: list[RegimeComparison],
) -> OptimizationSuggestion | None:
    current = {e.regime for e in entities}
    best = comparisons[0]
    if len(current) != 1 or best.regime in current:
        return None

    current_regime = next(iter(current))
    current_burden = next(
        c.estimated_tax_burden for c in comparisons if c.regime == current_regime
    )
    savings = current_burden - best.estimated_tax_burden
    if savings <= 0:
        return None

    name = REGIME_NAMES[best.regime]
    return OptimizationSuggestion(
        id="regime-change",
        suggestion_type=SuggestionType.REGIME_CHANGE,
        priority=Priority.HIGH,
        title=f"Switch to {name}",
        description=f"Moving to {name} could cut tax by about {savings:.0f} EUR a year",
        potential_savings=savings,
        implementation_effort=Priority.MEDIUM,
        applicable_properties=[p.id for p in properties],
        current_situation=f"Current regime: {REGIME_NAMES[current_regime]}",
        proposed_changes=[f"Migrate holdings to {name}"],
        benefits=list(best.pros),
        risks=list(best.cons),
        timeline="Effective from the next 1 January",
    )


def _depreciation_optimizations(
    properties: list[Property],
    entities: list[LegalEntity],
    transactions: list[Transaction],
    year: int,
) -> list[OptimizationSuggestion]:
    suggestions = []
    for entity in entities:
        fiscal = entity.settings
        if isinstance(fiscal, SCIISSettings):
            saving_rate = fiscal.standard_rate
        elif isinstance(fiscal, LMNPSettings):
            personal = PersonalSettings()
            saving_rate = personal.marginal_tax_rate + personal.social_charges_rate
        else:
            continue

        for p in _entity_properties(entity, properties, transactions):
            current = total_depreciation(compute_depreciation(p, fiscal.depreciation, year))
            optimized = p.acquisition_price * OPTIMIZED_DEPRECIATION_RATE
            additional = _q(optimized - current)
            if additional <= MIN_ADDITIONAL_DEPRECIATION:
                continue
            suggestions.append(OptimizationSuggestion(
                id=f"depreciation-{p.id}",
                suggestion_type=SuggestionType.DEPRECIATION_OPTIMIZATION,
                priority=Priority.MEDIUM,
                title="Optimize depreciation components",
                description=f"Split {p.address or p.id} into building, furniture and equipment",
                potential_savings=_q(additional * saving_rate),
                implementation_effort=Priority.LOW,
                applicable_properties=[p.id],
                current_situation=f"Current depreciation: {current:.0f} EUR/year",
                proposed_changes=[f"Target depreciation: {optimized:.0f} EUR/year"],
                benefits=["Immediate tax reduction", "Better cash flow"],
                risks=["Tax audit exposure", "Component valuation must be documented"],
                timeline="Next tax return",
            ))
    return suggestions


def _transaction_timing(
    transactions: list[Transaction], year: int
) -> OptimizationSuggestion | None:
    q4_expenses = [
        t for t in in_year(transactions, year)
        if t.amount < 0 and t.transaction_date.month >= 10 and t.transaction_type in DEDUCTIBLE_TYPES
    ]
    savings = TIMING_SAVING_PER_EXPENSE * len(q4_expenses)
    if savings <= MIN_TIMING_SAVINGS:
        return None
    return OptimizationSuggestion(
        id="transaction-timing",
        suggestion_type=SuggestionType.TRANSACTION_TIMING,
        priority=Priority.LOW,
        title="Schedule deductible expenses",
        description="Time deductible expenses to smooth taxable income across years",
        potential_savings=savings,
        implementation_effort=Priority.LOW,
        applicable_properties=sorted({t.property_id for t in q4_expenses}),
        current_situation=f"{len(q4_expenses)} deductible expenses booked in Q4 {year}",
        proposed_changes=["Bring forward or defer selected expenses"],
        benefits=["Smoother tax burden", "Better use of marginal rates"],
        risks=["Cash constraints", "Operational risk of delaying repairs"],
        timeline="Plan over 12-24 months",
    )


def _entity_restructuring(
    properties: list[Property], entities: list[LegalEntity]
) -> OptimizationSuggestion | None:
    if len(entities) <= 2:
        return None
    savings = RESTRUCTURING_SAVING_PER_ENTITY * len(entities)
    if savings <= MIN_RESTRUCTURING_SAVINGS:
        return None
    return OptimizationSuggestion(
        id="entity-restructuring",
        suggestion_type=SuggestionType.ENTITY_RESTRUCTURING,
        priority=Priority.HIGH,
        title="Consolidate legal entities",
        description="Reorganize holdings to lower overall tax and running costs",
        potential_savings=savings,
        implementation_effort=Priority.HIGH,
        applicable_properties=[p.id for p in properties],
        current_situation=f"{len(entities)} separate entities",
        proposed_changes=["Consolidate into one or two entities"],
        benefits=["Lower overall tax", "Simpler administration"],
        risks=["Restructuring costs", "Legal complexity"],
        timeline="6-12 months with legal counsel",
    )


def generate_optimization_suggestions(
    properties: list[Property],
    entities: list[LegalEntity],
    transactions: list[Transaction],
    year: int,
) -> list[OptimizationSuggestion]:
    """Ranked suggestions, by priority weight x potential savings."""
    suggestions: list[OptimizationSuggestion] = []

    if properties and entities:
        regime_change = _regime_change(
            properties, entities, compare_regimes(properties, transactions, year)
        )
        if regime_change:
            suggestions.append(regime_change)

    suggestions.extend(_depreciation_optimizations(properties, entities, transactions, year))

    timing = _transaction_timing(transactions, year)
    if timing:
        suggestions.append(timing)

    restructuring = _entity_restructuring(properties, entities)
    if restructuring:
        suggestions.append(restructuring)

    return sorted(suggestions, key=lambda s: s.ranking_value, reverse=True)
