"""Property disposition (sale) analysis.

Private gains (LMNP and personal holdings): flat income tax and social
charges, each reduced by a holding-period allowance, plus a surcharge on
large taxable gains.
SCI-IS: gain measured against book value and taxed at the standard
corporate rate, with no holding-period allowance.

Pure functions. No I/O.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from stoneverse.models.entity import (
    AllowanceTier,
    LegalEntity,
    PrivateGainsSettings,
    SCIISSettings,
)
from stoneverse.models.property import Property
from stoneverse.models.results import CapitalGainsResult

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")


def _q(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def years_held(acquisition_date: date, sale_date: date) -> int:
    """Full years of ownership (anniversaries reached)."""
    years = sale_date.year - acquisition_date.year
    if (sale_date.month, sale_date.day) < (acquisition_date.month, acquisition_date.day):
        years -= 1
    return max(years, 0)


def holding_allowance(tiers: tuple[AllowanceTier, ...], held: int) -> Decimal:
    """Cumulative allowance fraction for a holding period, capped at 100%."""
    total = Decimal("0")
    for tier in tiers:
        counted = min(held, tier.to_year) - tier.from_year + 1
        if counted > 0:
            total += tier.rate_per_year * counted
    return min(total, Decimal("1"))


def surcharge_rate(taxable_gain: Decimal, gains: PrivateGainsSettings) -> Decimal:
    """Rate of the highest surcharge tier reached, 0 at or below the threshold."""
    if taxable_gain <= gains.surcharge_threshold:
        return Decimal("0")
    rate = Decimal("0")
    for lower_bound, tier_rate in gains.surcharge_tiers:
        if taxable_gain > lower_bound:
            rate = tier_rate
    return rate


def _private_gain(
    result: CapitalGainsResult, gains: PrivateGainsSettings
) -> CapitalGainsResult:
    result.income_tax_allowance = holding_allowance(gains.income_tax_allowances, result.years_held)
    result.social_charges_allowance = holding_allowance(
        gains.social_charges_allowances, result.years_held
    )
    if result.gross_gain <= 0:
        return result

    result.taxable_gain_income_tax = _q(result.gross_gain * (1 - result.income_tax_allowance))
    result.taxable_gain_social_charges = _q(
        result.gross_gain * (1 - result.social_charges_allowance)
    )
    result.income_tax = _q(result.taxable_gain_income_tax * gains.income_tax_rate)
    result.social_charges = _q(result.taxable_gain_social_charges * gains.social_charges_rate)
    result.surcharge = _q(
        result.taxable_gain_income_tax * surcharge_rate(result.taxable_gain_income_tax, gains)
    )
    result.total_tax = result.income_tax + result.social_charges + result.surcharge
    return result


def compute_capital_gains(
    property: Property,
    entity: LegalEntity,
    sale_price: Decimal,
    sale_date: date,
    sale_costs: Decimal = Decimal("0"),
    works_cost: Decimal = Decimal("0"),
    accumulated_depreciation: Decimal | None = None,
) -> CapitalGainsResult:
    """Capital gains tax and net proceeds for selling a property.

    Args:
        property: Property sold
        entity: Owner; its settings variant selects the rules
        sale_price: Gross sale price
        sale_date: Closing date, drives the holding period
        sale_costs: Agency and diagnostic fees borne by the seller
        works_cost: Improvement works added to the acquisition cost
        accumulated_depreciation: SCI-IS only. Depreciation taken to date;
            when unknown the book value is the acquisition price
    """
    result = CapitalGainsResult(
        regime=entity.regime,
        sale_price=sale_price,
        sale_costs=sale_costs,
        acquisition_price=property.acquisition_price,
        acquisition_costs=property.acquisition_costs,
        years_held=years_held(property.acquisition_date, sale_date),
    )

    fiscal = entity.settings
    if isinstance(fiscal, SCIISSettings):
        depreciation = accumulated_depreciation or Decimal("0")
        result.book_value = property.acquisition_price - depreciation
        result.gross_gain = sale_price - sale_costs - result.book_value
        if result.gross_gain > 0:
            result.corporate_tax = _q(result.gross_gain * fiscal.standard_rate)
            result.total_tax = result.corporate_tax
    else:
        result.gross_gain = (
            sale_price
            - property.acquisition_price
            - property.acquisition_costs
            - works_cost
            - sale_costs
        )
        result = _private_gain(result, fiscal.capital_gains)

    result.net_proceeds = sale_price - sale_costs - result.total_tax
    return result
