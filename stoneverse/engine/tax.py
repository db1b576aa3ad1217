"""Regime-specific annual tax calculators.

LMNP (furnished rental, individual): depreciation may not create a loss,
tax is assessed later at household level so tax_due is reported as 0.
SCI-IS (company under corporate tax): reduced/standard two-bracket rate,
deficits carried forward without time limit.
Personal (unfurnished rental, individual): micro-foncier flat allowance
under an income ceiling, or actual expenses, whichever taxes less.

Pure functions: dataclasses in, dataclasses out. No I/O.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from stoneverse.engine.cashflow import deductible_expenses, for_property, gross_income, in_year
from stoneverse.engine.depreciation import (
    cap_lmnp_depreciation,
    compute_depreciation,
    total_depreciation,
)
from stoneverse.models.entity import (
    FiscalRegime,
    LegalEntity,
    LMNPSettings,
    PersonalSettings,
    SCIISSettings,
)
from stoneverse.models.property import Property, Transaction
from stoneverse.models.results import PersonalSubRegime, TaxCalculationResult

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")


@dataclass(frozen=True)
class DistributionResult:
    net_profit: Decimal
    distribution_rate: Decimal
    distributed_amount: Decimal
    retained_earnings: Decimal
    personal_tax_rate: Decimal
    personal_tax_due: Decimal


@dataclass
class DeficitCarryforwardLedger:
    results: list[TaxCalculationResult] = field(default_factory=list)

    @property
    def deficit_carried_forward(self) -> Decimal:
        if not self.results:
            return Decimal("0")
        return self.results[-1].deficit_carried_forward

    @property
    def total_tax(self) -> Decimal:
        return sum((r.tax_due for r in self.results), Decimal("0"))


def _q(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def _effective_rate(tax_due: Decimal, taxable: Decimal) -> Decimal:
    if taxable <= 0:
        return Decimal("0")
    return (tax_due / taxable).quantize(FOUR_PLACES, ROUND_HALF_UP)


def _year_transactions(
    property: Property, transactions: list[Transaction], year: int
) -> list[Transaction]:
    return in_year(for_property(transactions, property.id), year)


def corporate_tax(taxable: Decimal, settings: SCIISSettings) -> Decimal:
    """Two-bracket corporate tax on a positive taxable result."""
    if taxable <= 0:
        return Decimal("0")
    reduced_part = min(taxable, settings.reduced_rate_threshold)
    standard_part = max(taxable - settings.reduced_rate_threshold, Decimal("0"))
    return _q(reduced_part * settings.reduced_rate + standard_part * settings.standard_rate)


def compute_lmnp_tax(
    property: Property,
    settings: LMNPSettings,
    transactions: list[Transaction],
    year: int,
) -> TaxCalculationResult:
    txs = _year_transactions(property, transactions, year)
    income = gross_income(txs)
    expenses = deductible_expenses(txs)
    operating_result = income - expenses

    lines = compute_depreciation(property, settings.depreciation, year)
    computed = total_depreciation(lines)
    if settings.prevent_deficit:
        applied = cap_lmnp_depreciation(computed, operating_result)
    else:
        applied = computed

    return TaxCalculationResult(
        regime=FiscalRegime.LMNP,
        year=year,
        gross_income=income,
        deductible_expenses=expenses,
        depreciation_total=applied,
        taxable_result=operating_result - applied,
        # Assessed with the household's other income
        tax_due=Decimal("0"),
        effective_rate=Decimal("0"),
        depreciation_detail=lines,
        depreciation_deferred=computed - applied,
    )


def compute_sci_is_tax(
    property: Property,
    settings: SCIISSettings,
    transactions: list[Transaction],
    year: int,
    prior_deficit: Decimal = Decimal("0"),
) -> TaxCalculationResult:
    """Corporate tax for one year.

    Args:
        prior_deficit: Unused losses from earlier years (positive amount)
    """
    txs = _year_transactions(property, transactions, year)
    income = gross_income(txs)
    expenses = deductible_expenses(txs)

    lines = compute_depreciation(property, settings.depreciation, year)
    depreciation = total_depreciation(lines)
    taxable = income - expenses - depreciation

    prior_deficit = max(prior_deficit, Decimal("0"))
    if not settings.deficit_carryforward:
        used = Decimal("0")
        carried = Decimal("0")
        tax_base = max(taxable, Decimal("0"))
    elif taxable > 0:
        used = min(prior_deficit, taxable)
        carried = prior_deficit - used
        tax_base = taxable - used
    else:
        used = Decimal("0")
        carried = prior_deficit - taxable
        tax_base = Decimal("0")

    tax_due = corporate_tax(tax_base, settings)
    return TaxCalculationResult(
        regime=FiscalRegime.SCI_IS,
        year=year,
        gross_income=income,
        deductible_expenses=expenses,
        depreciation_total=depreciation,
        taxable_result=taxable,
        tax_due=tax_due,
        effective_rate=_effective_rate(tax_due, taxable),
        depreciation_detail=lines,
        deficit_used=used,
        deficit_carried_forward=carried,
    )


def compute_personal_tax(
    property: Property,
    settings: PersonalSettings,
    transactions: list[Transaction],
    year: int,
) -> TaxCalculationResult:
    txs = _year_transactions(property, transactions, year)
    income = gross_income(txs)
    expenses = deductible_expenses(txs)
    rate = settings.marginal_tax_rate + settings.social_charges_rate

    real_taxable = income - expenses
    real_tax = _q(max(real_taxable, Decimal("0")) * rate)

    sub_regime = PersonalSubRegime.REAL_EXPENSES
    taxable, tax_due, deducted = real_taxable, real_tax, expenses

    if income <= settings.flat_allowance_ceiling:
        allowance = _q(income * settings.flat_allowance_rate)
        flat_taxable = income - allowance
        flat_tax = _q(max(flat_taxable, Decimal("0")) * rate)
        if flat_tax <= real_tax:
            sub_regime = PersonalSubRegime.FLAT_ALLOWANCE
            taxable, tax_due, deducted = flat_taxable, flat_tax, allowance

    logger.debug(
        "Personal regime for %s in %s: %s (tax %s)", property.id, year, sub_regime.value, tax_due
    )
    return TaxCalculationResult(
        regime=FiscalRegime.PERSONAL,
        year=year,
        gross_income=income,
        deductible_expenses=deducted,
        depreciation_total=Decimal("0"),
        taxable_result=taxable,
        tax_due=tax_due,
        effective_rate=_effective_rate(tax_due, taxable),
        personal_sub_regime=sub_regime,
    )


def compute_tax_result(
    property: Property,
    entity: LegalEntity,
    transactions: list[Transaction],
    year: int,
    prior_deficit: Decimal = Decimal("0"),
) -> TaxCalculationResult:
    """Dispatch to the calculator matching the entity's settings."""
    fiscal = entity.settings
    if isinstance(fiscal, LMNPSettings):
        return compute_lmnp_tax(property, fiscal, transactions, year)
    if isinstance(fiscal, SCIISSettings):
        return compute_sci_is_tax(property, fiscal, transactions, year, prior_deficit)
    if isinstance(fiscal, PersonalSettings):
        return compute_personal_tax(property, fiscal, transactions, year)
    raise TypeError(f"Unsupported fiscal settings: {type(fiscal).__name__}")


def build_deficit_ledger(
    property: Property,
    settings: SCIISSettings,
    transactions: list[Transaction],
    years: list[int],
    opening_deficit: Decimal = Decimal("0"),
) -> DeficitCarryforwardLedger:
    """Chain SCI-IS years so each one starts from the previous carryforward."""
    ledger = DeficitCarryforwardLedger()
    deficit = opening_deficit
    for year in sorted(years):
        result = compute_sci_is_tax(property, settings, transactions, year, deficit)
        ledger.results.append(result)
        deficit = result.deficit_carried_forward
    return ledger


def compute_distribution(
    net_profit: Decimal,
    distribution_rate: Decimal = Decimal("0.8"),
    personal_tax_rate: Decimal = Decimal("0.30"),
) -> DistributionResult:
    """Split after-tax company profit between dividends and retained earnings."""
    distributable = max(net_profit, Decimal("0"))
    distributed = _q(distributable * distribution_rate)
    return DistributionResult(
        net_profit=_q(net_profit),
        distribution_rate=distribution_rate,
        distributed_amount=distributed,
        retained_earnings=_q(net_profit - distributed),
        personal_tax_rate=personal_tax_rate,
        personal_tax_due=_q(distributed * personal_tax_rate),
    )
