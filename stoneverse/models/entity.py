"""Legal entities and their fiscal settings.

Fiscal settings are a tagged union: each variant carries a fixed `regime`
tag, so an entity's regime always matches the settings it holds.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from stoneverse.config import settings


class FiscalRegime(Enum):
    PERSONAL = "personal"
    LMNP = "lmnp"
    SCI_IS = "sci_is"


class DepreciationComponent(Enum):
    BUILDING = "building"
    FURNITURE = "furniture"
    EQUIPMENT = "equipment"
    WORKS = "works"


def _d(value: float) -> Decimal:
    return Decimal(str(value))


@dataclass(frozen=True)
class ComponentSchedule:
    """Straight-line schedule for one depreciation component.

    horizon_years=None means the component is only limited by its
    remaining base. base_amount overrides the base derived from the property.
    """
    rate: Decimal
    horizon_years: int | None = None
    base_amount: Decimal | None = None


@dataclass(frozen=True)
class DepreciationTable:
    building: ComponentSchedule = ComponentSchedule(Decimal("0.025"))
    furniture: ComponentSchedule = ComponentSchedule(Decimal("0.20"), 5)
    equipment: ComponentSchedule = ComponentSchedule(Decimal("0.10"), 10)
    works: ComponentSchedule = ComponentSchedule(Decimal("0.10"), 10)
    land_fraction: Decimal = field(default_factory=lambda: _d(settings.land_fraction))

    def schedule_for(self, component: DepreciationComponent) -> ComponentSchedule:
        return getattr(self, component.value)


@dataclass(frozen=True)
class AllowanceTier:
    """Allowance of rate_per_year for each held year in [from_year, to_year]."""
    from_year: int
    to_year: int
    rate_per_year: Decimal


# Abattements pour duree de detention (CGI art. 150 VC)
INCOME_TAX_ALLOWANCES = (
    AllowanceTier(6, 21, Decimal("0.06")),
    AllowanceTier(22, 22, Decimal("0.04")),
)
SOCIAL_CHARGES_ALLOWANCES = (
    AllowanceTier(6, 21, Decimal("0.0165")),
    AllowanceTier(22, 22, Decimal("0.016")),
    AllowanceTier(23, 30, Decimal("0.09")),
)


@dataclass(frozen=True)
class PrivateGainsSettings:
    income_tax_rate: Decimal = field(
        default_factory=lambda: _d(settings.private_gain_income_tax_rate)
    )
    social_charges_rate: Decimal = field(default_factory=lambda: _d(settings.social_charges_rate))
    income_tax_allowances: tuple[AllowanceTier, ...] = INCOME_TAX_ALLOWANCES
    social_charges_allowances: tuple[AllowanceTier, ...] = SOCIAL_CHARGES_ALLOWANCES
    surcharge_threshold: Decimal = field(
        default_factory=lambda: _d(settings.capital_gains_surcharge_threshold)
    )
    surcharge_tiers: tuple[tuple[Decimal, Decimal], ...] = field(
        default_factory=lambda: tuple(
            (_d(lower), _d(rate))
            for lower, rate in sorted(settings.capital_gains_surcharge_tiers.items())
        )
    )


@dataclass(frozen=True)
class LMNPSettings:
    depreciation: DepreciationTable = field(default_factory=DepreciationTable)
    prevent_deficit: bool = True
    capital_gains: PrivateGainsSettings = field(default_factory=PrivateGainsSettings)
    regime: FiscalRegime = field(default=FiscalRegime.LMNP, init=False)


@dataclass(frozen=True)
class SCIISSettings:
    depreciation: DepreciationTable = field(
        default_factory=lambda: DepreciationTable(
            building=ComponentSchedule(Decimal("0.025"), 40),
        )
    )
    reduced_rate: Decimal = field(default_factory=lambda: _d(settings.corporate_reduced_rate))
    standard_rate: Decimal = field(default_factory=lambda: _d(settings.corporate_standard_rate))
    reduced_rate_threshold: Decimal = field(
        default_factory=lambda: _d(settings.corporate_reduced_threshold)
    )
    deficit_carryforward: bool = True
    regime: FiscalRegime = field(default=FiscalRegime.SCI_IS, init=False)


@dataclass(frozen=True)
class PersonalSettings:
    flat_allowance_rate: Decimal = field(default_factory=lambda: _d(settings.flat_allowance_rate))
    flat_allowance_ceiling: Decimal = field(
        default_factory=lambda: _d(settings.flat_allowance_ceiling)
    )
    marginal_tax_rate: Decimal = field(
        default_factory=lambda: _d(settings.personal_marginal_tax_rate)
    )
    social_charges_rate: Decimal = field(default_factory=lambda: _d(settings.social_charges_rate))
    capital_gains: PrivateGainsSettings = field(default_factory=PrivateGainsSettings)
    regime: FiscalRegime = field(default=FiscalRegime.PERSONAL, init=False)


FiscalSettings = PersonalSettings | LMNPSettings | SCIISSettings


@dataclass(frozen=True)
class LegalEntity:
    id: str
    name: str
    settings: FiscalSettings

    @property
    def regime(self) -> FiscalRegime:
        return self.settings.regime


def default_settings(regime: FiscalRegime) -> FiscalSettings:
    """Default fiscal settings for a regime, from configuration."""
    if regime == FiscalRegime.LMNP:
        return LMNPSettings()
    if regime == FiscalRegime.SCI_IS:
        return SCIISSettings()
    return PersonalSettings()
