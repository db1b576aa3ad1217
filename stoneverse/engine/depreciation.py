"""Component depreciation (amortissement par composants).

A property is split into building, furniture, equipment and works. Each
component is depreciated straight-line at its own rate, capped at its
remaining base and, for components with a horizon, stopped once that
horizon is exhausted. Land is never depreciated.

Pure functions. No I/O.
"""

from decimal import Decimal, ROUND_HALF_UP

from stoneverse.models.entity import (
    ComponentSchedule,
    DepreciationComponent,
    DepreciationTable,
)
from stoneverse.models.property import Property
from stoneverse.models.results import DepreciationLine

TWO_PLACES = Decimal("0.01")


def years_held_in(acquisition_year: int, year: int) -> int:
    """Holding-year index: the acquisition year is year 1."""
    return year - acquisition_year + 1


def component_base(
    property: Property,
    component: DepreciationComponent,
    table: DepreciationTable,
) -> Decimal:
    """Depreciable base for one component, before any depreciation."""
    schedule = table.schedule_for(component)
    if schedule.base_amount is not None:
        return max(schedule.base_amount, Decimal("0"))

    if component == DepreciationComponent.BUILDING:
        land_fraction = min(max(table.land_fraction, Decimal("0")), Decimal("1"))
        base = property.acquisition_price * (1 - land_fraction)
    elif component == DepreciationComponent.FURNITURE:
        base = property.furnishing_value
    elif component == DepreciationComponent.EQUIPMENT:
        base = property.equipment_value
    else:
        base = property.works_value
    return max(base, Decimal("0")).quantize(TWO_PLACES, ROUND_HALF_UP)


def component_depreciation(
    component: DepreciationComponent,
    base: Decimal,
    schedule: ComponentSchedule,
    years_held: int,
) -> DepreciationLine:
    """Depreciation of one component for one holding year.

    Zero before the first year and once years_held exceeds the horizon.
    The annual amount never exceeds the base left after prior years.
    """
    annual = (base * max(schedule.rate, Decimal("0"))).quantize(TWO_PLACES, ROUND_HALF_UP)

    if years_held < 1 or base <= 0 or annual <= 0:
        return DepreciationLine(
            component=component,
            depreciable_base=base,
            annual_amount=Decimal("0"),
            accumulated=Decimal("0"),
            remaining_base=max(base, Decimal("0")),
            years_held=years_held,
        )

    prior_years = years_held - 1
    if schedule.horizon_years is not None:
        prior_years = min(prior_years, schedule.horizon_years)
    accumulated_before = min(annual * prior_years, base)

    in_horizon = schedule.horizon_years is None or years_held <= schedule.horizon_years
    amount = min(annual, base - accumulated_before) if in_horizon else Decimal("0")

    accumulated = accumulated_before + amount
    return DepreciationLine(
        component=component,
        depreciable_base=base,
        annual_amount=amount,
        accumulated=accumulated,
        remaining_base=base - accumulated,
        years_held=years_held,
    )


def compute_depreciation(
    property: Property,
    table: DepreciationTable,
    year: int,
) -> list[DepreciationLine]:
    """Per-component depreciation of a property for a calendar year."""
    held = years_held_in(property.acquisition_date.year, year)
    return [
        component_depreciation(
            component,
            component_base(property, component, table),
            table.schedule_for(component),
            held,
        )
        for component in DepreciationComponent
    ]


def total_depreciation(lines: list[DepreciationLine]) -> Decimal:
    return sum((line.annual_amount for line in lines), Decimal("0"))


def accumulated_depreciation(
    property: Property,
    table: DepreciationTable,
    through_year: int,
) -> Decimal:
    """Total depreciation taken from acquisition through `through_year`."""
    lines = compute_depreciation(property, table, through_year)
    return sum((line.accumulated for line in lines), Decimal("0"))


def cap_lmnp_depreciation(total: Decimal, operating_result: Decimal) -> Decimal:
    """LMNP rule: depreciation may not create or increase a deficit.

    The non-deductible excess stays deferred (ARD) and is not used here.
    """
    return min(total, max(Decimal("0"), operating_result))
