"""Deterministic location and market-risk proxies by city and property type.

Profiles are static reference values per market; unknown cities fall back
to a neutral profile. Nothing here is random, so comparisons are repeatable.
"""

from dataclasses import dataclass
from decimal import Decimal

from stoneverse.models.property import PropertyType


@dataclass(frozen=True)
class LocationProfile:
    market_growth: Decimal  # Expected annual price growth
    neighborhood_score: Decimal  # 0-100
    transport_score: Decimal  # 0-100
    amenities_score: Decimal  # 0-100
    liquidity_score: Decimal  # 0-100, how fast a sale closes
    vacancy_multiplier: Decimal
    base_volatility: Decimal


CITY_PROFILES: dict[str, LocationProfile] = {
    "paris": LocationProfile(
        Decimal("0.032"), Decimal("85"), Decimal("95"), Decimal("90"),
        Decimal("85"), Decimal("0.8"), Decimal("0.12"),
    ),
    "lyon": LocationProfile(
        Decimal("0.028"), Decimal("78"), Decimal("82"), Decimal("75"),
        Decimal("75"), Decimal("0.9"), Decimal("0.14"),
    ),
    "bordeaux": LocationProfile(
        Decimal("0.025"), Decimal("72"), Decimal("70"), Decimal("68"),
        Decimal("65"), Decimal("1.0"), Decimal("0.16"),
    ),
}

DEFAULT_PROFILE = LocationProfile(
    Decimal("0.020"), Decimal("60"), Decimal("60"), Decimal("60"),
    Decimal("65"), Decimal("1.0"), Decimal("0.17"),
)

# Apartments let fastest; everything else carries the higher base
APARTMENT_VACANCY_RISK = Decimal("0.15")
OTHER_VACANCY_RISK = Decimal("0.25")

TYPE_VOLATILITY_PREMIUM: dict[PropertyType, Decimal] = {
    PropertyType.APARTMENT: Decimal("0"),
    PropertyType.HOUSE: Decimal("0.01"),
    PropertyType.PARKING: Decimal("0.02"),
    PropertyType.COMMERCIAL: Decimal("0.03"),
    PropertyType.OFFICE: Decimal("0.03"),
    PropertyType.RETAIL: Decimal("0.03"),
    PropertyType.WAREHOUSE: Decimal("0.03"),
    PropertyType.LAND: Decimal("0.03"),
}

MIN_VOLATILITY = Decimal("0.12")
MAX_VOLATILITY = Decimal("0.20")


def location_profile(city: str) -> LocationProfile:
    return CITY_PROFILES.get(city.strip().lower(), DEFAULT_PROFILE)


def vacancy_risk(city: str, property_type: PropertyType) -> Decimal:
    base = APARTMENT_VACANCY_RISK if property_type == PropertyType.APARTMENT else OTHER_VACANCY_RISK
    return base * location_profile(city).vacancy_multiplier


def market_volatility(city: str, property_type: PropertyType) -> Decimal:
    """Annual price volatility proxy, within [0.12, 0.20]."""
    raw = location_profile(city).base_volatility + TYPE_VOLATILITY_PREMIUM.get(
        property_type, Decimal("0.02")
    )
    return min(max(raw, MIN_VOLATILITY), MAX_VOLATILITY)
