from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Social charges (prelevements sociaux) on property income and private gains
    social_charges_rate: float = 0.172

    # Corporate income tax (IS)
    corporate_reduced_rate: float = 0.15
    corporate_standard_rate: float = 0.25
    corporate_reduced_threshold: float = 42500

    # Personal regime: micro-foncier flat allowance and its eligibility ceiling
    flat_allowance_rate: float = 0.30
    flat_allowance_ceiling: float = 15000
    personal_marginal_tax_rate: float = 0.30

    # Depreciation
    land_fraction: float = 0.10

    # Private capital gains (plus-values immobilieres des particuliers)
    private_gain_income_tax_rate: float = 0.19
    capital_gains_surcharge_threshold: float = 50000
    # Lower bound of taxable gain -> surcharge rate (Finance law 2013)
    capital_gains_surcharge_tiers: dict[int, float] = {
        50000: 0.02,
        100000: 0.03,
        150000: 0.04,
        200000: 0.05,
        250000: 0.06,
    }


settings = Settings()
