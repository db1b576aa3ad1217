from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from stoneverse.engine.optimization import (
    compare_regimes,
    exit_tax_estimate,
    generate_optimization_suggestions,
    overall_score,
)
from stoneverse.models.comparison import Priority, SuggestionType
from stoneverse.models.entity import FiscalRegime, LegalEntity, PersonalSettings
from stoneverse.models.property import Transaction, TransactionType


def _by_regime(comparisons):
    return {c.regime: c for c in comparisons}


@pytest.fixture
def lmnp_apartment(lyon_apartment):
    return replace(lyon_apartment, legal_entity_id="lmnp")


@pytest.fixture
def high_income_transactions(year_transactions):
    """Same ledger with EUR 200K of rent, well above the flat allowance ceiling."""
    bonus = Transaction(
        id="bonus",
        property_id="lyon-1",
        transaction_type=TransactionType.RENTAL_INCOME,
        amount=Decimal("185600"),
        transaction_date=date(2024, 12, 1),
    )
    return year_transactions + [bonus]


class TestScores:
    def test_overall_score(self):
        """0.4 x 90 + 0.3 x 90 + 0.3 x 80."""
        score = overall_score(Decimal("10000"), Decimal("90"), Decimal("20000"))
        assert score == Decimal("87.00")

    def test_scores_floor_at_zero(self):
        score = overall_score(Decimal("500000"), Decimal("50"), Decimal("500000"))
        assert score == Decimal("15.00")


class TestExitTax:
    def test_private_gain(self, lyon_apartment, lmnp_entity):
        """Sale at 360000 after 9 years: 38000 gain."""
        assert exit_tax_estimate(lyon_apartment, lmnp_entity, 2024) == Decimal("11591.82")

    def test_company_uses_depreciated_book_value(self, lyon_apartment, sci_entity):
        """Book value 300000 - 67500 building - 10000 furniture; 137500 at 25%."""
        assert exit_tax_estimate(lyon_apartment, sci_entity, 2024) == Decimal("34375.00")


class TestCompareRegimes:
    def test_every_regime_evaluated(self, lyon_apartment, year_transactions):
        comparisons = compare_regimes([lyon_apartment], year_transactions, 2024)
        assert {c.regime for c in comparisons} == set(FiscalRegime)
        scores = [c.overall_score for c in comparisons]
        assert scores == sorted(scores, reverse=True)

    def test_burdens(self, lyon_apartment, year_transactions):
        comparisons = _by_regime(compare_regimes([lyon_apartment], year_transactions, 2024))
        assert comparisons[FiscalRegime.PERSONAL].estimated_tax_burden == Decimal("4757.76")
        # LMNP result taxed with the household at 30% + 17.2%
        assert comparisons[FiscalRegime.LMNP].estimated_tax_burden == Decimal("1770.00")
        assert comparisons[FiscalRegime.SCI_IS].estimated_tax_burden == Decimal("562.50")

    def test_small_rental_favours_personal(self, lyon_apartment, year_transactions):
        comparisons = compare_regimes([lyon_apartment], year_transactions, 2024)
        assert comparisons[0].regime == FiscalRegime.PERSONAL
        assert comparisons[0].overall_score == Decimal("91.62")

    def test_flexibility_and_depreciation(self, lyon_apartment, year_transactions):
        comparisons = _by_regime(compare_regimes([lyon_apartment], year_transactions, 2024))
        assert comparisons[FiscalRegime.PERSONAL].flexibility_score == Decimal("90")
        assert comparisons[FiscalRegime.LMNP].flexibility_score == Decimal("70")
        assert comparisons[FiscalRegime.SCI_IS].flexibility_score == Decimal("50")
        assert comparisons[FiscalRegime.PERSONAL].depreciation_benefit == Decimal("0")
        assert comparisons[FiscalRegime.LMNP].depreciation_benefit == Decimal("6750.00")

    def test_custom_marginal_rate(self, lyon_apartment, year_transactions):
        comparisons = _by_regime(compare_regimes(
            [lyon_apartment], year_transactions, 2024, marginal_tax_rate=Decimal("0.11")
        ))
        assert comparisons[FiscalRegime.LMNP].estimated_tax_burden == Decimal("1057.50")

    def test_high_income_favours_company(self, lyon_apartment, high_income_transactions):
        comparisons = compare_regimes([lyon_apartment], high_income_transactions, 2024)
        assert comparisons[0].regime == FiscalRegime.SCI_IS
        assert comparisons[0].estimated_tax_burden == Decimal("43087.50")


class TestSuggestions:
    def test_regime_change(self, lyon_apartment, high_income_transactions, personal_entity):
        suggestions = generate_optimization_suggestions(
            [lyon_apartment], [personal_entity], high_income_transactions, 2024
        )
        change = next(s for s in suggestions if s.suggestion_type == SuggestionType.REGIME_CHANGE)
        assert change.priority == Priority.HIGH
        assert change.implementation_effort == Priority.MEDIUM
        assert change.potential_savings == Decimal("92559.20") - Decimal("43087.50")

    def test_no_regime_change_when_already_best(
        self, lyon_apartment, year_transactions, personal_entity
    ):
        suggestions = generate_optimization_suggestions(
            [lyon_apartment], [personal_entity], year_transactions, 2024
        )
        assert all(s.suggestion_type != SuggestionType.REGIME_CHANGE for s in suggestions)

    def test_no_regime_change_when_it_costs_more(
        self, lyon_apartment, year_transactions, lmnp_entity
    ):
        """Personal scores best overall but would raise the LMNP tax bill."""
        suggestions = generate_optimization_suggestions(
            [lyon_apartment], [lmnp_entity], year_transactions, 2024
        )
        assert all(s.suggestion_type != SuggestionType.REGIME_CHANGE for s in suggestions)

    def test_depreciation_optimization(self, lmnp_apartment, year_transactions, lmnp_entity):
        """Target 3.5% of 300000 = 10500 against 6750 today."""
        suggestions = generate_optimization_suggestions(
            [lmnp_apartment], [lmnp_entity], year_transactions, 2024
        )
        depreciation = next(
            s for s in suggestions
            if s.suggestion_type == SuggestionType.DEPRECIATION_OPTIMIZATION
        )
        assert depreciation.potential_savings == Decimal("1770.00")
        assert depreciation.priority == Priority.MEDIUM
        assert depreciation.applicable_properties == ["lyon-1"]

    def test_company_depreciation_saves_at_corporate_rate(
        self, lyon_apartment, year_transactions, sci_entity
    ):
        sci_apartment = replace(lyon_apartment, legal_entity_id="sci")
        suggestions = generate_optimization_suggestions(
            [sci_apartment], [sci_entity], year_transactions, 2024
        )
        depreciation = next(
            s for s in suggestions
            if s.suggestion_type == SuggestionType.DEPRECIATION_OPTIMIZATION
        )
        assert depreciation.potential_savings == Decimal("937.50")

    def test_no_depreciation_advice_for_personal(
        self, lyon_apartment, year_transactions
    ):
        entity = LegalEntity(id="personal", name="Household", settings=PersonalSettings())
        apartment = replace(lyon_apartment, legal_entity_id="personal")
        suggestions = generate_optimization_suggestions(
            [apartment], [entity], year_transactions, 2024
        )
        assert all(
            s.suggestion_type != SuggestionType.DEPRECIATION_OPTIMIZATION for s in suggestions
        )

    def test_transaction_timing(self, lyon_apartment, year_transactions, personal_entity):
        q4 = [
            Transaction(
                id=f"q4-{i}",
                property_id="lyon-1",
                transaction_type=TransactionType.REPAIR_MAINTENANCE,
                amount=Decimal("-100"),
                transaction_date=date(2024, 12, 1 + i),
            )
            for i in range(4)
        ]
        suggestions = generate_optimization_suggestions(
            [lyon_apartment], [personal_entity], year_transactions + q4, 2024
        )
        timing = next(
            s for s in suggestions if s.suggestion_type == SuggestionType.TRANSACTION_TIMING
        )
        assert timing.potential_savings == Decimal("600")
        assert timing.priority == Priority.LOW

    def test_too_few_q4_expenses(self, lyon_apartment, year_transactions, personal_entity):
        suggestions = generate_optimization_suggestions(
            [lyon_apartment], [personal_entity], year_transactions, 2024
        )
        assert all(s.suggestion_type != SuggestionType.TRANSACTION_TIMING for s in suggestions)

    def test_entity_restructuring(
        self, lmnp_apartment, year_transactions, lmnp_entity, sci_entity, personal_entity
    ):
        suggestions = generate_optimization_suggestions(
            [lmnp_apartment], [lmnp_entity, sci_entity, personal_entity], year_transactions, 2024
        )
        restructuring = next(
            s for s in suggestions if s.suggestion_type == SuggestionType.ENTITY_RESTRUCTURING
        )
        assert restructuring.potential_savings == Decimal("3000")
        assert restructuring.priority == Priority.HIGH
        assert restructuring.implementation_effort == Priority.HIGH
        assert suggestions[0] is restructuring

    def test_ranked_by_priority_and_savings(
        self, lmnp_apartment, year_transactions, lmnp_entity, sci_entity, personal_entity
    ):
        suggestions = generate_optimization_suggestions(
            [lmnp_apartment], [lmnp_entity, sci_entity, personal_entity], year_transactions, 2024
        )
        values = [s.ranking_value for s in suggestions]
        assert values == sorted(values, reverse=True)

    def test_nothing_to_suggest(self):
        assert generate_optimization_suggestions([], [], [], 2024) == []
