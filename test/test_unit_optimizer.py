# Test type: Unit Test
# Validation to be executed: Validates unused-deduction suggestions, their
#   per-section tax savings and priority ordering.
# Command: pytest test/test_unit_optimizer.py -v

"""Unit tests for app.services.optimizer_service module."""

from app.models.schemas import DeductionSection, IncomeProfile
from app.services.optimizer_service import optimize_deductions, potential_savings


class TestOptimizeDeductions:

    def test_suggestions_for_high_earner(self, old_regime):
        suggestions = optimize_deductions(
            IncomeProfile(salary=1_500_000), {"80C": 50_000}, old_regime
        )
        assert [s.section for s in suggestions] == [
            DeductionSection.SECTION_80C,
            DeductionSection.HOUSE_PROPERTY,
            DeductionSection.SECTION_80D,
            DeductionSection.SECTION_80TTA,
            DeductionSection.PROFESSIONAL_TAX,
        ]
        top = suggestions[0]
        assert top.current == 50_000.0
        assert top.cap == 150_000.0
        assert top.headroom == 100_000.0
        assert top.taxSaving == 31_200.0
        assert top.priority == 5
        assert [s.taxSaving for s in suggestions[1:]] == [62_400.0, 23_400.0, 3_120.0, 780.0]
        assert potential_savings(suggestions) == 120_900.0

    def test_limit(self, old_regime):
        suggestions = optimize_deductions(
            IncomeProfile(salary=1_500_000), {}, old_regime, limit=2
        )
        assert len(suggestions) == 2
        assert suggestions[0].section == DeductionSection.SECTION_80C

    def test_filled_section_not_suggested(self, old_regime):
        suggestions = optimize_deductions(
            IncomeProfile(salary=1_500_000), {"section80C": 200_000}, old_regime
        )
        assert DeductionSection.SECTION_80C not in [s.section for s in suggestions]

    def test_uncapped_sections_skipped(self, old_regime):
        suggestions = optimize_deductions(IncomeProfile(salary=3_000_000), {}, old_regime, limit=8)
        sections = {s.section for s in suggestions}
        assert DeductionSection.SECTION_80E not in sections
        assert DeductionSection.SECTION_80G not in sections
        assert DeductionSection.OTHER not in sections

    def test_nothing_to_save_under_rebate(self, old_regime):
        assert optimize_deductions(IncomeProfile(salary=400_000), {}, old_regime) == []

    def test_new_regime_has_no_suggestions(self, new_regime, salaried_12l):
        assert optimize_deductions(salaried_12l, {"80C": 10_000}, new_regime) == []

    def test_potential_savings_empty(self):
        assert potential_savings([]) == 0
