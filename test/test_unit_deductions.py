# Test type: Unit Test
# Validation to be executed: Validates per-regime deduction eligibility,
#   statutory caps, legacy key aliases and rejection of bad input.
# Command: pytest test/test_unit_deductions.py -v

"""Unit tests for app.services.deduction_service module."""

import pytest

from app.models.schemas import DeductionSection
from app.services.deduction_service import (
    coerce_section,
    normalise_deductions,
    resolve_deductions,
)
from app.services.exceptions import InvalidAmountError, UnknownDeductionSectionError


class TestCoerceSection:

    def test_canonical_keys(self):
        assert coerce_section("80C") is DeductionSection.SECTION_80C
        assert coerce_section("houseProperty") is DeductionSection.HOUSE_PROPERTY

    def test_enum_passes_through(self):
        assert coerce_section(DeductionSection.SECTION_80D) is DeductionSection.SECTION_80D

    def test_legacy_aliases(self):
        assert coerce_section("section80C") is DeductionSection.SECTION_80C
        assert coerce_section("section80TTA") is DeductionSection.SECTION_80TTA
        assert coerce_section("otherDeductions") is DeductionSection.OTHER

    def test_unknown_section(self):
        with pytest.raises(UnknownDeductionSectionError, match="80Z"):
            coerce_section("80Z")

    def test_unknown_section_is_value_error(self):
        with pytest.raises(ValueError):
            coerce_section("80c")


class TestNormaliseDeductions:

    def test_alias_and_canonical_are_summed(self):
        result = normalise_deductions({"80C": 100_000, "section80C": 60_000})
        assert result == {DeductionSection.SECTION_80C: 160_000.0}

    def test_negative_amount(self):
        with pytest.raises(InvalidAmountError):
            normalise_deductions({"80D": -10})

    def test_non_numeric_amount(self):
        with pytest.raises(InvalidAmountError):
            normalise_deductions({"80D": "25000"})


class TestResolveDeductions:

    def test_new_regime_resolves_everything_to_zero(self, new_regime):
        result = resolve_deductions({"80C": 100_000, "80D": 25_000}, new_regime)
        assert result.totalDeductions == 0.0
        assert result.resolved == {
            DeductionSection.SECTION_80C: 0.0,
            DeductionSection.SECTION_80D: 0.0,
        }

    def test_old_regime_caps(self, old_regime):
        result = resolve_deductions(
            {
                "80C": 200_000,
                "80D": 25_000,
                "80TTA": 15_000,
                "80E": 300_000,
                "professionalTax": 3_000,
            },
            old_regime,
        )
        assert result.resolved[DeductionSection.SECTION_80C] == 150_000.0
        assert result.resolved[DeductionSection.SECTION_80D] == 25_000.0
        assert result.resolved[DeductionSection.SECTION_80TTA] == 10_000.0
        assert result.resolved[DeductionSection.SECTION_80E] == 300_000.0
        assert result.resolved[DeductionSection.PROFESSIONAL_TAX] == 2_500.0
        assert result.totalDeductions == 487_500.0

    def test_cap_applies_after_aliases_merge(self, old_regime):
        result = resolve_deductions({"80C": 100_000, "section80C": 100_000}, old_regime)
        assert result.resolved[DeductionSection.SECTION_80C] == 150_000.0

    def test_resolved_never_exceeds_claim_or_cap(self, old_regime):
        claims = {"80C": 90_000, "80D": 80_000, "houseProperty": 250_000, "80G": 12_000}
        result = resolve_deductions(claims, old_regime)
        for key, claimed in claims.items():
            section = DeductionSection(key)
            cap = old_regime.allowedDeductions[section]
            resolved = result.resolved[section]
            assert 0 <= resolved <= claimed
            if cap is not None:
                assert resolved <= cap

    def test_enum_keys_accepted(self, old_regime):
        result = resolve_deductions({DeductionSection.HOUSE_PROPERTY: 50_000}, old_regime)
        assert result.totalDeductions == 50_000.0

    def test_empty(self, old_regime):
        result = resolve_deductions({}, old_regime)
        assert result.resolved == {}
        assert result.totalDeductions == 0.0

    def test_unknown_section_rejected(self, old_regime):
        with pytest.raises(UnknownDeductionSectionError):
            resolve_deductions({"80Z": 1_000}, old_regime)
