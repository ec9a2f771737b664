"""Slab tables for the old and new income-tax regimes.

Tables are plain data keyed by ``(regime_id, assessment_year)``; the
calculator never branches on a regime name. Every table is validated
once, when this module is imported.

AY 2024-25:

    Old regime                         New regime
    ₹0 – ₹2,50,000        → 0 %        ₹0 – ₹3,00,000          → 0 %
    ₹2,50,000 – ₹5,00,000 → 5 %        ₹3,00,000 – ₹6,00,000   → 5 %
    ₹5,00,000 – ₹10,00,000 → 20 %      ₹6,00,000 – ₹9,00,000   → 10 %
    Above ₹10,00,000      → 30 %       ₹9,00,000 – ₹12,00,000  → 15 %
                                       ₹12,00,000 – ₹15,00,000 → 20 %
                                       Above ₹15,00,000        → 30 %

    Standard deduction  ₹50,000          ₹75,000
    Rebate u/s 87A      ≤ ₹5 L, ₹12,500  ≤ ₹7 L, ₹25,000
    Cess                4 %              4 %
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from app.models.schemas import DeductionSection, RegimeDefinition, SlabBand
from app.services.exceptions import (
    MalformedRegimeDefinitionError,
    UnknownAssessmentYearError,
    UnknownRegimeError,
)

logger = logging.getLogger(__name__)

OLD_REGIME = "old"
NEW_REGIME = "new"


def _bands(rows: Iterable[Tuple[float, float | None, float]]) -> Tuple[SlabBand, ...]:
    return tuple(SlabBand(min=lo, max=hi, rate=rate) for lo, hi, rate in rows)


_AY_2024_25: List[RegimeDefinition] = [
    RegimeDefinition(
        regimeId=OLD_REGIME,
        assessmentYear="2024-25",
        label="Old Tax Regime",
        slabs=_bands([
            (0.0,         250_000.0,   0.00),
            (250_000.0,   500_000.0,   0.05),
            (500_000.0,   1_000_000.0, 0.20),
            (1_000_000.0, None,        0.30),
        ]),
        cessRate=0.04,
        standardDeduction=50_000.0,
        rebateThreshold=500_000.0,
        rebateCap=12_500.0,
        allowedDeductions={
            DeductionSection.SECTION_80C: 150_000.0,
            DeductionSection.SECTION_80D: 75_000.0,     # self + parents + senior parents
            DeductionSection.SECTION_80E: None,
            DeductionSection.SECTION_80G: None,
            DeductionSection.SECTION_80TTA: 10_000.0,
            DeductionSection.HOUSE_PROPERTY: 200_000.0,  # s.24(b) self-occupied
            DeductionSection.PROFESSIONAL_TAX: 2_500.0,
            DeductionSection.OTHER: None,
        },
    ),
    RegimeDefinition(
        regimeId=NEW_REGIME,
        assessmentYear="2024-25",
        label="New Tax Regime",
        slabs=_bands([
            (0.0,         300_000.0,   0.00),
            (300_000.0,   600_000.0,   0.05),
            (600_000.0,   900_000.0,   0.10),
            (900_000.0,   1_200_000.0, 0.15),
            (1_200_000.0, 1_500_000.0, 0.20),
            (1_500_000.0, None,        0.30),
        ]),
        cessRate=0.04,
        standardDeduction=75_000.0,
        rebateThreshold=700_000.0,
        rebateCap=25_000.0,
        allowedDeductions={},
    ),
]


# ── Validation ────────────────────────────────────────────────────────────

def validate_regime(regime: RegimeDefinition) -> RegimeDefinition:
    """Check that the bands tile ``[0, ∞)`` with no gaps or overlaps.

    Raises ``MalformedRegimeDefinitionError`` naming the first problem found.
    """
    name = f"{regime.regimeId}/{regime.assessmentYear}"
    slabs = regime.slabs
    if not slabs:
        raise MalformedRegimeDefinitionError(f"{name}: no slab bands defined")
    if slabs[0].min != 0:
        raise MalformedRegimeDefinitionError(
            f"{name}: first band must start at 0, starts at {slabs[0].min}"
        )

    for index, band in enumerate(slabs):
        if not 0 <= band.rate <= 1:
            raise MalformedRegimeDefinitionError(
                f"{name}: band {index + 1} rate {band.rate} outside [0, 1]"
            )
        is_last = index == len(slabs) - 1
        if band.max is None:
            if not is_last:
                raise MalformedRegimeDefinitionError(
                    f"{name}: unbounded band {index + 1} is not the last band"
                )
            continue
        if band.max <= band.min:
            raise MalformedRegimeDefinitionError(
                f"{name}: band {index + 1} is empty or inverted ({band.min}–{band.max})"
            )
        if is_last:
            raise MalformedRegimeDefinitionError(
                f"{name}: top band is bounded at {band.max}"
            )
        following = slabs[index + 1]
        if following.min != band.max:
            kind = "gap" if following.min > band.max else "overlap"
            raise MalformedRegimeDefinitionError(
                f"{name}: {kind} between {band.max} and {following.min}"
            )

    if not 0 <= regime.cessRate <= 1:
        raise MalformedRegimeDefinitionError(f"{name}: cess rate {regime.cessRate} outside [0, 1]")
    for section, cap in regime.allowedDeductions.items():
        if cap is not None and cap < 0:
            raise MalformedRegimeDefinitionError(f"{name}: negative cap for {section.value}")
    return regime


def build_registry(
    definitions: Iterable[RegimeDefinition],
) -> Dict[str, Dict[str, RegimeDefinition]]:
    """Validate *definitions* and index them as ``{year: {regime_id: definition}}``."""
    registry: Dict[str, Dict[str, RegimeDefinition]] = {}
    for definition in definitions:
        validate_regime(definition)
        by_id = registry.setdefault(definition.assessmentYear, {})
        if definition.regimeId in by_id:
            raise MalformedRegimeDefinitionError(
                f"duplicate table for {definition.regimeId}/{definition.assessmentYear}"
            )
        by_id[definition.regimeId] = definition
    return registry


_REGISTRY = build_registry(_AY_2024_25)
logger.debug("Loaded slab tables for %s", sorted(_REGISTRY))


# ── Lookup ────────────────────────────────────────────────────────────────

def get_regime(regime_id: str, assessment_year: str) -> RegimeDefinition:
    """Return the slab table for *regime_id* in *assessment_year*."""
    by_id = _REGISTRY.get(assessment_year)
    if by_id is None:
        raise UnknownAssessmentYearError(
            f"No tax tables registered for assessment year {assessment_year}"
        )
    try:
        return by_id[regime_id]
    except KeyError:
        raise UnknownRegimeError(
            f"Unknown regime '{regime_id}' for assessment year {assessment_year}. "
            f"Known: {', '.join(sorted(by_id))}"
        ) from None


def list_regimes(assessment_year: str) -> List[RegimeDefinition]:
    """All regimes registered for *assessment_year*, in registration order."""
    by_id = _REGISTRY.get(assessment_year)
    if by_id is None:
        raise UnknownAssessmentYearError(
            f"No tax tables registered for assessment year {assessment_year}"
        )
    return list(by_id.values())


def supported_assessment_years() -> List[str]:
    return sorted(_REGISTRY)
