"""Regime-aware deduction resolution.

A section the regime does not list resolves to 0 (this is how the new
regime's "no deductions" rule is expressed); a listed section is capped
when the regime gives it a cap and passed through otherwise.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Union

from app.models.schemas import DeductionSection, RegimeDefinition, ResolvedDeductions
from app.services.exceptions import UnknownDeductionSectionError
from app.utils.helpers import round_currency, validate_amount

logger = logging.getLogger(__name__)

SectionKey = Union[str, DeductionSection]
DeductionSet = Mapping[SectionKey, float]

# Legacy keys used by stored tax-return records ("section80C" …).
_ALIASES: Dict[str, DeductionSection] = {
    "section80C": DeductionSection.SECTION_80C,
    "section80D": DeductionSection.SECTION_80D,
    "section80E": DeductionSection.SECTION_80E,
    "section80G": DeductionSection.SECTION_80G,
    "section80TTA": DeductionSection.SECTION_80TTA,
    "otherDeductions": DeductionSection.OTHER,
}


def coerce_section(key: SectionKey) -> DeductionSection:
    """Map a raw key onto a ``DeductionSection`` or raise ``UnknownDeductionSectionError``."""
    if isinstance(key, DeductionSection):
        return key
    try:
        return DeductionSection(key)
    except ValueError:
        pass
    if key in _ALIASES:
        return _ALIASES[key]
    known = ", ".join(s.value for s in DeductionSection)
    raise UnknownDeductionSectionError(
        f"Unknown deduction section '{key}'. Expected one of: {known}"
    )


def normalise_deductions(raw: DeductionSet) -> Dict[DeductionSection, float]:
    """Validate keys and amounts; duplicate keys (e.g. alias + canonical) are summed."""
    normalised: Dict[DeductionSection, float] = {}
    for key, value in raw.items():
        section = coerce_section(key)
        amount = validate_amount(value, field=f"deduction {section.value}")
        normalised[section] = normalised.get(section, 0.0) + amount
    return normalised


def resolve_deductions(raw: DeductionSet, regime: RegimeDefinition) -> ResolvedDeductions:
    """Apply *regime*'s eligibility and per-section caps to *raw* claims."""
    resolved: Dict[DeductionSection, float] = {}
    for section, amount in normalise_deductions(raw).items():
        if section not in regime.allowedDeductions:
            resolved[section] = 0.0
            continue
        cap = regime.allowedDeductions[section]
        resolved[section] = round_currency(amount if cap is None else min(amount, cap))

    total = round_currency(sum(resolved.values()))
    logger.debug(
        "Resolved %d deduction sections under %s: total=%s",
        len(resolved), regime.regimeId, total,
    )
    return ResolvedDeductions(resolved=resolved, totalDeductions=total)
