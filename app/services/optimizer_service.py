"""Unused-deduction suggestions.

For every capped section the regime allows, the saving is measured by
re-running the calculator with that one section filled up to its cap:

    saving = Tax(current claims) − Tax(current claims with section at cap)

Savings are per suggestion and not additive across suggestions.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from app.config import settings
from app.models.schemas import DeductionSection, DeductionSuggestion, IncomeProfile, RegimeDefinition
from app.services.deduction_service import DeductionSet, normalise_deductions
from app.services.tax_service import gross_total_income, net_liability
from app.utils.helpers import round_currency

logger = logging.getLogger(__name__)

_SECTION_PRIORITY: Dict[DeductionSection, int] = {
    DeductionSection.SECTION_80C: 5,
    DeductionSection.SECTION_80D: 4,
    DeductionSection.HOUSE_PROPERTY: 4,
    DeductionSection.SECTION_80E: 3,
    DeductionSection.SECTION_80G: 2,
    DeductionSection.SECTION_80TTA: 1,
    DeductionSection.PROFESSIONAL_TAX: 1,
    DeductionSection.OTHER: 1,
}


def optimize_deductions(
    income: IncomeProfile,
    deductions: DeductionSet,
    regime: RegimeDefinition,
    limit: Optional[int] = None,
) -> List[DeductionSuggestion]:
    """Top *limit* sections with headroom, by section priority then saving."""
    limit = settings.MAX_SUGGESTIONS if limit is None else limit
    claims = normalise_deductions(deductions)
    gross = gross_total_income(income)
    base_tax = net_liability(gross, claims, regime)

    suggestions: List[DeductionSuggestion] = []
    for section, cap in regime.allowedDeductions.items():
        if cap is None:
            continue
        current = claims.get(section, 0.0)
        headroom = cap - min(current, cap)
        if headroom <= 0:
            continue

        filled = dict(claims)
        filled[section] = cap
        saving = round_currency(base_tax - net_liability(gross, filled, regime))
        if saving <= 0:
            continue

        suggestions.append(
            DeductionSuggestion(
                section=section,
                current=round_currency(current),
                cap=cap,
                headroom=round_currency(headroom),
                taxSaving=saving,
                priority=_SECTION_PRIORITY.get(section, 1),
            )
        )

    suggestions.sort(key=lambda s: (-s.priority, -s.taxSaving))
    logger.debug(
        "%d deduction suggestions under %s (base tax %s)",
        len(suggestions), regime.regimeId, base_tax,
    )
    return suggestions[:limit]


def potential_savings(suggestions: List[DeductionSuggestion]) -> float:
    return round_currency(sum(s.taxSaving for s in suggestions))
