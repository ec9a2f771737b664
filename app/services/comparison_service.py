"""Old-vs-new regime comparison, recommendation and break-even scan.

Recommendation: the regime with the lower net liability. On a tie the
regime that allows fewer deduction sections wins.

Break-even: a bounded linear scan over gross income (baseline, baseline
+ step, …) holding the claimed deduction amounts fixed. The first income
where both liabilities agree within the tolerance is returned. Incomes
where neither regime charges any tax are skipped.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence, Tuple

from app.config import settings
from app.models.schemas import IncomeProfile, RegimeComparison, RegimeDefinition
from app.services.deduction_service import DeductionSet, resolve_deductions
from app.services.regime_registry import NEW_REGIME, OLD_REGIME, get_regime
from app.services.tax_service import calculate_regime_tax, compute_tax, taxable_income_for
from app.utils.helpers import round_currency

logger = logging.getLogger(__name__)


def recommend_regime(candidates: Sequence[Tuple[RegimeDefinition, float]]) -> str:
    """Pick the regime id with the lowest liability; ties → fewer allowed deductions."""
    regime, _ = min(
        candidates,
        key=lambda pair: (pair[1], len(pair[0].allowedDeductions)),
    )
    return regime.regimeId


def resolve_regime_pair(
    assessment_year: Optional[str] = None,
    regimes: Optional[Mapping[str, RegimeDefinition]] = None,
) -> Tuple[RegimeDefinition, RegimeDefinition]:
    """Return ``(old, new)`` either from *regimes* or from the registry."""
    if regimes is not None:
        return regimes[OLD_REGIME], regimes[NEW_REGIME]
    year = assessment_year or settings.DEFAULT_ASSESSMENT_YEAR
    return get_regime(OLD_REGIME, year), get_regime(NEW_REGIME, year)


def find_break_even_income(
    deductions: DeductionSet,
    old_regime: RegimeDefinition,
    new_regime: RegimeDefinition,
    baseline: float = settings.BREAK_EVEN_BASELINE,
    step: float = settings.BREAK_EVEN_STEP,
    tolerance: float = settings.BREAK_EVEN_TOLERANCE,
    max_steps: int = settings.BREAK_EVEN_MAX_STEPS,
) -> Optional[float]:
    """Lowest scanned gross income where the two liabilities converge, else ``None``."""
    old_total = resolve_deductions(deductions, old_regime).totalDeductions
    new_total = resolve_deductions(deductions, new_regime).totalDeductions

    income = baseline
    for _ in range(max_steps):
        old_tax = compute_tax(
            taxable_income_for(income, old_total, old_regime), old_regime
        ).netTaxLiability
        new_tax = compute_tax(
            taxable_income_for(income, new_total, new_regime), new_regime
        ).netTaxLiability

        if (old_tax > 0 or new_tax > 0) and abs(old_tax - new_tax) < tolerance:
            logger.debug("Break-even at %s (old=%s new=%s)", income, old_tax, new_tax)
            return round_currency(income)
        income += step

    logger.debug("No break-even within %d steps from %s", max_steps, baseline)
    return None


def compare_regimes(
    income: IncomeProfile,
    deductions: DeductionSet,
    assessment_year: Optional[str] = None,
    regimes: Optional[Mapping[str, RegimeDefinition]] = None,
) -> RegimeComparison:
    """Compute both regimes for the same inputs and recommend one.

    *regimes* may supply ``{"old": …, "new": …}`` directly; otherwise the
    tables for *assessment_year* (default: the configured year) are used.
    """
    old_regime, new_regime = resolve_regime_pair(assessment_year, regimes)

    old_result = calculate_regime_tax(income, deductions, old_regime)
    new_result = calculate_regime_tax(income, deductions, new_regime)
    old_net = old_result.netTaxLiability
    new_net = new_result.netTaxLiability

    savings = round_currency(abs(old_net - new_net))
    higher = max(old_net, new_net)
    savings_pct = round_currency(savings / higher * 100) if higher > 0 else 0.0

    recommended = recommend_regime([(old_regime, old_net), (new_regime, new_net)])
    break_even = find_break_even_income(deductions, old_regime, new_regime)

    logger.info(
        "Regime comparison AY %s: old=%s new=%s → %s",
        old_regime.assessmentYear, old_net, new_net, recommended,
    )

    return RegimeComparison(
        oldRegime=old_result,
        newRegime=new_result,
        absoluteSavings=savings,
        savingsPercentage=savings_pct,
        recommendedRegime=recommended,
        breakEvenIncome=break_even,
    )
