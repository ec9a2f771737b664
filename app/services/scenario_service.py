"""Income sensitivity sweep across both regimes.

Each multiplier scales the primary income head, the largest one in the
profile (salary wins ties and an all-zero profile); every other head and
the claimed deductions stay as given. Liabilities come straight
from the calculator, never from ``compare_regimes``, so no break-even
scan runs per scenario.
"""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence

from app.config import settings
from app.models.schemas import IncomeProfile, RegimeDefinition, ScenarioResult
from app.services.comparison_service import recommend_regime, resolve_regime_pair
from app.services.deduction_service import DeductionSet, normalise_deductions
from app.services.exceptions import InvalidAmountError
from app.services.tax_service import INCOME_FIELDS, gross_total_income, net_liability
from app.utils.helpers import round_currency, validate_amount

logger = logging.getLogger(__name__)


def _validate_multipliers(multipliers: Sequence[float]) -> List[float]:
    checked: List[float] = []
    for value in multipliers:
        factor = validate_amount(value, field="multiplier")
        if factor == 0:
            raise InvalidAmountError("multiplier must be positive, got 0")
        checked.append(factor)
    return checked


def primary_income_head(income: IncomeProfile) -> str:
    return max(INCOME_FIELDS, key=lambda name: getattr(income, name))


def project_scenarios(
    income: IncomeProfile,
    deductions: DeductionSet,
    multipliers: Optional[Sequence[float]] = None,
    assessment_year: Optional[str] = None,
    regimes: Optional[Mapping[str, RegimeDefinition]] = None,
) -> List[ScenarioResult]:
    """One ``ScenarioResult`` per multiplier, in the order given."""
    factors = _validate_multipliers(
        settings.SCENARIO_MULTIPLIERS if multipliers is None else multipliers
    )
    gross_total_income(income)
    normalise_deductions(deductions)
    head = primary_income_head(income)
    old_regime, new_regime = resolve_regime_pair(assessment_year, regimes)

    scenarios: List[ScenarioResult] = []
    for factor in factors:
        scaled = income.model_copy(
            update={head: round_currency(getattr(income, head) * factor)}
        )
        gross = gross_total_income(scaled)
        old_tax = net_liability(gross, deductions, old_regime)
        new_tax = net_liability(gross, deductions, new_regime)
        scenarios.append(
            ScenarioResult(
                multiplier=factor,
                incomeHead=head,
                income=gross,
                oldRegimeTax=old_tax,
                newRegimeTax=new_tax,
                savings=round_currency(old_tax - new_tax),
                bestRegime=recommend_regime([(old_regime, old_tax), (new_regime, new_tax)]),
            )
        )

    logger.debug("Projected %d income scenarios scaling %s", len(scenarios), head)
    return scenarios
