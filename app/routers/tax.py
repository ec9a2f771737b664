"""Routers for tax computation endpoints:
    GET   /tax-engine/v1/regimes/{assessment_year}
    POST  /tax-engine/v1/tax:calculate
    POST  /tax-engine/v1/tax:compare
    POST  /tax-engine/v1/tax:scenarios
    POST  /tax-engine/v1/deductions:resolve
    POST  /tax-engine/v1/deductions:optimize
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException

from app.config import settings
from app.database import record_calculation
from app.models.schemas import (
    CalculateRequest,
    CalculateResponse,
    CompareRequest,
    OptimizeRequest,
    OptimizeResponse,
    RegimeComparison,
    RegimeDefinition,
    ResolvedDeductions,
    ResolveRequest,
    ScenarioRequest,
    ScenarioResponse,
)
from app.services.comparison_service import compare_regimes
from app.services.deduction_service import resolve_deductions
from app.services.exceptions import UnknownRegimeError
from app.services.optimizer_service import optimize_deductions, potential_savings
from app.services.regime_registry import get_regime, list_regimes
from app.services.scenario_service import project_scenarios
from app.services.tax_service import calculate_regime_tax, settle_liability

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tax-engine/v1",
    tags=["Tax"],
)


def _year(assessment_year: Optional[str]) -> str:
    return assessment_year or settings.DEFAULT_ASSESSMENT_YEAR


# ── Regime tables ─────────────────────────────────────────────────────────

@router.get(
    "/regimes/{assessment_year}",
    response_model=List[RegimeDefinition],
    summary="Slab tables registered for an assessment year",
)
async def regimes_for_year(assessment_year: str) -> List[RegimeDefinition]:
    try:
        return list_regimes(assessment_year)
    except UnknownRegimeError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


# ── Single-regime calculation ────────────────────────────────────────────

@router.post(
    "/tax:calculate",
    response_model=CalculateResponse,
    summary="Compute tax under one regime and settle it against taxes paid",
)
async def tax_calculate(body: CalculateRequest) -> CalculateResponse:
    """Slab-wise computation for the requested regime, plus refund or
    additional tax payable after TDS and advance tax.
    """
    year = _year(body.assessmentYear)
    try:
        regime = get_regime(body.regime, year)
        result = calculate_regime_tax(body.income, body.deductions, regime)
        settlement = settle_liability(
            result.netTaxLiability, body.tdsDeducted, body.advanceTaxPaid
        )
    except UnknownRegimeError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    await record_calculation(
        endpoint="/tax:calculate",
        assessment_year=year,
        regime=body.regime,
        gross_income=result.grossTotalIncome,
        net_tax_liability=result.netTaxLiability,
        summary={
            "taxableIncome": result.taxableIncome,
            "refundDue": settlement.refundDue,
            "additionalTaxPayable": settlement.additionalTaxPayable,
        },
    )
    return CalculateResponse(result=result, settlement=settlement)


# ── Regime comparison ────────────────────────────────────────────────────

@router.post(
    "/tax:compare",
    response_model=RegimeComparison,
    summary="Compare old and new regimes and recommend one",
)
async def tax_compare(body: CompareRequest) -> RegimeComparison:
    """Both regimes for the same income and deductions, savings, the
    recommended regime and the break-even gross income (if any).
    """
    year = _year(body.assessmentYear)
    try:
        comparison = compare_regimes(body.income, body.deductions, year)
    except UnknownRegimeError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    await record_calculation(
        endpoint="/tax:compare",
        assessment_year=year,
        regime=comparison.recommendedRegime,
        gross_income=comparison.oldRegime.grossTotalIncome,
        summary={
            "oldRegimeTax": comparison.oldRegime.netTaxLiability,
            "newRegimeTax": comparison.newRegime.netTaxLiability,
            "breakEvenIncome": comparison.breakEvenIncome,
        },
    )
    return comparison


# ── Scenario sweep ────────────────────────────────────────────────────────

@router.post(
    "/tax:scenarios",
    response_model=ScenarioResponse,
    summary="Project both regimes across income multipliers",
)
async def tax_scenarios(body: ScenarioRequest) -> ScenarioResponse:
    try:
        scenarios = project_scenarios(
            body.income,
            body.deductions,
            multipliers=body.multipliers,
            assessment_year=_year(body.assessmentYear),
        )
    except UnknownRegimeError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return ScenarioResponse(scenarios=scenarios)


# ── Deductions ────────────────────────────────────────────────────────────

@router.post(
    "/deductions:resolve",
    response_model=ResolvedDeductions,
    summary="Apply a regime's eligibility and caps to claimed deductions",
)
async def deductions_resolve(body: ResolveRequest) -> ResolvedDeductions:
    try:
        regime = get_regime(body.regime, _year(body.assessmentYear))
        return resolve_deductions(body.deductions, regime)
    except UnknownRegimeError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@router.post(
    "/deductions:optimize",
    response_model=OptimizeResponse,
    summary="Suggest unused deduction headroom with its tax saving",
)
async def deductions_optimize(body: OptimizeRequest) -> OptimizeResponse:
    """Each suggestion's saving is measured independently by re-running
    the calculator with that section filled to its cap.
    """
    try:
        regime = get_regime(body.regime, _year(body.assessmentYear))
        suggestions = optimize_deductions(body.income, body.deductions, regime, body.limit)
    except UnknownRegimeError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return OptimizeResponse(
        suggestions=suggestions,
        potentialSavings=potential_savings(suggestions),
    )
