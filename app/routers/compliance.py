"""Router for compliance evaluation:
    POST  /tax-engine/v1/compliance:evaluate
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from app.models.schemas import ComplianceReport, ComplianceRequest
from app.services.compliance_service import evaluate_compliance

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tax-engine/v1",
    tags=["Compliance"],
)


@router.post(
    "/compliance:evaluate",
    response_model=ComplianceReport,
    summary="Deadline status, penalties, alerts and compliance score",
)
async def compliance_evaluate(body: ComplianceRequest) -> ComplianceReport:
    """Evaluate ITR filing, advance-tax installments, TDS, GST and tax-audit
    deadlines for the assessment year in progress on ``asOf``.
    """
    try:
        return evaluate_compliance(
            profile=body.profile,
            returns=body.returns,
            as_of=body.asOf,
            assessment_year=body.assessmentYear,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
