"""POST /v1/assessments - risk assessment, what-if simulation and record-based assessment endpoints"""

import logging
import time
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from loan_explainer.api.dependencies import get_advisor_client, get_engine_config, get_request_id
from loan_explainer.api.v1.schemas import (
    AdvisorySchema,
    ApplicantProfileSchema,
    AssessmentResponse,
    SimulationRequest,
)
from loan_explainer.config import settings
from loan_explainer.domain.engine import assess, simulate
from loan_explainer.domain.engine_config import EngineConfig
from loan_explainer.domain.exceptions import AdvisorResponseParseError, AdvisorServiceError
from loan_explainer.domain.models import Decision, RiskAssessment
from loan_explainer.domain.records import profile_from_record
from loan_explainer.infrastructure.clients.advisor import AdvisorClient
from loan_explainer.infrastructure.observability.logging import log_assessment
from loan_explainer.infrastructure.observability.metrics import record_assessment

router = APIRouter()


async def consult_advisor(
    assessment: RiskAssessment,
    advisor_client: AdvisorClient,
    request_id: str,
) -> Tuple[Optional[AdvisorySchema], Decision]:
    """
    Optionally enrich a local assessment with the remote advisor's opinion.

    The local decision is always the fallback: a disabled, unreachable or
    unparseable advisor never blocks the response.
    """
    if not settings.advisor_enabled:
        return None, assessment.decision

    try:
        opinion = await advisor_client.review(assessment)
    except AdvisorResponseParseError as e:
        logging.warning(f"Advisory reply unparseable: {e}", extra={"request_id": request_id})
        return None, assessment.decision
    except AdvisorServiceError as e:
        logging.warning(f"Advisory service unavailable: {e}", extra={"request_id": request_id})
        return None, assessment.decision

    advisory = AdvisorySchema(decision=opinion.decision, risk_score=opinion.risk_score, narrative=opinion.narrative)
    final_decision = opinion.decision if settings.prefer_advisor_decision else assessment.decision
    return advisory, final_decision


def _finish(
    assessment: RiskAssessment,
    request_id: str,
    endpoint: str,
    start_time: float,
    advisory: Optional[AdvisorySchema] = None,
    final_decision: Optional[Decision] = None,
) -> AssessmentResponse:
    response = AssessmentResponse.from_domain(assessment, advisory, final_decision)

    duration_ms = (time.perf_counter() - start_time) * 1000
    record_assessment(assessment.decision.value, assessment.risk_level.value)
    log_assessment(
        request_id,
        endpoint,
        assessment.decision.value,
        assessment.predicted_risk,
        response.final_decision.value,
        duration_ms,
    )
    return response


@router.post("/assessments", response_model=AssessmentResponse)
async def create_assessment(
    profile: ApplicantProfileSchema,
    request: Request,
    config: EngineConfig = Depends(get_engine_config),
    advisor_client: AdvisorClient = Depends(get_advisor_client),
):
    """
    Assess an applicant profile.

    Flow:
    1. Extract features and attribute risk to each feature
    2. Decide and explain locally (always available)
    3. Optionally consult the advisory service
    4. Return structured assessment with the final decision
    """
    start_time = time.perf_counter()
    request_id = get_request_id(request)

    try:
        assessment = assess(profile.to_domain(), config)
    except Exception as e:
        logging.exception(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    advisory, final_decision = await consult_advisor(assessment, advisor_client, request_id)
    return _finish(assessment, request_id, "assessment", start_time, advisory, final_decision)


@router.post("/assessments/simulate", response_model=AssessmentResponse)
def simulate_assessment(
    body: SimulationRequest,
    request: Request,
    config: EngineConfig = Depends(get_engine_config),
):
    """Re-run the assessment against a modified copy of the profile (what-if sliders)"""
    start_time = time.perf_counter()
    request_id = get_request_id(request)

    try:
        assessment = simulate(body.profile.to_domain(), body.overrides, config)
    except Exception as e:
        logging.exception(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return _finish(assessment, request_id, "simulation", start_time)


@router.post("/records/assessments", response_model=AssessmentResponse)
async def assess_record(
    request: Request,
    record: Dict[str, Any] = Body(..., description="Nested applicant record document"),
    config: EngineConfig = Depends(get_engine_config),
    advisor_client: AdvisorClient = Depends(get_advisor_client),
):
    """Assess a partially populated applicant record as stored by the record store"""
    start_time = time.perf_counter()
    request_id = get_request_id(request)

    try:
        assessment = assess(profile_from_record(record), config)
    except Exception as e:
        logging.exception(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    advisory, final_decision = await consult_advisor(assessment, advisor_client, request_id)
    return _finish(assessment, request_id, "record_assessment", start_time, advisory, final_decision)
