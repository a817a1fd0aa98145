"""POST /v1/counterfactuals - what-would-have-to-change scenarios for a profile"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from loan_explainer.api.dependencies import get_engine_config, get_request_id
from loan_explainer.api.v1.schemas import ApplicantProfileSchema, CounterfactualResponse, CounterfactualSchema
from loan_explainer.domain.counterfactuals import generate_counterfactuals
from loan_explainer.domain.engine import assess
from loan_explainer.domain.engine_config import EngineConfig
from loan_explainer.infrastructure.observability.metrics import record_counterfactuals

router = APIRouter()


@router.post("/counterfactuals", response_model=CounterfactualResponse)
def create_counterfactuals(
    profile: ApplicantProfileSchema,
    request: Request,
    config: EngineConfig = Depends(get_engine_config),
):
    """
    Generate counterfactual scenarios for an applicant.

    Returns:
        Baseline risk and decision plus the scenarios that move risk by more
        than the noise threshold, in perturbation-set order
    """
    request_id = get_request_id(request)

    try:
        domain_profile = profile.to_domain()
        baseline = assess(domain_profile, config)
        scenarios = generate_counterfactuals(domain_profile, baseline, config)
    except Exception as e:
        logging.exception(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    record_counterfactuals([s.decision_changed for s in scenarios])
    logging.info(
        "Counterfactuals generated",
        extra={"request_id": request_id, "step": "counterfactuals", "scenario_count": len(scenarios)},
    )

    return CounterfactualResponse(
        baseline_risk=baseline.predicted_risk,
        baseline_decision=baseline.decision,
        scenarios=[CounterfactualSchema.from_domain(s) for s in scenarios],
    )
