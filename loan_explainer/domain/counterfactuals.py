"""Counterfactual generator - single-feature what-if perturbations of a baseline profile"""

import dataclasses
import logging
from typing import Optional, Tuple

from loan_explainer.domain.engine import assess, with_total_emi
from loan_explainer.domain.engine_config import (
    DEFAULT_ENGINE_CONFIG,
    MAX_CREDIT_SCORE,
    MIN_CREDIT_SCORE,
    EngineConfig,
    Perturbation,
    PerturbationTarget,
)
from loan_explainer.domain.models import ApplicantProfile, CounterfactualScenario, FeatureVector, RiskAssessment
from loan_explainer.utils.numbers import clamp, non_negative

logger = logging.getLogger(__name__)


def current_value(features: FeatureVector, target: PerturbationTarget) -> float:
    if target == PerturbationTarget.CREDIT_SCORE:
        return float(features.credit_score)
    elif target == PerturbationTarget.TOTAL_EMI:
        return features.total_emi
    elif target == PerturbationTarget.ON_TIME_PAYMENT_RATIO:
        return features.payment_history
    else:
        return features.monthly_income


def bounded_value(target: PerturbationTarget, value: float) -> float:
    """Clamp a proposed value into the target's feasible domain"""
    if target == PerturbationTarget.CREDIT_SCORE:
        return float(round(clamp(value, MIN_CREDIT_SCORE, MAX_CREDIT_SCORE)))
    elif target == PerturbationTarget.ON_TIME_PAYMENT_RATIO:
        return clamp(value, 0.0, 1.0)
    else:
        return non_negative(value)


def perturb(profile: ApplicantProfile, target: PerturbationTarget, value: float) -> ApplicantProfile:
    """Copy of profile with a single quantity replaced"""
    if target == PerturbationTarget.CREDIT_SCORE:
        return dataclasses.replace(profile, credit_score=int(value))
    elif target == PerturbationTarget.TOTAL_EMI:
        return with_total_emi(profile, value)
    elif target == PerturbationTarget.ON_TIME_PAYMENT_RATIO:
        return dataclasses.replace(profile, on_time_payment_ratio=value)
    else:
        return dataclasses.replace(profile, monthly_income=value)


def run_perturbation(
    profile: ApplicantProfile,
    baseline: RiskAssessment,
    perturbation: Perturbation,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Optional[CounterfactualScenario]:
    """
    Evaluate one perturbation; None when it is infeasible.

    Infeasible means the clamped new value equals the old one (score already at 850,
    ratio already 1.0, nothing to scale) or the applicant has no score to improve.
    """
    target = perturbation.target
    old_value = current_value(baseline.features, target)
    new_value = bounded_value(target, perturbation.apply(old_value))

    if target == PerturbationTarget.CREDIT_SCORE and old_value <= 0:
        return None
    if new_value == old_value:
        return None

    outcome = assess(perturb(profile, target, new_value), config)

    return CounterfactualScenario(
        description=perturbation.name,
        perturbed_feature=target.value,
        old_value=old_value,
        new_value=new_value,
        old_risk=baseline.predicted_risk,
        new_risk=outcome.predicted_risk,
        old_decision=baseline.decision,
        new_decision=outcome.decision,
        decision_changed=outcome.decision != baseline.decision,
    )


def generate_counterfactuals(
    profile: ApplicantProfile,
    baseline: Optional[RiskAssessment] = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Tuple[CounterfactualScenario, ...]:
    """
    Run the configured perturbation set against a baseline assessment.

    Only feasible scenarios that move risk by more than the noise threshold are
    returned, in perturbation-set order (never sorted by impact).
    """
    if baseline is None:
        baseline = assess(profile, config)

    scenarios = []
    for perturbation in config.perturbations:
        scenario = run_perturbation(profile, baseline, perturbation, config)
        if scenario is None:
            logger.debug("Perturbation infeasible", extra={"perturbation": perturbation.name})
            continue
        if abs(scenario.risk_delta) <= config.counterfactual_min_delta:
            logger.debug("Perturbation below noise threshold", extra={"perturbation": perturbation.name})
            continue
        scenarios.append(scenario)

    return tuple(scenarios)


def counterfactuals(
    profile: ApplicantProfile,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Tuple[CounterfactualScenario, ...]:
    """Counterfactual scenarios for a profile, assessed from scratch"""
    return generate_counterfactuals(profile, None, config)
