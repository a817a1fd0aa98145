"""Decision policy - ordered threshold rules mapping features and risk to a decision"""

from loan_explainer.domain.engine_config import DEFAULT_ENGINE_CONFIG, EngineConfig
from loan_explainer.domain.models import Decision, FeatureVector, RiskLevel


def hits_hard_floor(features: FeatureVector, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> bool:
    """True when a single catastrophic factor forces rejection regardless of aggregate risk"""
    t = config.thresholds
    return (
        features.credit_score < t.reject_credit_score_below
        or features.dti_ratio > t.reject_dti_above
        or features.payment_history < t.reject_payment_history_below
    )


def decide(features: FeatureVector, predicted_risk: float, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> Decision:
    """
    Classify a profile into one of four decisions.

    Rules are evaluated in order, first match wins:
    1. REJECT on any hard floor (score < 550, DTI > 60%, on-time ratio < 70%)
    2. APPROVE: score >= 650, DTI <= 50%, on-time >= 70%, risk <= 35
    3. CONDITIONAL_APPROVE: score in [600, 650), DTI <= 40%, on-time > 80%
    4. REJECT below the review floor (score < 600)
    5. MANUAL_REVIEW for every remaining mixed signal
    """
    t = config.thresholds

    if hits_hard_floor(features, config):
        return Decision.REJECT

    if (
        features.credit_score >= t.approve_min_credit_score
        and features.dti_ratio <= t.approve_max_dti
        and features.payment_history >= t.approve_min_payment_history
        and predicted_risk <= t.approve_max_risk
    ):
        return Decision.APPROVE

    if (
        t.conditional_min_credit_score <= features.credit_score < t.approve_min_credit_score
        and features.dti_ratio <= t.conditional_max_dti
        and features.payment_history > t.conditional_min_payment_history
    ):
        return Decision.CONDITIONAL_APPROVE

    if features.credit_score < t.review_floor_credit_score:
        return Decision.REJECT

    return Decision.MANUAL_REVIEW


def risk_level(predicted_risk: float, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> RiskLevel:
    """Map a risk score to its band (upper bounds inclusive)"""
    bands = config.risk_levels
    if predicted_risk <= bands.low_max:
        return RiskLevel.LOW
    elif predicted_risk <= bands.moderate_max:
        return RiskLevel.MODERATE
    elif predicted_risk <= bands.high_max:
        return RiskLevel.HIGH
    else:
        return RiskLevel.VERY_HIGH
