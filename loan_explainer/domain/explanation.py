"""Explanation assembly - ranks contributions into primary factors and rates profile health"""

from typing import Iterable, Optional, Sequence, Tuple

from loan_explainer.domain.engine_config import DEFAULT_ENGINE_CONFIG, EngineConfig
from loan_explainer.domain.models import (
    Contribution,
    EmploymentType,
    Explanation,
    FactorHealth,
    FactorRating,
    FeatureVector,
    Impact,
    PrimaryFactor,
)

# Health bands: (excellent, good, warning) cut-offs; anything beyond is POOR
CREDIT_SCORE_HEALTH = (750, 650, 550)
DTI_HEALTH = (0.30, 0.40, 0.50)
PAYMENT_HISTORY_HEALTH = (0.95, 0.85, 0.75)
UTILIZATION_HEALTH = (0.30, 0.50, 0.70)


def _first(factors: Iterable[PrimaryFactor], impact: Impact) -> Optional[PrimaryFactor]:
    return next((f for f in factors if f.impact == impact), None)


def explain(contributions: Sequence[Contribution], config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> Explanation:
    """
    Rank contributions by absolute magnitude and attach configured weights.

    Sorting is stable, so equal magnitudes keep attribution order.
    """
    ranked = sorted(contributions, key=lambda c: abs(c.signed_contribution), reverse=True)

    primary_factors = tuple(
        PrimaryFactor(
            rank=position,
            feature_name=c.feature_name,
            raw_value=c.raw_value,
            signed_contribution=c.signed_contribution,
            impact=c.impact,
            weight_pct=config.weights.get(c.feature_name, 0.0),
        )
        for position, c in enumerate(ranked, start=1)
    )

    favorable_points = sum(abs(f.signed_contribution) for f in primary_factors if f.impact == Impact.POSITIVE)
    adverse_points = sum(abs(f.signed_contribution) for f in primary_factors if f.impact == Impact.NEGATIVE)

    return Explanation(
        primary_factors=primary_factors,
        top_favorable=_first(primary_factors, Impact.POSITIVE),
        top_adverse=_first(primary_factors, Impact.NEGATIVE),
        favorable_points=favorable_points,
        adverse_points=adverse_points,
        dominant_impact=Impact.POSITIVE if favorable_points > adverse_points else Impact.NEGATIVE,
    )


def _rate_higher_better(value: float, cutoffs: Tuple[float, float, float]) -> FactorHealth:
    excellent, good, warning = cutoffs
    if value >= excellent:
        return FactorHealth.EXCELLENT
    elif value >= good:
        return FactorHealth.GOOD
    elif value >= warning:
        return FactorHealth.WARNING
    return FactorHealth.POOR


def _rate_lower_better(value: float, cutoffs: Tuple[float, float, float]) -> FactorHealth:
    excellent, good, warning = cutoffs
    if value <= excellent:
        return FactorHealth.EXCELLENT
    elif value <= good:
        return FactorHealth.GOOD
    elif value <= warning:
        return FactorHealth.WARNING
    return FactorHealth.POOR


def rate_factors(features: FeatureVector) -> Tuple[FactorRating, ...]:
    """Label each headline factor EXCELLENT / GOOD / WARNING / POOR"""
    employment_health = (
        FactorHealth.GOOD if features.employment_type == EmploymentType.PERMANENT else FactorHealth.WARNING
    )
    return (
        FactorRating(
            "credit_score", features.credit_score, _rate_higher_better(features.credit_score, CREDIT_SCORE_HEALTH)
        ),
        FactorRating("dti_ratio", features.dti_ratio, _rate_lower_better(features.dti_ratio, DTI_HEALTH)),
        FactorRating(
            "payment_history",
            features.payment_history,
            _rate_higher_better(features.payment_history, PAYMENT_HISTORY_HEALTH),
        ),
        FactorRating(
            "credit_utilization",
            features.credit_utilization,
            _rate_lower_better(features.credit_utilization, UTILIZATION_HEALTH),
        ),
        FactorRating("employment_type", features.employment_type.value, employment_health),
    )
