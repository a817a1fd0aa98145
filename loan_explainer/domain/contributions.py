"""Contribution model - additive per-feature risk attribution against a population baseline"""

from typing import Tuple

from loan_explainer.domain.engine_config import DEFAULT_ENGINE_CONFIG, EMPLOYMENT_TYPE, EngineConfig
from loan_explainer.domain.models import Contribution, FeatureVector, Impact
from loan_explainer.utils.numbers import clamp

MIN_RISK = 0.0
MAX_RISK = 100.0


def impact_of(signed_contribution: float) -> Impact:
    """Risk-increasing contributions are NEGATIVE, everything else POSITIVE"""
    return Impact.NEGATIVE if signed_contribution > 0 else Impact.POSITIVE


def attribute(features: FeatureVector, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> Tuple[Contribution, ...]:
    """
    Compute the signed contribution of every scored feature.

    Contributions are never clamped, so base_value + sum(contributions)
    reproduces the unclamped risk exactly.
    """
    contributions = []
    for name in config.scored_features:
        if name == EMPLOYMENT_TYPE:
            raw_value = features.employment_type.value
            value = config.employment.evaluate(features.employment_type)
        else:
            raw_value = getattr(features, name)
            value = config.response_functions[name].evaluate(float(raw_value))

        contributions.append(
            Contribution(
                feature_name=name,
                raw_value=raw_value,
                signed_contribution=value,
                impact=impact_of(value),
            )
        )
    return tuple(contributions)


def raw_risk(contributions: Tuple[Contribution, ...], config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> float:
    """Base value plus all contributions, before clamping"""
    return config.base_value + sum(c.signed_contribution for c in contributions)


def clamp_risk(value: float) -> float:
    return clamp(value, MIN_RISK, MAX_RISK)


def predicted_risk(features: FeatureVector, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> float:
    """Aggregate risk in [0, 100]"""
    return clamp_risk(raw_risk(attribute(features, config), config))
