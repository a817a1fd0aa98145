"""Risk engine entry points - single-pass assessment and what-if simulation"""

import dataclasses
import logging
from typing import Any, Callable, Mapping, Tuple

from loan_explainer.domain.contributions import attribute, clamp_risk, raw_risk
from loan_explainer.domain.engine_config import DEFAULT_ENGINE_CONFIG, EngineConfig
from loan_explainer.domain.explanation import explain, rate_factors
from loan_explainer.domain.features import extract, normalize_employment
from loan_explainer.domain.models import ApplicantProfile, CreditCard, LoanObligation, RiskAssessment
from loan_explainer.domain.policy import decide, risk_level
from loan_explainer.domain.records import card_from_mapping, obligation_from_mapping
from loan_explainer.utils.numbers import as_float, as_sequence, non_negative

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset(f.name for f in dataclasses.fields(ApplicantProfile))
TOTAL_EMI_OVERRIDE = "total_emi"


def assess(profile: ApplicantProfile, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> RiskAssessment:
    """
    Main entry point: extract features, attribute risk, decide and explain.

    Pure function of (profile, config); repeated calls return equal results.
    """
    features = extract(profile)
    contributions = attribute(features, config)
    unclamped = raw_risk(contributions, config)
    risk = clamp_risk(unclamped)
    decision = decide(features, risk, config)

    logger.debug(
        "Assessment computed",
        extra={"decision": decision.value, "predicted_risk": risk, "raw_risk": unclamped},
    )

    return RiskAssessment(
        base_value=config.base_value,
        contributions=contributions,
        raw_risk=unclamped,
        predicted_risk=risk,
        decision=decision,
        risk_level=risk_level(risk, config),
        features=features,
        explanation=explain(contributions, config),
        factor_ratings=rate_factors(features),
    )


def _items_of(value: Any, item_type: type, from_mapping: Callable[[Mapping[str, Any]], Any]) -> Tuple[Any, ...]:
    """Keep item_type entries, build mappings into item_type, drop anything else"""
    items = []
    for item in as_sequence(value):
        if isinstance(item, item_type):
            items.append(item)
        elif isinstance(item, Mapping):
            items.append(from_mapping(item))
    return tuple(items)


def with_total_emi(profile: ApplicantProfile, new_total: float) -> ApplicantProfile:
    """
    Rescale every obligation's EMI proportionally so they sum to new_total.

    A profile without any EMI gains a single obligation carrying the new total.
    Entries that are not LoanObligations are dropped.
    """
    new_total = non_negative(as_float(new_total))
    loans = _items_of(profile.active_loan_obligations, LoanObligation, obligation_from_mapping)
    current = sum(non_negative(as_float(loan.emi_amount)) for loan in loans)

    if current <= 0:
        if new_total <= 0:
            return profile
        obligations = loans + (LoanObligation(emi_amount=new_total),)
        return dataclasses.replace(profile, active_loan_obligations=obligations)

    ratio = new_total / current
    obligations = tuple(
        dataclasses.replace(loan, emi_amount=non_negative(as_float(loan.emi_amount)) * ratio) for loan in loans
    )
    return dataclasses.replace(profile, active_loan_obligations=obligations)


def _coerce_override(name: str, value: Any) -> Any:
    if name == "active_loan_obligations":
        return _items_of(value, LoanObligation, obligation_from_mapping)
    if name == "credit_cards":
        return _items_of(value, CreditCard, card_from_mapping)
    if name == "employment_type":
        return normalize_employment(value)
    return value


def apply_overrides(profile: ApplicantProfile, overrides: Mapping[str, Any]) -> ApplicantProfile:
    """Return a modified copy of profile; the original is never mutated"""
    changes = {}
    for name, value in overrides.items():
        if name in PROFILE_FIELDS:
            changes[name] = _coerce_override(name, value)
        elif name != TOTAL_EMI_OVERRIDE:
            logger.warning("Ignoring unknown profile override", extra={"override": name})

    modified = dataclasses.replace(profile, **changes)
    if TOTAL_EMI_OVERRIDE in overrides:
        modified = with_total_emi(modified, overrides[TOTAL_EMI_OVERRIDE])
    return modified


def simulate(
    profile: ApplicantProfile,
    overrides: Mapping[str, Any],
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> RiskAssessment:
    """Re-run the assessment against a modified copy of the profile (what-if sliders)"""
    return assess(apply_overrides(profile, overrides), config)
