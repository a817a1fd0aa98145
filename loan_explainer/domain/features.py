"""Feature extraction - projects an ApplicantProfile onto a typed FeatureVector"""

from typing import Any

from loan_explainer.domain.engine_config import MAX_CREDIT_SCORE, MIN_CREDIT_SCORE
from loan_explainer.domain.models import ApplicantProfile, EmploymentType, FeatureVector
from loan_explainer.utils.numbers import as_float, as_int, as_sequence, clamp, non_negative


def total_emi(profile: ApplicantProfile) -> float:
    """Sum of monthly EMIs across active obligations (negative EMIs count as zero)"""
    return sum(
        non_negative(as_float(getattr(loan, "emi_amount", 0.0)))
        for loan in as_sequence(profile.active_loan_obligations)
    )


def normalize_credit_score(value: Any) -> int:
    """0 means no score on file; anything else is clamped into the bureau range"""
    score = as_int(value)
    if score <= 0:
        return 0
    return int(clamp(score, MIN_CREDIT_SCORE, MAX_CREDIT_SCORE))


def normalize_employment(value: Any) -> EmploymentType:
    if isinstance(value, EmploymentType):
        return value
    if not isinstance(value, str):
        return EmploymentType.UNKNOWN
    key = value.strip().lower().replace(" ", "").replace("_", "").replace("-", "")
    for member in EmploymentType:
        if member.value.lower() == key:
            return member
    return EmploymentType.UNKNOWN


def weighted_utilization(profile: ApplicantProfile) -> float:
    """
    Limit-weighted average utilization across credit cards.

    sum(limit * utilization) / sum(limit); 0 with no cards or zero total limit.
    """
    total_limit = 0.0
    used = 0.0
    for card in as_sequence(profile.credit_cards):
        limit = non_negative(as_float(getattr(card, "limit", 0.0)))
        utilization = clamp(as_float(getattr(card, "utilization_ratio", 0.0)), 0.0, 1.0)
        total_limit += limit
        used += limit * utilization

    if total_limit <= 0:
        return 0.0
    return clamp(used / total_limit, 0.0, 1.0)


def extract(profile: ApplicantProfile) -> FeatureVector:
    """
    Convert an applicant profile into the feature vector used for scoring.

    Total function: missing or malformed fields degrade to zero / UNKNOWN,
    and income <= 0 yields a DTI of 0 rather than an error.
    """
    income = non_negative(as_float(profile.monthly_income))
    emi = total_emi(profile)

    # Avoid division by zero
    dti_ratio = clamp(emi / income, 0.0, 1.0) if income > 0 else 0.0

    return FeatureVector(
        credit_score=normalize_credit_score(profile.credit_score),
        dti_ratio=dti_ratio,
        payment_history=clamp(as_float(profile.on_time_payment_ratio), 0.0, 1.0),
        credit_utilization=weighted_utilization(profile),
        employment_type=normalize_employment(profile.employment_type),
        total_assets=non_negative(as_float(profile.investment_assets)),
        credit_age_months=max(as_int(profile.credit_account_age_months), 0),
        inquiries=max(as_int(profile.recent_credit_inquiries), 0),
        monthly_income=income,
        total_emi=emi,
    )
