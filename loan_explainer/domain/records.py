"""Applicant record projection - tolerant mapping of nested record-store documents to ApplicantProfile

Record documents are partially populated more often than not: any section may be
missing, null or of the wrong type. Every lookup below degrades to a zero or
UNKNOWN value instead of raising.
"""

from typing import Any, Mapping

from loan_explainer.domain.features import normalize_employment
from loan_explainer.domain.models import ApplicantProfile, CreditCard, LoanObligation
from loan_explainer.utils.numbers import as_float, as_int, as_sequence

INVESTMENT_KEYS = ("mutual_funds", "fixed_deposits", "stocks", "real_estate")


def dig(document: Any, *path: str, default: Any = None) -> Any:
    """Follow a key path through nested mappings, returning default on any gap"""
    current = document
    for key in path:
        if not isinstance(current, Mapping):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def obligation_from_mapping(loan: Mapping[str, Any]) -> LoanObligation:
    has_prepayments = dig(loan, "prepayment_behavior", "has_prepayments", default=loan.get("has_prepayments"))
    return LoanObligation(
        emi_amount=as_float(loan.get("emi_amount")),
        missed_payments=as_int(loan.get("missed_payments")),
        has_prepayments=bool(has_prepayments),
    )


def card_from_mapping(card: Mapping[str, Any]) -> CreditCard:
    limit = card.get("credit_limit", card.get("limit"))
    return CreditCard(limit=as_float(limit), utilization_ratio=as_float(card.get("utilization_ratio")))


def _investment_total(record: Mapping[str, Any]) -> float:
    investments = dig(record, "income", "investments", default={})
    if not isinstance(investments, Mapping):
        return 0.0
    return sum(max(as_float(investments.get(key)), 0.0) for key in INVESTMENT_KEYS)


def profile_from_record(record: Any) -> ApplicantProfile:
    """Build an ApplicantProfile from a nested applicant record (credit / income / loan sections)"""
    if not isinstance(record, Mapping):
        return ApplicantProfile()

    salary = dig(record, "income", "income_statement", "salary_slips", default={})
    loans = as_sequence(dig(record, "loan", "loan_repayment_history", "active_loans"))
    cards = as_sequence(dig(record, "credit", "credit_cards"))

    return ApplicantProfile(
        credit_score=as_int(dig(record, "credit", "credit_score", "score")),
        monthly_income=as_float(dig(salary, "monthly_income")),
        active_loan_obligations=tuple(obligation_from_mapping(loan) for loan in loans if isinstance(loan, Mapping)),
        on_time_payment_ratio=as_float(dig(record, "credit", "payment_history", "on_time_payment_ratio")),
        credit_cards=tuple(card_from_mapping(card) for card in cards if isinstance(card, Mapping)),
        employment_type=normalize_employment(dig(salary, "employment_type")),
        investment_assets=_investment_total(record),
        credit_account_age_months=as_int(dig(record, "credit", "credit_history", "account_age_months")),
        recent_credit_inquiries=as_int(dig(record, "credit", "enquiries", "recent_count")),
    )
