"""Pytest fixtures for testing"""

import pytest
from fastapi.testclient import TestClient

from loan_explainer.api.main import create_app
from loan_explainer.domain.engine_config import DEFAULT_ENGINE_CONFIG
from loan_explainer.domain.models import ApplicantProfile, EmploymentType, LoanObligation


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client with the default engine configuration"""
    app = create_app(DEFAULT_ENGINE_CONFIG)
    return TestClient(app)


@pytest.fixture
def strong_profile() -> ApplicantProfile:
    """Excellent score, low DTI, near-perfect payments, permanent job"""
    return ApplicantProfile(
        credit_score=780,
        monthly_income=100000,
        active_loan_obligations=(LoanObligation(emi_amount=15000),),
        on_time_payment_ratio=0.98,
        employment_type=EmploymentType.PERMANENT,
    )


@pytest.fixture
def subprime_profile() -> ApplicantProfile:
    """Credit score below the hard floor, otherwise reasonable"""
    return ApplicantProfile(
        credit_score=520,
        monthly_income=40000,
        active_loan_obligations=(LoanObligation(emi_amount=10000),),
        on_time_payment_ratio=0.90,
    )


@pytest.fixture
def fair_profile() -> ApplicantProfile:
    """Fair score with a third of income going to EMIs"""
    return ApplicantProfile(
        credit_score=620,
        monthly_income=60000,
        active_loan_obligations=(LoanObligation(emi_amount=20000),),
        on_time_payment_ratio=0.85,
    )


@pytest.fixture
def strong_profile_payload() -> dict:
    """Request body equivalent of strong_profile"""
    return {
        "credit_score": 780,
        "monthly_income": 100000,
        "active_loan_obligations": [{"emi_amount": 15000}],
        "on_time_payment_ratio": 0.98,
        "employment_type": "Permanent",
    }


@pytest.fixture
def applicant_record() -> dict:
    """Nested applicant record as kept by the record store"""
    return {
        "credit": {
            "credit_score": {"score": 742},
            "payment_history": {"on_time_payment_ratio": 0.93},
            "credit_cards": [
                {"credit_limit": 100000, "utilization_ratio": 0.2},
                {"credit_limit": 300000, "utilization_ratio": 0.6},
            ],
            "credit_history": {"account_age_months": 84},
            "enquiries": {"recent_count": 2},
        },
        "income": {
            "income_statement": {
                "salary_slips": {"monthly_income": 85000, "employment_type": "Permanent"},
            },
            "investments": {"mutual_funds": 150000, "fixed_deposits": 200000, "stocks": 50000},
        },
        "loan": {
            "loan_repayment_history": {
                "active_loans": [
                    {"loan_type": "Home Loan", "emi_amount": 18000, "missed_payments": 0,
                     "prepayment_behavior": {"has_prepayments": True}},
                    {"loan_type": "Car Loan", "emi_amount": 7500, "missed_payments": 1},
                ],
            },
        },
    }
