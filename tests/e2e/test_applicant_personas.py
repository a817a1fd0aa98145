"""
E2E tests walking applicant personas through the HTTP API.

Personas:
- salaried_prime: excellent score, low DTI, permanent job; approval expected
- subprime: score below the hard floor; rejection expected whatever else changes
- fair_file: fair score with a third of income on EMIs; conditional approval
- overleveraged_prime: excellent score but 65% DTI; the DTI floor wins
- self_employed: solid numbers, volatile employment; manual review
"""

import pytest
from fastapi.testclient import TestClient

SALARIED_PRIME = {
    "credit_score": 780,
    "monthly_income": 100000,
    "active_loan_obligations": [{"emi_amount": 15000}],
    "on_time_payment_ratio": 0.98,
    "employment_type": "Permanent",
}

SUBPRIME = {
    "credit_score": 520,
    "monthly_income": 40000,
    "active_loan_obligations": [{"emi_amount": 10000}],
    "on_time_payment_ratio": 0.90,
}

FAIR_FILE = {
    "credit_score": 620,
    "monthly_income": 60000,
    "active_loan_obligations": [{"emi_amount": 20000}],
    "on_time_payment_ratio": 0.85,
}

OVERLEVERAGED_PRIME = {
    "credit_score": 800,
    "monthly_income": 100000,
    "active_loan_obligations": [{"emi_amount": 65000}],
    "on_time_payment_ratio": 0.99,
    "employment_type": "Permanent",
}

SELF_EMPLOYED = {
    "credit_score": 680,
    "monthly_income": 70000,
    "active_loan_obligations": [{"emi_amount": 14000}],
    "on_time_payment_ratio": 0.95,
    "employment_type": "SelfEmployed",
}


def scenarios_by_name(data: dict) -> dict:
    return {s["description"]: s for s in data["scenarios"]}


def test_salaried_prime_approval(client: TestClient):
    """
    salaried_prime: DTI 0.15
    Expected: APPROVE with risk at or below 35
    """
    response = client.post("/v1/assessments", json=SALARIED_PRIME)

    assert response.status_code == 200
    data = response.json()
    assert data["features"]["dti_ratio"] == pytest.approx(0.15)
    assert data["decision"] == "APPROVE"
    assert data["predicted_risk"] <= 35
    assert data["predicted_risk"] == pytest.approx(14.75)
    assert data["explanation"]["dominant_impact"] == "POSITIVE"


def test_subprime_rejection(client: TestClient):
    """
    subprime: score 520 under the 550 floor
    Expected: REJECT, credit score as the leading factor
    """
    data = client.post("/v1/assessments", json=SUBPRIME).json()

    assert data["decision"] == "REJECT"
    assert data["risk_level"] == "HIGH"
    assert data["explanation"]["primary_factors"][0]["feature_name"] == "credit_score"
    assert data["explanation"]["top_adverse"]["feature_name"] == "credit_score"


def test_fair_file_conditional_approval(client: TestClient):
    """
    fair_file: score 620, DTI 0.33, on-time ratio 0.85
    Expected: CONDITIONAL_APPROVE
    """
    data = client.post("/v1/assessments", json=FAIR_FILE).json()

    assert data["features"]["dti_ratio"] == pytest.approx(0.333, abs=1e-3)
    assert data["decision"] == "CONDITIONAL_APPROVE"


def test_subprime_credit_bump_stays_rejected(client: TestClient):
    """
    subprime counterfactual: 520 -> 570 is above the hard floor but under 600
    Expected: still REJECT, decision_changed false
    """
    data = client.post("/v1/counterfactuals", json=SUBPRIME).json()
    bump = scenarios_by_name(data)["improve_credit_score"]

    assert data["baseline_decision"] == "REJECT"
    assert (bump["old_value"], bump["new_value"]) == (520, 570)
    assert bump["new_decision"] == "REJECT"
    assert bump["decision_changed"] is False


def test_fair_file_perfect_payments(client: TestClient):
    """
    fair_file counterfactual: on-time ratio 0.85 -> 1.0
    Expected: negative risk delta; score 620 still short of APPROVE
    """
    data = client.post("/v1/counterfactuals", json=FAIR_FILE).json()
    payments = scenarios_by_name(data)["perfect_payment_history"]

    assert payments["risk_delta"] < 0
    assert payments["new_decision"] == "CONDITIONAL_APPROVE"
    assert payments["decision_changed"] is False


def test_overleveraged_prime_hits_dti_floor(client: TestClient):
    """
    overleveraged_prime: score 800 but DTI 0.65
    Expected: REJECT; only debt and income changes lift the floor
    """
    assessment = client.post("/v1/assessments", json=OVERLEVERAGED_PRIME).json()
    data = client.post("/v1/counterfactuals", json=OVERLEVERAGED_PRIME).json()
    scenarios = scenarios_by_name(data)

    assert assessment["decision"] == "REJECT"
    assert list(scenarios) == ["improve_credit_score", "reduce_debt", "increase_income"]
    assert scenarios["improve_credit_score"]["decision_changed"] is False
    assert scenarios["reduce_debt"]["new_decision"] == "MANUAL_REVIEW"
    assert scenarios["increase_income"]["new_decision"] == "MANUAL_REVIEW"


def test_overleveraged_prime_emi_slider(client: TestClient):
    """Dragging total EMI down to 40000 (DTI 0.40) reaches approval"""
    response = client.post(
        "/v1/assessments/simulate",
        json={"profile": OVERLEVERAGED_PRIME, "overrides": {"total_emi": 40000}},
    )

    data = response.json()
    assert data["features"]["dti_ratio"] == pytest.approx(0.4)
    assert data["decision"] == "APPROVE"


def test_self_employed_manual_review(client: TestClient):
    """
    self_employed: score 680, DTI 0.20, on-time ratio 0.95
    Expected: MANUAL_REVIEW, employment as the only adverse factor
    """
    data = client.post("/v1/assessments", json=SELF_EMPLOYED).json()

    assert data["decision"] == "MANUAL_REVIEW"
    assert data["risk_level"] == "MODERATE"
    assert data["explanation"]["top_adverse"]["feature_name"] == "employment_type"
    assert data["explanation"]["adverse_points"] == pytest.approx(4.0)
    ratings = {r["feature_name"]: r["health"] for r in data["factor_ratings"]}
    assert ratings["employment_type"] == "WARNING"
