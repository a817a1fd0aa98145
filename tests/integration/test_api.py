"""Integration tests for API endpoints"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from loan_explainer.api.main import create_app
from loan_explainer.config import settings
from loan_explainer.domain.engine_config import build_engine_config
from loan_explainer.domain.exceptions import AdvisorServiceError
from loan_explainer.domain.models import Decision
from loan_explainer.infrastructure.clients.advisor import AdvisorClient, AdvisoryOpinion


@pytest.fixture
def fair_profile_payload() -> dict:
    return {
        "credit_score": 620,
        "monthly_income": 60000,
        "active_loan_obligations": [{"emi_amount": 20000}],
        "on_time_payment_ratio": 0.85,
    }


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": settings.service_name}


def test_metrics_endpoint(client: TestClient, strong_profile_payload: dict):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/assessments", json=strong_profile_payload)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "loan_explainer_assessment_total" in response.text


def test_assessment_endpoint_approval(client: TestClient, strong_profile_payload: dict):
    """Test POST /v1/assessments with a strong applicant"""
    response = client.post("/v1/assessments", json=strong_profile_payload)

    assert response.status_code == 200
    data = response.json()
    assert data["decision"] == "APPROVE"
    assert data["final_decision"] == "APPROVE"
    assert data["risk_level"] == "LOW"
    assert data["advisory"] is None
    assert data["base_value"] == 50.0
    assert len(data["contributions"]) == 4
    assert data["features"]["dti_ratio"] == pytest.approx(0.15)
    assert [f["rank"] for f in data["explanation"]["primary_factors"]] == [1, 2, 3, 4]
    assert "X-Request-ID" in response.headers


def test_assessment_contributions_sum_to_raw_risk(client: TestClient, fair_profile_payload: dict):
    data = client.post("/v1/assessments", json=fair_profile_payload).json()

    total = data["base_value"] + sum(c["signed_contribution"] for c in data["contributions"])
    assert data["raw_risk"] == pytest.approx(total)
    assert data["decision"] == "CONDITIONAL_APPROVE"


def test_assessment_reuses_caller_request_id(client: TestClient, strong_profile_payload: dict):
    response = client.post("/v1/assessments", json=strong_profile_payload, headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.parametrize("header", ["not a valid id!", "x" * 200, "id;drop=1"])
def test_assessment_replaces_unsafe_request_id(client: TestClient, strong_profile_payload: dict, header: str):
    """Test oversized or non-alphanumeric request IDs are swapped for a generated UUID"""
    response = client.post("/v1/assessments", json=strong_profile_payload, headers={"X-Request-ID": header})

    request_id = response.headers["X-Request-ID"]
    assert request_id != header
    assert str(uuid.UUID(request_id)) == request_id


def test_assessment_truncates_fractional_credit_score(client: TestClient, strong_profile_payload: dict):
    strong_profile_payload["credit_score"] = 720.5

    response = client.post("/v1/assessments", json=strong_profile_payload)

    assert response.status_code == 200
    assert response.json()["features"]["credit_score"] == 720


def test_assessment_accepts_empty_profile(client: TestClient):
    response = client.post("/v1/assessments", json={})

    assert response.status_code == 200
    assert response.json()["decision"] == "REJECT"


def test_assessment_lenient_employment_type(client: TestClient, strong_profile_payload: dict):
    strong_profile_payload["employment_type"] = "self employed"

    data = client.post("/v1/assessments", json=strong_profile_payload).json()

    assert data["features"]["employment_type"] == "SelfEmployed"


@pytest.mark.parametrize(
    "field,value",
    [("monthly_income", -1), ("credit_score", -5), ("on_time_payment_ratio", -0.1)],
)
def test_assessment_rejects_invalid_input(client: TestClient, strong_profile_payload: dict, field, value):
    strong_profile_payload[field] = value

    response = client.post("/v1/assessments", json=strong_profile_payload)

    assert response.status_code == 422


def test_simulation_endpoint(client: TestClient, fair_profile_payload: dict):
    """Test POST /v1/assessments/simulate lowering the EMI burden"""
    response = client.post(
        "/v1/assessments/simulate",
        json={"profile": fair_profile_payload, "overrides": {"total_emi": 12000}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["features"]["total_emi"] == pytest.approx(12000)
    assert data["features"]["dti_ratio"] == pytest.approx(0.2)


@pytest.mark.parametrize(
    "overrides",
    [{"credit_cards": 3}, {"active_loan_obligations": 5}, {"active_loan_obligations": [5, {"emi_amount": 100}]}],
)
def test_simulation_endpoint_tolerates_malformed_overrides(
    client: TestClient, fair_profile_payload: dict, overrides
):
    """Test malformed collection overrides are dropped rather than failing the request"""
    body = {"profile": fair_profile_payload, "overrides": overrides}

    response = client.post("/v1/assessments/simulate", json=body)

    assert response.status_code == 200
    assert 0.0 <= response.json()["predicted_risk"] <= 100.0


def test_counterfactuals_endpoint(client: TestClient, fair_profile_payload: dict):
    """Test POST /v1/counterfactuals"""
    response = client.post("/v1/counterfactuals", json=fair_profile_payload)

    assert response.status_code == 200
    data = response.json()
    assert data["baseline_decision"] == "CONDITIONAL_APPROVE"
    assert [s["description"] for s in data["scenarios"]] == [
        "improve_credit_score",
        "perfect_payment_history",
        "increase_income",
    ]
    first = data["scenarios"][0]
    assert first["decision_changed"] is True
    assert first["risk_delta"] == pytest.approx(first["new_risk"] - first["old_risk"])


def test_record_assessment_endpoint(client: TestClient, applicant_record: dict):
    """Test POST /v1/records/assessments with a nested record"""
    response = client.post("/v1/records/assessments", json=applicant_record)

    assert response.status_code == 200
    data = response.json()
    assert data["features"]["credit_score"] == 742
    assert data["features"]["dti_ratio"] == pytest.approx(0.3)
    assert data["features"]["credit_utilization"] == pytest.approx(0.5)
    assert data["features"]["total_assets"] == 400000
    assert data["risk_level"] == "MODERATE"
    assert data["decision"] == "MANUAL_REVIEW"


def test_custom_engine_config_is_used(strong_profile_payload: dict):
    config = build_engine_config({"thresholds": {"approve_max_risk": 5}})
    client = TestClient(create_app(config))

    data = client.post("/v1/assessments", json=strong_profile_payload).json()

    assert data["decision"] == "MANUAL_REVIEW"


@patch.object(AdvisorClient, "review", new_callable=AsyncMock)
def test_assessment_with_advisory(mock_review: AsyncMock, client: TestClient, strong_profile_payload: dict):
    """Test the advisory opinion is attached without overriding the local decision"""
    mock_review.return_value = AdvisoryOpinion(
        decision=Decision.MANUAL_REVIEW, risk_score=40.0, narrative="Recent job change."
    )

    with patch.object(settings, "advisor_enabled", True):
        response = client.post("/v1/assessments", json=strong_profile_payload)

    data = response.json()
    assert mock_review.await_count == 1
    assert data["advisory"] == {"decision": "MANUAL_REVIEW", "risk_score": 40.0, "narrative": "Recent job change."}
    assert data["final_decision"] == "APPROVE"


@patch.object(AdvisorClient, "review", new_callable=AsyncMock)
def test_assessment_prefers_advisory_decision(
    mock_review: AsyncMock, client: TestClient, strong_profile_payload: dict
):
    mock_review.return_value = AdvisoryOpinion(decision=Decision.MANUAL_REVIEW, risk_score=None, narrative="")

    with patch.object(settings, "advisor_enabled", True), patch.object(settings, "prefer_advisor_decision", True):
        data = client.post("/v1/assessments", json=strong_profile_payload).json()

    assert data["decision"] == "APPROVE"
    assert data["final_decision"] == "MANUAL_REVIEW"


@patch.object(AdvisorClient, "review", new_callable=AsyncMock)
def test_assessment_falls_back_when_advisor_fails(
    mock_review: AsyncMock, client: TestClient, strong_profile_payload: dict
):
    """Test an unavailable advisor never blocks the local decision"""
    mock_review.side_effect = AdvisorServiceError("Advisory service error: 503")

    with patch.object(settings, "advisor_enabled", True):
        response = client.post("/v1/assessments", json=strong_profile_payload)

    assert response.status_code == 200
    data = response.json()
    assert data["advisory"] is None
    assert data["final_decision"] == "APPROVE"


@patch.object(AdvisorClient, "review", new_callable=AsyncMock)
def test_advisor_not_called_when_disabled(mock_review: AsyncMock, client: TestClient, strong_profile_payload: dict):
    client.post("/v1/assessments", json=strong_profile_payload)
    mock_review.assert_not_called()
