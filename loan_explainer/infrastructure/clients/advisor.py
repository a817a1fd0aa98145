"""Remote advisory service client - optional narrative and alternate decision over a local assessment"""

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from loan_explainer.config import settings
from loan_explainer.domain.exceptions import AdvisorResponseParseError, AdvisorServiceError
from loan_explainer.domain.models import Decision, RiskAssessment
from loan_explainer.infrastructure.observability.metrics import advisor_failure_counter, advisor_latency_histogram
from loan_explainer.utils.numbers import clamp

DECISION_PATTERN = re.compile(r"^\s*DECISION\s*:\s*(?P<value>[A-Za-z_ -]+?)\s*$", re.IGNORECASE | re.MULTILINE)
RISK_SCORE_PATTERN = re.compile(r"^\s*RISK_SCORE\s*:\s*(?P<value>-?\d+(?:\.\d+)?)", re.IGNORECASE | re.MULTILINE)

REPLY_INSTRUCTIONS = (
    "Review the structured loan risk assessment. Reply with a line 'DECISION: <APPROVE|CONDITIONAL_APPROVE|"
    "REJECT|MANUAL_REVIEW>', a line 'RISK_SCORE: <0-100>', then a short narrative."
)


@dataclass(frozen=True)
class AdvisoryOpinion:
    """Parsed reply of the advisory service"""

    decision: Decision
    risk_score: Optional[float]
    narrative: str


def parse_decision(value: str) -> Decision:
    key = re.sub(r"[\s-]+", "_", value.strip().upper())
    try:
        return Decision(key)
    except ValueError as e:
        raise AdvisorResponseParseError(f"Unknown advisory decision: {value!r}") from e


def parse_advisory_text(text: str) -> AdvisoryOpinion:
    """
    Extract DECISION and RISK_SCORE lines from a free-text advisory reply.

    Raises:
        AdvisorResponseParseError: If no recognizable decision is present
    """
    decision_match = DECISION_PATTERN.search(text or "")
    if decision_match is None:
        raise AdvisorResponseParseError("Advisory reply has no DECISION line")
    decision = parse_decision(decision_match.group("value"))

    risk_score = None
    risk_match = RISK_SCORE_PATTERN.search(text)
    if risk_match is not None:
        risk_score = clamp(float(risk_match.group("value")), 0.0, 100.0)

    narrative = RISK_SCORE_PATTERN.sub("", DECISION_PATTERN.sub("", text)).strip()
    return AdvisoryOpinion(decision=decision, risk_score=risk_score, narrative=narrative)


def extract_reply_text(data: Any) -> str:
    """Reply text from either a flat {"text": ...} body or a chat-style output message"""
    if isinstance(data, dict):
        if isinstance(data.get("text"), str):
            return data["text"]
        try:
            return data["output"]["message"]["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise AdvisorResponseParseError(f"Advisory reply has no text content: {e}") from e
    raise AdvisorResponseParseError("Advisory reply is not a JSON object")


def build_advisory_request(assessment: RiskAssessment) -> Dict[str, Any]:
    """Structured payload describing the local assessment"""
    features = assessment.features
    return {
        "instructions": REPLY_INSTRUCTIONS,
        "features": {
            "credit_score": features.credit_score,
            "dti_ratio": features.dti_ratio,
            "payment_history": features.payment_history,
            "credit_utilization": features.credit_utilization,
            "employment_type": features.employment_type.value,
            "total_assets": features.total_assets,
            "credit_age_months": features.credit_age_months,
            "inquiries": features.inquiries,
        },
        "contributions": [
            {
                "feature_name": c.feature_name,
                "signed_contribution": c.signed_contribution,
                "impact": c.impact.value,
            }
            for c in assessment.contributions
        ],
        "predicted_risk": assessment.predicted_risk,
        "decision": assessment.decision.value,
    }


class AdvisorClient:
    """Client for the optional remote advisory service"""

    def __init__(self, url: str | None = None, timeout: float | None = None, api_key: str | None = None):
        self.url = url or settings.advisor_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.api_key = api_key or settings.advisor_api_key
        self.max_retries = settings.advisor_max_retries
        self.backoff_base = settings.advisor_backoff_base

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def review(self, assessment: RiskAssessment) -> AdvisoryOpinion:
        """
        Ask the advisory service for an opinion on a local assessment.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base ...
        - Retries on 5xx errors and network failures; 4xx fails immediately

        Raises:
            AdvisorServiceError: On timeout, HTTP errors or exhausted retries
            AdvisorResponseParseError: If the reply carries no usable decision
        """
        payload = build_advisory_request(assessment)
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                try:
                    with advisor_latency_histogram.time():
                        response = await client.post(self.url, json=payload, headers=self._headers())
                        response.raise_for_status()
                    break

                except httpx.HTTPStatusError as e:
                    attempt += 1
                    advisor_failure_counter.labels(reason="transport").inc()
                    if e.response.status_code < 500 or attempt >= self.max_retries:
                        raise AdvisorServiceError(f"Advisory service error: {e.response.status_code}") from e

                except httpx.RequestError as e:
                    attempt += 1
                    advisor_failure_counter.labels(reason="transport").inc()
                    if attempt >= self.max_retries:
                        raise AdvisorServiceError(f"Advisory service unreachable: {e}") from e

                await asyncio.sleep(self.backoff_base * (2 ** (attempt - 1)))

        try:
            return parse_advisory_text(extract_reply_text(response.json()))
        except ValueError as e:
            advisor_failure_counter.labels(reason="parse").inc()
            raise AdvisorResponseParseError(f"Advisory reply is not valid JSON: {e}") from e
        except AdvisorResponseParseError:
            advisor_failure_counter.labels(reason="parse").inc()
            raise
