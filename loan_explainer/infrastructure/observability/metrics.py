"""Prometheus metrics for monitoring decision mix, risk levels, counterfactuals and advisor health"""

from prometheus_client import Counter, Histogram

# Assessment metrics
assessment_counter = Counter(
    "loan_explainer_assessment_total",
    "Total risk assessments made",
    ["decision"],  # APPROVE | CONDITIONAL_APPROVE | REJECT | MANUAL_REVIEW
)

risk_level_counter = Counter(
    "loan_explainer_risk_level_total",
    "Assessments by risk level",
    ["level"],
)

counterfactual_scenario_counter = Counter(
    "loan_explainer_counterfactual_scenarios_total",
    "Counterfactual scenarios reported",
    ["decision_changed"],
)

# Advisor metrics
advisor_latency_histogram = Histogram(
    "advisor_latency_seconds",
    "Advisory service response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

advisor_failure_counter = Counter(
    "advisor_failures_total",
    "Failed or unparseable advisory calls",
    ["reason"],  # transport | parse
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_assessment(decision: str, level: str) -> None:
    """Record decision and risk level distribution"""
    assessment_counter.labels(decision=decision).inc()
    risk_level_counter.labels(level=level).inc()


def record_counterfactuals(decision_flags: list[bool]) -> None:
    for changed in decision_flags:
        counterfactual_scenario_counter.labels(decision_changed=str(changed).lower()).inc()
