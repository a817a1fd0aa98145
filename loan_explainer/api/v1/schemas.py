"""Pydantic schemas for API request/response validation"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from loan_explainer.domain.features import normalize_credit_score, normalize_employment
from loan_explainer.domain.models import (
    ApplicantProfile,
    CounterfactualScenario,
    CreditCard,
    Decision,
    EmploymentType,
    FactorHealth,
    Impact,
    LoanObligation,
    RiskAssessment,
    RiskLevel,
)

FeatureValueSchema = Union[float, int, str]


class LoanObligationSchema(BaseModel):
    emi_amount: float = Field(0.0, ge=0)
    missed_payments: int = Field(0, ge=0)
    has_prepayments: bool = False


class CreditCardSchema(BaseModel):
    limit: float = Field(0.0, ge=0)
    utilization_ratio: float = Field(0.0, ge=0)


class ApplicantProfileSchema(BaseModel):
    """Request body describing an applicant; every field is optional"""

    credit_score: float = Field(0, ge=0, description="Bureau score, 0 when none on file; fractions are truncated")
    monthly_income: float = Field(0.0, ge=0)
    active_loan_obligations: List[LoanObligationSchema] = Field(default_factory=list)
    on_time_payment_ratio: float = Field(0.0, ge=0)
    credit_cards: List[CreditCardSchema] = Field(default_factory=list)
    employment_type: EmploymentType = EmploymentType.UNKNOWN
    investment_assets: float = Field(0.0, ge=0)
    credit_account_age_months: int = Field(0, ge=0)
    recent_credit_inquiries: int = Field(0, ge=0)

    @field_validator("employment_type", mode="before")
    @classmethod
    def _lenient_employment(cls, value: Any) -> EmploymentType:
        return normalize_employment(value)

    def to_domain(self) -> ApplicantProfile:
        return ApplicantProfile(
            credit_score=normalize_credit_score(self.credit_score),
            monthly_income=self.monthly_income,
            active_loan_obligations=tuple(LoanObligation(**o.model_dump()) for o in self.active_loan_obligations),
            on_time_payment_ratio=self.on_time_payment_ratio,
            credit_cards=tuple(CreditCard(**c.model_dump()) for c in self.credit_cards),
            employment_type=self.employment_type,
            investment_assets=self.investment_assets,
            credit_account_age_months=self.credit_account_age_months,
            recent_credit_inquiries=self.recent_credit_inquiries,
        )


class SimulationRequest(BaseModel):
    """Request body for POST /v1/assessments/simulate"""

    profile: ApplicantProfileSchema
    overrides: Dict[str, Any] = Field(default_factory=dict, description="Profile fields to change, plus total_emi")


class FeatureVectorSchema(BaseModel):
    credit_score: int
    dti_ratio: float
    payment_history: float
    credit_utilization: float
    employment_type: EmploymentType
    total_assets: float
    credit_age_months: int
    inquiries: int
    monthly_income: float
    total_emi: float


class ContributionSchema(BaseModel):
    feature_name: str
    raw_value: FeatureValueSchema
    signed_contribution: float
    impact: Impact


class PrimaryFactorSchema(ContributionSchema):
    rank: int
    weight_pct: float


class ExplanationSchema(BaseModel):
    primary_factors: List[PrimaryFactorSchema]
    top_favorable: Optional[PrimaryFactorSchema] = None
    top_adverse: Optional[PrimaryFactorSchema] = None
    favorable_points: float
    adverse_points: float
    dominant_impact: Impact


class FactorRatingSchema(BaseModel):
    feature_name: str
    raw_value: FeatureValueSchema
    health: FactorHealth


class AdvisorySchema(BaseModel):
    decision: Decision
    risk_score: Optional[float] = None
    narrative: str = ""


class AssessmentResponse(BaseModel):
    """Response for assessment endpoints"""

    base_value: float
    contributions: List[ContributionSchema]
    raw_risk: float
    predicted_risk: float
    decision: Decision
    risk_level: RiskLevel
    features: FeatureVectorSchema
    explanation: ExplanationSchema
    factor_ratings: List[FactorRatingSchema]
    advisory: Optional[AdvisorySchema] = None
    final_decision: Decision

    @classmethod
    def from_domain(
        cls,
        assessment: RiskAssessment,
        advisory: Optional[AdvisorySchema] = None,
        final_decision: Optional[Decision] = None,
    ) -> "AssessmentResponse":
        return cls(
            **asdict(assessment),
            advisory=advisory,
            final_decision=final_decision or assessment.decision,
        )


class CounterfactualSchema(BaseModel):
    description: str
    perturbed_feature: str
    old_value: float
    new_value: float
    old_risk: float
    new_risk: float
    risk_delta: float
    old_decision: Decision
    new_decision: Decision
    decision_changed: bool

    @classmethod
    def from_domain(cls, scenario: CounterfactualScenario) -> "CounterfactualSchema":
        return cls(**asdict(scenario), risk_delta=scenario.risk_delta)


class CounterfactualResponse(BaseModel):
    """Response for POST /v1/counterfactuals"""

    baseline_risk: float
    baseline_decision: Decision
    scenarios: List[CounterfactualSchema]
