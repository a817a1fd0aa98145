"""Domain models - immutable dataclasses representing the risk engine's entities"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


class EmploymentType(str, Enum):
    """Applicant employment category"""

    PERMANENT = "Permanent"
    CONTRACT = "Contract"
    SELF_EMPLOYED = "SelfEmployed"
    UNKNOWN = "Unknown"


class Impact(str, Enum):
    """Direction of a contribution: POSITIVE lowers risk, NEGATIVE raises it"""

    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"


class Decision(str, Enum):
    """Categorical underwriting outcome"""

    APPROVE = "APPROVE"
    CONDITIONAL_APPROVE = "CONDITIONAL_APPROVE"
    REJECT = "REJECT"
    MANUAL_REVIEW = "MANUAL_REVIEW"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class FactorHealth(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    WARNING = "WARNING"
    POOR = "POOR"


@dataclass(frozen=True)
class LoanObligation:
    """Single active loan from the applicant's repayment history"""

    emi_amount: float = 0.0
    missed_payments: int = 0
    has_prepayments: bool = False


@dataclass(frozen=True)
class CreditCard:
    """Revolving credit line with its current utilization"""

    limit: float = 0.0
    utilization_ratio: float = 0.0


@dataclass(frozen=True)
class ApplicantProfile:
    """Raw applicant financials, immutable for the lifetime of a request"""

    credit_score: int = 0
    monthly_income: float = 0.0
    active_loan_obligations: Tuple[LoanObligation, ...] = ()
    on_time_payment_ratio: float = 0.0
    credit_cards: Tuple[CreditCard, ...] = ()
    employment_type: EmploymentType = EmploymentType.UNKNOWN
    investment_assets: float = 0.0  # mutual funds + deposits + stocks + real estate
    credit_account_age_months: int = 0
    recent_credit_inquiries: int = 0


@dataclass(frozen=True)
class FeatureVector:
    """Typed features derived from an ApplicantProfile"""

    credit_score: int
    dti_ratio: float
    payment_history: float
    credit_utilization: float
    employment_type: EmploymentType
    total_assets: float
    credit_age_months: int
    inquiries: int
    monthly_income: float = 0.0
    total_emi: float = 0.0


FeatureValue = Union[float, int, str]


@dataclass(frozen=True)
class Contribution:
    """Signed effect of one feature on the aggregate risk score"""

    feature_name: str
    raw_value: FeatureValue
    signed_contribution: float
    impact: Impact


@dataclass(frozen=True)
class PrimaryFactor:
    """Contribution ranked by magnitude and labelled with its configured weight"""

    rank: int
    feature_name: str
    raw_value: FeatureValue
    signed_contribution: float
    impact: Impact
    weight_pct: float


@dataclass(frozen=True)
class Explanation:
    """Structured explanation of an assessment (no narrative text)"""

    primary_factors: Tuple[PrimaryFactor, ...]
    top_favorable: Optional[PrimaryFactor]
    top_adverse: Optional[PrimaryFactor]
    favorable_points: float
    adverse_points: float
    dominant_impact: Impact


@dataclass(frozen=True)
class FactorRating:
    """Health label for one factor of the profile"""

    feature_name: str
    raw_value: FeatureValue
    health: FactorHealth


@dataclass(frozen=True)
class RiskAssessment:
    """Output of a single assessment pass"""

    base_value: float
    contributions: Tuple[Contribution, ...]
    raw_risk: float  # base_value + sum(contributions), before clamping
    predicted_risk: float
    decision: Decision
    risk_level: RiskLevel
    features: FeatureVector
    explanation: Explanation
    factor_ratings: Tuple[FactorRating, ...] = field(default_factory=tuple)

    @property
    def primary_factors(self) -> Tuple[PrimaryFactor, ...]:
        return self.explanation.primary_factors


@dataclass(frozen=True)
class CounterfactualScenario:
    """Hypothetical single-feature change and its effect on risk and decision"""

    description: str
    perturbed_feature: str
    old_value: float
    new_value: float
    old_risk: float
    new_risk: float
    old_decision: Decision
    new_decision: Decision
    decision_changed: bool

    @property
    def risk_delta(self) -> float:
        return self.new_risk - self.old_risk
