"""Engine configuration - baselines, response bands, weights, decision thresholds and perturbations

Every tunable number used by the scoring pipeline lives here as a named constant
and flows into an EngineConfig. A config is validated once, when it is built or
loaded, so an inconsistent table is rejected before any assessment runs.

The defaults are a hand-tuned set, not a fitted or validated risk model.
"""

import json
import logging
import math
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from loan_explainer.domain.exceptions import InvalidConfigurationError
from loan_explainer.domain.models import EmploymentType

logger = logging.getLogger(__name__)

# Feature names, in the order contributions are reported
CREDIT_SCORE = "credit_score"
DTI_RATIO = "dti_ratio"
PAYMENT_HISTORY = "payment_history"
CREDIT_UTILIZATION = "credit_utilization"
EMPLOYMENT_TYPE = "employment_type"
TOTAL_ASSETS = "total_assets"
CREDIT_AGE = "credit_age_months"
INQUIRIES = "inquiries"

FEATURE_ORDER = (
    CREDIT_SCORE,
    DTI_RATIO,
    PAYMENT_HISTORY,
    CREDIT_UTILIZATION,
    EMPLOYMENT_TYPE,
    TOTAL_ASSETS,
    CREDIT_AGE,
    INQUIRIES,
)
NUMERIC_FEATURES = tuple(name for name in FEATURE_ORDER if name != EMPLOYMENT_TYPE)

BASE_RISK = 50.0
WEIGHT_TOTAL_PCT = 100.0
WEIGHT_TOLERANCE = 1e-6

# Population baselines
CREDIT_SCORE_BASELINE = 650.0
DTI_BASELINE = 0.35
PAYMENT_HISTORY_BASELINE = 0.85

# Credit score response: contribution = offset + slope * (score - baseline)
CREDIT_SCORE_FAIR_FLOOR = 600.0
CREDIT_SCORE_GOOD_FLOOR = 650.0
CREDIT_SCORE_EXCELLENT_FLOOR = 750.0
CREDIT_SCORE_POOR_SLOPE = -0.15
CREDIT_SCORE_POOR_OFFSET = 5.0
CREDIT_SCORE_FAIR_SLOPE = -0.12
CREDIT_SCORE_GOOD_SLOPE = -0.08
CREDIT_SCORE_EXCELLENT_SLOPE = -0.10
CREDIT_SCORE_EXCELLENT_OFFSET = -5.0

# DTI response (band lower bounds are exclusive)
DTI_NORMAL_FLOOR = 0.20
DTI_ELEVATED_FLOOR = 0.40
DTI_SEVERE_FLOOR = 0.60
DTI_LOW_SLOPE = 15.0
DTI_LOW_OFFSET = -3.0
DTI_NORMAL_SLOPE = 20.0
DTI_ELEVATED_SLOPE = 30.0
DTI_SEVERE_SLOPE = 40.0
DTI_SEVERE_OFFSET = 15.0

# Payment history response
PAYMENT_FAIR_FLOOR = 0.75
PAYMENT_GOOD_FLOOR = 0.85
PAYMENT_EXCELLENT_FLOOR = 0.95
PAYMENT_POOR_SLOPE = -10.0
PAYMENT_POOR_OFFSET = 8.0
PAYMENT_FAIR_SLOPE = -15.0
PAYMENT_FAIR_OFFSET = 3.0
PAYMENT_GOOD_SLOPE = -20.0
PAYMENT_EXCELLENT_SLOPE = -25.0
PAYMENT_EXCELLENT_OFFSET = -5.0

# Employment response, relative to a neutral baseline of 0
EMPLOYMENT_SCORES = {
    EmploymentType.PERMANENT: -3.0,
    EmploymentType.CONTRACT: 2.0,
    EmploymentType.SELF_EMPLOYED: 4.0,
    EmploymentType.UNKNOWN: 1.0,
}

# Relative weight percentages reported with each primary factor
FEATURE_WEIGHTS = {
    CREDIT_SCORE: 35.0,
    DTI_RATIO: 30.0,
    PAYMENT_HISTORY: 25.0,
    EMPLOYMENT_TYPE: 10.0,
}

# Decision policy thresholds
REJECT_CREDIT_SCORE_BELOW = 550.0
REJECT_DTI_ABOVE = 0.60
REJECT_PAYMENT_HISTORY_BELOW = 0.70
APPROVE_MIN_CREDIT_SCORE = 650.0
APPROVE_MAX_DTI = 0.50
APPROVE_MIN_PAYMENT_HISTORY = 0.70
APPROVE_MAX_RISK = 35.0
CONDITIONAL_MIN_CREDIT_SCORE = 600.0
CONDITIONAL_MAX_DTI = 0.40
CONDITIONAL_MIN_PAYMENT_HISTORY = 0.80  # strictly above
REVIEW_FLOOR_CREDIT_SCORE = 600.0

# Risk level bands (upper bounds, inclusive)
LOW_RISK_MAX = 30.0
MODERATE_RISK_MAX = 60.0
HIGH_RISK_MAX = 80.0

# Counterfactual search
MAX_CREDIT_SCORE = 850
MIN_CREDIT_SCORE = 300
CREDIT_SCORE_STEP = 50.0
EMI_REDUCTION_FACTOR = 0.9
TARGET_PAYMENT_RATIO = 1.0
INCOME_GROWTH_FACTOR = 1.2
COUNTERFACTUAL_MIN_DELTA = 1.0


class ResponseBand(BaseModel):
    """One linear segment of a response function; lower=None means open below"""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    lower: Optional[float] = None
    slope: float
    offset: float = 0.0


class ResponseFunction(BaseModel):
    """Banded piecewise-linear response referenced to a population baseline"""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    baseline: float
    bands: Tuple[ResponseBand, ...]
    lower_inclusive: bool = True

    @model_validator(mode="after")
    def _check_bands(self) -> "ResponseFunction":
        if not self.bands:
            raise ValueError("response function needs at least one band")
        if self.bands[0].lower is not None:
            raise ValueError("first band must be open below (lower=null)")
        lowers = [band.lower for band in self.bands[1:]]
        if any(lower is None for lower in lowers):
            raise ValueError("only the first band may be open below")
        if any(upper <= lower for lower, upper in zip(lowers, lowers[1:])):
            raise ValueError(f"band lower bounds must be strictly ascending, got {lowers}")
        return self

    def band_for(self, value: float) -> ResponseBand:
        selected = self.bands[0]
        for band in self.bands[1:]:
            reached = value >= band.lower if self.lower_inclusive else value > band.lower
            if not reached:
                break
            selected = band
        return selected

    def evaluate(self, value: float) -> float:
        band = self.band_for(value)
        return band.offset + band.slope * (value - self.baseline)


class EmploymentResponse(BaseModel):
    """Categorical risk scores per employment type"""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    scores: Dict[EmploymentType, float] = Field(default_factory=lambda: dict(EMPLOYMENT_SCORES))

    @model_validator(mode="after")
    def _check_complete(self) -> "EmploymentResponse":
        missing = [member.value for member in EmploymentType if member not in self.scores]
        if missing:
            raise ValueError(f"employment scores missing for: {missing}")
        return self

    def evaluate(self, employment_type: EmploymentType) -> float:
        return self.scores[employment_type]


class DecisionThresholds(BaseModel):
    """Ordered decision rule thresholds"""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    reject_credit_score_below: float = REJECT_CREDIT_SCORE_BELOW
    reject_dti_above: float = REJECT_DTI_ABOVE
    reject_payment_history_below: float = REJECT_PAYMENT_HISTORY_BELOW
    approve_min_credit_score: float = APPROVE_MIN_CREDIT_SCORE
    approve_max_dti: float = APPROVE_MAX_DTI
    approve_min_payment_history: float = APPROVE_MIN_PAYMENT_HISTORY
    approve_max_risk: float = APPROVE_MAX_RISK
    conditional_min_credit_score: float = CONDITIONAL_MIN_CREDIT_SCORE
    conditional_max_dti: float = CONDITIONAL_MAX_DTI
    conditional_min_payment_history: float = CONDITIONAL_MIN_PAYMENT_HISTORY
    review_floor_credit_score: float = REVIEW_FLOOR_CREDIT_SCORE

    @model_validator(mode="after")
    def _check_ordering(self) -> "DecisionThresholds":
        if not (
            self.reject_credit_score_below
            <= self.conditional_min_credit_score
            < self.approve_min_credit_score
        ):
            raise ValueError("credit score thresholds must satisfy reject <= conditional < approve")
        if not (self.reject_credit_score_below <= self.review_floor_credit_score <= self.approve_min_credit_score):
            raise ValueError("review floor must lie between the reject floor and the approve minimum")
        if not (0.0 <= self.conditional_max_dti <= self.approve_max_dti <= self.reject_dti_above):
            raise ValueError("DTI thresholds must satisfy 0 <= conditional <= approve <= reject")
        if not (0.0 <= self.reject_payment_history_below <= self.approve_min_payment_history <= 1.0):
            raise ValueError("payment history thresholds must satisfy 0 <= reject <= approve <= 1")
        if not 0.0 <= self.conditional_min_payment_history <= 1.0:
            raise ValueError("conditional payment history threshold must lie in [0, 1]")
        if not 0.0 <= self.approve_max_risk <= 100.0:
            raise ValueError("approve_max_risk must lie in [0, 100]")
        return self


class RiskLevelBands(BaseModel):
    """Inclusive upper bounds of the LOW, MODERATE and HIGH risk levels"""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    low_max: float = LOW_RISK_MAX
    moderate_max: float = MODERATE_RISK_MAX
    high_max: float = HIGH_RISK_MAX

    @model_validator(mode="after")
    def _check_ordering(self) -> "RiskLevelBands":
        if not (0.0 <= self.low_max < self.moderate_max < self.high_max <= 100.0):
            raise ValueError("risk level bands must satisfy 0 <= low < moderate < high <= 100")
        return self


class PerturbationTarget(str, Enum):
    """Profile quantity a counterfactual perturbation changes"""

    CREDIT_SCORE = "credit_score"
    TOTAL_EMI = "total_emi"
    ON_TIME_PAYMENT_RATIO = "on_time_payment_ratio"
    MONTHLY_INCOME = "monthly_income"


class Perturbation(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    name: str = Field(..., min_length=1)
    target: PerturbationTarget
    operation: Literal["add", "multiply", "set"]
    amount: float

    def apply(self, value: float) -> float:
        if self.operation == "add":
            return value + self.amount
        if self.operation == "multiply":
            return value * self.amount
        return self.amount


def default_response_functions() -> Dict[str, ResponseFunction]:
    return {
        CREDIT_SCORE: ResponseFunction(
            baseline=CREDIT_SCORE_BASELINE,
            bands=(
                ResponseBand(slope=CREDIT_SCORE_POOR_SLOPE, offset=CREDIT_SCORE_POOR_OFFSET),
                ResponseBand(lower=CREDIT_SCORE_FAIR_FLOOR, slope=CREDIT_SCORE_FAIR_SLOPE),
                ResponseBand(lower=CREDIT_SCORE_GOOD_FLOOR, slope=CREDIT_SCORE_GOOD_SLOPE),
                ResponseBand(
                    lower=CREDIT_SCORE_EXCELLENT_FLOOR,
                    slope=CREDIT_SCORE_EXCELLENT_SLOPE,
                    offset=CREDIT_SCORE_EXCELLENT_OFFSET,
                ),
            ),
        ),
        DTI_RATIO: ResponseFunction(
            baseline=DTI_BASELINE,
            lower_inclusive=False,
            bands=(
                ResponseBand(slope=DTI_LOW_SLOPE, offset=DTI_LOW_OFFSET),
                ResponseBand(lower=DTI_NORMAL_FLOOR, slope=DTI_NORMAL_SLOPE),
                ResponseBand(lower=DTI_ELEVATED_FLOOR, slope=DTI_ELEVATED_SLOPE),
                ResponseBand(lower=DTI_SEVERE_FLOOR, slope=DTI_SEVERE_SLOPE, offset=DTI_SEVERE_OFFSET),
            ),
        ),
        PAYMENT_HISTORY: ResponseFunction(
            baseline=PAYMENT_HISTORY_BASELINE,
            bands=(
                ResponseBand(slope=PAYMENT_POOR_SLOPE, offset=PAYMENT_POOR_OFFSET),
                ResponseBand(lower=PAYMENT_FAIR_FLOOR, slope=PAYMENT_FAIR_SLOPE, offset=PAYMENT_FAIR_OFFSET),
                ResponseBand(lower=PAYMENT_GOOD_FLOOR, slope=PAYMENT_GOOD_SLOPE),
                ResponseBand(
                    lower=PAYMENT_EXCELLENT_FLOOR,
                    slope=PAYMENT_EXCELLENT_SLOPE,
                    offset=PAYMENT_EXCELLENT_OFFSET,
                ),
            ),
        ),
    }


DEFAULT_PERTURBATIONS = (
    Perturbation(
        name="improve_credit_score",
        target=PerturbationTarget.CREDIT_SCORE,
        operation="add",
        amount=CREDIT_SCORE_STEP,
    ),
    Perturbation(
        name="reduce_debt",
        target=PerturbationTarget.TOTAL_EMI,
        operation="multiply",
        amount=EMI_REDUCTION_FACTOR,
    ),
    Perturbation(
        name="perfect_payment_history",
        target=PerturbationTarget.ON_TIME_PAYMENT_RATIO,
        operation="set",
        amount=TARGET_PAYMENT_RATIO,
    ),
    Perturbation(
        name="increase_income",
        target=PerturbationTarget.MONTHLY_INCOME,
        operation="multiply",
        amount=INCOME_GROWTH_FACTOR,
    ),
)


class EngineConfig(BaseModel):
    """Complete, validated configuration of the scoring pipeline"""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    base_value: float = BASE_RISK
    response_functions: Dict[str, ResponseFunction] = Field(default_factory=default_response_functions)
    employment: Optional[EmploymentResponse] = Field(default_factory=EmploymentResponse)
    weights: Dict[str, float] = Field(default_factory=lambda: dict(FEATURE_WEIGHTS))
    thresholds: DecisionThresholds = Field(default_factory=DecisionThresholds)
    risk_levels: RiskLevelBands = Field(default_factory=RiskLevelBands)
    perturbations: Tuple[Perturbation, ...] = DEFAULT_PERTURBATIONS
    counterfactual_min_delta: float = COUNTERFACTUAL_MIN_DELTA

    @model_validator(mode="after")
    def _check_consistency(self) -> "EngineConfig":
        unknown = sorted(set(self.response_functions) - set(NUMERIC_FEATURES))
        if unknown:
            raise ValueError(f"response functions defined for unknown features: {unknown}")

        scored = set(self.scored_features)
        if set(self.weights) != scored:
            raise ValueError(
                f"weights must cover exactly the scored features {sorted(scored)}, got {sorted(self.weights)}"
            )
        if any(weight < 0 for weight in self.weights.values()):
            raise ValueError("feature weights must be non-negative")
        total = sum(self.weights.values())
        if not math.isclose(total, WEIGHT_TOTAL_PCT, abs_tol=WEIGHT_TOLERANCE):
            raise ValueError(f"feature weights must sum to {WEIGHT_TOTAL_PCT:g}, got {total:g}")

        names = [perturbation.name for perturbation in self.perturbations]
        if len(names) != len(set(names)):
            raise ValueError(f"perturbation names must be unique, got {names}")
        if self.counterfactual_min_delta < 0:
            raise ValueError("counterfactual_min_delta must be non-negative")
        return self

    @property
    def scored_features(self) -> Tuple[str, ...]:
        """Features that receive a contribution, in reporting order"""
        return tuple(
            name
            for name in FEATURE_ORDER
            if name in self.response_functions or (name == EMPLOYMENT_TYPE and self.employment is not None)
        )


def build_engine_config(data: Optional[Mapping[str, Any]] = None) -> EngineConfig:
    """
    Build an EngineConfig from a (partial) mapping, filling omitted sections with defaults.

    Raises:
        InvalidConfigurationError: If the resulting configuration is inconsistent
    """
    try:
        return EngineConfig.model_validate(dict(data or {}))
    except ValidationError as e:
        raise InvalidConfigurationError(f"Invalid engine configuration: {e}") from e


def load_engine_config(path: Union[str, Path, None]) -> EngineConfig:
    """
    Load engine configuration from a JSON file, or return the defaults when no path is set.

    Raises:
        InvalidConfigurationError: On unreadable files, malformed JSON or inconsistent tables
    """
    if path is None:
        return DEFAULT_ENGINE_CONFIG

    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise InvalidConfigurationError(f"Cannot read engine configuration {path}: {e}") from e
    if not isinstance(data, dict):
        raise InvalidConfigurationError(f"Engine configuration {path} must be a JSON object")

    config = build_engine_config(data)
    logger.info("Engine configuration loaded", extra={"path": str(path)})
    return config


DEFAULT_ENGINE_CONFIG = EngineConfig()
