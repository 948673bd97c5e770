"""Rule-based glucose impact estimation."""

from dataclasses import dataclass

from glucose_advisor.domain.analysis import GlucosePrediction, MealAggregate, RiskLevel
from glucose_advisor.domain.foods import round_half_up
from glucose_advisor.domain.profiles import DiabetesType

# Fixed placeholder; not derived from match quality.
PREDICTION_CONFIDENCE = 75

MIN_PEAK_VALUE = 50
MAX_PEAK_VALUE = 600
HIGH_RISK_PEAK = 180
MEDIUM_RISK_PEAK = 140
HIGH_RISK_LOAD = 20
MEDIUM_RISK_LOAD = 10

TYPE_1_PEAK_FACTOR = 1.2
TYPE_1_DURATION_FACTOR = 1.1
PREDIABETES_PEAK_FACTOR = 0.8


@dataclass(frozen=True)
class _LoadBucket:
    max_load: float | None
    base_increase: float
    per_load_unit: float
    peak_time_min: int
    duration_min: int


_BUCKETS = (
    _LoadBucket(10, 20, 2, 45, 90),
    _LoadBucket(20, 40, 3, 60, 120),
    _LoadBucket(None, 80, 2, 75, 180),
)


def _bucket_for(glycemic_load: float) -> _LoadBucket:
    for bucket in _BUCKETS:
        if bucket.max_load is None or glycemic_load <= bucket.max_load:
            return bucket
    return _BUCKETS[-1]


def classify_risk(peak_value: float, glycemic_load: float) -> RiskLevel:
    """Classify risk; the high check runs first."""
    if peak_value > HIGH_RISK_PEAK or glycemic_load > HIGH_RISK_LOAD:
        return RiskLevel.HIGH
    if peak_value > MEDIUM_RISK_PEAK or glycemic_load > MEDIUM_RISK_LOAD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def predict(
    aggregate: MealAggregate,
    current_glucose: float,
    diabetes_type: DiabetesType | None = None,
) -> GlucosePrediction:
    """Predict the glucose response to a meal from its glycemic load."""
    glycemic_load = aggregate.total_glycemic_load
    bucket = _bucket_for(glycemic_load)
    peak_increase = bucket.base_increase + bucket.per_load_unit * glycemic_load
    duration: float = bucket.duration_min

    if diabetes_type == DiabetesType.TYPE_1:
        peak_increase *= TYPE_1_PEAK_FACTOR
        duration *= TYPE_1_DURATION_FACTOR
    elif diabetes_type == DiabetesType.PREDIABETES:
        peak_increase *= PREDIABETES_PEAK_FACTOR

    peak_value = current_glucose + peak_increase
    risk_level = classify_risk(peak_value, glycemic_load)
    clamped_peak = min(max(round_half_up(peak_value), MIN_PEAK_VALUE), MAX_PEAK_VALUE)

    return GlucosePrediction(
        peak_increase=peak_increase,
        peak_time_min=bucket.peak_time_min,
        duration_min=round_half_up(duration),
        peak_value=clamped_peak,
        risk_level=risk_level,
        confidence=PREDICTION_CONFIDENCE,
    )
