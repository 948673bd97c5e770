"""Food analysis pipeline: match, aggregate, predict, recommend, persist."""

import logging
import time
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4

from glucose_advisor.domain.advisory import AdvisoryRecord
from glucose_advisor.domain.analysis import (
    AnalysisFeedback,
    AnalysisRequest,
    AnalysisStats,
    DetectedFoodInput,
    DetectedFoodItem,
    FoodAnalysis,
    GlucoseContext,
    GlucoseSource,
    MealType,
    RiskLevel,
)
from glucose_advisor.domain.errors import (
    AdvisoryUnavailableError,
    CatalogUnavailableError,
)
from glucose_advisor.services.advisory import AdvisoryService
from glucose_advisor.services.aggregation import aggregate, compute_contribution
from glucose_advisor.services.catalog import CatalogService
from glucose_advisor.services.glucose import GlucoseService
from glucose_advisor.services.prediction import predict
from glucose_advisor.services.profiles import ProfileService
from glucose_advisor.services.recommendations import recommend

_logger = logging.getLogger(__name__)

ADVISORY_NOT_REQUESTED = "not_requested"
ADVISORY_COMPLETED = "completed"
ADVISORY_UNAVAILABLE = "unavailable"


class AnalysisRepository(Protocol):
    """Persistence interface for food analyses."""

    def create_analysis(self, analysis: FoodAnalysis) -> FoodAnalysis:
        """Insert an analysis and return it."""

    def get_analysis(self, user_id: UUID, analysis_id: UUID) -> FoodAnalysis | None:
        """Return an active analysis owned by the user."""

    def list_analyses(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        meal_type: MealType | None,
        risk_level: RiskLevel | None,
        start: datetime | None,
        end: datetime | None,
        limit: int,
        offset: int,
    ) -> list[FoodAnalysis]:
        """Return active analyses, newest first."""

    def update_analysis(self, analysis: FoodAnalysis) -> FoodAnalysis:
        """Replace an analysis and return it."""


@dataclass(frozen=True)
class AnalysisOutcome:
    """Stored analysis plus the optional advisory that followed it."""

    analysis: FoodAnalysis
    advisory: AdvisoryRecord | None = None
    advisory_status: str = ADVISORY_NOT_REQUESTED


@dataclass
class AnalysisService:
    """Runs the rule-based glucose impact pipeline."""

    catalog: CatalogService
    glucose: GlucoseService
    profiles: ProfileService
    repository: AnalysisRepository
    advisory: AdvisoryService | None = None
    default_baseline_glucose: float = 100.0

    async def analyze(
        self,
        user_id: UUID,
        request: AnalysisRequest,
        include_advisory: bool = False,
    ) -> AnalysisOutcome:
        """Analyze detected foods and store the result."""
        started = time.perf_counter()
        baseline = self.resolve_baseline(user_id, request.current_glucose)
        diabetes_type = self.profiles.resolve_diabetes_type(
            user_id, request.diabetes_type
        )

        items = [self.match_item(food) for food in request.detected_foods]
        totals = aggregate(items)
        prediction = predict(totals, baseline.value, diabetes_type)
        recommendations = recommend(totals, prediction)

        analysis = FoodAnalysis(
            id=uuid4(),
            user_id=user_id,
            meal_type=request.meal_type,
            current_glucose=baseline,
            diabetes_type=diabetes_type,
            items=items,
            aggregate=totals,
            prediction=prediction,
            recommendations=recommendations,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            created_at=datetime.now(tz=UTC),
            photo_url=request.photo_url,
        )
        stored = self.repository.create_analysis(analysis)
        _logger.info(
            "Stored food analysis",
            extra={
                "analysis_id": str(stored.id),
                "items": len(items),
                "risk_level": str(prediction.risk_level),
            },
        )

        if not include_advisory or self.advisory is None:
            return AnalysisOutcome(analysis=stored)
        try:
            record = await self.advisory.analyze(
                user_id,
                analysis=stored,
                baseline_glucose=baseline.value,
                user_profile=self.profiles.get_profile(user_id),
            )
        except AdvisoryUnavailableError:
            _logger.warning(
                "Advisory unavailable for analysis",
                extra={"analysis_id": str(stored.id)},
            )
            return AnalysisOutcome(
                analysis=stored, advisory_status=ADVISORY_UNAVAILABLE
            )
        return AnalysisOutcome(
            analysis=stored, advisory=record, advisory_status=ADVISORY_COMPLETED
        )

    def match_item(self, food: DetectedFoodInput) -> DetectedFoodItem:
        """Resolve one detected food against the catalog."""
        try:
            record = self.catalog.match(food.name)
        except CatalogUnavailableError:
            _logger.exception("Catalog lookup failed for %r", food.name)
            return DetectedFoodItem(
                name=food.name,
                confidence=food.confidence,
                portion_grams=food.portion,
                lookup_failed=True,
            )
        if record is None:
            return DetectedFoodItem(
                name=food.name, confidence=food.confidence, portion_grams=food.portion
            )
        return DetectedFoodItem(
            name=food.name,
            confidence=food.confidence,
            portion_grams=food.portion,
            matched_food_id=record.id,
            nutritional_data=compute_contribution(record, food.portion),
        )

    def resolve_baseline(
        self, user_id: UUID, requested: float | None
    ) -> GlucoseContext:
        """Pick the baseline glucose for a prediction."""
        now = datetime.now(tz=UTC)
        if requested is not None:
            return GlucoseContext(
                value=requested, source=GlucoseSource.MANUAL, recorded_at=now
            )
        latest = self.glucose.latest(user_id)
        if latest is not None:
            return GlucoseContext(
                value=latest.value_mg_dl,
                source=GlucoseSource.LATEST_READING,
                recorded_at=latest.recorded_at,
            )
        profile = self.profiles.get_profile(user_id)
        if profile is not None and profile.baseline_glucose is not None:
            return GlucoseContext(
                value=profile.baseline_glucose,
                source=GlucoseSource.PROFILE,
                recorded_at=now,
            )
        return GlucoseContext(
            value=self.default_baseline_glucose,
            source=GlucoseSource.DEFAULT,
            recorded_at=now,
        )

    def history(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        meal_type: MealType | None = None,
        risk_level: RiskLevel | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> list[FoodAnalysis]:
        """Return a page of the user's analyses."""
        return self.repository.list_analyses(
            user_id,
            meal_type=meal_type,
            risk_level=risk_level,
            start=start,
            end=end,
            limit=limit,
            offset=(max(page, 1) - 1) * limit,
        )

    def get_analysis(self, user_id: UUID, analysis_id: UUID) -> FoodAnalysis | None:
        """Return a single analysis."""
        return self.repository.get_analysis(user_id, analysis_id)

    def update_feedback(
        self, user_id: UUID, analysis_id: UUID, feedback: AnalysisFeedback
    ) -> FoodAnalysis | None:
        """Store user feedback on an analysis."""
        analysis = self.repository.get_analysis(user_id, analysis_id)
        if analysis is None:
            return None
        stamped = feedback.model_copy(update={"submitted_at": datetime.now(tz=UTC)})
        return self.repository.update_analysis(replace(analysis, feedback=stamped))

    def share(
        self, user_id: UUID, analysis_id: UUID, emails: list[str]
    ) -> FoodAnalysis | None:
        """Replace the list of addresses an analysis is shared with."""
        cleaned = [email.strip() for email in emails if email.strip()]
        if not cleaned:
            raise ValueError("At least one email address is required")
        analysis = self.repository.get_analysis(user_id, analysis_id)
        if analysis is None:
            return None
        return self.repository.update_analysis(replace(analysis, shared_with=cleaned))

    def delete(self, user_id: UUID, analysis_id: UUID) -> bool:
        """Soft delete an analysis."""
        analysis = self.repository.get_analysis(user_id, analysis_id)
        if analysis is None:
            return False
        self.repository.update_analysis(replace(analysis, is_active=False))
        return True

    def stats(self, user_id: UUID, days: int = 30) -> AnalysisStats:
        """Summarize the user's analyses over the last days."""
        analyses = self.repository.list_analyses(
            user_id,
            meal_type=None,
            risk_level=None,
            start=datetime.now(tz=UTC) - timedelta(days=days),
            end=None,
            limit=10_000,
            offset=0,
        )
        ratings = [
            analysis.feedback.rating
            for analysis in analyses
            if analysis.feedback is not None and analysis.feedback.rating is not None
        ]
        return AnalysisStats(
            total_analyses=len(analyses),
            average_rating=_average(ratings),
            high_risk_meals=sum(
                1
                for analysis in analyses
                if analysis.prediction.risk_level == RiskLevel.HIGH
            ),
            average_calories=_average(
                [analysis.aggregate.total_calories for analysis in analyses]
            ),
            average_carbs=_average(
                [analysis.aggregate.total_carbs_g for analysis in analyses]
            ),
            period_days=days,
        )


def _average(values: list[int]) -> float | None:
    if not values:
        return None
    return round(sum(values) / len(values), 1)
