"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID, uuid4

import pytest

from glucose_advisor.config import Settings
from glucose_advisor.containers import AppContainer
from glucose_advisor.domain.advisory import AdvisoryRecord
from glucose_advisor.domain.analysis import FoodAnalysis, MealType, RiskLevel
from glucose_advisor.domain.foods import FoodCategory, NutrientRecord
from glucose_advisor.domain.glucose import GlucoseReading, ReadingType
from glucose_advisor.domain.meals import MealEntry
from glucose_advisor.domain.profiles import UserProfile
from glucose_advisor.services.advisory import (
    AdvisoryClient,
    AdvisoryRepository,
    AdvisoryService,
)
from glucose_advisor.services.analysis import AnalysisRepository, AnalysisService
from glucose_advisor.services.cache import InMemoryCache
from glucose_advisor.services.catalog import CatalogService, FoodCatalogRepository
from glucose_advisor.services.glucose import GlucoseRepository, GlucoseService
from glucose_advisor.services.meals import MealRepository, MealService
from glucose_advisor.services.profiles import ProfileRepository, ProfileService

TEST_SUPABASE_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
    "c2lnbmF0dXJl"
)


def make_food(name: str, **overrides: object) -> NutrientRecord:
    values: dict[str, object] = {
        "id": uuid4(),
        "name": name,
        "category": FoodCategory.VEGETABLES,
        "glycemic_index": 15,
        "glycemic_load": 1,
        "carbohydrates_g": 9,
        "fat_g": 15,
        "protein_g": 2,
        "fiber_g": 7,
        "digestion_time_min": 120,
    }
    values.update(overrides)
    return NutrientRecord.create(**values)


def default_foods() -> list[NutrientRecord]:
    return [
        make_food("Aguacate", category=FoodCategory.FRUITS, calories=160),
        make_food(
            "White rice",
            category=FoodCategory.CEREALS,
            glycemic_index=73,
            glycemic_load=21,
            carbohydrates_g=28,
            fat_g=0.3,
            protein_g=2.7,
            fiber_g=0.4,
            digestion_time_min=90,
        ),
        make_food(
            "Chicken breast",
            category=FoodCategory.MEATS,
            glycemic_index=0,
            glycemic_load=0,
            carbohydrates_g=0,
            fat_g=3.6,
            protein_g=31,
            fiber_g=0,
            digestion_time_min=180,
        ),
        make_food(
            "Apple",
            category=FoodCategory.FRUITS,
            glycemic_index=36,
            glycemic_load=5,
            carbohydrates_g=14,
            fat_g=0.2,
            protein_g=0.3,
            fiber_g=2.4,
            digestion_time_min=60,
        ),
    ]


@dataclass
class InMemoryFoodCatalogRepository(FoodCatalogRepository):
    """In-memory catalog that mimics substring and word search."""

    foods: dict[UUID, NutrientRecord] = field(default_factory=dict)
    substring_calls: list[str] = field(default_factory=list)
    text_calls: list[str] = field(default_factory=list)

    def _active(self) -> list[NutrientRecord]:
        return sorted(
            (food for food in self.foods.values() if food.is_active),
            key=lambda food: food.name,
        )

    def find_by_exact_or_substring(self, name: str) -> NutrientRecord | None:
        self.substring_calls.append(name)
        for food in self._active():
            if name.lower() in food.name.lower():
                return food
        return None

    def search_text(self, term: str) -> NutrientRecord | None:
        self.text_calls.append(term)
        for food in self._active():
            if term.lower() in food.name.lower().split():
                return food
        return None

    def get_food(self, food_id: UUID) -> NutrientRecord | None:
        food = self.foods.get(food_id)
        if food is None or not food.is_active:
            return None
        return food

    def search_foods(  # noqa: PLR0913
        self,
        *,
        query,
        category,
        max_glycemic_index,
        recommended_only,
        limit,
        offset,
    ) -> list[NutrientRecord]:
        foods = self._active()
        if query:
            foods = [food for food in foods if query.lower() in food.name.lower()]
        if category is not None:
            foods = [food for food in foods if food.category == category]
        if max_glycemic_index is not None:
            foods = [
                food for food in foods if food.glycemic_index <= max_glycemic_index
            ]
        if recommended_only:
            foods = [food for food in foods if food.diabetes_recommended]
        return foods[offset : offset + limit]

    def list_recommended(self) -> list[NutrientRecord]:
        return sorted(
            (food for food in self._active() if food.diabetes_recommended),
            key=lambda food: food.glycemic_index,
        )

    def list_by_glycemic_index(
        self, min_index: float, max_index: float
    ) -> list[NutrientRecord]:
        return [
            food
            for food in self._active()
            if min_index <= food.glycemic_index <= max_index
        ]

    def create_food(self, record: NutrientRecord) -> NutrientRecord:
        self.foods[record.id] = record
        return record

    def update_food(self, record: NutrientRecord) -> NutrientRecord:
        self.foods[record.id] = record
        return record

    def deactivate_food(self, food_id: UUID) -> bool:
        food = self.foods.get(food_id)
        if food is None:
            return False
        self.foods[food_id] = replace(food, is_active=False)
        return True


@dataclass
class FailingFoodCatalogRepository(InMemoryFoodCatalogRepository):
    """Catalog whose lookups fail like an unreachable store."""

    def find_by_exact_or_substring(self, name: str) -> NutrientRecord | None:
        raise RuntimeError("connection refused")

    def search_text(self, term: str) -> NutrientRecord | None:
        raise RuntimeError("connection refused")

    def get_food(self, food_id: UUID) -> NutrientRecord | None:
        raise RuntimeError("connection refused")


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    profiles: dict[UUID, UserProfile] = field(default_factory=dict)

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        return self.profiles.get(user_id)

    def upsert_profile(self, profile: UserProfile) -> UserProfile:
        self.profiles[profile.user_id] = profile
        return profile


@dataclass
class InMemoryGlucoseRepository(GlucoseRepository):
    readings: dict[UUID, GlucoseReading] = field(default_factory=dict)

    def create_reading(self, reading: GlucoseReading) -> GlucoseReading:
        self.readings[reading.id] = reading
        return reading

    def get_reading(self, user_id: UUID, reading_id: UUID) -> GlucoseReading | None:
        reading = self.readings.get(reading_id)
        if reading is None or reading.user_id != user_id or not reading.is_active:
            return None
        return reading

    def get_latest(self, user_id: UUID) -> GlucoseReading | None:
        readings = self._for_user(user_id)
        return readings[0] if readings else None

    def list_readings(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        start: datetime | None,
        end: datetime | None,
        reading_type: ReadingType | None,
        limit: int,
        offset: int,
    ) -> list[GlucoseReading]:
        readings = self._for_user(user_id)
        if start is not None:
            readings = [item for item in readings if item.recorded_at >= start]
        if end is not None:
            readings = [item for item in readings if item.recorded_at < end]
        if reading_type is not None:
            readings = [item for item in readings if item.reading_type == reading_type]
        return readings[offset : offset + limit]

    def update_reading(self, reading: GlucoseReading) -> GlucoseReading:
        self.readings[reading.id] = reading
        return reading

    def _for_user(self, user_id: UUID) -> list[GlucoseReading]:
        return sorted(
            (
                reading
                for reading in self.readings.values()
                if reading.user_id == user_id and reading.is_active
            ),
            key=lambda reading: reading.recorded_at,
            reverse=True,
        )


@dataclass
class InMemoryMealRepository(MealRepository):
    entries: dict[UUID, MealEntry] = field(default_factory=dict)

    def create_entry(self, entry: MealEntry) -> MealEntry:
        self.entries[entry.id] = entry
        return entry

    def get_entry(self, user_id: UUID, entry_id: UUID) -> MealEntry | None:
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id or not entry.is_active:
            return None
        return entry

    def list_entries(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        meal_type: MealType | None,
        start: datetime | None,
        end: datetime | None,
        limit: int,
        offset: int,
    ) -> list[MealEntry]:
        entries = sorted(
            (
                entry
                for entry in self.entries.values()
                if entry.user_id == user_id and entry.is_active
            ),
            key=lambda entry: entry.logged_at,
            reverse=True,
        )
        if meal_type is not None:
            entries = [entry for entry in entries if entry.meal_type == meal_type]
        if start is not None:
            entries = [entry for entry in entries if entry.logged_at >= start]
        if end is not None:
            entries = [entry for entry in entries if entry.logged_at < end]
        return entries[offset : offset + limit]

    def update_entry(self, entry: MealEntry) -> MealEntry:
        self.entries[entry.id] = entry
        return entry


@dataclass
class InMemoryAnalysisRepository(AnalysisRepository):
    analyses: dict[UUID, FoodAnalysis] = field(default_factory=dict)

    def create_analysis(self, analysis: FoodAnalysis) -> FoodAnalysis:
        self.analyses[analysis.id] = analysis
        return analysis

    def get_analysis(self, user_id: UUID, analysis_id: UUID) -> FoodAnalysis | None:
        analysis = self.analyses.get(analysis_id)
        if analysis is None or analysis.user_id != user_id or not analysis.is_active:
            return None
        return analysis

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
        analyses = sorted(
            (
                analysis
                for analysis in self.analyses.values()
                if analysis.user_id == user_id and analysis.is_active
            ),
            key=lambda analysis: analysis.created_at,
            reverse=True,
        )
        if meal_type is not None:
            analyses = [item for item in analyses if item.meal_type == meal_type]
        if risk_level is not None:
            analyses = [
                item for item in analyses if item.prediction.risk_level == risk_level
            ]
        if start is not None:
            analyses = [item for item in analyses if item.created_at >= start]
        if end is not None:
            analyses = [item for item in analyses if item.created_at < end]
        return analyses[offset : offset + limit]

    def update_analysis(self, analysis: FoodAnalysis) -> FoodAnalysis:
        self.analyses[analysis.id] = analysis
        return analysis


@dataclass
class InMemoryAdvisoryRepository(AdvisoryRepository):
    records: dict[UUID, AdvisoryRecord] = field(default_factory=dict)

    def create_record(self, record: AdvisoryRecord) -> AdvisoryRecord:
        self.records[record.id] = record
        return record

    def get_record(self, user_id: UUID, record_id: UUID) -> AdvisoryRecord | None:
        record = self.records.get(record_id)
        if record is None or record.user_id != user_id or not record.is_active:
            return None
        return record

    def find_for_analysis(self, analysis_id: UUID) -> AdvisoryRecord | None:
        matches = [
            record
            for record in self.records.values()
            if record.analysis_id == analysis_id and record.is_active
        ]
        return matches[-1] if matches else None

    def find_for_meal_entry(self, meal_entry_id: UUID) -> AdvisoryRecord | None:
        matches = [
            record
            for record in self.records.values()
            if record.meal_entry_id == meal_entry_id and record.is_active
        ]
        return matches[-1] if matches else None

    def list_records(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        risk_level: str | None,
        since: datetime | None,
        limit: int,
        offset: int,
    ) -> list[AdvisoryRecord]:
        records = [
            record
            for record in self.records.values()
            if record.user_id == user_id and record.is_active
        ]
        if risk_level is not None:
            records = [
                record
                for record in records
                if record.result.glucose_prediction.risk_level == risk_level
            ]
        if since is not None:
            records = [
                record for record in records if record.metadata.requested_at >= since
            ]
        records.reverse()
        return records[offset : offset + limit]

    def update_record(self, record: AdvisoryRecord) -> AdvisoryRecord:
        self.records[record.id] = record
        return record


@dataclass
class FailingAdvisoryRepository(InMemoryAdvisoryRepository):
    """Advisory store whose writes fail like an unreachable database."""

    def create_record(self, record: AdvisoryRecord) -> AdvisoryRecord:
        raise RuntimeError("supabase down")


def advisory_payload() -> dict[str, object]:
    return {
        "eating_order": [
            {"order": 2, "food_name": "White rice", "reason": "Carbs last"},
            {"order": 1, "food_name": "Chicken breast", "reason": "Protein first"},
        ],
        "glucose_prediction": {
            "predicted_peak_glucose": 165,
            "time_to_reach_peak": 60,
            "predicted_glucose_after_2_hours": 130,
            "risk_level": "moderate",
        },
        "nutritional_estimates": [],
        "recommendations": [
            {
                "type": "eating_order",
                "message": "Start with the chicken.",
                "priority": "high",
            }
        ],
        "reasoning": {
            "eating_order_rationale": "Protein slows gastric emptying.",
            "glucose_prediction_rationale": "Moderate carbohydrate load.",
            "key_factors": ["rice glycemic index"],
        },
    }


@dataclass
class FakeAdvisoryClient(AdvisoryClient):
    """Fake advisory client returning a fixed payload."""

    payload: dict[str, object] = field(default_factory=advisory_payload)
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        self.calls.append({"model": model, "prompt": prompt, "schema": schema})
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=TEST_SUPABASE_KEY,
        admin_token="admin-token",
        openai_api_key="openai-key",
    )


@pytest.fixture
def catalog_repository() -> InMemoryFoodCatalogRepository:
    return InMemoryFoodCatalogRepository(
        foods={food.id: food for food in default_foods()}
    )


@pytest.fixture
def catalog_service(
    catalog_repository: InMemoryFoodCatalogRepository,
) -> CatalogService:
    return CatalogService(repository=catalog_repository, cache=InMemoryCache())


@pytest.fixture
def advisory_client() -> FakeAdvisoryClient:
    return FakeAdvisoryClient()


@pytest.fixture
def advisory_service(
    catalog_service: CatalogService, advisory_client: FakeAdvisoryClient
) -> AdvisoryService:
    return AdvisoryService(
        client=advisory_client,
        catalog=catalog_service,
        repository=InMemoryAdvisoryRepository(),
        model="gpt-4o-mini",
        reasoning_effort=None,
        store=False,
    )


@pytest.fixture
def analysis_service(
    catalog_service: CatalogService, advisory_service: AdvisoryService
) -> AnalysisService:
    return AnalysisService(
        catalog=catalog_service,
        glucose=GlucoseService(InMemoryGlucoseRepository()),
        profiles=ProfileService(InMemoryProfileRepository()),
        repository=InMemoryAnalysisRepository(),
        advisory=advisory_service,
    )


@pytest.fixture
def container(
    settings: Settings,
    catalog_service: CatalogService,
    advisory_service: AdvisoryService,
    analysis_service: AnalysisService,
) -> AppContainer:
    meal_service = MealService(
        catalog=catalog_service, repository=InMemoryMealRepository()
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        catalog_service=catalog_service,
        profile_service=analysis_service.profiles,
        glucose_service=analysis_service.glucose,
        meal_service=meal_service,
        advisory_service=advisory_service,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )
