"""Tests for Supabase adapter implementations."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from glucose_advisor.adapters.supabase_advisory_repository import (
    SupabaseAdvisoryRepository,
)
from glucose_advisor.adapters.supabase_analysis_repository import (
    SupabaseAnalysisRepository,
)
from glucose_advisor.adapters.supabase_food_catalog_repository import (
    SupabaseFoodCatalogRepository,
)
from glucose_advisor.adapters.supabase_glucose_repository import (
    SupabaseGlucoseRepository,
)
from glucose_advisor.adapters.supabase_meal_repository import SupabaseMealRepository
from glucose_advisor.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from glucose_advisor.domain.analysis import (
    AnalysisFeedback,
    AnalysisRequest,
    DetectedFoodInput,
    MealType,
    RiskLevel,
)
from glucose_advisor.domain.glucose import (
    GlucoseReading,
    GlucoseUnit,
    ReadingType,
)
from glucose_advisor.domain.meals import (
    MealEntryInput,
    MealGlucoseInput,
    MealItemInput,
    NutritionInfoInput,
)
from glucose_advisor.domain.profiles import DiabetesType, UserProfile
from glucose_advisor.services.meals import MealService
from tests.conftest import make_food


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    """Records the query chain; writes echo their payload unless queued."""

    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": [], "upsert": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, str, object]] = field(default_factory=list)
    last_order: tuple[str, bool] | None = None
    last_range: tuple[int, int] | None = None
    upsert_conflict: str | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def _filter(self, op: str, column: str, value: object) -> "FakeTable":
        self.last_filters.append((op, column, value))
        return self

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        self.last_filters = []
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        self.last_filters = []
        return self

    def upsert(self, payload: object, on_conflict: str = "") -> "FakeTable":
        self._action = "upsert"
        self.last_payload = payload
        self.upsert_conflict = on_conflict
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("eq", column, value)

    def ilike(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("ilike", column, value)

    def text_search(
        self, column: str, query: str, options: object = None
    ) -> "FakeTable":
        return self._filter("text_search", column, query)

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("gte", column, value)

    def lte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("lte", column, value)

    def lt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("lt", column, value)

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.last_order = (column, desc)
        return self

    def range(self, start: int, end: int) -> "FakeTable":
        self.last_range = (start, end)
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        if queue:
            return FakeResponse(data=queue.pop(0))
        if action in {"insert", "upsert"} and isinstance(self.last_payload, dict):
            return FakeResponse(data=[dict(self.last_payload)])
        return FakeResponse(data=[])


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _food_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(uuid4()),
        "name": "Aguacate",
        "category": "fruits",
        "glycemic_index": 15,
        "glycemic_load": 1,
        "carbohydrates_g": 9,
        "fat_g": 15,
        "protein_g": 2,
        "fiber_g": 7,
        "calories": 160,
        "digestion_time_min": 120,
        "diabetes_recommended": True,
        "is_active": True,
    }
    row.update(overrides)
    return row


def test_catalog_substring_match_escapes_wildcards() -> None:
    client = FakeSupabaseClient()
    table = client.table("foods")
    table.queue("select", [_food_row()])

    repository = SupabaseFoodCatalogRepository(client)
    record = repository.find_by_exact_or_substring("50%_off")

    assert record is not None
    assert record.name == "Aguacate"
    assert record.calories == 160
    assert ("ilike", "name", "%50\\%\\_off%") in table.last_filters
    assert ("eq", "is_active", True) in table.last_filters


def test_catalog_text_search_and_missing_rows() -> None:
    client = FakeSupabaseClient()
    table = client.table("foods")

    repository = SupabaseFoodCatalogRepository(client)

    assert repository.search_text("chicken") is None
    assert ("text_search", "name", "chicken") in table.last_filters
    assert repository.get_food(uuid4()) is None


def test_catalog_search_applies_filters_and_range() -> None:
    client = FakeSupabaseClient()
    table = client.table("foods")
    table.queue("select", [_food_row(), _food_row(name="Apple")])

    repository = SupabaseFoodCatalogRepository(client)
    foods = repository.search_foods(
        query="a",
        category=None,
        max_glycemic_index=50,
        recommended_only=True,
        limit=20,
        offset=40,
    )

    assert [food.name for food in foods] == ["Aguacate", "Apple"]
    assert ("lte", "glycemic_index", 50) in table.last_filters
    assert ("eq", "diabetes_recommended", True) in table.last_filters
    assert table.last_range == (40, 59)


def test_catalog_writes() -> None:
    client = FakeSupabaseClient()
    table = client.table("foods")
    repository = SupabaseFoodCatalogRepository(client)
    record = make_food("Lentils", glycemic_index=32)

    created = repository.create_food(record)
    assert created == record

    with pytest.raises(RuntimeError):
        repository.update_food(record)

    assert repository.deactivate_food(record.id) is False
    table.queue("update", [_food_row(id=str(record.id), is_active=False)])
    assert repository.deactivate_food(record.id) is True
    assert table.last_payload == {"is_active": False}


def test_analysis_repository_roundtrip(analysis_service) -> None:
    user_id = uuid4()
    outcome = asyncio.run(
        analysis_service.analyze(
            user_id,
            AnalysisRequest(
                detected_foods=[
                    DetectedFoodInput(name="Aguacate"),
                    DetectedFoodInput(name="Xyzzyfood"),
                ],
                meal_type=MealType.LUNCH,
                current_glucose=170,
            ),
        )
    )
    client = FakeSupabaseClient()
    table = client.table("food_analyses")

    repository = SupabaseAnalysisRepository(client)
    stored = repository.create_analysis(outcome.analysis)

    assert stored == outcome.analysis
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["risk_level"] == "high"

    table.queue("select", [table.last_payload])
    listed = repository.list_analyses(
        user_id,
        meal_type=MealType.LUNCH,
        risk_level=RiskLevel.HIGH,
        start=None,
        end=None,
        limit=10,
        offset=0,
    )
    assert listed == [outcome.analysis]
    assert ("eq", "risk_level", "high") in table.last_filters
    assert table.last_order == ("created_at", True)


def test_analysis_update_persists_feedback(analysis_service) -> None:
    user_id = uuid4()
    analysis = asyncio.run(
        analysis_service.analyze(
            user_id,
            AnalysisRequest(
                detected_foods=[DetectedFoodInput(name="Apple")],
                meal_type=MealType.SNACK,
            ),
        )
    ).analysis
    client = FakeSupabaseClient()
    table = client.table("food_analyses")
    repository = SupabaseAnalysisRepository(client)
    repository.create_analysis(analysis)
    stored_row = dict(table.last_payload)

    feedback = AnalysisFeedback(rating=4, submitted_at=datetime.now(tz=UTC))
    stored_row["feedback"] = feedback.model_dump(mode="json")
    stored_row["shared_with"] = ["doctor@example.com"]
    table.queue("update", [stored_row])

    updated = repository.update_analysis(analysis)

    assert updated.feedback == feedback
    assert updated.shared_with == ["doctor@example.com"]
    assert isinstance(table.last_payload, dict)
    assert set(table.last_payload) == {
        "feedback",
        "shared_with",
        "is_active",
        "updated_at",
    }


def test_glucose_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    table = client.table("glucose_readings")
    repository = SupabaseGlucoseRepository(client)
    reading = GlucoseReading(
        id=uuid4(),
        user_id=uuid4(),
        value=6.2,
        unit=GlucoseUnit.MMOL_L,
        reading_type=ReadingType.PRE_MEAL,
        recorded_at=datetime.now(tz=UTC),
    )

    assert repository.create_reading(reading) == reading

    table.queue("select", [table.last_payload])
    assert repository.get_latest(reading.user_id) == reading
    assert table.last_order == ("recorded_at", True)

    repository.list_readings(
        reading.user_id,
        start=datetime(2024, 1, 1, tzinfo=UTC),
        end=None,
        reading_type=ReadingType.FASTING,
        limit=20,
        offset=0,
    )
    assert ("gte", "recorded_at", "2024-01-01T00:00:00+00:00") in table.last_filters
    assert ("eq", "reading_type", "fasting") in table.last_filters


def test_profile_repository_upserts_on_user() -> None:
    client = FakeSupabaseClient()
    table = client.table("user_profiles")
    repository = SupabaseProfileRepository(client)
    profile = UserProfile(
        user_id=uuid4(),
        diabetes_type=DiabetesType.PREDIABETES,
        age=51,
        weight_kg=82.5,
        dietary_preferences=["vegetarian"],
    )

    saved = repository.upsert_profile(profile)

    assert saved == profile
    assert table.upsert_conflict == "user_id"

    table.queue("select", [{"user_id": str(profile.user_id), "diabetes_type": "T1"}])
    fetched = repository.get_profile(profile.user_id)
    assert fetched is not None
    assert fetched.diabetes_type == DiabetesType.TYPE_1


def test_meal_repository_roundtrip(catalog_service) -> None:
    client = FakeSupabaseClient()
    table = client.table("meal_entries")
    service = MealService(
        catalog=catalog_service, repository=SupabaseMealRepository(client)
    )
    user_id = uuid4()

    entry = service.create_entry(
        user_id,
        MealEntryInput(
            meal_type=MealType.BREAKFAST,
            items=[
                MealItemInput(
                    name="Toast",
                    portion_amount=60,
                    nutrition=NutritionInfoInput(
                        calories=160, carbohydrates=30, protein=5, fat=2
                    ),
                )
            ],
            tags=["weekday"],
        ),
    )

    assert entry.totals.total_calories == 160
    assert entry.items[0].per_100g is not None

    table.queue("select", [table.last_payload])
    table.queue("update", [{**table.last_payload, "glucose_before": None}])
    updated = service.add_glucose(
        user_id, entry.id, MealGlucoseInput(kind="before", value=98)
    )

    assert updated is not None
    assert updated.items == entry.items
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["glucose_before"]["value"] == 98


def test_advisory_repository_roundtrip(advisory_service, analysis_service) -> None:
    user_id = uuid4()
    analysis = asyncio.run(
        analysis_service.analyze(
            user_id,
            AnalysisRequest(
                detected_foods=[DetectedFoodInput(name="White rice")],
                meal_type=MealType.DINNER,
            ),
        )
    ).analysis
    record = asyncio.run(advisory_service.analyze(user_id, analysis=analysis))
    client = FakeSupabaseClient()
    table = client.table("advisory_analyses")
    repository = SupabaseAdvisoryRepository(client)

    stored = repository.create_record(record)

    assert stored == record
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["risk_level"] == "moderate"

    table.queue("select", [table.last_payload])
    assert repository.find_for_analysis(analysis.id) == record
    assert ("eq", "analysis_id", str(analysis.id)) in table.last_filters
    assert repository.find_for_meal_entry(uuid4()) is None
