"""Tests for meal logging."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from glucose_advisor.domain.analysis import MealType
from glucose_advisor.domain.meals import (
    MealEntryInput,
    MealEntryUpdate,
    MealGlucoseInput,
    MealItemInput,
    Mood,
    NutritionInfoInput,
    PortionUnit,
)
from glucose_advisor.services.cache import InMemoryCache
from glucose_advisor.services.catalog import CatalogService
from glucose_advisor.services.meals import MealService
from tests.conftest import (
    FailingFoodCatalogRepository,
    InMemoryFoodCatalogRepository,
    InMemoryMealRepository,
    default_foods,
)


def _service() -> tuple[MealService, dict[str, object]]:
    foods = default_foods()
    catalog = CatalogService(
        repository=InMemoryFoodCatalogRepository(
            foods={food.id: food for food in foods}
        ),
        cache=InMemoryCache(),
    )
    service = MealService(catalog=catalog, repository=InMemoryMealRepository())
    return service, {food.name: food.id for food in foods}


def test_create_entry_prices_catalog_items() -> None:
    service, ids = _service()
    user_id = uuid4()

    entry = service.create_entry(
        user_id,
        MealEntryInput(
            meal_type=MealType.LUNCH,
            items=[
                MealItemInput(
                    name="Avocado", food_id=ids["Aguacate"], portion_amount=150
                ),
                MealItemInput(
                    name="Rice", food_id=ids["White rice"], portion_amount=200
                ),
            ],
            tags=["home"],
        ),
    )

    assert entry.items[0].nutritional_data is not None
    assert entry.items[0].nutritional_data.calories == 240
    assert entry.items[1].nutritional_data is not None
    assert entry.items[1].nutritional_data.carbohydrates_g == 56
    assert entry.totals.total_carbs_g == 70
    assert entry.totals.total_calories == 240 + entry.items[1].nutritional_data.calories
    assert entry.tags == ["home"]
    assert service.get_entry(user_id, entry.id) == entry


def test_explicit_nutrition_is_portion_total() -> None:
    service, _ = _service()
    user_id = uuid4()
    entry = service.create_entry(
        user_id,
        MealEntryInput(
            meal_type=MealType.SNACK,
            items=[
                MealItemInput(
                    name="Granola bar",
                    portion_amount=40,
                    nutrition=NutritionInfoInput(
                        calories=180, carbohydrates=24, protein=4, fat=7, fiber=2
                    ),
                )
            ],
        ),
    )

    assert entry.totals.total_calories == 180
    assert entry.totals.total_carbs_g == 24

    resized = service.update_item_portion(user_id, entry.id, 0, 20)

    assert resized is not None
    assert resized.items[0].portion_amount == 20
    assert resized.totals.total_calories == 90
    assert resized.totals.total_carbs_g == 12


def test_items_without_nutrition_contribute_nothing() -> None:
    service, _ = _service()

    entry = service.create_entry(
        uuid4(),
        MealEntryInput(
            meal_type=MealType.DINNER,
            items=[
                MealItemInput(
                    name="Soup",
                    portion_amount=1,
                    portion_unit=PortionUnit.CUPS,
                    nutrition=NutritionInfoInput(calories=120),
                ),
                MealItemInput(name="Mystery", food_id=uuid4()),
            ],
        ),
    )

    assert all(item.nutritional_data is None for item in entry.items)
    assert entry.totals.total_calories == 0


def test_catalog_outage_keeps_items_unpriced() -> None:
    service = MealService(
        catalog=CatalogService(
            repository=FailingFoodCatalogRepository(), cache=InMemoryCache()
        ),
        repository=InMemoryMealRepository(),
    )
    user_id = uuid4()

    entry = service.create_entry(
        user_id,
        MealEntryInput(
            meal_type=MealType.LUNCH,
            items=[
                MealItemInput(name="Rice", food_id=uuid4(), portion_amount=150),
                MealItemInput(
                    name="Granola bar",
                    portion_amount=40,
                    food_id=uuid4(),
                    nutrition=NutritionInfoInput(
                        calories=180, carbohydrates=24, protein=4, fat=7, fiber=2
                    ),
                ),
            ],
        ),
    )

    assert entry.items[0].nutritional_data is None
    assert entry.items[1].nutritional_data is not None
    assert entry.totals.total_carbs_g == 24
    assert service.get_entry(user_id, entry.id) == entry


def test_update_item_portion_validation() -> None:
    service, ids = _service()
    user_id = uuid4()
    entry = service.create_entry(
        user_id,
        MealEntryInput(
            meal_type=MealType.LUNCH,
            items=[MealItemInput(name="Apple", food_id=ids["Apple"])],
        ),
    )

    with pytest.raises(ValueError):
        service.update_item_portion(user_id, entry.id, 0, 0)
    assert service.update_item_portion(user_id, entry.id, 3, 50) is None


def test_update_entry_replaces_items() -> None:
    service, ids = _service()
    user_id = uuid4()
    entry = service.create_entry(
        user_id,
        MealEntryInput(
            meal_type=MealType.BREAKFAST,
            items=[MealItemInput(name="Apple", food_id=ids["Apple"])],
        ),
    )

    updated = service.update_entry(
        user_id,
        entry.id,
        MealEntryUpdate(
            items=[MealItemInput(name="Chicken", food_id=ids["Chicken breast"])],
            mood=Mood.GOOD,
        ),
    )

    assert updated is not None
    assert [item.name for item in updated.items] == ["Chicken"]
    assert updated.totals.total_protein_g == 31
    assert updated.mood == Mood.GOOD
    assert updated.notes is None


def test_glucose_readings_and_response() -> None:
    service, ids = _service()
    user_id = uuid4()
    entry = service.create_entry(
        user_id,
        MealEntryInput(
            meal_type=MealType.LUNCH,
            items=[MealItemInput(name="Rice", food_id=ids["White rice"])],
        ),
    )
    now = datetime.now(tz=UTC)

    service.add_glucose(
        user_id, entry.id, MealGlucoseInput(kind="before", value=100, recorded_at=now)
    )
    service.add_glucose(
        user_id,
        entry.id,
        MealGlucoseInput(kind="after", value=150, minutes_after_meal=120),
    )
    updated = service.add_glucose(
        user_id,
        entry.id,
        MealGlucoseInput(kind="after", value=175, minutes_after_meal=60),
    )

    assert updated is not None
    assert [item.minutes_after_meal for item in updated.glucose_after] == [60, 120]
    response = updated.glucose_response()
    assert response is not None
    assert response.peak == 175
    assert response.peak_time_min == 60
    assert response.increase == 75
    assert response.percent_increase == 75.0

    with pytest.raises(ValueError):
        service.add_glucose(
            user_id, entry.id, MealGlucoseInput(kind="after", value=140)
        )


def test_list_and_delete_entries() -> None:
    service, ids = _service()
    user_id = uuid4()
    lunch = service.create_entry(
        user_id,
        MealEntryInput(
            meal_type=MealType.LUNCH,
            items=[MealItemInput(name="Apple", food_id=ids["Apple"])],
        ),
    )
    service.create_entry(
        user_id,
        MealEntryInput(
            meal_type=MealType.SNACK,
            items=[MealItemInput(name="Apple", food_id=ids["Apple"])],
        ),
    )

    assert len(service.list_entries(user_id)) == 2
    assert [
        entry.id for entry in service.list_entries(user_id, meal_type=MealType.LUNCH)
    ] == [lunch.id]

    assert service.delete_entry(user_id, lunch.id) is True
    assert service.get_entry(user_id, lunch.id) is None
    assert len(service.list_entries(user_id)) == 1
