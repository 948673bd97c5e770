"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from glucose_advisor.adapters.openai_advisory_client import OpenAIAdvisoryClient
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
from glucose_advisor.config import Settings
from glucose_advisor.services.advisory import AdvisoryService
from glucose_advisor.services.analysis import AnalysisService
from glucose_advisor.services.cache import InMemoryCache
from glucose_advisor.services.catalog import CatalogService
from glucose_advisor.services.glucose import GlucoseService
from glucose_advisor.services.meals import MealService
from glucose_advisor.services.profiles import ProfileService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog_service: CatalogService
    profile_service: ProfileService
    glucose_service: GlucoseService
    meal_service: MealService
    advisory_service: AdvisoryService
    analysis_service: AnalysisService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog_service = CatalogService(
        repository=SupabaseFoodCatalogRepository(supabase_client),
        cache=InMemoryCache(),
        match_ttl_seconds=resolved_settings.catalog_cache_ttl_seconds,
    )
    profile_service = ProfileService(SupabaseProfileRepository(supabase_client))
    glucose_service = GlucoseService(SupabaseGlucoseRepository(supabase_client))
    meal_service = MealService(
        catalog=catalog_service,
        repository=SupabaseMealRepository(supabase_client),
    )
    openai_client = OpenAIAdvisoryClient.create(resolved_settings.openai_api_key)
    advisory_service = AdvisoryService(
        client=openai_client,
        catalog=catalog_service,
        repository=SupabaseAdvisoryRepository(supabase_client),
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        default_baseline_glucose=resolved_settings.advisory_baseline_glucose,
    )
    analysis_service = AnalysisService(
        catalog=catalog_service,
        glucose=glucose_service,
        profiles=profile_service,
        repository=SupabaseAnalysisRepository(supabase_client),
        advisory=advisory_service,
        default_baseline_glucose=resolved_settings.default_baseline_glucose,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        catalog_service=catalog_service,
        profile_service=profile_service,
        glucose_service=glucose_service,
        meal_service=meal_service,
        advisory_service=advisory_service,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )
