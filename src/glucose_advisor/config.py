"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from glucose_advisor.domain.profiles import DiabetesType

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

_DIABETES_TYPE_ALIASES = {
    "type1": DiabetesType.TYPE_1,
    "type 1": DiabetesType.TYPE_1,
    "tipo 1": DiabetesType.TYPE_1,
    "t1": DiabetesType.TYPE_1,
    "type2": DiabetesType.TYPE_2,
    "type 2": DiabetesType.TYPE_2,
    "tipo 2": DiabetesType.TYPE_2,
    "t2": DiabetesType.TYPE_2,
    "prediabetes": DiabetesType.PREDIABETES,
    "pre-diabetes": DiabetesType.PREDIABETES,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    openai_reasoning_effort: str | None = None
    openai_store: bool = False
    default_baseline_glucose: float = 100.0
    advisory_baseline_glucose: float = 80.0
    catalog_cache_ttl_seconds: int = 3600
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_diabetes_type(raw: str | None) -> DiabetesType | None:
    """Normalize a free-form diabetes type label."""
    if raw is None:
        return None
    cleaned = " ".join(raw.strip().lower().replace("_", " ").split())
    if not cleaned:
        return None
    return _DIABETES_TYPE_ALIASES.get(cleaned)
