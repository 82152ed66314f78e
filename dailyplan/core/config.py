"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "DailyPlan Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://dailyplan@localhost:5432/dailyplan"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4-turbo"
    openai_temperature: float = 0.7
    openai_max_tokens: int = 2000
    openai_timeout_seconds: float = 30.0
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "dailyplan"
    history_enabled: bool = True
    recent_outcome_days: int = 7


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
