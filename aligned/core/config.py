"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Aligned Planning Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://aligned@localhost:5432/aligned"
    # Empty means the fast tier lives in-process (local development and tests).
    redis_url: str = ""
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-3-flash-preview"
    gemini_temperature: float = 0.7
    gemini_max_output_tokens: int = 32768
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta/models"
    generation_timeout_seconds: float = 120.0
    generation_retry_backoff_seconds: float = 2.0
    migration_lock_ttl_seconds: int = 60
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "aligned"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
