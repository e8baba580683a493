import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///./mealbattle.db", alias="DATABASE_URL")
    auth_secret_key: str = Field("change-me", alias="AUTH_SECRET_KEY")
    auth_algorithm: str = Field("HS256", alias="AUTH_ALGORITHM")
    admin_secret: str = Field("admin-secret", alias="ADMIN_SECRET")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    llm_base_url: str | None = Field(None, alias="LLM_BASE_URL")
    llm_model_name: str = Field("full", alias="LLM_MODEL_NAME")
    llm_app_id: str | None = Field(None, alias="LLM_APP_ID")
    llm_app_key: str | None = Field(None, alias="LLM_APP_KEY")
    llm_timeout_seconds: float = Field(60.0, alias="LLM_TIMEOUT_SECONDS")
    llm_max_tokens: int = Field(1500, alias="LLM_MAX_TOKENS")
    battle_timezone: str = Field("America/New_York", alias="BATTLE_TIMEZONE")
    battle_duration_days: int = Field(6, alias="BATTLE_DURATION_DAYS")
    # Points for first place, second place, ...
    battle_winner_points: list[int] = Field(default_factory=lambda: [30, 20], alias="BATTLE_WINNER_POINTS")
    battle_ingredient_max_attempts: int = Field(3, alias="BATTLE_INGREDIENT_MAX_ATTEMPTS")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()
    except PermissionError:
        logger.warning("Unable to read .env; continuing with environment variables only")
        return Settings(_env_file=None)
