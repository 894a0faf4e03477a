"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_BACKEND_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "Lifelog Triage API"
    database_url: str = f"sqlite+pysqlite:///{_BACKEND_DIR / 'triage.db'}"
    timezone: str = "UTC"
    lookback_hours: int = 24
    require_approval: bool = True
    reminder_minutes: int = 30
    default_score_threshold: int = 70
    default_learning_rate: float = 0.1

    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: int = 60

    lifelog_api_key: str | None = None
    lifelog_base_url: str = "https://api.limitless.ai"
    lifelog_timeout_seconds: int = 30

    google_access_token: str | None = None
    google_calendar_id: str = "primary"
    google_tasklist_id: str = "@default"
    google_timeout_seconds: int = 30

    notification_recipient: str | None = None

    model_config = SettingsConfigDict(
        env_file=str(_BACKEND_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
