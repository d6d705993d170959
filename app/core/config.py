from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Group Predictions API"
    environment: str = "development"
    log_level: str = "INFO"
    cors_allow_origins: str = Field(default="http://localhost:3000,http://localhost:3001", validation_alias="CORS_ALLOW_ORIGINS")

    database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

    # Ranking cache
    ranking_cache_ttl_seconds: float = Field(default=120.0, validation_alias="RANKING_CACHE_TTL_SECONDS")

    # Nudges and reminders
    default_nudge_window_minutes: int = Field(default=60, validation_alias="DEFAULT_NUDGE_WINDOW_MINUTES")
    reminder_window_hours: int = Field(default=2, validation_alias="REMINDER_WINDOW_HOURS")

    # Structured event logging
    event_log_path: str = Field(default="logs/events.jsonl", validation_alias="EVENT_LOG_PATH")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        extra="ignore",
        case_sensitive=False,
    )


settings = Settings()
