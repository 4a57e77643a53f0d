"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from ticket_analytics.core.exceptions import InvalidConfigurationError
from ticket_analytics.models.enums import ResolutionPolicy

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    APP_NAME: str = "Ticket SLA Analytics"
    ENV: str = "development"

    DATABASE_URL: str = "postgresql+psycopg://postgres@localhost:5432/ticket_analytics"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000"

    ANALYTICS_DOMAIN: str = "IT"
    ANALYTICS_DEFAULT_RANGE: str = "30d"
    # earliest: first RESOLVED/CLOSED transition wins, even across a reopen.
    # latest: the final resolved cycle wins; a later reopen clears it.
    ANALYTICS_RESOLUTION_POLICY: ResolutionPolicy = ResolutionPolicy.earliest
    SLA_WARNING_THRESHOLD: float = 0.8
    LEADERBOARD_SIZE: int = 6
    WORKLOAD_SIZE: int = 8
    RECENT_ACTIVITY_LIMIT: int = 8

    ROLLUP_DEFAULT_DAYS: int = 30
    ROLLUP_MAX_DAYS: int = 365

    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def validate_runtime(self) -> None:
        if not 0 < self.SLA_WARNING_THRESHOLD <= 1:
            raise InvalidConfigurationError("SLA warning threshold must be in (0, 1]", "SLA_WARNING_THRESHOLD")
        for name in ("LEADERBOARD_SIZE", "WORKLOAD_SIZE", "ROLLUP_DEFAULT_DAYS", "ROLLUP_MAX_DAYS"):
            if getattr(self, name) < 1:
                raise InvalidConfigurationError(f"{name} must be at least 1", name)
        if not self.ANALYTICS_DOMAIN.strip():
            raise InvalidConfigurationError("Analytics domain must not be empty", "ANALYTICS_DOMAIN")


settings = Settings()
