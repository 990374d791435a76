"""Application configuration with comprehensive validation."""
from typing import Optional, Literal, Dict
from functools import lru_cache
from pydantic import Field, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# WEIGHT TABLES
# =============================================================================
# Aggregate weights turn category sub-scores into AssessmentResult.overall_score.
# Judging weights turn the same sub-scores into the competition score used
# for ranking. Both must sum to 1.0.
# =============================================================================

AGGREGATE_WEIGHTS: Dict[str, float] = {
    "grammar": 0.20,
    "vocabulary": 0.15,
    "structure": 0.15,
    "character_development": 0.15,
    "plot_originality": 0.20,
    "descriptive_writing": 0.10,
    "spelling": 0.05,
}

JUDGING_WEIGHTS: Dict[str, float] = {
    "grammar": 0.20,
    "creativity": 0.25,
    "structure": 0.15,
    "character_development": 0.15,
    "plot_development": 0.15,
    "vocabulary": 0.10,
}


class Settings(BaseSettings):
    """Application settings with production-grade validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Story Contest Platform"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # API
    API_V1_PREFIX: str = "/api/v1"
    CRON_SECRET_TOKEN: Optional[SecretStr] = None

    # Database
    DATABASE_URL: str = "sqlite:///./story_contest.db"
    DATABASE_ECHO: bool = False

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL_COMPETITION: int = 120  # 2 minutes

    # Notifications
    NOTIFY_WEBHOOK_URL: Optional[str] = None
    NOTIFY_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0, le=60)
    NOTIFY_RETRY_BUDGET_SECONDS: float = Field(default=10.0, gt=0, le=120)
    NOTIFY_IN_BACKGROUND: bool = True

    # Competition schedule (days from the 1st of the month)
    MAX_ENTRIES_PER_PERIOD: int = Field(default=3, ge=1, le=50)
    MAX_WINNERS: int = Field(default=3, ge=1, le=10)
    SUBMISSION_PHASE_DAYS: int = Field(default=25, ge=1, le=27)
    JUDGING_PHASE_DAYS: int = Field(default=5, ge=1, le=10)
    ARCHIVE_AFTER_DAYS: int = Field(default=7, ge=1, le=90)
    TRANSITION_LEASE_SECONDS: int = Field(default=900, ge=30)

    # Judging
    JUDGING_MAX_WORKERS: int = Field(default=4, ge=1, le=64)
    ASSESSMENT_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0, le=600)
    JUDGING_BATCH_TIMEOUT_SECONDS: float = Field(default=600.0, gt=0)
    MIN_WORDS_FOR_INTEGRITY: int = Field(default=10, ge=1)
    FALLBACK_CATEGORY_SCORE: int = Field(default=50, ge=0, le=100)

    # Weight tables
    AGGREGATE_WEIGHTS: Dict[str, float] = Field(default_factory=lambda: dict(AGGREGATE_WEIGHTS))
    JUDGING_WEIGHTS: Dict[str, float] = Field(default_factory=lambda: dict(JUDGING_WEIGHTS))

    @model_validator(mode="after")
    def validate_weight_tables(self):
        """Validate both weight tables sum to 1.0."""
        for name, table in (
            ("AGGREGATE_WEIGHTS", self.AGGREGATE_WEIGHTS),
            ("JUDGING_WEIGHTS", self.JUDGING_WEIGHTS),
        ):
            total = sum(table.values())
            if abs(total - 1.0) > 0.001:
                raise ValueError(f"{name} must sum to 1.0, got {total}")
            if any(w < 0 for w in table.values()):
                raise ValueError(f"{name} must not contain negative weights")
        return self

    @model_validator(mode="after")
    def validate_judging_budget(self):
        """The whole judging batch must finish before its transition claim goes stale."""
        if self.JUDGING_BATCH_TIMEOUT_SECONDS >= self.TRANSITION_LEASE_SECONDS:
            raise ValueError(
                "JUDGING_BATCH_TIMEOUT_SECONDS must be below TRANSITION_LEASE_SECONDS, "
                f"got {self.JUDGING_BATCH_TIMEOUT_SECONDS} >= {self.TRANSITION_LEASE_SECONDS}"
            )
        return self

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure production has required security settings."""
        if self.APP_ENV == "production":
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if self.CRON_SECRET_TOKEN is None:
                raise ValueError("CRON_SECRET_TOKEN is required in production")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
