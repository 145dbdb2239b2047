import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from weekplanner.scheduling.policy import POLICIES


def get_database_url() -> str:
    """Get database URL, using an absolute path for the default SQLite file."""
    db_url = os.getenv("WEEKPLANNER_DATABASE_URL", "")
    if db_url:
        logger.info(f"Using WEEKPLANNER_DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "weekplanner.db"
    db_url = f"sqlite:///{db_path.resolve()}"
    logger.debug(f"Using default database path: {db_url}")
    return db_url


class Settings(BaseSettings):
    timezone: str = Field(default="Europe/Brussels", validation_alias="WEEKPLANNER_TIMEZONE")
    policy_name: str = Field(default="weekdays", validation_alias="WEEKPLANNER_POLICY")
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="WEEKPLANNER_DATABASE_URL",
    )
    history_limit: int = Field(
        default=3,
        validation_alias="WEEKPLANNER_HISTORY_LIMIT",
        description="Number of history entries returned when no limit is given",
    )
    history_retention: int = Field(
        default=50,
        validation_alias="WEEKPLANNER_HISTORY_RETENTION",
        description="Maximum number of history entries kept by a history sink",
    )
    log_level: str = Field(default="INFO", validation_alias="WEEKPLANNER_LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="WEEKPLANNER_LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="WEEKPLANNER_",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Validate that the timezone is a known IANA identifier."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Invalid timezone '{value}'. Use IANA timezone identifiers.") from e
        return value

    @field_validator("policy_name")
    @classmethod
    def validate_policy_name(cls, value: str) -> str:
        if value not in POLICIES:
            raise ValueError(f"Unknown policy '{value}'. Known policies: {', '.join(sorted(POLICIES))}")
        return value

    @field_validator("history_limit", "history_retention")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"History sizes must be positive, got {value}")
        return value


settings = Settings()
