"""Configuration management for routinely."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="data/routinely.db", description="Path to the SQLite database file")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Deployment
    environment: str = Field(default="development", description="Deployment environment name")
    service_name: str = Field(default="routinely", description="Service name reported to Logfire")


# Application Constants
class Constants:
    """Application-wide constants."""

    # Completion history
    COMPLETION_HISTORY_LIMIT: int = 100  # Most recent completions returned per person

    # Visibility overrides
    OVERRIDE_MIN_MINUTES: int = 10
    OVERRIDE_MAX_MINUTES: int = 60

    # Pagination
    FULL_SCAN_PER_PAGE: int = 500  # Page size for list_all_records scans

    # HTTP
    USER_ID_HEADER: str = "X-User-Id"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
