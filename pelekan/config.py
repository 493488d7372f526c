"""
Client configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Remote progression service
    api_base_url: str = "https://api.qoqnoos.app/api/pelekan"
    request_timeout_seconds: float = 10.0

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    project_name: str = "Pelekan Progress Client"
    version: str = "0.1.0"

    # Baseline assessment scoring scale (max attainable total score)
    baseline_max_score: int = 31


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
