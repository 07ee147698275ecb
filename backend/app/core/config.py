"""Configuration management using pydantic-settings."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    API keys default to empty strings: a missing key fails the calls of the
    component that needs it, never application startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Upstream API credentials
    gemini_api_key: str = ""
    exa_api_key: str = ""
    runware_api_key: str = ""

    # Upstream model identifiers
    gemini_model: str = "gemini-2.0-flash"
    runware_model: str = "runware:100@1"

    # Rate limiting (fixed window per client)
    rate_limit_window_ms: int = 900_000
    rate_limit_max: int = 25

    # Application settings
    app_env: str = "production"

    # Server settings
    backend_host: str = "localhost"
    backend_port: int = 8000
    frontend_port: int = 3000

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
