from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from digitalme.core.version import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_ENV: Literal["development", "production", "test"] = "development"
    APP_NAME: str = "DigitalMe"

    REDIS_URL: str = "redis://localhost:6379/0"
    # Maximum number of connections Redis client will open per process
    REDIS_MAX_CONNECTIONS: int = 20

    # Refinement client
    REFINE_API_URL: str = "http://localhost:8000"
    REFINE_TIMEOUT_SECONDS: float = 30.0
    REFINE_MAX_ATTEMPTS: int = 2
    REFINE_RETRY_DELAY_SECONDS: float = 2.0

    # Message collection
    BATCH_SIZE_THRESHOLD: int = 10
    INACTIVITY_THRESHOLD_SECONDS: int = 300  # 5 minutes
    BATCH_POLL_INTERVAL_SECONDS: int = 60
    MIN_MESSAGE_WORDS: int = 10

    # Refinement endpoint rate limiting
    REFINE_RATE_LIMIT: int = 10
    REFINE_RATE_WINDOW_SECONDS: int = 3600

    # AI
    DEFAULT_GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_API_KEY: str | None = None


settings = Settings()

APP_VERSION = __version__
