from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_ENV: Literal["development", "production", "test"] = "production"

    REDIS_URL: str = "redis://redis:6379/0"
    # Maximum number of connections Redis client will open per process
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_KEY_PREFIX: str = "artlens:"

    # AI
    DEFAULT_GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_API_KEY: str | None = None

    # Batch limits
    MAX_IMAGES_PER_BATCH: int = 50
    DEFAULT_RECOMMENDATION_LIMIT: int = 20

    # Source fan-out
    SOURCE_TIMEOUT_SECONDS: float = 8.0
    SOURCE_RESULT_LIMIT: int = 10
    FANOUT_KEYWORD_LIMIT: int = 10
    RIJKSMUSEUM_API_KEY: str | None = None
    KOREA_MUSEUM_API_KEY: str | None = None
    LOCAL_CATALOG_PATH: str | None = None
    LOCAL_CATALOG_CATEGORY: Literal["core", "korean", "student", "international"] = "core"

    # Payments
    PAYMENT_WINDOW_HOURS: int = 24
    PAYMENT_CHECKOUT_URL: str | None = None

    # Analysis history
    HISTORY_MAX_ENTRIES: int = 100
    HISTORY_TTL_SECONDS: int = 0  # 0 = never expire

    # Recommendation image checks
    IMAGE_VALIDATION_ENABLED: bool = True
    IMAGE_VALIDATION_TIMEOUT_SECONDS: float = 5.0


settings = Settings()
