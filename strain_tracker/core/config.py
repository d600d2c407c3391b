"""
Core configuration module using Pydantic Settings.
"""
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Document store
    DOCUMENT_STORE_BACKEND: str = "sql"  # "sql" or "memory"
    DATABASE_URL: Optional[str] = None  # e.g. postgresql+asyncpg://user:pw@localhost:5432/strains

    # Collections are namespaced per deployment
    APP_ID: str = "default-app-id"

    # Identity; the SQL backend refuses to start with the default key
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    MIN_PASSWORD_LENGTH: int = 6
    MINIMUM_AGE_YEARS: int = 21

    # Client sessions
    SESSION_IDLE_TTL_SECONDS: float = 3600.0
    MAX_SESSIONS: int = 1000

    # Generative text API
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash-preview-09-2025"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Retry policy for outbound calls
    RETRY_MAX_ATTEMPTS: int = 5
    RETRY_BASE_DELAY_SECONDS: float = 1.0
    RETRY_MAX_JITTER_SECONDS: float = 1.0

    # Review rules
    HIGH_RATING_THRESHOLD: int = 4
    MAX_TERPENES: int = 3
    POPULAR_STRAINS_LIMIT: int = 5
    TOP_RATED_LIMIT: int = 5
    ANALYSIS_LOADING_TIMEOUT_SECONDS: float = 120.0

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"

    # Application
    APP_NAME: str = "Strain Tracker API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


# Global settings instance
settings = Settings()
