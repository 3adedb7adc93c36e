"""
Configuration management using pydantic-settings and python-dotenv
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database (ledger persistence)
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///speakup.db",
        description="Database connection URL",
        alias="DATABASE_URL"
    )
    DATABASE_ECHO: bool = Field(
        default=False,
        description="Echo SQL queries for debugging",
        alias="DATABASE_ECHO"
    )

    # Document store
    DATA_API_URL: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the complaint/notification document API",
        alias="DATA_API_URL"
    )
    DATA_API_KEY: Optional[str] = Field(
        default=None,
        description="API key sent with document store requests",
        alias="DATA_API_KEY"
    )

    # Urgency classification
    URGENCY_CLASSIFIER: str = Field(
        default="sentiment",
        description="Urgency classifier backend: openai or sentiment"
    )
    OPENAI_API_KEY: Optional[str] = Field(
        default=None,
        description="OpenAI API key for the urgency classifier",
        alias="OPENAI_API_KEY"
    )
    URGENCY_MODEL: str = Field(
        default="gpt-3.5-turbo",
        description="Chat model used for urgency classification"
    )
    CLASSIFY_TIMEOUT: float = Field(
        default=15.0,
        description="Per-complaint classification timeout in seconds"
    )
    MAX_CONCURRENT_CLASSIFICATIONS: int = Field(
        default=5,
        description="Maximum in-flight classifier calls per triage run"
    )
    CLASSIFICATION_CACHE_ENABLED: bool = Field(
        default=False,
        description="Memoize urgency per complaint id and text hash"
    )

    # Application
    ENVIRONMENT: str = Field(
        default="development",
        description="Application environment"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )
    REQUEST_TIMEOUT: int = Field(
        default=30,
        description="HTTP request timeout in seconds"
    )
    REFRESH_INTERVAL_SECONDS: int = Field(
        default=300,
        description="Seconds between scheduled full refreshes, 0 disables"
    )

    # Notification ledger
    UNDO_WINDOW_SECONDS: float = Field(
        default=10.0,
        description="How long a dismissal stays undoable"
    )
    DISMISSED_STORE: str = Field(
        default="file",
        description="Dismissed-id persistence backend: file or database"
    )
    DISMISSED_STORE_PATH: str = Field(
        default="dismissed_notifications.json",
        description="JSON file used by the file-backed dismissed store"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "allow"  # Allow extra fields from environment variables


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
