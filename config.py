"""
Configuration module for the Clinic Booking service.
Loads settings from environment variables (and an optional .env file).
"""

from datetime import date

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Configuration
    app_host: str = Field(
        default="0.0.0.0",
        alias="APP_HOST",
        description="Host to bind the application"
    )
    app_port: int = Field(
        default=8000,
        alias="APP_PORT",
        description="Port to bind the application"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level"
    )

    # Data Store Configuration
    store_backend: str = Field(
        default="json",
        alias="STORE_BACKEND",
        description="Document store backend: memory, json or cosmos"
    )
    data_dir: str = Field(
        default="./data",
        alias="DATA_DIR",
        description="Directory holding the JSON collection files"
    )

    # Practice Configuration
    practice_name: str = Field(
        default="Bright Smile Dental",
        alias="PRACTICE_NAME",
        description="Practice name used in user-facing messages"
    )
    practice_phone: str = Field(
        default="555-DENTAL (555-336-8251)",
        alias="PRACTICE_PHONE",
        description="Phone number patients are told to call when something goes wrong"
    )

    # Scheduling Configuration
    reference_date: date = Field(
        default=date(2025, 10, 19),
        alias="REFERENCE_DATE",
        description="Date that relative phrases like 'next week' are resolved against"
    )
    deployment_year: int = Field(
        default=2025,
        alias="DEPLOYMENT_YEAR",
        description="Year forced onto requested dates"
    )
    emergency_dedup_minutes: int = Field(
        default=10,
        alias="EMERGENCY_DEDUP_MINUTES",
        description="Window in which repeat emergency alerts for one phone are suppressed"
    )

    # Session Configuration
    session_idle_hours: int = Field(
        default=24,
        alias="SESSION_IDLE_HOURS",
        description="Idle period after which a conversation session is evicted"
    )
    session_history_limit: int = Field(
        default=20,
        alias="SESSION_HISTORY_LIMIT",
        description="Maximum messages kept per conversation session"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()
