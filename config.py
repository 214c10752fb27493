"""
Configuration module for the Returns Service.
Loads settings from environment variables.
"""

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

    # Data Store Configuration
    storage_backend: str = Field(
        default="memory",
        alias="STORAGE_BACKEND",
        description="Repository backend: 'memory' or 'cosmos'"
    )
    seed_sample_data: bool = Field(
        default=True,
        alias="SEED_SAMPLE_DATA",
        description="Load data/sample into the in-memory store at startup"
    )

    # Workflow Configuration
    policy_cache_ttl_seconds: int = Field(
        default=300,
        alias="POLICY_CACHE_TTL_SECONDS",
        description="How long return policies are cached (0 disables caching)"
    )
    review_lease_seconds: int = Field(
        default=60,
        alias="REVIEW_LEASE_SECONDS",
        description="How long a technical review holds a return request"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()
