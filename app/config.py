"""
Application configuration using Pydantic settings.
"""
from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Hosted database (REST interface)
    data_store_url: str = Field(
        default="https://example.supabase.co",
        description="Base URL of the hosted database project"
    )
    data_store_key: str = Field(
        default="",
        description="API key sent with every data store request"
    )
    data_store_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for data store requests"
    )

    # Brigade registry (source of conglomerate coordinates)
    brigade_api_base_url: str = Field(
        default="https://brigada-informe-ifn.vercel.app",
        description="Base URL of the field brigade registry service"
    )

    # Identity service
    identity_api_base_url: str = Field(
        default="https://identity.example.com",
        description="Base URL of the external identity service"
    )
    identity_verify_path: str = Field(
        default="/api/auth/verify",
        description="Path of the token verification endpoint"
    )
    auth_enabled: bool = Field(
        default=False,
        description="Require a bearer token verified by the identity service"
    )

    # Retry Configuration
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of retry attempts for API calls"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=4,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )

    # Survey behaviour flags
    record_timestamps: bool = Field(
        default=True,
        description="Write a creation timestamp on newly registered detections"
    )
    persist_conglomerate_summaries: bool = Field(
        default=False,
        description="Store a count summary row every time a conglomerate summary is computed"
    )
    non_positive_diameter_policy: Literal["exclude", "bucket_small"] = Field(
        default="exclude",
        description="How the size-class histogram treats diameters <= 0"
    )
    simulated_detection_count: int = Field(
        default=20,
        description="Default number of detections produced by the satellite simulator"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Tree Survey API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
