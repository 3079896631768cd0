"""Application configuration management using Pydantic Settings.

This module loads and validates environment variables using Pydantic Settings.
All configuration is loaded from environment variables or a .env file.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        database_url: SQLAlchemy connection string (PostgreSQL or SQLite)
        database_pool_size: Number of connections to maintain in pool
        database_max_overflow: Maximum overflow connections beyond pool_size
        environment: Application environment (development, staging, production)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        hmac_secret: Key used to sign response tokens and salt recipient ids
        token_expiration_days: Default lifetime of issued response tokens
        base_url: Public origin used when building response links
        thank_you_path: Where recipients are redirected after responding
        admin_api_key: Key required by the link issuance endpoint
        surveys_dir: Path to directory containing survey YAML files
        bot_*: Penalties and threshold for the response risk scorer
    """

    # Database Configuration
    database_url: str = Field(
        description="SQLAlchemy database connection string"
    )
    database_pool_size: int = Field(
        default=5,
        description="Number of database connections in pool"
    )
    database_max_overflow: int = Field(
        default=10,
        description="Maximum overflow connections beyond pool size"
    )

    # Application Configuration
    environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    surveys_dir: str = Field(
        default="./surveys",
        description="Path to surveys directory"
    )
    base_url: str = Field(
        default="http://localhost:8000",
        description="Public origin for issued response links"
    )
    thank_you_path: str = Field(
        default="/thank-you",
        description="Redirect target after a response is recorded"
    )

    # Security Configuration
    hmac_secret: str = Field(
        min_length=16,
        description="HMAC-SHA256 key for response tokens (must be kept secret)"
    )
    token_expiration_days: int = Field(
        default=14,
        ge=1,
        description="Default response token lifetime in days"
    )
    admin_api_key: str = Field(
        description="API key for link issuance endpoints"
    )

    # Bot Detection
    bot_penalty_user_agent: int = Field(default=20, ge=0)
    bot_penalty_timing: int = Field(default=15, ge=0)
    bot_penalty_ip_address: int = Field(default=25, ge=0)
    bot_penalty_head_request: int = Field(default=30, ge=0)
    bot_penalty_sequential_pattern: int = Field(default=20, ge=0)
    bot_score_threshold: int = Field(
        default=50,
        ge=1,
        description="Total risk score at or above which a response is flagged"
    )
    bot_timing_floor_ms: int = Field(
        default=30000,
        ge=0,
        description="Clicks faster than this after issuance are suspicious"
    )
    sequential_window_seconds: int = Field(default=60, ge=1)
    sequential_event_limit: int = Field(default=3, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v_upper

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton

    Note:
        Uses lru_cache to ensure settings are only loaded once
        and shared across the application.
    """
    return Settings()
