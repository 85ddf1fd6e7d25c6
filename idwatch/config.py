"""
idwatch Configuration Module
============================

Centralized configuration management using Pydantic Settings.

Loads configuration from:
    1. Environment variables
    2. .env file (if present)
    3. Default values

Usage:
    from idwatch.config import settings

    print(settings.database_dsn)
    print(settings.evidence_source_timeout_seconds)

Author: idwatch Team
Version: 1.0.0
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Naming convention: UPPER_SNAKE_CASE in env, lower_snake_case in code.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(default="idwatch", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=True, description="Emit JSON log lines")

    # =========================================================================
    # API Server
    # =========================================================================

    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    cors_allowed_origins: str = Field(
        default="",
        description="Comma-separated CORS origins (empty allows all)"
    )

    # =========================================================================
    # PostgreSQL
    # =========================================================================

    postgres_host: str = Field(default="localhost", description="PostgreSQL host")
    postgres_port: int = Field(default=5432, description="PostgreSQL port")
    postgres_db: str = Field(default="idwatch", description="PostgreSQL database")
    postgres_user: str = Field(default="idwatch_user", description="PostgreSQL user")
    postgres_password: str = Field(
        default="idwatch_secure_password_change_me",
        description="PostgreSQL password"
    )
    database_url: Optional[str] = Field(
        default=None,
        description="Full async SQLAlchemy URL; overrides the postgres_* fields"
    )

    @property
    def postgres_async_dsn(self) -> str:
        """Get async PostgreSQL connection string for asyncpg."""
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def database_dsn(self) -> str:
        """Connection string actually used by the engine."""
        return self.database_url or self.postgres_async_dsn

    # =========================================================================
    # Authentication
    # =========================================================================

    jwt_secret: str = Field(
        default="idwatch-dev-secret-CHANGE-IN-PRODUCTION",
        description="HMAC secret for access tokens"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expire_minutes: int = Field(default=60, description="Access token TTL")

    # =========================================================================
    # Evidence Source
    # =========================================================================

    evidence_source_url: str = Field(
        default="",
        description="Evidence source API URL (empty = unconfigured)"
    )
    evidence_source_api_key: str = Field(
        default="",
        description="Evidence source API key"
    )
    evidence_source_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Upper bound on a single evidence source call"
    )
    evidence_source_max_concurrency: int = Field(
        default=5,
        ge=1,
        description="Parallel evidence source calls per scan"
    )
    evidence_source_circuit_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures before the circuit opens"
    )
    evidence_source_circuit_cooldown_seconds: float = Field(
        default=60.0,
        ge=0.0,
        description="Seconds the circuit stays open"
    )

    # =========================================================================
    # Match Acceptance Policy
    # =========================================================================

    min_confidence_score: float = Field(
        default=80.0,
        ge=0.0,
        le=100.0,
        description="Candidates reporting a lower confidence are rejected"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        return origins or ["*"]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once.

    Returns:
        Settings instance
    """
    return Settings()


# Convenience alias
settings = get_settings()
