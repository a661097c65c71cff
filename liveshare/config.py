# liveshare/config.py
"""
Centralized application configuration using pydantic-settings.

All settings are read from environment variables or .env file.
Deployments only need to modify .env - no code changes needed.
"""

import os
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Priority: environment variables > .env file > defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )

    # --- Database ---
    DB_URL: str = Field(
        default="postgresql://localhost:5432/liveshare",
        description="PostgreSQL connection URL"
    )

    # --- Redis (notification queue) ---
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )

    # --- Server ---
    HOST: str = Field(
        default="127.0.0.1",
        description="Server bind host"
    )
    PORT: int = Field(
        default=5000,
        description="Server bind port"
    )
    PUBLIC_BASE_URL: str = Field(
        default="http://127.0.0.1:5000",
        description="Externally reachable base URL used to build tracking links"
    )

    # --- Auth ---
    JWT_SECRET: str = Field(
        default="change-me",
        description="Secret used to verify bearer tokens"
    )
    JWT_ALGORITHM: str = Field(
        default="HS256",
        description="Signing algorithm of bearer tokens"
    )

    # --- Broadcast tracking ---
    TOKEN_BYTES: int = Field(
        default=32,
        description="Random bytes in a broadcast session token"
    )

    # --- Side effects ---
    NOTIFICATIONS_ENABLED: bool = Field(
        default=True,
        description="Enqueue notification events to the worker"
    )
    OTEL_ENABLED: bool = Field(
        default=True,
        description="Enable OpenTelemetry instrumentation"
    )

    # --- Rate limiting (requests per minute per client) ---
    RATE_LIMIT_API: int = Field(default=120)
    RATE_LIMIT_GENERAL: int = Field(default=300)

    # --- Debug / Logging ---
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v_upper

    @field_validator("TOKEN_BYTES")
    @classmethod
    def validate_token_bytes(cls, v: int) -> int:
        # tokens double as read capabilities: at least 128 bits
        if v < 16:
            raise ValueError("TOKEN_BYTES must be at least 16")
        return v

    @field_validator("PUBLIC_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance (singleton pattern)."""
    return Settings()


# --- Singleton instance for easy import ---
settings = get_settings()


# --- Module-level exports ---
# These allow code using `config.DATABASE_URL` style access.

# Database
DATABASE_URL: str = settings.DB_URL

# Server
HOST: str = settings.HOST
PORT: int = settings.PORT
DEBUG: bool = settings.DEBUG
LOG_LEVEL: str = settings.LOG_LEVEL
PUBLIC_BASE_URL: str = settings.PUBLIC_BASE_URL

# Redis
REDIS_URL: str = settings.REDIS_URL

# Service name reported to tracing/logging
SERVICE_NAME: str = "liveshare"

# --- Paths (computed, not from env) ---
PROJECT_ROOT: str = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
TEMPLATE_PATH: str = os.path.join(os.path.dirname(__file__), "templates")
LOGS_PATH: str = os.path.join(PROJECT_ROOT, "logs")
