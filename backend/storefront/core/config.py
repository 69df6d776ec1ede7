"""
Storefront Application Configuration

All settings come from environment variables (or a .env file) and are
validated once at startup.
"""

from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env values become process environment before Settings reads it
load_dotenv()

ASYNC_DATABASE_SCHEMES = ("postgresql+asyncpg://", "sqlite+aiosqlite://")
ENVIRONMENTS = ["development", "test", "staging", "production"]
CACHE_BACKENDS = ["memory", "redis"]
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _one_of(name: str, value: str, allowed: List[str]) -> str:
    if value not in allowed:
        raise ValueError(f"{name} must be one of: {allowed}")
    return value


class Settings(BaseSettings):
    """Storefront settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    ENVIRONMENT: str = Field(default="development", description="Deployment stage")

    # Persistence
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./storefront.db",
        description="Async SQLAlchemy database URL",
    )
    DATABASE_POOL_SIZE: int = Field(
        default=20, ge=1, le=100, description="Pooled connections kept open"
    )
    DATABASE_MAX_OVERFLOW: int = Field(
        default=30, ge=0, le=100, description="Connections allowed beyond the pool"
    )
    DATABASE_POOL_TIMEOUT: int = Field(
        default=30, ge=1, le=300, description="Seconds to wait for a pooled connection"
    )
    DATABASE_POOL_RECYCLE: int = Field(
        default=3600, ge=300, le=86400, description="Seconds before a connection is replaced"
    )
    DATABASE_CONNECT_RETRIES: int = Field(
        default=3, ge=1, le=10, description="Attempts when opening the database"
    )

    # Tagged cache
    CACHE_BACKEND: str = Field(
        default="memory", description="Tagged cache backend (memory or redis)"
    )
    CACHE_TTL_SECONDS: int = Field(
        default=3600, ge=1, le=86400 * 7, description="Lifetime of a cache entry"
    )
    CACHE_KEY_PREFIX: str = Field(
        default="storefront", min_length=1, description="Namespace for cache keys"
    )

    # Redis, used when CACHE_BACKEND is redis
    REDIS_URL: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    REDIS_MAX_CONNECTIONS: int = Field(
        default=10, ge=1, le=50, description="Redis client pool size"
    )
    REDIS_SOCKET_TIMEOUT: float = Field(
        default=2.0, gt=0, le=30, description="Redis socket timeout in seconds"
    )

    # HTTP server
    API_HOST: str = Field(default="0.0.0.0", description="Bind address")
    API_PORT: int = Field(default=8000, ge=1, le=65535, description="Bind port")

    DEBUG: bool = Field(default=False, description="Echo SQL statements")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Only async drivers can back the AsyncEngine."""
        if not v.startswith(ASYNC_DATABASE_SCHEMES):
            raise ValueError(
                f"DATABASE_URL must start with one of {list(ASYNC_DATABASE_SCHEMES)}"
            )
        return v

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        return _one_of("ENVIRONMENT", v, ENVIRONMENTS)

    @field_validator("CACHE_BACKEND")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        return _one_of("CACHE_BACKEND", v.lower(), CACHE_BACKENDS)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return _one_of("LOG_LEVEL", v.upper(), LOG_LEVELS)

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings()
