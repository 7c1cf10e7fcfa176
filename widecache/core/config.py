"""
widecache Configuration

Configuration management with environment variable support.
Implements secure defaults and validation for all settings.
"""

import re
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import DEFAULT_REGION, REGION_NAME_PATTERN

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Cache settings with validation and secure defaults."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # Environment settings
    ENVIRONMENT: str = Field(
        default="development", description="Runtime environment"
    )

    # Cache behaviour
    CACHE_STORE_BACKEND: str = Field(
        default="memory", description="Storage backend: memory, sqlalchemy or redis"
    )
    CACHE_KEYSPACE: str = Field(
        default="widecache", description="Keyspace that partitions all cache rows"
    )
    CACHE_DEFAULT_REGION: str = Field(
        default=DEFAULT_REGION, description="Region used when none is given"
    )
    CACHE_ALLOW_NONE_NOOP: bool = Field(
        default=False,
        description="Treat set() with a None value as a logged no-op instead of an error",
    )

    # Database configuration
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///:memory:",
        description="Async SQLAlchemy connection URL",
    )
    DATABASE_POOL_SIZE: int = Field(
        default=5, ge=1, le=100, description="Database connection pool size"
    )
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL statements")

    # Redis configuration
    REDIS_URL: str = Field(
        default="redis://localhost:6379", description="Redis connection URL"
    )
    REDIS_MAX_CONNECTIONS: int = Field(
        default=10, ge=1, le=50, description="Redis connection pool size"
    )

    # Development and debugging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="console", description="console or json")

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed}")
        return v

    @field_validator("CACHE_STORE_BACKEND")
    @classmethod
    def validate_store_backend(cls, v):
        """Validate storage backend name."""
        allowed = ["memory", "sqlalchemy", "redis"]
        if v.lower() not in allowed:
            raise ValueError(f"CACHE_STORE_BACKEND must be one of: {allowed}")
        return v.lower()

    @field_validator("CACHE_KEYSPACE", "CACHE_DEFAULT_REGION")
    @classmethod
    def validate_identifier(cls, v):
        """Keyspace and region names must be valid column family identifiers."""
        if not re.match(REGION_NAME_PATTERN, v):
            raise ValueError(
                f"'{v}' is not a valid keyspace or region name "
                "(letters, digits and underscores, max 48 characters)"
            )
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log renderer."""
        allowed = ["console", "json"]
        if v.lower() not in allowed:
            raise ValueError(f"LOG_FORMAT must be one of: {allowed}")
        return v.lower()

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def store_backend(self) -> str:
        """Alias for CACHE_STORE_BACKEND."""
        return self.CACHE_STORE_BACKEND

    @property
    def keyspace(self) -> str:
        """Alias for CACHE_KEYSPACE."""
        return self.CACHE_KEYSPACE

    @property
    def default_region(self) -> str:
        """Alias for CACHE_DEFAULT_REGION."""
        return self.CACHE_DEFAULT_REGION

    @property
    def database_url(self) -> str:
        """Alias for DATABASE_URL."""
        return self.DATABASE_URL

    @property
    def redis_url(self) -> str:
        """Alias for REDIS_URL."""
        return self.REDIS_URL

    @property
    def log_level(self) -> str:
        """Alias for LOG_LEVEL."""
        return self.LOG_LEVEL


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

