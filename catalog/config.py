"""
Configuration management using Pydantic settings.
Selects the storage backend and holds database URL, data directory and logging options.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal


class Settings(BaseSettings):
    """Application settings loaded from CATALOG_* environment variables or .env."""

    # Application configuration
    app_name: str = "Property Catalog"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Active storage backend, fixed for the lifetime of the process
    storage_backend: Literal["database", "json", "memory"] = "database"

    # Relational backend
    database_url: str = "sqlite+aiosqlite:///./catalog.db"
    database_echo: bool = False

    # File-backed backend
    data_dir: str = "./data"

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if not v:
            raise ValueError("database_url is required")
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Normalize and validate the logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the process lifecycle.
    """
    return Settings()
